from apollo.channels.telegram.provider import TelegramChannelProvider

__all__ = ["TelegramChannelProvider"]
