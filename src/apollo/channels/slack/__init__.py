from apollo.channels.slack.provider import SlackChannelProvider

__all__ = ["SlackChannelProvider"]
