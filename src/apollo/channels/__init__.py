"""Chat channel providers."""

from apollo.channels.base import ChannelInboundEvent, ChannelProvider, ChannelStatus
from apollo.channels.manager import ChannelRuntimeManager

__all__ = ["ChannelInboundEvent", "ChannelProvider", "ChannelRuntimeManager", "ChannelStatus"]
