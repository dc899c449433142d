"""Conversation gateway shared by chat channels and the scan scheduler."""

from apollo.gateway.service import ConversationGateway

__all__ = ["ConversationGateway"]
