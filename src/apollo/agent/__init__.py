"""Reasoning engine client and per-channel conversation state."""

from apollo.agent.client import ConverseOutcome, ReasoningClient, ReasoningError
from apollo.agent.sessions import ConversationStore

__all__ = ["ConversationStore", "ConverseOutcome", "ReasoningClient", "ReasoningError"]
