"""Chat completion client for OpenAI-compatible endpoints."""

from lmpilot.llm.client import ChatClient, ChatMessage, EndpointConfig

__all__ = ["ChatClient", "ChatMessage", "EndpointConfig"]
