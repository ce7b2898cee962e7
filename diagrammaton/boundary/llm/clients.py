"""
Provider SDK client factories.

Clients are built per request from the user's own API key; SDK-level
retries are disabled so timeouts and failures surface to the gateway.

Dependencies: openai, anthropic
System role: Construction of authenticated provider clients
"""

from typing import Callable

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

OpenAIClientFactory = Callable[[str], AsyncOpenAI]
AnthropicClientFactory = Callable[[str], AsyncAnthropic]


def create_openai_client(api_key: str) -> AsyncOpenAI:
    """OpenAI async client for one user's key."""
    return AsyncOpenAI(api_key=api_key, max_retries=0)


def create_anthropic_client(api_key: str) -> AsyncAnthropic:
    """Anthropic async client for one user's key."""
    return AsyncAnthropic(api_key=api_key, max_retries=0)
