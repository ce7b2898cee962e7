"""
Static provider capability table.

Maps provider + model-id prefix to the streaming protocol used and the
reasoning features the model accepts. Also holds the canonical
variant-to-reasoning mapping for each provider.

Dependencies: diagrammaton.models
System role: Dispatch table for the provider adapter layer
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from diagrammaton.models.generation import Provider, Variant


class ProviderCapability(str, Enum):
    """Streaming protocol spoken to the provider."""

    RESPONSES_STREAMING = "responses_streaming"
    CHAT_STREAMING = "chat_streaming"
    ANTHROPIC_STREAMING = "anthropic_streaming"


@dataclass(frozen=True)
class ModelCapabilities:
    streaming: ProviderCapability
    supports_thinking: bool = False
    supports_reasoning_effort: bool = False
    supports_json_schema: bool = True
    supports_verbosity: bool = False


_GPT5 = ModelCapabilities(
    ProviderCapability.RESPONSES_STREAMING,
    supports_thinking=True,
    supports_reasoning_effort=True,
    supports_verbosity=True,
)
_REASONING = ModelCapabilities(
    ProviderCapability.RESPONSES_STREAMING,
    supports_thinking=True,
    supports_reasoning_effort=True,
)
_RESPONSES = ModelCapabilities(ProviderCapability.RESPONSES_STREAMING)
_LEGACY_CHAT = ModelCapabilities(ProviderCapability.CHAT_STREAMING, supports_json_schema=False)
_CLAUDE_THINKING = ModelCapabilities(ProviderCapability.ANTHROPIC_STREAMING, supports_thinking=True)
_CLAUDE = ModelCapabilities(ProviderCapability.ANTHROPIC_STREAMING)

# First matching prefix wins, so longer prefixes come first.
CAPABILITY_TABLE: tuple[tuple[Provider, str, ModelCapabilities], ...] = (
    (Provider.OPENAI, "gpt-5", _GPT5),
    (Provider.OPENAI, "o1", _REASONING),
    (Provider.OPENAI, "o3", _REASONING),
    (Provider.OPENAI, "o4", _REASONING),
    (Provider.OPENAI, "gpt-4.1", _RESPONSES),
    (Provider.OPENAI, "gpt-4o", _RESPONSES),
    (Provider.OPENAI, "gpt-4", _LEGACY_CHAT),
    (Provider.OPENAI, "gpt-3.5", _LEGACY_CHAT),
    (Provider.ANTHROPIC, "claude-3-7", _CLAUDE_THINKING),
    (Provider.ANTHROPIC, "claude-4", _CLAUDE_THINKING),
    (Provider.ANTHROPIC, "claude-opus-4", _CLAUDE_THINKING),
    (Provider.ANTHROPIC, "claude-sonnet-4", _CLAUDE_THINKING),
    (Provider.ANTHROPIC, "claude-haiku-4", _CLAUDE_THINKING),
)

_PROVIDER_DEFAULTS = {
    Provider.OPENAI: _RESPONSES,
    Provider.ANTHROPIC: _CLAUDE,
}

OPENAI_REASONING_EFFORT: dict[Variant, str] = {
    Variant.FAST: "low",
    Variant.THINKING: "high",
}


def capabilities_for(provider: Provider, model: str) -> ModelCapabilities:
    """Look up capabilities for a provider/model pair."""
    for table_provider, prefix, capabilities in CAPABILITY_TABLE:
        if table_provider is provider and model.startswith(prefix):
            return capabilities
    return _PROVIDER_DEFAULTS[provider]


def supports_thinking(provider: Provider, model: str) -> bool:
    return capabilities_for(provider, model).supports_thinking


def openai_reasoning_effort(model: str, variant: Variant) -> str | None:
    """Reasoning effort for OpenAI reasoning models, None for the rest."""
    if not capabilities_for(Provider.OPENAI, model).supports_reasoning_effort:
        return None
    return OPENAI_REASONING_EFFORT[variant]


def anthropic_thinking_config(variant: Variant, max_tokens: int, budget_tokens: int) -> dict[str, Any]:
    """
    Extended thinking parameter for an Anthropic call.

    The budget always leaves at least one token of max_tokens for the answer.
    """
    if variant is not Variant.THINKING:
        return {"type": "disabled"}
    return {"type": "enabled", "budget_tokens": min(budget_tokens, max_tokens - 1)}
