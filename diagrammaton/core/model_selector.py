"""
Model selector.

Resolves the raw `model` token sent by clients into a ModelSelection.
Three surface forms are accepted: legacy aliases, composite
`provider:model:variant` tokens and bare model ids. Resolution is total:
anything unusable yields DEFAULT_SELECTION.

Dependencies: diagrammaton.models, diagrammaton.core.capabilities
System role: First step of provider dispatch
"""

import logging
import re
from typing import Any

from diagrammaton.core.capabilities import supports_thinking
from diagrammaton.models.generation import ModelSelection, Provider, Variant

logger = logging.getLogger(__name__)

DEFAULT_SELECTION = ModelSelection(provider=Provider.OPENAI, model="gpt-5", variant=Variant.FAST)

LEGACY_MODEL_ALIASES: dict[str, ModelSelection] = {
    alias: DEFAULT_SELECTION
    for alias in ("gpt3", "gpt-3", "gpt-3.5", "gpt-3.5-turbo", "gpt4", "gpt-4", "gpt5", "gpt-5")
}

ANTHROPIC_MODEL_PREFIX = "claude-"

_MODEL_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:/\-]*$")


def _is_model_id(value: str) -> bool:
    return bool(_MODEL_ID_PATTERN.match(value))


def _finalize(provider: Provider, model: str, variant: Variant) -> ModelSelection:
    if variant is Variant.THINKING and not supports_thinking(provider, model):
        logger.debug(
            "Thinking variant not supported, downgrading to fast",
            extra={"provider": provider.value, "model": model},
        )
        variant = Variant.FAST
    return ModelSelection(provider=provider, model=model, variant=variant)


def _resolve_composite(token: str) -> ModelSelection | None:
    provider_raw, *rest = token.split(":")
    if len(rest) >= 2:
        model, variant_raw = ":".join(rest[:-1]), rest[-1]
    else:
        model, variant_raw = rest[0], ""
    model = model.strip()
    if not model or not _is_model_id(model):
        return None

    try:
        provider = Provider(provider_raw.strip().lower())
    except ValueError:
        provider = Provider.OPENAI
    variant = Variant.THINKING if variant_raw.strip().lower() == Variant.THINKING.value else Variant.FAST
    return _finalize(provider, model, variant)


def resolve_model_selection(raw_token: Any) -> ModelSelection:
    """
    Resolve a client model token.

    Args:
        raw_token: Whatever the client sent in `model` (may be None or non-string)

    Returns:
        ModelSelection: Always a valid selection; never raises
    """
    if not isinstance(raw_token, str):
        return DEFAULT_SELECTION

    token = raw_token.strip()
    if not token:
        return DEFAULT_SELECTION

    legacy = LEGACY_MODEL_ALIASES.get(token.lower())
    if legacy is not None:
        return legacy

    if ":" in token:
        selection = _resolve_composite(token)
        if selection is None:
            logger.info("Unparseable model token, using default", extra={"model_token": token[:80]})
            return DEFAULT_SELECTION
        return selection

    if not _is_model_id(token):
        logger.info("Unparseable model token, using default", extra={"model_token": token[:80]})
        return DEFAULT_SELECTION

    if token.lower().startswith(ANTHROPIC_MODEL_PREFIX):
        return ModelSelection(provider=Provider.ANTHROPIC, model=token, variant=Variant.FAST)
    return ModelSelection(provider=Provider.OPENAI, model=token, variant=Variant.FAST)


def format_model_selection(selection: ModelSelection) -> str:
    """Inverse of composite parsing: `provider:model:variant`."""
    return selection.token
