"""
Test suite for model token resolution.

Covers legacy aliases, composite provider:model:variant tokens, bare ids,
thinking downgrade and totality on junk input.

System role: Verification of provider dispatch inputs
"""

import pytest

from diagrammaton.core.model_selector import (
    DEFAULT_SELECTION,
    format_model_selection,
    resolve_model_selection,
)
from diagrammaton.models.generation import ModelSelection, Provider, Variant


class TestLegacyTokens:
    """Legacy aliases all map to the default selection."""

    @pytest.mark.parametrize("token", ["gpt3", "gpt-3.5-turbo", "gpt4", "GPT-4", "gpt5", " gpt-5 "])
    def test_legacy_alias_maps_to_default(self, token: str) -> None:
        assert resolve_model_selection(token) == DEFAULT_SELECTION

    def test_default_is_openai_gpt5_fast(self) -> None:
        assert DEFAULT_SELECTION.token == "openai:gpt-5:fast"


class TestCompositeTokens:
    """provider:model:variant parsing."""

    def test_anthropic_thinking_is_kept_when_supported(self) -> None:
        # Act
        selection = resolve_model_selection("anthropic:claude-sonnet-4-5:thinking")

        # Assert
        assert selection == ModelSelection(
            provider=Provider.ANTHROPIC, model="claude-sonnet-4-5", variant=Variant.THINKING
        )

    def test_thinking_downgraded_when_unsupported(self) -> None:
        selection = resolve_model_selection("openai:gpt-4o:thinking")

        assert selection.variant is Variant.FAST
        assert selection.model == "gpt-4o"

    def test_unknown_provider_falls_back_to_openai(self) -> None:
        selection = resolve_model_selection("mistral:gpt-4.1:fast")

        assert selection.provider is Provider.OPENAI
        assert selection.model == "gpt-4.1"

    def test_unknown_variant_means_fast(self) -> None:
        assert resolve_model_selection("openai:o3:turbo").variant is Variant.FAST

    def test_missing_model_yields_default(self) -> None:
        assert resolve_model_selection("openai::thinking") == DEFAULT_SELECTION

    def test_format_round_trips_composite(self) -> None:
        selection = resolve_model_selection("openai:o3:thinking")

        assert format_model_selection(selection) == "openai:o3:thinking"
        assert resolve_model_selection(format_model_selection(selection)) == selection


class TestBareTokens:
    """Bare model ids."""

    def test_claude_prefix_routes_to_anthropic(self) -> None:
        selection = resolve_model_selection("claude-opus-4-1")

        assert selection.provider is Provider.ANTHROPIC
        assert selection.variant is Variant.FAST

    def test_other_ids_route_to_openai(self) -> None:
        selection = resolve_model_selection("gpt-4.1-mini")

        assert selection.provider is Provider.OPENAI
        assert selection.model == "gpt-4.1-mini"


class TestTotality:
    """Resolution never raises."""

    @pytest.mark.parametrize("raw", [None, 42, 3.5, [], {}, "", "   ", "!!!", "model with spaces", "-x"])
    def test_junk_input_yields_default(self, raw) -> None:
        assert resolve_model_selection(raw) == DEFAULT_SELECTION
