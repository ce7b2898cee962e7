"""
Model catalog service.

Lists the models a user can pick, based on which provider keys they
registered. Each provider is queried with the user's own key; a provider
that cannot be listed is reported unavailable instead of failing the
request. Results are cached per identity and key fingerprint.

Dependencies: openai, anthropic, diagrammaton.core
System role: Orchestrator behind POST /models
"""

import logging
import re

import anthropic
import openai
from pydantic import SecretStr

from diagrammaton.application.services.identity_service import IdentityResolver
from diagrammaton.boundary.llm.clients import (
    AnthropicClientFactory,
    OpenAIClientFactory,
    create_anthropic_client,
    create_openai_client,
)
from diagrammaton.configs.model_catalog import ModelCatalogSettings
from diagrammaton.core.capabilities import supports_thinking
from diagrammaton.core.model_selector import DEFAULT_SELECTION
from diagrammaton.core.ttl_cache import TTLCache
from diagrammaton.models.generation import ModelSelection, Provider, Variant
from diagrammaton.models.identity import LicensedIdentity
from diagrammaton.models.model_catalog import ModelCatalogResponse, ModelOption, ProviderAvailability

logger = logging.getLogger(__name__)

_OPENAI_CHAT_MODEL = re.compile(r"^(gpt-|o\d)")
_OPENAI_EXCLUDED_MARKERS = ("audio", "realtime", "transcribe", "tts", "image", "instruct", "search")


def is_openai_chat_model(model_id: str) -> bool:
    """Text generation models only; audio, image and search variants are dropped."""
    if not _OPENAI_CHAT_MODEL.match(model_id):
        return False
    return not any(marker in model_id for marker in _OPENAI_EXCLUDED_MARKERS)


def model_label(provider: Provider, model: str, variant: Variant) -> str:
    """Human readable label, e.g. 'GPT-5 (thinking)' or 'Claude sonnet 4 5 (fast)'."""
    if provider is Provider.ANTHROPIC and model.startswith("claude-"):
        base = "Claude " + model[len("claude-"):].replace("-", " ")
    elif model.startswith("gpt-"):
        base = "GPT-" + model[len("gpt-"):]
    elif model[:1] == "o":
        base = "O" + model[1:]
    else:
        base = model
    return f"{base} ({variant.value})"


def _fingerprint(key: SecretStr | None) -> str:
    return key.get_secret_value()[-6:] if key is not None else "none"


def catalog_cache_key(identity: LicensedIdentity) -> str:
    """Cache key changing whenever either stored provider key changes."""
    return (
        f"{identity.id}:{_fingerprint(identity.api_key_for(Provider.OPENAI))}"
        f":{_fingerprint(identity.api_key_for(Provider.ANTHROPIC))}"
    )


def build_options(provider: Provider, model_ids: list[str]) -> list[ModelOption]:
    """A fast option per model, plus a thinking option where supported."""
    options: list[ModelOption] = []
    for model in model_ids:
        variants = [Variant.FAST]
        if supports_thinking(provider, model):
            variants.append(Variant.THINKING)
        for variant in variants:
            selection = ModelSelection(provider=provider, model=model, variant=variant)
            options.append(
                ModelOption(
                    id=selection.token,
                    label=model_label(provider, model, variant),
                    provider=provider,
                    model=model,
                    variant=variant,
                )
            )
    return options


class ModelCatalogService:
    """Per-user model listing with a TTL cache."""

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        cache: TTLCache[ModelCatalogResponse],
        settings: ModelCatalogSettings,
        openai_client_factory: OpenAIClientFactory = create_openai_client,
        anthropic_client_factory: AnthropicClientFactory = create_anthropic_client,
    ) -> None:
        self._identity_resolver = identity_resolver
        self._cache = cache
        self._models_per_provider = settings.models_per_provider
        self._openai_client_factory = openai_client_factory
        self._anthropic_client_factory = anthropic_client_factory

    async def list_models(self, license_key: str) -> ModelCatalogResponse:
        """
        Models available to the owner of a license key.

        Args:
            license_key: Client license key

        Returns:
            ModelCatalogResponse: Options, default id and provider availability

        Raises:
            InvalidLicenseKeyError / UserNotFoundError: From identity resolution
        """
        identity = await self._identity_resolver.resolve_identity(license_key)
        cache_key = catalog_cache_key(identity)
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Model catalog served from cache", extra={"user_id": str(identity.id)})
            return cached

        openai_key = identity.api_key_for(Provider.OPENAI)
        anthropic_key = identity.api_key_for(Provider.ANTHROPIC)
        openai_models = await self._list_openai(openai_key) if openai_key is not None else None
        anthropic_models = await self._list_anthropic(anthropic_key) if anthropic_key is not None else None

        models = build_options(Provider.OPENAI, openai_models or []) + build_options(
            Provider.ANTHROPIC, anthropic_models or []
        )
        ids = [option.id for option in models]
        if DEFAULT_SELECTION.token in ids:
            default_model_id = DEFAULT_SELECTION.token
        else:
            default_model_id = ids[0] if ids else None

        catalog = ModelCatalogResponse(
            default_model_id=default_model_id,
            models=models,
            providers=ProviderAvailability(
                openai=openai_models is not None,
                anthropic=anthropic_models is not None,
            ),
        )
        self._cache.set(cache_key, catalog)

        logger.info(
            "Model catalog built",
            extra={
                "user_id": str(identity.id),
                "options": len(models),
                "openai": catalog.providers.openai,
                "anthropic": catalog.providers.anthropic,
            },
        )
        return catalog

    async def _list_openai(self, api_key: SecretStr) -> list[str] | None:
        try:
            async with self._openai_client_factory(api_key.get_secret_value()) as client:
                page = await client.models.list()
        except openai.APIError as exc:
            logger.warning(
                "Failed to list OpenAI models",
                extra={"error_type": type(exc).__name__, "status_code": getattr(exc, "status_code", None)},
            )
            return None

        models = [model for model in page.data if is_openai_chat_model(model.id)]
        models.sort(key=lambda model: model.created or 0, reverse=True)
        return [model.id for model in models[: self._models_per_provider]]

    async def _list_anthropic(self, api_key: SecretStr) -> list[str] | None:
        try:
            async with self._anthropic_client_factory(api_key.get_secret_value()) as client:
                page = await client.models.list()
        except anthropic.APIError as exc:
            logger.warning(
                "Failed to list Anthropic models",
                extra={"error_type": type(exc).__name__, "status_code": getattr(exc, "status_code", None)},
            )
            return None

        models = [model for model in page.data if model.id.startswith("claude-")]
        models.sort(key=lambda model: model.created_at, reverse=True)
        return [model.id for model in models[: self._models_per_provider]]
