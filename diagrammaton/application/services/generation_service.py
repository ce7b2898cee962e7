"""
Generation service.

Runs the diagram pipeline for one request:

    parse -> license present -> content present -> rate limit -> identity
    -> model selection -> credentials -> prompt -> provider -> validator

Every failure is converted into an ErrorRecord here and handed back as a
value, so routers only map results onto HTTP. The streaming variant
performs the same steps up to the provider call, then waits for the
first chunk before handing the stream out; failures before that point
still become ordinary error responses.

Dependencies: diagrammaton.core, diagrammaton.boundary.llm
System role: Orchestrator behind /generate and /generate/stream
"""

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator

from pydantic import ValidationError

from diagrammaton.application.services.identity_service import IdentityResolver
from diagrammaton.boundary.llm.gateway import ProviderGateway
from diagrammaton.configs.generation import GenerationSettings
from diagrammaton.core.budget import BudgetMonitor, Deadline
from diagrammaton.core.diagram_validator import DiagramValidator
from diagrammaton.core.exceptions import (
    ApiKeyNotFoundForUserError,
    EmptyModelResponseError,
    ErrorKind,
    ErrorRecord,
    MissingLicenseKeyError,
    NoDescriptionProvidedError,
    to_error_record,
)
from diagrammaton.core.model_selector import resolve_model_selection
from diagrammaton.core.prompts import build_messages
from diagrammaton.core.rate_limiter import RateLimiterGate, resolve_rate_limit_identifier
from diagrammaton.models.diagram import DiagramResponse
from diagrammaton.models.generation import (
    ChatMessage,
    GenerateRequest,
    ModelSelection,
    ModifyRequest,
    ProviderCredentials,
    parse_generation_request,
)
from diagrammaton.models.identity import LicensedIdentity
from diagrammaton.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Buffered outcome: exactly one of `diagram` or `error` is set."""

    diagram: DiagramResponse | None = None
    error: ErrorRecord | None = None


@dataclass
class StreamResult:
    """Streaming outcome: exactly one of `stream` or `error` is set."""

    stream: AsyncIterator[str] | None = None
    error: ErrorRecord | None = None


@dataclass(frozen=True)
class PreparedGeneration:
    """Everything needed for the provider call."""

    request: GenerateRequest | ModifyRequest
    identity: LicensedIdentity
    selection: ModelSelection
    credentials: ProviderCredentials
    messages: list[ChatMessage]


class GenerationService:
    """Orchestrates diagram generation and modification."""

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        rate_limiter: RateLimiterGate,
        gateway: ProviderGateway,
        settings: GenerationSettings,
        validator: DiagramValidator | None = None,
    ) -> None:
        self._identity_resolver = identity_resolver
        self._rate_limiter = rate_limiter
        self._gateway = gateway
        self._settings = settings
        self._validator = validator or DiagramValidator()

    def _deadline(self) -> Deadline:
        return Deadline(self._settings.request_budget_seconds)

    def _monitor(self, deadline: Deadline, mode: str) -> BudgetMonitor:
        return BudgetMonitor(
            deadline,
            warn_after=self._settings.budget_warning_seconds,
            interval=self._settings.budget_warning_interval_seconds,
            mode=mode,
        )

    async def generate_diagram(self, body: Any, forwarded_for: str | None = None) -> GenerationResult:
        """
        Buffered generation.

        Args:
            body: Decoded JSON request body
            forwarded_for: Raw X-Forwarded-For header, if any

        Returns:
            GenerationResult: Validated diagram, or the failure record
        """
        deadline = self._deadline()
        async with self._monitor(deadline, mode="buffered"):
            try:
                prepared = await self._prepare(body, forwarded_for)
                raw = await self._gateway.complete(
                    prepared.selection, prepared.messages, prepared.credentials, deadline
                )
                diagram = self._validator.validate(raw)
            except Exception as exc:
                return GenerationResult(error=self._capture(exc, boundary="generate"))

        logger.info(
            "Diagram generated",
            extra={
                "user_id": str(prepared.identity.id),
                "action": prepared.request.action,
                "model": prepared.selection.token,
                "steps": len(diagram.steps),
                "declined": diagram.declined,
                "elapsed_s": round(deadline.elapsed, 2),
            },
        )
        return GenerationResult(diagram=diagram)

    async def open_stream(self, body: Any, forwarded_for: str | None = None) -> StreamResult:
        """
        Streaming generation.

        The first provider chunk is awaited before returning, so a request
        that fails before any text exists is reported as an error record
        rather than as a broken stream.

        Returns:
            StreamResult: Primed text stream, or the failure record
        """
        deadline = self._deadline()
        monitor = self._monitor(deadline, mode="stream").start()
        chunks: AsyncIterator[str] | None = None
        try:
            prepared = await self._prepare(body, forwarded_for)
            chunks = self._gateway.stream(
                prepared.selection, prepared.messages, prepared.credentials, deadline
            )
            try:
                first = await chunks.__anext__()
            except StopAsyncIteration as exc:
                raise EmptyModelResponseError(details={"path": "stream"}) from exc
        except Exception as exc:
            if chunks is not None:
                await chunks.aclose()
            await monitor.stop()
            return StreamResult(error=self._capture(exc, boundary="stream_open"))

        logger.info(
            "Diagram stream opened",
            extra={
                "user_id": str(prepared.identity.id),
                "action": prepared.request.action,
                "model": prepared.selection.token,
                "first_chunk_s": round(deadline.elapsed, 2),
            },
        )
        return StreamResult(stream=self._relay(first, chunks, monitor, deadline))

    async def _relay(
        self,
        first: str,
        chunks: AsyncIterator[str],
        monitor: BudgetMonitor,
        deadline: Deadline,
    ) -> AsyncIterator[str]:
        delivered = 0
        try:
            yield first
            delivered += len(first)
            async for chunk in chunks:
                yield chunk
                delivered += len(chunk)
        except Exception as exc:
            # Headers are already sent; the connection is aborted after logging
            self._capture(exc, boundary="stream_body")
            raise
        finally:
            await chunks.aclose()
            await monitor.stop()
            logger.info(
                "Diagram stream closed",
                extra={"chars": delivered, "elapsed_s": round(deadline.elapsed, 2)},
            )

    async def _prepare(self, body: Any, forwarded_for: str | None) -> PreparedGeneration:
        try:
            request = parse_generation_request(body)
        except ValidationError as exc:
            raise NoDescriptionProvidedError(details={"validation_errors": exc.error_count()}) from exc

        payload = request.data
        license_key = (payload.license_key or "").strip()
        if not license_key:
            raise MissingLicenseKeyError()
        if not payload.has_content:
            raise NoDescriptionProvidedError(details={"action": request.action})

        await self._rate_limiter.check_rate_limit(
            resolve_rate_limit_identifier(forwarded_for, license_key)
        )
        identity = await self._identity_resolver.resolve_identity(license_key)

        selection = resolve_model_selection(payload.model)
        api_key = identity.api_key_for(selection.provider)
        if api_key is None:
            raise ApiKeyNotFoundForUserError(
                f"No {selection.provider.display_name} API key registered",
                details={"user_id": str(identity.id), "provider": selection.provider.value},
            )

        return PreparedGeneration(
            request=request,
            identity=identity,
            selection=selection,
            credentials=ProviderCredentials(provider=selection.provider, api_key=api_key),
            messages=build_messages(request.action, payload),
        )

    @staticmethod
    def _capture(exc: Exception, boundary: str) -> ErrorRecord:
        record = to_error_record(exc)
        if record.kind is ErrorKind.UNEXPECTED:
            log_exception_with_context(
                logger, "Unexpected generation failure", exc, boundary=boundary, **record.log_context
            )
        else:
            log_with_context(
                logger,
                logging.WARNING,
                "Generation failed",
                boundary=boundary,
                kind=record.kind.value,
                http_status=record.http_status,
                **record.log_context,
            )
        return record
