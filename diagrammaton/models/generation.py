"""
Generation request and selection models.

The inbound request body is a discriminated union keyed on `action`.
ModelSelection and ChatMessage are the immutable values passed between
the selector, prompt builder and provider adapters.

Dependencies: pydantic
System role: Request parsing and internal value types
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, TypeAdapter


class Provider(str, Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @property
    def display_name(self) -> str:
        return "OpenAI" if self is Provider.OPENAI else "Anthropic"


class Variant(str, Enum):
    """Model quality/cost mode."""

    FAST = "fast"
    THINKING = "thinking"


class Action(str, Enum):
    """High-level operation requested by the client."""

    GENERATE = "generate"
    MODIFY = "modify"


class ModelSelection(BaseModel):
    """Resolved provider, model and variant for one request."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    model: str = Field(min_length=1)
    variant: Variant = Variant.FAST

    @property
    def token(self) -> str:
        """Composite `provider:model:variant` form used by clients."""
        return f"{self.provider.value}:{self.model}:{self.variant.value}"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    license_key: str | None = Field(default=None, alias="licenseKey")
    # Raw client token; resolved by the model selector, never validated here
    model: Any = None


class GeneratePayload(_Payload):
    """Payload for a fresh diagram."""

    diagram_description: str | None = Field(default=None, alias="diagramDescription")

    @property
    def has_content(self) -> bool:
        return bool(self.diagram_description and self.diagram_description.strip())


class ModifyPayload(_Payload):
    """Payload for editing an existing diagram."""

    diagram_data: Any = Field(default=None, alias="diagramData")
    instructions: str | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.diagram_data) and bool(self.instructions and self.instructions.strip())


class GenerateRequest(BaseModel):
    """`{action: "generate", data: {...}}`"""

    action: Literal["generate"]
    data: GeneratePayload


class ModifyRequest(BaseModel):
    """`{action: "modify", data: {...}}`"""

    action: Literal["modify"]
    data: ModifyPayload


GenerationRequest = Annotated[Union[GenerateRequest, ModifyRequest], Field(discriminator="action")]

_generation_request_adapter: TypeAdapter[GenerateRequest | ModifyRequest] = TypeAdapter(GenerationRequest)


def parse_generation_request(body: Any) -> GenerateRequest | ModifyRequest:
    """
    Validate a decoded request body against the action-discriminated schema.

    Raises:
        pydantic.ValidationError: If the body matches neither action shape
    """
    return _generation_request_adapter.validate_python(body)


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """Provider-neutral message; converted per adapter."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str


class ProviderCredentials(BaseModel):
    """API key for the selected provider, resolved from the user's account."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    api_key: SecretStr


class OutputSource(str, Enum):
    """How the provider delivered the candidate JSON."""

    FUNCTION_ARGUMENTS = "function_arguments"
    STRUCTURED_TEXT = "structured_text"
    FREE_TEXT = "free_text"


class RawModelOutput(BaseModel):
    """Unvalidated text returned by a provider adapter."""

    model_config = ConfigDict(frozen=True)

    text: str
    source: OutputSource = OutputSource.FREE_TEXT
