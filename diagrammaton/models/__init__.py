"""Pydantic models for requests, responses and the diagram contract."""

from diagrammaton.models.diagram import (
    MAX_LABEL_LENGTH,
    MAX_STEPS,
    DiagramLink,
    DiagramNode,
    DiagramResponse,
    DiagramStep,
    Magnet,
    NodeShape,
)
from diagrammaton.models.generation import (
    Action,
    ChatMessage,
    ChatRole,
    GeneratePayload,
    GenerateRequest,
    ModelSelection,
    ModifyPayload,
    ModifyRequest,
    OutputSource,
    Provider,
    ProviderCredentials,
    RawModelOutput,
    Variant,
    parse_generation_request,
)
from diagrammaton.models.identity import LicensedIdentity

__all__ = [
    "MAX_LABEL_LENGTH",
    "MAX_STEPS",
    "Action",
    "ChatMessage",
    "ChatRole",
    "DiagramLink",
    "DiagramNode",
    "DiagramResponse",
    "DiagramStep",
    "GeneratePayload",
    "GenerateRequest",
    "LicensedIdentity",
    "Magnet",
    "ModelSelection",
    "ModifyPayload",
    "ModifyRequest",
    "NodeShape",
    "OutputSource",
    "Provider",
    "ProviderCredentials",
    "RawModelOutput",
    "Variant",
    "parse_generation_request",
]
