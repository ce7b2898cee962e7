"""
Diagram output contract.

Nodes, links and steps produced by the model and consumed by the
renderer. The DiagramResponse invariant (empty steps if and only if a
message is present) is enforced here so every instance honours it.

Dependencies: pydantic
System role: Validated shape of every successful generation
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_STEPS = 250
MAX_LABEL_LENGTH = 120


class NodeShape(str, Enum):
    """Shape vocabulary understood by the renderer."""

    SQUARE = "SQUARE"
    ROUNDED_RECTANGLE = "ROUNDED_RECTANGLE"
    ELLIPSE = "ELLIPSE"
    DIAMOND = "DIAMOND"
    TRIANGLE_UP = "TRIANGLE_UP"
    TRIANGLE_DOWN = "TRIANGLE_DOWN"
    PARALLELOGRAM_RIGHT = "PARALLELOGRAM_RIGHT"
    PARALLELOGRAM_LEFT = "PARALLELOGRAM_LEFT"
    ENG_DATABASE = "ENG_DATABASE"
    ENG_QUEUE = "ENG_QUEUE"
    ENG_FILE = "ENG_FILE"
    ENG_FOLDER = "ENG_FOLDER"


class Magnet(str, Enum):
    """Attachment point on a node where a link starts or ends."""

    TOP = "TOP"
    RIGHT = "RIGHT"
    BOTTOM = "BOTTOM"
    LEFT = "LEFT"


def _upper_token(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper().replace("-", "_").replace(" ", "_")
    return value


class DiagramNode(BaseModel):
    """A single diagram node."""

    id: str = Field(min_length=1, description="Identifier, unique per node within a response")
    label: str = Field(min_length=1, max_length=MAX_LABEL_LENGTH, description="Node label")
    shape: NodeShape = Field(description="Node shape")

    @field_validator("id", "label", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("shape", mode="before")
    @classmethod
    def _normalize_shape(cls, value: Any) -> Any:
        return _upper_token(value)


class DiagramLink(BaseModel):
    """Connector between two nodes; both magnets are required."""

    model_config = ConfigDict(populate_by_name=True)

    label: str | None = Field(default=None, description="Short link label, may be blank")
    from_magnet: Magnet = Field(alias="fromMagnet", description="Magnet on the origin node")
    to_magnet: Magnet = Field(alias="toMagnet", description="Magnet on the target node")

    @field_validator("from_magnet", "to_magnet", mode="before")
    @classmethod
    def _normalize_magnet(cls, value: Any) -> Any:
        return _upper_token(value)


class DiagramStep(BaseModel):
    """One rendered edge: from-node, optional link, to-node."""

    model_config = ConfigDict(populate_by_name=True)

    from_node: DiagramNode = Field(alias="from")
    link: DiagramLink | None = None
    to_node: DiagramNode = Field(alias="to")


class DiagramResponse(BaseModel):
    """
    Full structured model output.

    Attributes:
        steps: Ordered steps, at most MAX_STEPS
        message: Explanation when no diagram could be drawn, otherwise None
    """

    steps: list[DiagramStep] = Field(default_factory=list, max_length=MAX_STEPS)
    message: str | None = None

    @field_validator("steps", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("message", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_outcome(self) -> "DiagramResponse":
        if not self.steps and self.message is None:
            raise ValueError("a response without steps must carry a message")
        if self.steps and self.message is not None:
            self.message = None
        return self

    @property
    def declined(self) -> bool:
        """Whether the model declined to draw anything."""
        return not self.steps

    def steps_payload(self) -> list[dict[str, Any]]:
        """Steps serialized with their wire names (from, to, fromMagnet, toMagnet)."""
        return [step.model_dump(by_alias=True, mode="json") for step in self.steps]
