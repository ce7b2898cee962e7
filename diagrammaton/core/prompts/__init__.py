"""Prompt templates and the provider-facing output schema."""

from diagrammaton.core.prompts.diagram_prompt import build_messages
from diagrammaton.core.prompts.output_schema import (
    SCHEMA_NAME,
    TOOL_NAME,
    output_schema,
    schema_instructions,
)

__all__ = [
    "SCHEMA_NAME",
    "TOOL_NAME",
    "build_messages",
    "output_schema",
    "schema_instructions",
]
