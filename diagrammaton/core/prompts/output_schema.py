"""
Provider-facing output schema.

JSON Schema for DiagramResponse as the model sees it: node shape and
magnet enums, link rules and default magnet heuristics live in the
descriptions. Every object lists all of its properties as required and
forbids extras so the same schema works for strict structured output
and for function calling. Count and length limits are enforced by the
validator rather than declared here.

Dependencies: json (stdlib), diagrammaton.models
System role: Output contract attached to every provider call
"""

import copy
import json
from typing import Any

from diagrammaton.models.diagram import MAX_LABEL_LENGTH, MAX_STEPS, Magnet, NodeShape

SCHEMA_NAME = "diagram_response"
TOOL_NAME = "print_diagram"
TOOL_DESCRIPTION = (
    "Translates a diagram description into diagram steps, or explains in "
    "`message` why no diagram could be drawn."
)

_NODE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": (
        "A node in the diagram. The shape of the node should make sense in "
        "the overall context of the diagram."
    ),
    "properties": {
        "id": {
            "type": "string",
            "description": (
                "Identifier for the node. Reuse the same id whenever the same "
                "node appears in another step; never reuse it for a different node."
            ),
        },
        "label": {
            "type": "string",
            "description": f"The node label, at most {MAX_LABEL_LENGTH} characters.",
        },
        "shape": {
            "type": "string",
            "enum": [shape.value for shape in NodeShape],
            "description": (
                "Node shape. DIAMOND for decisions, ELLIPSE for start and end, "
                "ENG_DATABASE for data stores, ENG_QUEUE for queues, ENG_FILE and "
                "ENG_FOLDER for documents, parallelograms for input and output."
            ),
        },
    },
    "required": ["id", "label", "shape"],
    "additionalProperties": False,
}

_MAGNET_SCHEMA: dict[str, Any] = {
    "type": "string",
    "enum": [magnet.value for magnet in Magnet],
}

_LINK_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": (
        "Connector between the two nodes of a step. Forward links between "
        "adjacent nodes run from RIGHT to LEFT. The 'No' exit of a decision "
        "leaves from BOTTOM. Links back to earlier nodes use BOTTOM or TOP to "
        "stay out of the main lane. Leave the label empty when the link is obvious."
    ),
    "properties": {
        "label": {
            "type": ["string", "null"],
            "description": "A very concise label, no more than 2-3 words.",
        },
        "fromMagnet": {
            **_MAGNET_SCHEMA,
            "description": "Magnet position on the origin node where the link starts.",
        },
        "toMagnet": {
            **_MAGNET_SCHEMA,
            "description": "Magnet position on the target node where the link ends.",
        },
    },
    "required": ["label", "fromMagnet", "toMagnet"],
    "additionalProperties": False,
}

_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "steps": {
            "type": "array",
            "description": (
                f"Ordered diagram steps, at most {MAX_STEPS}. Empty only when "
                "no diagram can be drawn."
            ),
            "items": {
                "type": "object",
                "properties": {
                    "from": _NODE_SCHEMA,
                    "link": {"anyOf": [_LINK_SCHEMA, {"type": "null"}]},
                    "to": _NODE_SCHEMA,
                },
                "required": ["from", "link", "to"],
                "additionalProperties": False,
            },
        },
        "message": {
            "type": ["string", "null"],
            "description": (
                "Null whenever steps are present. Otherwise a witty and very "
                "concise explanation of why no diagram could be drawn and how "
                "the user can fix the description."
            ),
        },
    },
    "required": ["steps", "message"],
    "additionalProperties": False,
}


def output_schema() -> dict[str, Any]:
    """Fresh copy of the DiagramResponse JSON Schema."""
    return copy.deepcopy(_OUTPUT_SCHEMA)


def schema_instructions() -> str:
    """
    Plain-text instruction carrying the schema, for providers without a
    structured-output parameter.
    """
    return (
        "Respond with a single JSON object and nothing else. It must conform "
        "to this JSON Schema:\n" + json.dumps(_OUTPUT_SCHEMA, separators=(",", ":"))
    )
