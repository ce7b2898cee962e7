"""
Response validator and repair.

Turns raw model output into a DiagramResponse:
1. Parse the text directly as JSON (function-call arguments, structured output)
2. Then scan for embedded balanced JSON, objects before arrays, so a
   wrapper object or surrounding chatter can still yield a diagram
3. Validate against DiagramResponse (enums, step ceiling, outcome invariant)
4. Reconcile node ids so each id denotes a single node

Dependencies: pydantic, diagrammaton.core.json_scanner
System role: Last stage before a diagram reaches the caller
"""

import json
import logging
from itertools import chain, islice
from typing import Any, Iterator

from pydantic import ValidationError

from diagrammaton.core.exceptions import UnableToParseResponseError
from diagrammaton.core.json_scanner import iter_balanced_spans
from diagrammaton.models.diagram import DiagramNode, DiagramResponse
from diagrammaton.models.generation import RawModelOutput

logger = logging.getLogger(__name__)

MAX_REPAIR_CANDIDATES = 32


def _coerce_shape(value: Any) -> Any:
    # A bare array is a steps list
    if isinstance(value, list):
        return {"steps": value, "message": None}
    return value


def _direct_candidate(text: str) -> Any | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(value, str):
        # Double-encoded payload
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return None
    return value if isinstance(value, (dict, list)) else None


def _embedded_candidates(text: str) -> Iterator[Any]:
    for openers in ("{", "["):
        for span in iter_balanced_spans(text, openers):
            try:
                yield json.loads(span)
            except json.JSONDecodeError:
                continue


def _reconcile_node_ids(response: DiagramResponse) -> DiagramResponse:
    """Make every id denote one node, keeping the first definition seen."""
    canonical: dict[str, DiagramNode] = {}
    conflicts = 0

    def settle(node: DiagramNode) -> DiagramNode:
        nonlocal conflicts
        known = canonical.setdefault(node.id, node)
        if known.label == node.label and known.shape == node.shape:
            return node
        conflicts += 1
        return known

    steps = [
        step.model_copy(update={"from_node": settle(step.from_node), "to_node": settle(step.to_node)})
        for step in response.steps
    ]
    if not conflicts:
        return response

    logger.warning(
        "Conflicting node definitions reconciled",
        extra={"conflicts": conflicts, "node_count": len(canonical)},
    )
    return response.model_copy(update={"steps": steps})


class DiagramValidator:
    """Validates and repairs raw model output."""

    def validate(self, raw: RawModelOutput | str) -> DiagramResponse:
        """
        Parse and validate model output.

        Args:
            raw: Adapter output, or plain text

        Returns:
            DiagramResponse: Valid response; a declined response keeps its message

        Raises:
            UnableToParseResponseError: If no candidate yields a valid diagram
        """
        if isinstance(raw, str):
            raw = RawModelOutput(text=raw)
        text = raw.text.strip()
        if not text:
            raise UnableToParseResponseError(details={"stage": "decode", "source": raw.source.value})

        direct = _direct_candidate(text)
        candidates: Iterator[Any] = _embedded_candidates(text)
        if direct is not None:
            candidates = chain([direct], candidates)

        schema_errors = 0
        for candidate in islice(candidates, MAX_REPAIR_CANDIDATES):
            try:
                response = DiagramResponse.model_validate(_coerce_shape(candidate))
            except ValidationError as exc:
                schema_errors += exc.error_count()
                continue
            if candidate is not direct:
                logger.info(
                    "Recovered diagram JSON embedded in model text",
                    extra={"source": raw.source.value, "text_length": len(text)},
                )
            return _reconcile_node_ids(response)

        stage = "schema" if schema_errors else "decode"
        logger.warning(
            "Model output could not be parsed into a diagram",
            extra={
                "stage": stage,
                "source": raw.source.value,
                "schema_errors": schema_errors,
                "text_length": len(text),
            },
        )
        raise UnableToParseResponseError(details={"stage": stage, "source": raw.source.value})
