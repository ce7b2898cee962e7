"""
Diagram generation endpoints.

Routes:
- POST /generate - Buffered generation, JSON steps/message/error body
- POST /generate/stream - Token stream (text/plain) of the diagram JSON

The body is read raw so malformed JSON follows the same path as a body
with the wrong shape.

Dependencies: diagrammaton.application.services.generation_service
System role: Generation HTTP API
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from diagrammaton.api.deps import get_generation_service
from diagrammaton.api.error_handling import error_response
from diagrammaton.application.services.generation_service import GenerationService
from diagrammaton.models.common import MessageResponse, StepsResponse
from diagrammaton.models.diagram import DiagramResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generate"])

FORWARDED_FOR_HEADER = "X-Forwarded-For"
STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or None when it is missing or not JSON."""
    try:
        return await request.json()
    except ValueError:
        logger.info("Request body is not valid JSON", extra={"path": request.url.path})
        return None


def diagram_payload(diagram: DiagramResponse) -> dict[str, Any]:
    """`{type: "steps"}` for a drawn diagram, `{type: "message"}` when declined."""
    if diagram.declined:
        return MessageResponse(data=diagram.message or "").model_dump()
    return StepsResponse(data=diagram.steps_payload()).model_dump()


@router.post("/generate")
async def generate_diagram(
    request: Request,
    generation_service: GenerationService = Depends(get_generation_service),
) -> JSONResponse:
    """
    Generate or modify a diagram and return it in one response.

    Args:
        request: Raw request; body is `{action, data}`
        generation_service: Injected GenerationService

    Returns:
        JSONResponse: Steps, message, or error payload with its status
    """
    body = await read_json_body(request)
    result = await generation_service.generate_diagram(
        body, request.headers.get(FORWARDED_FOR_HEADER)
    )
    if result.error is not None:
        return error_response(result.error)
    return JSONResponse(content=diagram_payload(result.diagram))


@router.post("/generate/stream")
async def generate_diagram_stream(
    request: Request,
    generation_service: GenerationService = Depends(get_generation_service),
) -> Response:
    """
    Stream the model's diagram JSON as it is produced.

    Failures before the first token are returned as JSON errors with
    their status; the response only starts once text exists.

    Args:
        request: Raw request; body is `{action, data}`
        generation_service: Injected GenerationService

    Returns:
        Response: StreamingResponse on success, JSONResponse on failure
    """
    body = await read_json_body(request)
    result = await generation_service.open_stream(
        body, request.headers.get(FORWARDED_FOR_HEADER)
    )
    if result.error is not None:
        return error_response(result.error)
    return StreamingResponse(result.stream, media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS)
