"""
Model catalog endpoint.

Routes: POST /models

Dependencies: diagrammaton.application.services.model_catalog_service
System role: Model picker HTTP API
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from diagrammaton.api.deps import get_model_catalog_service, get_settings_dependency
from diagrammaton.api.error_handling import handle_diagrammaton_errors
from diagrammaton.api.routers.generate import read_json_body
from diagrammaton.application.services.model_catalog_service import ModelCatalogService
from diagrammaton.configs import Settings
from diagrammaton.models.model_catalog import ModelCatalogResponse, ModelsRequest

router = APIRouter(tags=["models"])


def _license_key(body) -> str:
    if not isinstance(body, dict):
        return ""
    try:
        return (ModelsRequest.model_validate(body).license_key or "").strip()
    except ValidationError:
        return ""


@router.post("/models")
@handle_diagrammaton_errors
async def list_models(
    request: Request,
    catalog_service: ModelCatalogService = Depends(get_model_catalog_service),
    settings: Settings = Depends(get_settings_dependency),
) -> JSONResponse:
    """
    List the models the license holder can select.

    Args:
        request: Raw request; body is `{licenseKey}`
        catalog_service: Injected ModelCatalogService
        settings: Application settings

    Returns:
        JSONResponse: `{defaultModelId, models, providers}`; an empty
        catalog with 400 when no license key was sent
    """
    license_key = _license_key(await read_json_body(request))
    if not license_key:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ModelCatalogResponse().model_dump(by_alias=True, mode="json"),
        )

    catalog = await catalog_service.list_models(license_key)
    return JSONResponse(
        content=catalog.model_dump(by_alias=True, mode="json"),
        headers={"Cache-Control": f"public, max-age={int(settings.model_catalog.cache_ttl_seconds)}"},
    )
