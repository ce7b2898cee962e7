"""
License validation endpoint.

Routes: POST /license/validate

Dependencies: diagrammaton.application.services.license_service
System role: Plugin license check HTTP API
"""

from fastapi import APIRouter, Depends

from diagrammaton.api.deps import get_license_service
from diagrammaton.api.error_handling import handle_diagrammaton_errors
from diagrammaton.application.services.license_service import LicenseService
from diagrammaton.models.common import LicenseValidationRequest, LicenseValidationResponse

router = APIRouter(prefix="/license", tags=["license"])


@router.post("/validate", response_model=LicenseValidationResponse)
@handle_diagrammaton_errors
async def validate_license(
    request: LicenseValidationRequest,
    license_service: LicenseService = Depends(get_license_service),
) -> LicenseValidationResponse:
    """
    Check a base64-encoded license key.

    Args:
        request: LicenseValidationRequest with licenseKey
        license_service: Injected LicenseService

    Returns:
        LicenseValidationResponse: `{valid}`
    """
    if not request.license_key:
        return LicenseValidationResponse(valid=False)
    valid = await license_service.validate_license_key(request.license_key)
    return LicenseValidationResponse(valid=valid)
