from fastapi import APIRouter

from core.config import get_settings
from schemas.api import ApiResponse, HealthStatus
from services.domains.suffix_matcher import is_domain_matcher_ready


router = APIRouter()


@router.get("/health", response_model=ApiResponse[HealthStatus])
def health_check() -> ApiResponse[HealthStatus]:
    """Health check endpoint for monitoring and load balancer health checks.

    The domain matcher is built on the first domains request, so "pending"
    is not an error.
    """
    settings = get_settings()
    return ApiResponse[HealthStatus](
        data=HealthStatus(
            message=f"{settings.APP_NAME} API is running",
            domain_matcher="ready" if is_domain_matcher_ready() else "pending",
        ),
        message="Health check successful",
    )
