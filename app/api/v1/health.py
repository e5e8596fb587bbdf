"""
Health check API endpoints.

This module defines health check endpoints for monitoring the application.
Design Rationale:
- Database connectivity verification
- Mail transport visibility (log transport means alerts are not emailed)
- Separate readiness and liveness checks for orchestrators
"""

from typing import Dict
from datetime import datetime
from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text

from app.models.schemas import HealthCheckResponse
from app.core.dependencies import SessionDep, MailerDep
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Health check for the database and mail transport"
)
async def health_check(
    session: SessionDep,
    mailer: MailerDep
) -> HealthCheckResponse:
    """
    Perform health check.

    Returns:
        Health check response with component status

    Raises:
        HTTPException: 503 if the database is unreachable
    """
    checks = {}
    timestamp = datetime.utcnow()

    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"
        logger.error("Database health check failed", error=str(e))

    checks["mailer"] = "healthy" if mailer.transport == "smtp" else f"healthy ({mailer.transport} transport)"

    failed_checks = [k for k, v in checks.items() if not v.startswith("healthy")]
    overall_status = "healthy" if not failed_checks else "unhealthy"

    response = HealthCheckResponse(
        status=overall_status,
        timestamp=timestamp,
        version="1.0.0",
        checks=checks
    )

    if overall_status == "unhealthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unhealthy components: {', '.join(failed_checks)}"
        )

    return response


@router.get(
    "/ready",
    response_model=Dict[str, str],
    summary="Readiness check",
    description="Simple readiness check for Kubernetes or load balancers"
)
async def readiness_check(session: SessionDep) -> Dict[str, str]:
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ready", "timestamp": datetime.utcnow().isoformat()}

    except Exception as e:
        logger.error("Readiness check failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready"
        )


@router.get(
    "/live",
    response_model=Dict[str, str],
    summary="Liveness check",
    description="Simple liveness check for Kubernetes"
)
async def liveness_check() -> Dict[str, str]:
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}
