"""API routers for the Care Compliance Engine."""

from app.api.compliance import router as compliance_router

__all__ = [
    "compliance_router",
]
