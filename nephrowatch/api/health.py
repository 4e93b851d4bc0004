from fastapi import APIRouter

from nephrowatch.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {"status": "healthy", "service": "nephrowatch-api"}


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Welcome to NephroWatch API",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
    }
