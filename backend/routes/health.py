"""Health check route."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """Liveness check. No upstream calls, always 200."""
    return {"status": "OK, backend is running"}
