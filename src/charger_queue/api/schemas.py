"""API response schemas."""

from pydantic import BaseModel


class OkResponse(BaseModel):
    """Returned after a mutating action was stored."""

    ok: bool = True


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    store_backend: str
    uptime_seconds: float
