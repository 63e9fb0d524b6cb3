"""System endpoints: health check."""

from fastapi import APIRouter, Depends

from strikesim.config import VERSION
from strikesim.web.cache import CacheService
from strikesim.web.dependencies import get_cache
from strikesim.web.schemas import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health(cache: CacheService = Depends(get_cache)):
    """API health check."""
    return HealthResponse(
        status="ok",
        version=VERSION,
        cache_type="redis" if cache.is_redis else "memory",
        cache_size=cache.size,
        cache_hit_rate=round(cache.hit_rate, 4),
    )
