# storefront/api/routers/health.py
from fastapi import APIRouter, Request

from storefront.api.responses import envelope

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    return envelope(request, {"service": "storefront", "status": "healthy"})
