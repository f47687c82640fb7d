from __future__ import annotations

from fastapi import APIRouter

from easylist_backend.config import settings
from easylist_backend.jsonapi import JsonApiResponse

router = APIRouter(tags=["health"], default_response_class=JsonApiResponse)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, object]:
    return {
        "data": {
            "type": "healthcheck",
            "id": "1",
            "attributes": {
                "status": "available",
                "environment": settings.environment,
                "version": settings.version,
            },
        }
    }
