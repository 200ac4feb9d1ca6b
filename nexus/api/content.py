"""Content API - opaque JSON collections and visit statistics."""
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from nexus.auth.deps import get_services, require_admin
from nexus.db.content import COLLECTIONS
from nexus.services import Services


router = APIRouter(prefix="/api", tags=["content"])


class StatEvent(BaseModel):
    type: str = ""
    id: Optional[str] = None


@router.get("/stats")
async def get_stats(services: Services = Depends(get_services)):
    return await services.content.get_stats()


@router.post("/stats")
async def record_stat(body: StatEvent, services: Services = Depends(get_services)):
    """Count a visit / play / view. Public, no auth."""
    await services.content.record_stat(body.type, body.id)
    return {"status": "ok"}


def _collection_routes(name: str) -> None:
    """Public GET and admin-only POST for one collection key."""

    async def read_collection(services: Services = Depends(get_services)):
        return await services.content.get_collection(name)

    async def write_collection(
        body: Any = Body(...),
        services: Services = Depends(get_services),
    ):
        await services.content.set_collection(name, body)
        return {"status": "ok"}

    router.add_api_route(
        f"/{name}", read_collection, methods=["GET"], name=f"get_{name}",
    )
    router.add_api_route(
        f"/{name}", write_collection, methods=["POST"], name=f"set_{name}",
        dependencies=[Depends(require_admin)],
    )


for _name in COLLECTIONS:
    _collection_routes(_name)
