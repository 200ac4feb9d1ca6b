"""Files API - uploaded media in object storage."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from nexus.auth.deps import get_services, require_admin
from nexus.errors import NotFound, ValidationError
from nexus.services import Services


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])


def file_url(key: str) -> str:
    return f"/api/file/{key}"


@router.get("/health-check")
async def storage_health_check(services: Services = Depends(get_services)):
    """Checks that object storage answers a one-item listing."""
    try:
        await services.storage.list_objects(limit=1)
    except Exception as e:
        logger.error("Storage health check failed: %s", e)
        return {"status": "error"}
    return {"status": "ok"}


@router.get("/storage/list", dependencies=[Depends(require_admin)])
async def list_files(services: Services = Depends(get_services)):
    objects = await services.storage.list_objects()
    return {"files": [obj.to_dict() for obj in objects]}


@router.put("/upload", dependencies=[Depends(require_admin)])
async def upload_file(
    request: Request,
    key: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Store the raw request body under `key`."""
    if not key:
        raise ValidationError("Missing key")
    data = await request.body()
    await services.storage.put(key, data, request.headers.get("content-type"))
    logger.info("Uploaded %s (%d bytes)", key, len(data))
    return {"url": file_url(key)}


@router.get("/file/{key:path}")
async def get_file(key: str, services: Services = Depends(get_services)):
    obj = await services.storage.get(key)
    if obj is None:
        raise NotFound("File not found")
    return Response(content=obj.data, media_type=obj.content_type or "application/octet-stream")


@router.delete("/delete-file/{key:path}", dependencies=[Depends(require_admin)])
async def delete_file(key: str, services: Services = Depends(get_services)):
    await services.storage.delete(key)
    return {"status": "ok"}
