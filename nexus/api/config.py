"""Config API - admin secret check, system config and site config."""
from typing import Any

from fastapi import APIRouter, Body, Depends

from nexus.auth.deps import get_services, require_admin
from nexus.errors import ValidationError
from nexus.services import Services


router = APIRouter(prefix="/api", tags=["config"])


@router.post("/verify-auth", dependencies=[Depends(require_admin)])
async def verify_admin_auth():
    """Lets the admin console check a password before storing it."""
    return {"status": "ok"}


@router.get("/system-config", dependencies=[Depends(require_admin)])
async def get_system_config(services: Services = Depends(get_services)):
    """Provider key and outbound email settings."""
    return await services.content.get_system_config()


@router.post("/system-config", dependencies=[Depends(require_admin)])
async def update_system_config(
    body: dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
):
    """Merge the posted fields into the stored system config."""
    await services.content.merge_system_config(body)
    return {"status": "ok"}


@router.get("/site-config")
async def get_site_config(services: Services = Depends(get_services)):
    return await services.content.get_site_config()


@router.post("/site-config", dependencies=[Depends(require_admin)])
async def set_site_config(
    body: Any = Body(...),
    services: Services = Depends(get_services),
):
    if not isinstance(body, dict):
        raise ValidationError("Site config must be a JSON object")
    await services.content.set_site_config(body)
    return {"status": "ok"}
