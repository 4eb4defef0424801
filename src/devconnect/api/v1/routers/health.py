from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from devconnect.api.deps import HubDep, UoWDep

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(uow: UoWDep, hub: HubDep) -> JSONResponse:
    errors: list[str] = []

    try:
        await uow.ping()
    except (SQLAlchemyError, OSError) as exc:
        errors.append(f"postgres: {exc}")

    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": errors},
        )
    return JSONResponse(content={"status": "ready", "connections": len(hub.registry)})
