"""Content endpoints, mounted under ``/api/components``."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from sitedash.content.models import Section
from sitedash.content.store import ContentStore
from sitedash.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

ENDPOINTS: dict[str, str] = {
    "GET /api/components": "Fetch all component data",
    "POST /api/components": "Save all component data",
    "PUT /api/components/header": "Update header only",
    "PUT /api/components/navbar": "Update navbar only",
    "PUT /api/components/footer": "Update footer only",
    "DELETE /api/components/reset": "Reset to defaults",
    "GET /health": "Health check",
}


def timestamp() -> str:
    return datetime.now(tz=UTC).isoformat()


def _store(request: Request) -> ContentStore:
    return request.app.state.store


async def _json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON.") from exc


@router.get("")
async def get_components(request: Request) -> dict[str, Any]:
    logger.info("GET /api/components")
    record = _store(request).get()
    return {"success": True, "data": record.to_wire(), "timestamp": timestamp()}


@router.post("")
async def save_components(request: Request) -> dict[str, Any]:
    logger.info("POST /api/components")
    record = _store(request).replace_all(await _json_body(request))
    return {
        "success": True,
        "message": "Component data updated successfully",
        "data": record.to_wire(),
        "timestamp": timestamp(),
    }


@router.put("/header")
async def update_header(request: Request) -> dict[str, Any]:
    logger.info("PUT /api/components/header")
    header = _store(request).update_section(Section.HEADER, await _json_body(request))
    return {
        "success": True,
        "message": "Header updated successfully",
        "data": header.model_dump(by_alias=True),
    }


@router.put("/navbar")
async def update_navbar(request: Request) -> dict[str, Any]:
    logger.info("PUT /api/components/navbar")
    links = _store(request).update_section(Section.NAVBAR, await _json_body(request))
    return {
        "success": True,
        "message": "Navbar updated successfully",
        "data": [link.model_dump() for link in links],
    }


@router.put("/footer")
async def update_footer(request: Request) -> dict[str, Any]:
    logger.info("PUT /api/components/footer")
    footer = _store(request).update_section(Section.FOOTER, await _json_body(request))
    return {
        "success": True,
        "message": "Footer updated successfully",
        "data": footer.model_dump(),
    }


@router.delete("/reset")
async def reset_components(request: Request) -> dict[str, Any]:
    logger.info("DELETE /api/components/reset")
    record = _store(request).reset_to_defaults()
    return {
        "success": True,
        "message": "Component data reset to defaults",
        "data": record.to_wire(),
    }
