from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, File, HTTPException, UploadFile
from prometheus_client import Counter

from ..engines.template_codec import deserialize, parse_layout, serialize
from ..engines.template_patch import apply_layout_patch, apply_template_patch, utc_now
from ..engines.template_types import Issue, MissingRequiredKey, Result, Template
from ..engines.template_validator import validate_template
from ..settings import settings
from ..utils import db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/templates", tags=["templates"])

TEMPLATE_REJECTIONS = Counter(
    "template_payload_rejections_total",
    "Template payloads rejected by the parser or validator",
    ["operation"],
)

BACKGROUND_SUFFIXES = (".png", ".jpg", ".jpeg", ".svg", ".webp")


def _reject(operation: str, errors: List[Issue], warnings: Optional[List[Issue]] = None):
    TEMPLATE_REJECTIONS.labels(operation=operation).inc()
    logger.info("%s rejected: %s", operation, [e.code for e in errors])
    raise HTTPException(
        status_code=422,
        detail={
            "errors": [e.to_dict() for e in errors],
            "warnings": [w.to_dict() for w in (warnings or [])],
        },
    )


def _load(template_id: str) -> Template:
    template = db.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


def _store(before: Template, after: Template, expected_updated_at: Optional[str]) -> None:
    if expected_updated_at is not None and expected_updated_at != before.updated_at:
        raise HTTPException(status_code=409, detail="Template was modified by someone else")
    if not db.update_template(after, expected_updated_at=before.updated_at):
        raise HTTPException(status_code=409, detail="Template was modified by someone else")


def _response(template: Template, result: Optional[Result] = None) -> Dict[str, Any]:
    return {
        "ok": True,
        "template": serialize(template),
        "warnings": [w.to_dict() for w in (result.warnings if result else [])],
    }


def _candidate(payload: Dict[str, Any]) -> Dict[str, Any]:
    """A create payload plus the identity the store assigns."""
    now = utc_now()
    doc = dict(payload)
    doc["id"] = uuid.uuid4().hex
    doc["createdAt"] = now
    doc["updatedAt"] = now
    return doc


@router.get("")
def list_templates(status: Optional[str] = None, category: Optional[str] = None):
    templates = db.list_templates(status=status, category=category)
    return {"templates": [serialize(t) for t in templates], "count": len(templates)}


@router.post("", status_code=201)
def create_template(payload: Dict[str, Any] = Body(...)):
    """Create a template. `id`, `createdAt` and `updatedAt` are assigned here."""
    parsed = deserialize(_candidate(payload))
    if not parsed.ok:
        _reject("create", parsed.errors)
    checked = validate_template(parsed.value)
    if not checked.ok:
        _reject("create", checked.errors, checked.warnings)

    db.insert_template(parsed.value)
    logger.info("template %s created", parsed.value.id)
    return _response(parsed.value, checked)


@router.post("/validate")
def validate_candidate(payload: Dict[str, Any] = Body(...)):
    """Dry-run validation for editors: reports every problem, stores nothing."""
    parsed = deserialize(_candidate(payload))
    if not parsed.ok:
        return parsed.to_dict()
    return validate_template(parsed.value).to_dict()


@router.get("/export")
def export_templates():
    templates = db.list_templates()
    return {"exported_at": utc_now(), "count": len(templates), "templates": [serialize(t) for t in templates]}


@router.get("/{template_id}")
def get_template(template_id: str):
    return {"template": serialize(_load(template_id))}


@router.patch("/{template_id}")
def update_template(template_id: str, changes: Dict[str, Any] = Body(...), expected_updated_at: Optional[str] = None):
    template = _load(template_id)
    result = apply_template_patch(template, changes)
    if not result.ok:
        _reject("update", result.errors, result.warnings)
    _store(template, result.value, expected_updated_at)
    return _response(result.value, result)


@router.patch("/{template_id}/layout")
def update_layout(template_id: str, body: Dict[str, Any] = Body(...), expected_updated_at: Optional[str] = None):
    """Patch boxes, sent as `{"layout": {field: box}}`."""
    template = _load(template_id)
    if "layout" not in body:
        _reject("update_layout", [MissingRequiredKey(key="layout")])
    boxes = parse_layout(body["layout"])
    if not boxes.ok:
        _reject("update_layout", boxes.errors)
    result = apply_layout_patch(template, boxes.value)
    if not result.ok:
        _reject("update_layout", result.errors, result.warnings)
    _store(template, result.value, expected_updated_at)
    return _response(result.value, result)


@router.post("/{template_id}/activate")
def activate_template(template_id: str, expected_updated_at: Optional[str] = None):
    template = _load(template_id)
    result = apply_template_patch(template, {"status": "active"})
    if not result.ok:
        _reject("activate", result.errors, result.warnings)
    _store(template, result.value, expected_updated_at)
    return _response(result.value, result)


@router.post("/{template_id}/background")
async def upload_background(
    template_id: str, background: UploadFile = File(...), expected_updated_at: Optional[str] = None
):
    """Store a background image and point the template at it."""
    template = _load(template_id)
    suffix = Path(background.filename or "").suffix.lower()
    if suffix not in BACKGROUND_SUFFIXES:
        raise HTTPException(status_code=400, detail=f"Background must be one of {', '.join(BACKGROUND_SUFFIXES)}")

    content = await background.read()
    if not content:
        raise HTTPException(status_code=400, detail="Background file is empty")

    uploads_dir = Path(settings.BACKGROUNDS_DIR)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    out_path = uploads_dir / f"{template.id}-{uuid.uuid4().hex[:8]}{suffix}"
    out_path.write_bytes(content)
    url = f"{settings.BACKGROUNDS_URL.rstrip('/')}/{out_path.name}"

    result = apply_template_patch(template, {"backgroundImage": url})
    if not result.ok:
        out_path.unlink()
        _reject("background", result.errors, result.warnings)
    try:
        _store(template, result.value, expected_updated_at)
    except HTTPException:
        out_path.unlink()
        raise
    logger.info("template %s background set to %s", template.id, out_path.name)
    return {"ok": True, "backgroundUrl": url, "template": serialize(result.value)}


@router.delete("/{template_id}")
def delete_template(template_id: str):
    if not db.delete_template(template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    logger.info("template %s deleted", template_id)
    return {"ok": True, "id": template_id}
