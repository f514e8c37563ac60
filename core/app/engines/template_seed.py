from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .template_codec import deserialize
from .template_patch import utc_now
from .template_types import Template
from .template_validator import validate_template

logger = logging.getLogger(__name__)


def load_seed_documents(path: Path) -> List[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return []
    return [d for d in (data.get("templates") or []) if isinstance(d, dict)]


def load_seed_templates(path: Path) -> List[Template]:
    """Parse and validate the seed file; invalid entries are logged and skipped."""
    now = utc_now()
    out: List[Template] = []
    for doc in load_seed_documents(path):
        doc = {"createdAt": now, "updatedAt": now, **doc}
        parsed = deserialize(doc)
        if not parsed.ok:
            logger.warning("skipping seed template %s: %s", doc.get("id"), [e.message for e in parsed.errors])
            continue
        checked = validate_template(parsed.value)
        if not checked.ok:
            logger.warning("skipping seed template %s: %s", doc.get("id"), [e.message for e in checked.errors])
            continue
        out.append(parsed.value)
    return out
