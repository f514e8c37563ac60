from __future__ import annotations

import dataclasses
import datetime
import logging
from typing import Any, Dict, Mapping, Optional

from .template_codec import deserialize, serialize
from .template_types import BoundingBox, Result, Template, merge_results
from .template_validator import validate_layout, validate_template, validate_variables

logger = logging.getLogger(__name__)

# Never replaced by a whole-template patch.
IMMUTABLE_KEYS = ("id", "createdAt", "updatedAt")


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def _touch(template: Template, now: Optional[str] = None, **changes: Any) -> Template:
    # The new version owns its containers; the original stays untouched.
    changes.setdefault("layout", dict(template.layout))
    changes.setdefault("styling", dict(template.styling))
    changes.setdefault("variables", list(template.variables))
    return dataclasses.replace(template, updated_at=now or utc_now(), **changes)


def apply_layout_patch(template: Template, patch: Mapping[str, BoundingBox], now: Optional[str] = None) -> Result[Template]:
    """Replace whole boxes for the patched fields and re-validate.

    Keys absent from `patch` keep their box untouched. When the merged
    layout is invalid the original template comes back with the errors.
    """
    layout: Dict[str, BoundingBox] = dict(template.layout)
    layout.update(patch)

    checked = merge_results(validate_layout(layout), validate_variables(template.variables, layout))
    if not checked.ok:
        logger.info("layout patch on %s rejected: %s", template.id, [e.code for e in checked.errors])
        return Result(value=template, errors=checked.errors, warnings=checked.warnings)

    return Result(value=_touch(template, now, layout=layout), warnings=checked.warnings)


def apply_template_patch(template: Template, changes: Mapping[str, Any], now: Optional[str] = None) -> Result[Template]:
    """Replace top-level keys of the stored document, then parse and validate.

    `id`, `createdAt` and `updatedAt` in `changes` are ignored and a None
    value drops the key. Atomic in the same way as `apply_layout_patch`.
    """
    doc = serialize(template)
    for key, value in changes.items():
        if key in IMMUTABLE_KEYS:
            continue
        if value is None:
            doc.pop(key, None)
            continue
        doc[key] = value

    parsed = deserialize(doc)
    if not parsed.ok:
        logger.info("template patch on %s rejected: %s", template.id, [e.code for e in parsed.errors])
        return Result(value=template, errors=parsed.errors)

    checked = validate_template(parsed.value)
    if not checked.ok:
        logger.info("template patch on %s rejected: %s", template.id, [e.code for e in checked.errors])
        return Result(value=template, errors=checked.errors, warnings=checked.warnings)

    return Result(value=_touch(parsed.value, now), warnings=checked.warnings)
