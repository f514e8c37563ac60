from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .template_types import (
    CATEGORIES,
    FONT_WEIGHTS,
    LAYOUT_FIELDS,
    OPTIONAL_STYLE_FIELDS,
    ORIENTATIONS,
    POSITIONAL_FIELDS,
    REQUIRED_LAYOUT_FIELDS,
    REQUIRED_STYLE_FIELDS,
    REQUIRED_SUBSTITUTABLE_FIELDS,
    STATUSES,
    STYLE_FIELDS,
    TEXT_ALIGNS,
    TEXT_TRANSFORMS,
    BoundingBox,
    InvalidEnum,
    Issue,
    MissingField,
    OrphanVariable,
    OutOfBounds,
    Result,
    Template,
    TextStyle,
    UnknownField,
    UnusedField,
    merge_results,
)


VARIABLE_RE = re.compile(r"^\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}$")


def variable_name(token: str) -> Optional[str]:
    """Return the field name inside a `{{fieldName}}` token, or None."""
    m = VARIABLE_RE.match(token or "")
    return m.group(1) if m else None


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _in_range(v: Any) -> bool:
    return _is_number(v) and 0 <= v <= 100


def _box_violation(name: str, box: BoundingBox) -> Optional[OutOfBounds]:
    for attr in ("x", "y", "width", "height"):
        value = getattr(box, attr)
        if not _in_range(value):
            return OutOfBounds(field=name, value=value, attribute=attr)
    if box.x + box.width > 100:
        return OutOfBounds(field=name, value=box.x + box.width, attribute="x+width")
    if box.y + box.height > 100:
        return OutOfBounds(field=name, value=box.y + box.height, attribute="y+height")
    return None


def validate_layout(layout: Mapping[str, BoundingBox]) -> Result[None]:
    """Check required layout fields and keep every box inside the canvas.

    At most one issue is reported per field, so the caller gets the whole
    list of problems in one pass.
    """
    errors: List[Issue] = []
    for name in REQUIRED_LAYOUT_FIELDS:
        if name not in layout:
            errors.append(MissingField(field=name, section="layout"))

    for name, box in layout.items():
        if name not in LAYOUT_FIELDS:
            errors.append(UnknownField(field=name, section="layout"))
            continue
        violation = _box_violation(name, box)
        if violation is not None:
            errors.append(violation)
    return Result(errors=errors)


def _style_issues(name: str, style: TextStyle) -> List[Issue]:
    issues: List[Issue] = []
    if not style.font_family:
        issues.append(MissingField(field=f"{name}.fontFamily", section="styling"))
    if not _is_number(style.font_size) or style.font_size <= 0:
        issues.append(OutOfBounds(field=name, value=style.font_size, attribute="fontSize"))
    if style.font_weight not in FONT_WEIGHTS:
        issues.append(InvalidEnum(field=f"{name}.fontWeight", value=style.font_weight, allowed=FONT_WEIGHTS))
    if not style.color:
        issues.append(MissingField(field=f"{name}.color", section="styling"))
    if style.text_align not in TEXT_ALIGNS:
        issues.append(InvalidEnum(field=f"{name}.textAlign", value=style.text_align, allowed=TEXT_ALIGNS))
    if style.text_transform is not None and style.text_transform not in TEXT_TRANSFORMS:
        issues.append(
            InvalidEnum(field=f"{name}.textTransform", value=style.text_transform, allowed=TEXT_TRANSFORMS)
        )
    return issues


def validate_styling(styling: Mapping[str, TextStyle]) -> Result[None]:
    errors: List[Issue] = []
    for name in REQUIRED_STYLE_FIELDS:
        if name not in styling:
            errors.append(MissingField(field=name, section="styling"))

    for name, style in styling.items():
        if name not in STYLE_FIELDS:
            errors.append(UnknownField(field=name, section="styling"))
            continue
        errors.extend(_style_issues(name, style))
    return Result(errors=errors)


def validate_variables(variables: Sequence[str], layout: Mapping[str, BoundingBox]) -> Result[None]:
    """Every token must name a substitutable layout field.

    Required text fields that are laid out but never declared are only
    warnings; partial use of the layout is allowed.
    """
    substitutable = {k for k in layout if k not in POSITIONAL_FIELDS}
    errors: List[Issue] = []
    declared = set()
    for token in variables:
        name = variable_name(token)
        if name is None or name not in substitutable:
            errors.append(OrphanVariable(token=name or token))
            continue
        declared.add(name)

    warnings: List[Issue] = [
        UnusedField(field=name)
        for name in REQUIRED_SUBSTITUTABLE_FIELDS
        if name in layout and name not in declared
    ]
    return Result(errors=errors, warnings=warnings)


def _metadata_issues(template: Template) -> List[Issue]:
    issues: List[Issue] = []
    if not (template.name or "").strip():
        issues.append(MissingField(field="name", section="template"))
    enums: Dict[str, tuple] = {
        "category": CATEGORIES,
        "orientation": ORIENTATIONS,
        "status": STATUSES,
    }
    for key, allowed in enums.items():
        value = getattr(template, key)
        if value not in allowed:
            issues.append(InvalidEnum(field=key, value=value, allowed=allowed))
    return issues


def _pairing_issues(template: Template) -> List[Issue]:
    # Optional text fields need both a box and a style.
    issues: List[Issue] = []
    for name in OPTIONAL_STYLE_FIELDS:
        if name in template.styling and name not in template.layout:
            issues.append(MissingField(field=name, section="layout"))
        if name in template.layout and name not in template.styling:
            issues.append(MissingField(field=name, section="styling"))
    return issues


def validate_template(template: Template) -> Result[None]:
    return merge_results(
        Result(errors=_metadata_issues(template)),
        validate_layout(template.layout),
        validate_styling(template.styling),
        validate_variables(template.variables, template.layout),
        Result(errors=_pairing_issues(template)),
    )
