from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

from .template_types import (
    LAYOUT_FIELDS,
    STYLE_FIELDS,
    BoundingBox,
    Issue,
    MissingRequiredKey,
    Result,
    Template,
    TextStyle,
    TypeMismatch,
    UnknownField,
)


_MISSING = object()

DOCUMENT_KEYS = (
    "id",
    "name",
    "description",
    "category",
    "orientation",
    "status",
    "backgroundImage",
    "layout",
    "styling",
    "variables",
    "createdAt",
    "updatedAt",
)

_JSON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "object": (dict,),
    "array": (list,),
}


def _type_name(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, (list, tuple)):
        return "array"
    if isinstance(v, Mapping):
        return "object"
    return type(v).__name__


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _take(doc: Mapping[str, Any], key: str, kind: str, path: str, errors: List[Issue], required: bool = True) -> Any:
    """Fetch `doc[key]` and check its JSON type, recording any problem."""
    full = _join(path, key)
    if key not in doc:
        if required:
            errors.append(MissingRequiredKey(key=full))
        return _MISSING
    value = doc[key]
    ok = isinstance(value, _JSON_TYPES[kind]) and not isinstance(value, bool)
    if kind == "object":
        ok = isinstance(value, Mapping)
    if not ok:
        errors.append(TypeMismatch(key=full, expected=kind, actual=_type_name(value)))
        return _MISSING
    return value


def _parse_box(raw: Any, path: str, errors: List[Issue]) -> Optional[BoundingBox]:
    if not isinstance(raw, Mapping):
        errors.append(TypeMismatch(key=path, expected="object", actual=_type_name(raw)))
        return None
    before = len(errors)
    values = {k: _take(raw, k, "number", path, errors) for k in ("x", "y", "width", "height")}
    if len(errors) > before:
        return None
    return BoundingBox(**values)


def _parse_style(raw: Any, path: str, errors: List[Issue]) -> Optional[TextStyle]:
    if not isinstance(raw, Mapping):
        errors.append(TypeMismatch(key=path, expected="object", actual=_type_name(raw)))
        return None
    before = len(errors)
    font_family = _take(raw, "fontFamily", "string", path, errors)
    font_size = _take(raw, "fontSize", "number", path, errors)
    font_weight = _take(raw, "fontWeight", "string", path, errors)
    color = _take(raw, "color", "string", path, errors)
    text_align = _take(raw, "textAlign", "string", path, errors)
    text_transform = _take(raw, "textTransform", "string", path, errors, required=False)
    if len(errors) > before:
        return None
    return TextStyle(
        font_family=font_family,
        font_size=font_size,
        font_weight=font_weight,
        color=color,
        text_align=text_align,
        text_transform=None if text_transform is _MISSING else text_transform,
    )


def _parse_mapping(raw: Mapping[str, Any], path: str, parse, errors: List[Issue]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name, entry in raw.items():
        parsed = parse(entry, _join(path, str(name)), errors)
        if parsed is not None:
            out[str(name)] = parsed
    return out


def parse_layout(raw: Any, path: str = "layout") -> Result[Dict[str, BoundingBox]]:
    """Turn an untyped `{field: {x, y, width, height}}` mapping into boxes."""
    errors: List[Issue] = []
    if not isinstance(raw, Mapping):
        return Result(errors=[TypeMismatch(key=path, expected="object", actual=_type_name(raw))])
    layout = _parse_mapping(raw, path, _parse_box, errors)
    if errors:
        return Result(errors=errors)
    return Result(value=layout)


def deserialize(document: Any) -> Result[Template]:
    """Build a Template from its stored form.

    Every structural problem is collected, keys outside the document
    schema included; on failure no Template is
    returned. Domain rules (required fields, bounds, enums) belong to the
    validator, not to this parser.
    """
    if not isinstance(document, Mapping):
        return Result(errors=[TypeMismatch(key="$", expected="object", actual=_type_name(document))])

    errors: List[Issue] = []
    for key in document:
        if key not in DOCUMENT_KEYS:
            errors.append(UnknownField(field=str(key), section="template"))

    scalars = {
        key: _take(document, key, "string", "", errors)
        for key in ("id", "name", "category", "orientation", "status", "createdAt", "updatedAt")
    }
    description = _take(document, "description", "string", "", errors, required=False)
    background = _take(document, "backgroundImage", "string", "", errors, required=False)

    layout_raw = _take(document, "layout", "object", "", errors)
    layout = _parse_mapping(layout_raw, "layout", _parse_box, errors) if layout_raw is not _MISSING else {}

    styling_raw = _take(document, "styling", "object", "", errors)
    styling = _parse_mapping(styling_raw, "styling", _parse_style, errors) if styling_raw is not _MISSING else {}

    variables = _take(document, "variables", "array", "", errors)
    if variables is not _MISSING:
        for i, token in enumerate(variables):
            if not isinstance(token, str):
                errors.append(TypeMismatch(key=f"variables[{i}]", expected="string", actual=_type_name(token)))

    if errors:
        return Result(errors=errors)

    return Result(
        value=Template(
            id=scalars["id"],
            name=scalars["name"],
            description="" if description is _MISSING else description,
            category=scalars["category"],
            orientation=scalars["orientation"],
            status=scalars["status"],
            layout=layout,
            styling=styling,
            variables=list(variables),
            created_at=scalars["createdAt"],
            updated_at=scalars["updatedAt"],
            background_image=None if background is _MISSING else background,
        )
    )


def _ordered(keys, catalogue) -> List[str]:
    known = [k for k in catalogue if k in keys]
    return known + [k for k in keys if k not in catalogue]


def box_to_dict(box: BoundingBox) -> Dict[str, Any]:
    return {"x": box.x, "y": box.y, "width": box.width, "height": box.height}


def style_to_dict(style: TextStyle) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "fontFamily": style.font_family,
        "fontSize": style.font_size,
        "fontWeight": style.font_weight,
        "color": style.color,
        "textAlign": style.text_align,
    }
    if style.text_transform is not None:
        out["textTransform"] = style.text_transform
    return out


def serialize(template: Template) -> Dict[str, Any]:
    """Canonical document form. Absent optional fields are left out, not nulled."""
    doc: Dict[str, Any] = {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "category": template.category,
        "orientation": template.orientation,
        "status": template.status,
    }
    if template.background_image is not None:
        doc["backgroundImage"] = template.background_image
    doc["layout"] = {k: box_to_dict(template.layout[k]) for k in _ordered(template.layout, LAYOUT_FIELDS)}
    doc["styling"] = {k: style_to_dict(template.styling[k]) for k in _ordered(template.styling, STYLE_FIELDS)}
    doc["variables"] = list(template.variables)
    doc["createdAt"] = template.created_at
    doc["updatedAt"] = template.updated_at
    return doc


def dumps(template: Template) -> str:
    return json.dumps(serialize(template), ensure_ascii=False)


def loads(text: str) -> Result[Template]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        return Result(errors=[TypeMismatch(key="$", expected="object", actual=f"invalid JSON ({e.msg})")])
    return deserialize(document)
