from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar


REQUIRED_LAYOUT_FIELDS: Tuple[str, ...] = (
    "recipientName",
    "courseName",
    "issueDate",
    "certificateId",
    "institution",
    "signature",
    "qrCode",
)
OPTIONAL_LAYOUT_FIELDS: Tuple[str, ...] = ("grade", "logo")
LAYOUT_FIELDS: Tuple[str, ...] = REQUIRED_LAYOUT_FIELDS + OPTIONAL_LAYOUT_FIELDS

# Positional only, never substituted with text.
POSITIONAL_FIELDS: Tuple[str, ...] = ("signature", "qrCode")
REQUIRED_SUBSTITUTABLE_FIELDS: Tuple[str, ...] = tuple(
    f for f in REQUIRED_LAYOUT_FIELDS if f not in POSITIONAL_FIELDS
)

# Style the sub-elements of the signature region; they have no layout box.
STYLE_ONLY_FIELDS: Tuple[str, ...] = ("signatureName", "signatureTitle")
REQUIRED_STYLE_FIELDS: Tuple[str, ...] = REQUIRED_SUBSTITUTABLE_FIELDS + STYLE_ONLY_FIELDS
OPTIONAL_STYLE_FIELDS: Tuple[str, ...] = ("grade",)
STYLE_FIELDS: Tuple[str, ...] = REQUIRED_STYLE_FIELDS + OPTIONAL_STYLE_FIELDS

CATEGORIES: Tuple[str, ...] = ("modern", "professional", "artistic", "academic")
ORIENTATIONS: Tuple[str, ...] = ("landscape", "portrait")
STATUSES: Tuple[str, ...] = ("active", "draft", "archived")
FONT_WEIGHTS: Tuple[str, ...] = ("normal", "bold", "light")
TEXT_ALIGNS: Tuple[str, ...] = ("left", "center", "right")
TEXT_TRANSFORMS: Tuple[str, ...] = ("uppercase", "lowercase", "capitalize")


@dataclass(frozen=True)
class BoundingBox:
    """Field position as percentages of the canvas (0..100)."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class TextStyle:
    font_family: str
    font_size: float
    font_weight: str
    color: str  # hex or named
    text_align: str
    text_transform: Optional[str] = None


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    category: str
    orientation: str
    status: str
    layout: Dict[str, BoundingBox]
    styling: Dict[str, TextStyle]
    variables: List[str]
    created_at: str
    updated_at: str
    background_image: Optional[str] = None


# ---------------------------------------------------------------------------
# Issues reported by the validator and the parser
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Issue:
    code: str = field(init=False, default="issue")
    severity: str = field(init=False, default="error")  # error|warning

    @property
    def message(self) -> str:
        return self.code

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["message"] = self.message
        return out


@dataclass(frozen=True)
class MissingField(Issue):
    field: str
    section: str = "layout"
    code: str = field(init=False, default="missing_field")

    @property
    def message(self) -> str:
        return f"{self.section}.{self.field} is required"


@dataclass(frozen=True)
class OutOfBounds(Issue):
    field: str
    value: Any
    attribute: str = ""
    code: str = field(init=False, default="out_of_bounds")

    @property
    def message(self) -> str:
        what = f"{self.field}.{self.attribute}" if self.attribute else self.field
        return f"{what} = {self.value!r} is out of bounds"


@dataclass(frozen=True)
class InvalidEnum(Issue):
    field: str
    value: Any
    allowed: Tuple[str, ...]
    code: str = field(init=False, default="invalid_enum")

    @property
    def message(self) -> str:
        return f"{self.field} = {self.value!r} is not one of {', '.join(self.allowed)}"


@dataclass(frozen=True)
class OrphanVariable(Issue):
    token: str
    code: str = field(init=False, default="orphan_variable")

    @property
    def message(self) -> str:
        return f"variable {self.token!r} has no layout field"


@dataclass(frozen=True)
class UnknownField(Issue):
    field: str
    section: str = "layout"
    code: str = field(init=False, default="unknown_field")

    @property
    def message(self) -> str:
        return f"{self.section}.{self.field} is not a known field"


@dataclass(frozen=True)
class UnusedField(Issue):
    field: str
    code: str = field(init=False, default="unused_field")
    severity: str = field(init=False, default="warning")

    @property
    def message(self) -> str:
        return f"{self.field} is laid out but not declared in variables"


@dataclass(frozen=True)
class MissingRequiredKey(Issue):
    key: str
    code: str = field(init=False, default="missing_required_key")

    @property
    def message(self) -> str:
        return f"missing required key {self.key!r}"


@dataclass(frozen=True)
class TypeMismatch(Issue):
    key: str
    expected: str
    actual: str
    code: str = field(init=False, default="type_mismatch")

    @property
    def message(self) -> str:
        return f"{self.key}: expected {self.expected}, got {self.actual}"


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a validate/parse/patch call.

    `value` carries the produced object (or, for a rejected patch, the
    untouched original). The call succeeded when `errors` is empty.
    """

    value: Optional[T] = None
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def merge_results(*results: Result) -> Result[None]:
    errors: List[Issue] = []
    warnings: List[Issue] = []
    for r in results:
        errors.extend(r.errors)
        warnings.extend(r.warnings)
    return Result(errors=errors, warnings=warnings)
