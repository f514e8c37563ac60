import json

from app.engines.template_codec import deserialize, dumps, loads, parse_layout, serialize
from app.engines.template_types import BoundingBox, MissingRequiredKey, TextStyle, TypeMismatch, UnknownField


def test_round_trip_is_lossless(template, template_doc):
    doc = serialize(template)
    assert doc == template_doc
    assert deserialize(doc).value == template


def test_round_trip_with_optional_fields(template_doc):
    template_doc["backgroundImage"] = "/test-bg.png"
    template_doc["layout"]["grade"] = {"x": 40, "y": 60, "width": 20, "height": 5}
    template_doc["layout"]["logo"] = {"x": 45.5, "y": 2.25, "width": 10, "height": 9}
    template_doc["styling"]["grade"] = {
        "fontFamily": "Inter",
        "fontSize": 14.5,
        "fontWeight": "bold",
        "color": "gold",
        "textAlign": "center",
        "textTransform": "capitalize",
    }
    template_doc["variables"].insert(0, "{{grade}}")

    t = deserialize(template_doc).value

    assert t.layout["logo"] == BoundingBox(x=45.5, y=2.25, width=10, height=9)
    assert t.styling["grade"].text_transform == "capitalize"
    assert t.background_image == "/test-bg.png"
    assert deserialize(serialize(t)).value == t
    assert loads(dumps(t)).value == t


def test_absent_optional_fields_are_omitted(template):
    doc = serialize(template)
    assert "backgroundImage" not in doc
    assert "grade" not in doc["layout"]
    assert "logo" not in doc["layout"]
    assert "textTransform" not in doc["styling"]["courseName"]
    assert None not in json.loads(dumps(template)).values()


def test_variable_order_is_preserved(template_doc):
    template_doc["variables"] = ["{{institution}}", "{{recipientName}}", "{{courseName}}"]
    t = deserialize(template_doc).value
    assert serialize(t)["variables"] == ["{{institution}}", "{{recipientName}}", "{{courseName}}"]


def test_layout_keys_are_emitted_in_canonical_order(template_doc):
    template_doc["layout"] = dict(reversed(list(template_doc["layout"].items())))
    doc = serialize(deserialize(template_doc).value)
    assert list(doc["layout"])[:3] == ["recipientName", "courseName", "issueDate"]


def test_description_defaults_to_empty(template_doc):
    del template_doc["description"]
    assert deserialize(template_doc).value.description == ""


def test_missing_required_keys(template_doc):
    del template_doc["layout"]
    del template_doc["createdAt"]
    result = deserialize(template_doc)
    assert not result.ok
    assert result.value is None
    assert set(result.errors) == {MissingRequiredKey(key="layout"), MissingRequiredKey(key="createdAt")}


def test_type_mismatches_are_collected(template_doc):
    template_doc["name"] = 42
    template_doc["layout"]["qrCode"]["width"] = "15"
    template_doc["styling"]["courseName"]["fontSize"] = True
    template_doc["variables"].append(7)

    result = deserialize(template_doc)

    assert result.value is None
    assert TypeMismatch(key="name", expected="string", actual="number") in result.errors
    assert TypeMismatch(key="layout.qrCode.width", expected="number", actual="string") in result.errors
    assert TypeMismatch(key="styling.courseName.fontSize", expected="number", actual="boolean") in result.errors
    assert TypeMismatch(key="variables[5]", expected="string", actual="number") in result.errors


def test_nested_missing_key(template_doc):
    del template_doc["styling"]["issueDate"]["textAlign"]
    result = deserialize(template_doc)
    assert result.errors == [MissingRequiredKey(key="styling.issueDate.textAlign")]


def test_unknown_top_level_key(template_doc):
    template_doc["nmae"] = "Typo"
    template_doc["backgroundimage"] = "/bg.png"
    result = deserialize(template_doc)
    assert result.value is None
    assert result.errors == [
        UnknownField(field="nmae", section="template"),
        UnknownField(field="backgroundimage", section="template"),
    ]


def test_null_optional_is_a_type_mismatch(template_doc):
    template_doc["backgroundImage"] = None
    assert deserialize(template_doc).errors == [
        TypeMismatch(key="backgroundImage", expected="string", actual="null")
    ]


def test_non_object_document():
    assert deserialize([1, 2]).errors == [TypeMismatch(key="$", expected="object", actual="array")]


def test_loads_rejects_invalid_json():
    result = loads("{not json")
    assert not result.ok
    assert result.errors[0].key == "$"


def test_parse_layout():
    result = parse_layout({"qrCode": {"x": 1, "y": 2, "width": 3, "height": 4}})
    assert result.value == {"qrCode": BoundingBox(x=1, y=2, width=3, height=4)}

    bad = parse_layout({"qrCode": {"x": 1, "y": 2, "width": 3}, "logo": []})
    assert bad.value is None
    assert MissingRequiredKey(key="layout.qrCode.height") in bad.errors
    assert TypeMismatch(key="layout.logo", expected="object", actual="array") in bad.errors


def test_text_style_fields(template):
    assert template.styling["certificateId"] == TextStyle(
        font_family="Inter",
        font_size=10,
        font_weight="normal",
        color="#374151",
        text_align="left",
        text_transform="uppercase",
    )
