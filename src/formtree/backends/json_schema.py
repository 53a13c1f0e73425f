"""
JSON Schema generator for form documents.

Converts a Document into a JSON Schema (draft 2020-12) object describing
the values the finished form submits.

Rules:
    - One property per non-static field, keyed by its name ("-" -> "_")
    - Rows are transparent: their fields join the enclosing object
    - Wizard steps are merged into one object
    - A repeating group becomes an array of objects built from its template
    - Fields not marked required are left out of "required"
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from formtree.fields import BaseField, FieldType
from formtree.model import Document, RepeatingGroup, iter_containers, iter_slot_fields
from formtree.reconcile import sanitize_name

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


def _text_schema(f: BaseField) -> Dict[str, Any]:
    input_type = getattr(f, "type", None)
    if input_type == "email":
        return {"type": "string", "format": "email"}
    if input_type == "number":
        return {"type": "number"}
    return {"type": "string"}


def _otp_schema(f: BaseField) -> Dict[str, Any]:
    length = getattr(f, "max_length", None) or 6
    return {"type": "string", "minLength": length}


def _slider_schema(f: BaseField) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "number"}
    if getattr(f, "min", None) is not None:
        schema["minimum"] = f.min
    if getattr(f, "max", None) is not None:
        schema["maximum"] = f.max
    return schema


def _choice_values(f: BaseField) -> List[str]:
    return [o.value for o in getattr(f, "options", ())]


def _single_choice_schema(f: BaseField) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string", "minLength": 1}
    values = _choice_values(f)
    if values:
        schema["enum"] = values
    return schema


def _multi_choice_schema(f: BaseField) -> Dict[str, Any]:
    items: Dict[str, Any] = {"type": "string"}
    values = _choice_values(f)
    if values:
        items["enum"] = values
    return {"type": "array", "items": items, "minItems": 1}


def _toggle_group_schema(f: BaseField) -> Dict[str, Any]:
    if getattr(f, "type", None) == "single":
        return _single_choice_schema(f)
    return _multi_choice_schema(f)


FIELD_SCHEMA_MAP: Dict[FieldType, Callable[[BaseField], Dict[str, Any]]] = {
    FieldType.INPUT: _text_schema,
    FieldType.PASSWORD: _text_schema,
    FieldType.OTP: _otp_schema,
    FieldType.DATE_PICKER: lambda f: {"type": "string", "format": "date"},
    FieldType.CHECKBOX: lambda f: {"type": "boolean"},
    FieldType.SWITCH: lambda f: {"type": "boolean"},
    FieldType.SLIDER: _slider_schema,
    FieldType.SELECT: _single_choice_schema,
    FieldType.RADIO_GROUP: _single_choice_schema,
    FieldType.TOGGLE_GROUP: _toggle_group_schema,
    FieldType.MULTI_SELECT: _multi_choice_schema,
    FieldType.TEXTAREA: lambda f: {"type": "string", "minLength": 10},
}


def field_schema(f: BaseField) -> Dict[str, Any]:
    """Schema fragment for one non-static field."""
    generator = FIELD_SCHEMA_MAP.get(f.field_type)
    schema = generator(f) if generator else {"type": "string"}
    if f.label:
        schema["title"] = f.label
    if f.description:
        schema["description"] = f.description
    return schema


def _object_schema(elements: Iterable) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for element in elements:
        if isinstance(element, RepeatingGroup):
            key = sanitize_name(element.name)
            properties[key] = {
                "type": "array",
                "title": element.label,
                "items": _object_schema(element.template),
            }
            continue
        for f in iter_slot_fields(element):
            if f.static:
                continue
            key = sanitize_name(f.name)
            properties[key] = field_schema(f)
            if f.required:
                required.append(key)

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def generate_json_schema(document: Document, schema_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the JSON Schema of a document.

    Args:
        document: Document to describe
        schema_name: Optional schema title

    Returns:
        JSON Schema as a dict
    """
    elements: Tuple = tuple(el for container in iter_containers(document) for el in container)
    schema = {"$schema": SCHEMA_DIALECT}
    if schema_name:
        schema["title"] = schema_name
    schema.update(_object_schema(elements))
    return schema


def schema_to_json(document: Document, schema_name: Optional[str] = None) -> str:
    return json.dumps(generate_json_schema(document, schema_name), indent=2)


def save_schema_file(document: Document, filename: str, schema_name: Optional[str] = None) -> None:
    """
    Generate the schema and save it to a file.

    Args:
        document: Document to describe
        filename: Output file path (.json extension recommended)
        schema_name: Optional schema title
    """
    with open(filename, "w", encoding="utf-8") as f:
        f.write(schema_to_json(document, schema_name))


__all__ = ["FIELD_SCHEMA_MAP", "field_schema", "generate_json_schema", "schema_to_json", "save_schema_file"]
