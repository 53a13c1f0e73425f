"""
Serialization helpers for form documents (fields, groups, steps, documents).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
This module intentionally keeps serialization structure stable and explicit:

    field   -> {"field_type": "Input", "id": ..., "name": ..., ...}
    row     -> [slot, slot, ...]
    group   -> {"kind": "group", "id", "name", "label", "template", "entries"}
    step    -> {"id": ..., "fields": [...]}
    document-> {"shape": "flat" | "wizard" | "groups", ...}
"""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from formtree.fields import BaseField, field_attributes, make_field
from formtree.model import (
    Document,
    Element,
    Entry,
    FlatList,
    MultiStepWizard,
    RepeatingGroup,
    RepeatingGroupList,
    Slot,
    Step,
    is_row,
)


def field_to_dict(f: BaseField) -> Dict[str, Any]:
    d: Dict[str, Any] = {"field_type": f.field_type.value}
    for key, value in field_attributes(f).items():
        if key == "options":
            value = [{"value": o.value, "label": o.label} for o in value]
        d[key] = value
    return d


def field_from_dict(d: Mapping[str, Any]) -> BaseField:
    d = dict(d)
    return make_field(d.pop("field_type"), **d)


def slot_to_dict(slot: Slot) -> Any:
    if is_row(slot):
        return [slot_to_dict(item) for item in slot]
    if isinstance(slot, BaseField):
        return field_to_dict(slot)
    raise TypeError(f"Unsupported slot type: {type(slot)}")


def slot_from_dict(d: Any) -> Slot:
    if isinstance(d, list):
        return tuple(slot_from_dict(item) for item in d)
    if isinstance(d, Mapping) and "field_type" in d:
        return field_from_dict(d)
    raise TypeError(f"Unsupported slot dict: {d!r}")


def entry_to_dict(e: Entry) -> Dict[str, Any]:
    return {"id": e.id, "fields": [slot_to_dict(s) for s in e.fields]}


def entry_from_dict(d: Mapping[str, Any]) -> Entry:
    return Entry(id=d["id"], fields=tuple(slot_from_dict(s) for s in d.get("fields", [])))


def group_to_dict(g: RepeatingGroup) -> Dict[str, Any]:
    return {
        "kind": "group",
        "id": g.id,
        "name": g.name,
        "label": g.label,
        "template": [slot_to_dict(s) for s in g.template],
        "entries": [entry_to_dict(e) for e in g.entries],
    }


def group_from_dict(d: Mapping[str, Any]) -> RepeatingGroup:
    return RepeatingGroup(
        id=d["id"],
        name=d.get("name", ""),
        label=d.get("label", "Repeating Group"),
        template=tuple(slot_from_dict(s) for s in d.get("template", [])),
        entries=tuple(entry_from_dict(e) for e in d.get("entries", [])),
    )


def element_to_dict(el: Element) -> Any:
    if isinstance(el, RepeatingGroup):
        return group_to_dict(el)
    return slot_to_dict(el)


def element_from_dict(d: Any) -> Element:
    if isinstance(d, Mapping) and d.get("kind") == "group":
        return group_from_dict(d)
    return slot_from_dict(d)


def step_to_dict(s: Step) -> Dict[str, Any]:
    return {"id": s.id, "fields": [element_to_dict(el) for el in s.fields]}


def step_from_dict(d: Mapping[str, Any]) -> Step:
    return Step(id=d["id"], fields=tuple(element_from_dict(el) for el in d.get("fields", [])))


def document_to_dict(doc: Document) -> Dict[str, Any]:
    if isinstance(doc, FlatList):
        return {"shape": "flat", "elements": [element_to_dict(el) for el in doc.elements]}
    if isinstance(doc, MultiStepWizard):
        return {
            "shape": "wizard",
            "steps": [step_to_dict(s) for s in doc.steps],
            "last_added_step": doc.last_added_step,
        }
    if isinstance(doc, RepeatingGroupList):
        return {"shape": "groups", "groups": [group_to_dict(g) for g in doc.groups]}
    raise TypeError(f"Unsupported Document type: {type(doc)}")


def document_from_dict(d: Mapping[str, Any]) -> Document:
    shape = d.get("shape")
    if shape == "flat":
        return FlatList(elements=tuple(element_from_dict(el) for el in d.get("elements", [])))
    if shape == "wizard":
        return MultiStepWizard(
            steps=tuple(step_from_dict(s) for s in d.get("steps", [])),
            last_added_step=d.get("last_added_step"),
        )
    if shape == "groups":
        return RepeatingGroupList(groups=tuple(group_from_dict(g) for g in d.get("groups", [])))
    raise TypeError(f"Unsupported document dict shape: {shape}")


def document_to_json(doc: Document) -> str:
    return json.dumps(document_to_dict(doc), sort_keys=True)


def document_from_json(s: str) -> Document:
    d = json.loads(s)
    return document_from_dict(d)


def document_to_yaml(doc: Document) -> str:
    return yaml.safe_dump(document_to_dict(doc))


def document_from_yaml(s: str) -> Document:
    d = yaml.safe_load(s)
    return document_from_dict(d)


def snapshot_to_dict(
    doc: Document, form_name: Optional[str] = None, schema_name: Optional[str] = None
) -> Dict[str, Any]:
    """A document plus the draft metadata a store carries with it."""
    return {
        "form_name": form_name,
        "schema_name": schema_name,
        "document": document_to_dict(doc),
    }


def snapshot_from_dict(d: Mapping[str, Any]) -> Tuple[Document, Optional[str], Optional[str]]:
    return document_from_dict(d["document"]), d.get("form_name"), d.get("schema_name")


__all__ = [
    "field_to_dict",
    "field_from_dict",
    "slot_to_dict",
    "slot_from_dict",
    "group_to_dict",
    "group_from_dict",
    "step_to_dict",
    "step_from_dict",
    "document_to_dict",
    "document_from_dict",
    "document_to_json",
    "document_from_json",
    "document_to_yaml",
    "document_from_yaml",
    "snapshot_to_dict",
    "snapshot_from_dict",
]
