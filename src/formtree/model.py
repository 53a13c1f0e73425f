"""
Core Document Model

Defines the form-under-construction as an immutable tree:
    - Slots (a field, or a visual row of slots)
    - Repeating groups (a template plus filled entries)
    - Steps (pages of a wizard)
    - Documents (the root, in one of three shapes)

The document shape is an explicit tagged union. Every operation dispatches
on the concrete Document class; nothing is inferred from the data except
in classify_elements, which exists only for raw element lists coming from
importers and templates.

ARCHITECTURAL RULE:
    These objects:
        - Are frozen; edits build new trees (copy-on-write)
        - Know nothing about rendering or code generation
        - Are fully serializable
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple, Union

from formtree.fields import BaseField, new_id

# A slot is a field or a row of slots. Rows nest arbitrarily.
Slot = Union[BaseField, Tuple["Slot", ...]]


@dataclass(frozen=True)
class Entry:
    """
    One filled instance of a repeating group's template.

    Properties:
        id: Entry identifier
        fields: Slots, shape-compatible with the owning group's template
    """

    id: str = field(default_factory=new_id)
    fields: Tuple[Slot, ...] = ()


@dataclass(frozen=True)
class RepeatingGroup:
    """
    A template field list plus ordered entries, each a copy of the template.

    Properties:
        template:
            Authoritative schema for every entry.

        entries:
            entries[0] is the default entry and is never deleted.

    INVARIANTS:
        - Every entry is shape-compatible with template
          (restored by reconciliation whenever template changes)
    """

    id: str = field(default_factory=new_id)
    name: str = ""
    label: str = "Repeating Group"
    template: Tuple[Slot, ...] = ()
    entries: Tuple[Entry, ...] = ()

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None


Element = Union[Slot, RepeatingGroup]


@dataclass(frozen=True)
class Step:
    """One page of a multi-step wizard."""

    id: str = field(default_factory=new_id)
    fields: Tuple[Element, ...] = ()


@dataclass(frozen=True)
class FlatList:
    """Single-page document: fields, rows and repeating groups."""

    elements: Tuple[Element, ...] = ()

    @property
    def is_multi_step(self) -> bool:
        return False


@dataclass(frozen=True)
class MultiStepWizard:
    """
    Paginated document.

    Properties:
        steps: Ordered pages
        last_added_step: Index produced by the latest add_step, if any.
            New repeating groups land there when no step is given.
    """

    steps: Tuple[Step, ...] = ()
    last_added_step: Optional[int] = None

    @property
    def is_multi_step(self) -> bool:
        return True


@dataclass(frozen=True)
class RepeatingGroupList:
    """Document made only of repeating groups."""

    groups: Tuple[RepeatingGroup, ...] = ()

    @property
    def is_multi_step(self) -> bool:
        return False


Document = Union[FlatList, MultiStepWizard, RepeatingGroupList]


def is_row(element: object) -> bool:
    return isinstance(element, tuple)


def document_elements(document: Document) -> Tuple:
    """Top-level collection of a document (elements, steps or groups)."""
    if isinstance(document, FlatList):
        return document.elements
    if isinstance(document, MultiStepWizard):
        return document.steps
    if isinstance(document, RepeatingGroupList):
        return document.groups
    raise TypeError(f"Unsupported document type: {type(document)}")


def classify_elements(elements: Sequence) -> type:
    """
    Pick the document class for an untyped element list.

    Looks at the first element only (Step -> wizard), then checks whether
    every element is a repeating group.
    """
    if not elements:
        return FlatList
    if isinstance(elements[0], Step):
        return MultiStepWizard
    if all(isinstance(el, RepeatingGroup) for el in elements):
        return RepeatingGroupList
    return FlatList


def document_from_elements(elements: Sequence) -> Document:
    """Wrap a raw element list in the matching Document class."""
    kind = classify_elements(elements)
    if kind is MultiStepWizard:
        return MultiStepWizard(steps=tuple(elements))
    if kind is RepeatingGroupList:
        return RepeatingGroupList(groups=tuple(elements))
    return FlatList(elements=tuple(elements))


def iter_containers(document: Document) -> Iterator[Tuple[Element, ...]]:
    """Yield every top-level field list (one per step in a wizard)."""
    if isinstance(document, MultiStepWizard):
        for step in document.steps:
            yield step.fields
    else:
        yield document_elements(document)


def iter_groups(document: Document) -> Iterator[RepeatingGroup]:
    """Yield every repeating group, at top level or inside any step."""
    for container in iter_containers(document):
        for element in container:
            if isinstance(element, RepeatingGroup):
                yield element


def find_group(document: Document, group_id: str) -> Optional[RepeatingGroup]:
    for group in iter_groups(document):
        if group.id == group_id:
            return group
    return None


def as_slot(value) -> Slot:
    """Normalize a field or a (possibly list-based) row into a Slot."""
    if isinstance(value, (list, tuple)):
        return tuple(as_slot(item) for item in value)
    if isinstance(value, BaseField):
        return value
    raise TypeError(f"Not a field or row: {value!r}")


def as_slots(values: Sequence) -> Tuple[Slot, ...]:
    return tuple(as_slot(value) for value in values)


def iter_slot_fields(slot: Slot) -> Iterator[BaseField]:
    """Depth-first fields of a slot."""
    if is_row(slot):
        for item in slot:
            yield from iter_slot_fields(item)
    else:
        yield slot


__all__ = [
    "Slot",
    "Element",
    "Entry",
    "RepeatingGroup",
    "Step",
    "FlatList",
    "MultiStepWizard",
    "RepeatingGroupList",
    "Document",
    "is_row",
    "document_elements",
    "classify_elements",
    "document_from_elements",
    "iter_containers",
    "iter_groups",
    "find_group",
    "as_slot",
    "as_slots",
    "iter_slot_fields",
]
