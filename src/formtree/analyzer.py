"""
Document Analyzer: derived views and diagnostics of form documents.

This module provides read-only projections of a Document:
    - The flattened field list (every addressable field regardless of shape)
    - The validation summary the store publishes after each commit
    - A DocumentReport with inventory counts and invariant warnings

IMPORTANT: Nothing here modifies the document.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from formtree.fields import BaseField
from formtree.model import (
    Document,
    Element,
    MultiStepWizard,
    RepeatingGroup,
    iter_containers,
    iter_groups,
    iter_slot_fields,
)
from formtree.reconcile import is_shape_compatible


def _iter_element_fields(element: Element) -> Iterator[BaseField]:
    if isinstance(element, RepeatingGroup):
        for slot in element.template:
            yield from iter_slot_fields(slot)
    else:
        yield from iter_slot_fields(element)


def flatten_fields(document: Document) -> Tuple[BaseField, ...]:
    """
    Every field of the document in order.

    Descends into every step, every row and every repeating group's
    template. Group entries are copies of the template and are not listed.
    """
    return tuple(
        f
        for container in iter_containers(document)
        for element in container
        for f in _iter_element_fields(element)
    )


@dataclass(frozen=True)
class ValidationSummary:
    """Summary computed over the flattened field list."""

    has_required_fields: bool = False
    total_fields: int = 0
    is_valid: bool = False


def summarize_validation(fields: Tuple[BaseField, ...]) -> ValidationSummary:
    total = len(fields)
    return ValidationSummary(
        has_required_fields=any(f.required for f in fields),
        total_fields=total,
        is_valid=total > 0,
    )


@dataclass
class DocumentReport:
    """Inventory and invariant check of a document."""

    shape: str
    total_steps: int = 0
    total_elements: int = 0
    total_fields: int = 0
    total_static_fields: int = 0
    total_required_fields: int = 0
    total_groups: int = 0
    total_entries: int = 0

    # Field type usage
    field_type_usage: Dict[str, int] = field(default_factory=dict)

    # Invariant violations
    duplicate_ids: List[str] = field(default_factory=list)
    duplicate_names: List[str] = field(default_factory=list)
    incompatible_entries: List[str] = field(default_factory=list)
    empty_steps: List[int] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _iter_all_ids(document: Document) -> Iterator[str]:
    if isinstance(document, MultiStepWizard):
        for step in document.steps:
            yield step.id
    for container in iter_containers(document):
        for element in container:
            if isinstance(element, RepeatingGroup):
                yield element.id
                for slot in element.template:
                    yield from (f.id for f in iter_slot_fields(slot))
                for entry in element.entries:
                    yield entry.id
                    for slot in entry.fields:
                        yield from (f.id for f in iter_slot_fields(slot))
            else:
                yield from (f.id for f in iter_slot_fields(element))


def _duplicates(values) -> List[str]:
    return sorted(value for value, count in Counter(values).items() if count > 1)


def _names_in(container) -> List[str]:
    names = []
    for element in container:
        if isinstance(element, RepeatingGroup):
            names.append(element.name)
        else:
            names.extend(f.name for f in iter_slot_fields(element))
    return names


def analyze_document(document: Document) -> DocumentReport:
    """
    Inventory a document and check its structural invariants.

    Checks for:
    - Ids unique across the whole document
    - Names unique within each field list (container, template, entry)
    - Every group entry shape-compatible with its template
    - Empty wizard steps
    """
    report = DocumentReport(shape=type(document).__name__)
    fields = flatten_fields(document)

    # =========================================================================
    # 1. INVENTORY
    # =========================================================================

    if isinstance(document, MultiStepWizard):
        report.total_steps = len(document.steps)
        report.empty_steps = [i for i, step in enumerate(document.steps) if not step.fields]

    containers = list(iter_containers(document))
    report.total_elements = sum(len(c) for c in containers)
    report.total_fields = len(fields)
    report.total_static_fields = sum(1 for f in fields if f.static)
    report.total_required_fields = sum(1 for f in fields if f.required)
    report.field_type_usage = dict(Counter(f.field_type.value for f in fields))

    groups = list(iter_groups(document))
    report.total_groups = len(groups)
    report.total_entries = sum(len(g.entries) for g in groups)

    # =========================================================================
    # 2. INVARIANTS
    # =========================================================================

    report.duplicate_ids = _duplicates(_iter_all_ids(document))

    duplicate_names = set()
    for container in containers:
        duplicate_names.update(_duplicates(_names_in(container)))
    for group in groups:
        duplicate_names.update(_duplicates(_names_in(group.template)))
        for entry in group.entries:
            duplicate_names.update(_duplicates(_names_in(entry.fields)))
            if not is_shape_compatible(group.template, entry.fields):
                report.incompatible_entries.append(entry.id)
    report.duplicate_names = sorted(duplicate_names)

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    if report.duplicate_ids:
        report.add_warning(f"Duplicate ids: {', '.join(report.duplicate_ids)}")

    if report.duplicate_names:
        report.add_warning(f"Duplicate names: {', '.join(report.duplicate_names)}")

    if report.incompatible_entries:
        report.add_warning(
            f"Entries out of sync with their template: {', '.join(report.incompatible_entries)}"
        )

    if report.empty_steps:
        report.add_warning(
            f"Empty steps: {', '.join(str(i) for i in report.empty_steps)}"
        )

    if report.total_fields == report.total_static_fields:
        report.add_warning("Form has no interactive fields")

    return report


__all__ = [
    "flatten_fields",
    "ValidationSummary",
    "summarize_validation",
    "DocumentReport",
    "analyze_document",
]
