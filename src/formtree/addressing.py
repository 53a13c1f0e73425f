"""
Addressing: resolving (step_index, field_index, j) coordinates.

A location is up to three coordinates applied in order:
    step_index  - selects a Step (wizard documents only, defaults to 0)
    field_index - selects a top-level element of the field list
    j           - selects a position inside a row, or inside a repeating
                  group's template

Every coordinate is bounds-checked against [0, len). Nothing is clamped.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from formtree.errors import ErrorCode, FormBuilderError
from formtree.model import (
    Document,
    Element,
    FlatList,
    MultiStepWizard,
    RepeatingGroup,
    RepeatingGroupList,
    is_row,
)


@dataclass(frozen=True)
class Address:
    """A node location. Unused coordinates are None."""

    field_index: Optional[int] = None
    step_index: Optional[int] = None
    j: Optional[int] = None


def _check(items: Sequence, index: int, code: ErrorCode, what: str) -> None:
    if index < 0 or index >= len(items):
        raise FormBuilderError(
            f"Invalid {what}: {index}. Must be between 0 and {len(items) - 1}",
            code,
        )


def check_step_index(steps: Sequence, step_index: int) -> None:
    _check(steps, step_index, ErrorCode.INVALID_STEP_INDEX, "step index")


def check_field_index(elements: Sequence, field_index: int) -> None:
    _check(elements, field_index, ErrorCode.INVALID_FIELD_INDEX, "field index")


def check_nested_index(items: Sequence, j: int) -> None:
    _check(items, j, ErrorCode.INVALID_NESTED_INDEX, "nested index")


def resolve_step_index(document: Document, step_index: Optional[int]) -> int:
    """Step to act on in a wizard; 0 when the caller gives none."""
    index = 0 if step_index is None else step_index
    check_step_index(document.steps, index)
    return index


def resolve_container(
    document: Document, step_index: Optional[int] = None
) -> Tuple[Element, ...]:
    """The field list an address's field_index applies to."""
    if isinstance(document, FlatList):
        return document.elements
    if isinstance(document, MultiStepWizard):
        return document.steps[resolve_step_index(document, step_index)].fields
    if isinstance(document, RepeatingGroupList):
        return document.groups
    raise TypeError(f"Unsupported document type: {type(document)}")


def replace_container(
    document: Document,
    elements: Sequence[Element],
    step_index: Optional[int] = None,
) -> Document:
    """Return a copy of document with the addressed field list replaced."""
    elements = tuple(elements)
    if isinstance(document, FlatList):
        return FlatList(elements=elements)
    if isinstance(document, MultiStepWizard):
        index = resolve_step_index(document, step_index)
        steps = list(document.steps)
        steps[index] = replace(steps[index], fields=elements)
        return replace(document, steps=tuple(steps))
    if isinstance(document, RepeatingGroupList):
        # A plain field at top level means the document is no longer group-only
        if all(isinstance(el, RepeatingGroup) for el in elements):
            return RepeatingGroupList(groups=elements)
        return FlatList(elements=elements)
    raise TypeError(f"Unsupported document type: {type(document)}")


def resolve_element(
    document: Document, field_index: int, step_index: Optional[int] = None
) -> Element:
    container = resolve_container(document, step_index)
    check_field_index(container, field_index)
    return container[field_index]


def nested_items(element: Element) -> Tuple:
    """
    The collection a j coordinate indexes into.

    Raises:
        FormBuilderError(INVALID_NESTED_INDEX): element is a single field
    """
    if isinstance(element, RepeatingGroup):
        return element.template
    if is_row(element):
        return element
    raise FormBuilderError(
        "Nested index given for a single field", ErrorCode.INVALID_NESTED_INDEX
    )


def resolve(document: Document, address: Address):
    """Return the node an address points at."""
    if address.field_index is None:
        return resolve_container(document, address.step_index)
    element = resolve_element(document, address.field_index, address.step_index)
    if address.j is None:
        return element
    items = nested_items(element)
    check_nested_index(items, address.j)
    return items[address.j]


__all__ = [
    "Address",
    "check_step_index",
    "check_field_index",
    "check_nested_index",
    "resolve_step_index",
    "resolve_container",
    "replace_container",
    "resolve_element",
    "nested_items",
    "resolve",
]
