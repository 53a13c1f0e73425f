"""
Mutation Engine: structural edits of a form document.

Every operation is a pure function: it takes a Document plus options and
returns a new Document. The input is never modified, so a failed operation
leaves the caller's document exactly as it was.

Operations that change a repeating group's template run reconciliation
before returning; callers never see a template whose entries are stale.

Failures raise FormBuilderError with a stable ErrorCode.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Set, Tuple

from formtree.addressing import (
    check_field_index,
    check_nested_index,
    check_step_index,
    nested_items,
    replace_container,
    resolve_container,
)
from formtree.errors import ErrorCode, FormBuilderError
from formtree.fields import (
    BaseField,
    make_field,
    merge_field,
    new_id,
    parse_field_type,
    timestamp,
)
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
    as_slot,
    as_slots,
    find_group,
    is_row,
    iter_slot_fields,
)
from formtree.reconcile import (
    create_group,
    entry_field_name,
    new_entry,
    reconcile_group,
)
from formtree.templates import Template, get_template

logger = logging.getLogger(__name__)

GROUP_PROPERTIES = ("name", "label")


# =============================================================================
# HELPERS
# =============================================================================

def _field_names(elements: Sequence) -> Set[str]:
    """Names already used by the fields of one list; groups keep their own."""
    return {
        f.name
        for element in elements
        if not isinstance(element, RepeatingGroup)
        for f in iter_slot_fields(element)
    }


def _unique_name(base: str, taken: Set[str]) -> str:
    name, suffix = base, 1
    while name in taken:
        suffix += 1
        name = f"{base}_{suffix}"
    return name


def _new_field(
    field_type, overrides: Mapping[str, Any], taken: Set[str] = frozenset()
) -> BaseField:
    ft = parse_field_type(field_type)
    attrs = dict(overrides)
    if not attrs.get("name"):
        attrs["name"] = _unique_name(f"{ft.value}_{timestamp()}", taken)
    attrs.setdefault("required", True)
    return make_field(ft, **attrs)


def _without_id(patch: Mapping[str, Any]) -> Dict[str, Any]:
    patch = dict(patch)
    if patch.pop("id", None) is not None:
        logger.debug("Ignoring id in patch; field ids never change")
    return patch


def _node_key(node) -> Any:
    if is_row(node):
        return tuple(_node_key(item) for item in node)
    return node.id


def _check_permutation(current: Sequence, new_order: Sequence, what: str) -> None:
    if Counter(map(_node_key, current)) != Counter(map(_node_key, new_order)):
        raise FormBuilderError(
            f"New order is not a permutation of the current {what}",
            ErrorCode.INVALID_PERMUTATION,
        )


def _map_containers(
    document: Document, fn: Callable[[Tuple[Element, ...]], Tuple[Element, ...]]
) -> Document:
    if isinstance(document, FlatList):
        return FlatList(elements=fn(document.elements))
    if isinstance(document, MultiStepWizard):
        steps = tuple(replace(step, fields=fn(step.fields)) for step in document.steps)
        return replace(document, steps=steps)
    if isinstance(document, RepeatingGroupList):
        return RepeatingGroupList(groups=fn(document.groups))
    raise TypeError(f"Unsupported document type: {type(document)}")


def _group_not_found(group_id: str) -> FormBuilderError:
    return FormBuilderError(
        f"Repeating group '{group_id}' not found", ErrorCode.FORM_ARRAY_NOT_FOUND
    )


def _require_group(document: Document, group_id: str) -> RepeatingGroup:
    group = find_group(document, group_id)
    if group is None:
        raise _group_not_found(group_id)
    return group


def _update_group(
    document: Document,
    group_id: str,
    update: Callable[[RepeatingGroup], RepeatingGroup],
) -> Document:
    group = _require_group(document, group_id)
    updated = update(group)

    def visit(container):
        return tuple(updated if el is group else el for el in container)

    return _map_containers(document, visit)


def _require_entry_index(group: RepeatingGroup, entry_id: str) -> int:
    for index, entry in enumerate(group.entries):
        if entry.id == entry_id:
            return index
    raise FormBuilderError(
        f"Entry '{entry_id}' not found in group '{group.id}'",
        ErrorCode.ENTRY_NOT_FOUND,
    )


def _replace_template(group: RepeatingGroup, template: Sequence) -> RepeatingGroup:
    return reconcile_group(replace(group, template=as_slots(template)))


def _set_item(items: Sequence, index: int, value) -> Tuple:
    items = list(items)
    items[index] = value
    return tuple(items)


def _drop_item(items: Sequence, index: int) -> Tuple:
    return tuple(items[:index]) + tuple(items[index + 1:])


def _require_wizard(document: Document, action: str) -> MultiStepWizard:
    if not isinstance(document, MultiStepWizard):
        raise FormBuilderError(
            f"Cannot {action} in a single-step form", ErrorCode.NOT_MULTI_STEP_FORM
        )
    return document


def rekey_document(document: Document) -> Document:
    """Copy of a document where every node carries a fresh id."""

    def rekey(node):
        if is_row(node):
            return tuple(rekey(item) for item in node)
        if isinstance(node, RepeatingGroup):
            return replace(
                node,
                id=new_id(),
                template=tuple(rekey(slot) for slot in node.template),
                entries=tuple(
                    Entry(fields=tuple(rekey(slot) for slot in entry.fields))
                    for entry in node.entries
                ),
            )
        if isinstance(node, Step):
            return Step(fields=tuple(rekey(el) for el in node.fields))
        return replace(node, id=new_id())

    if isinstance(document, MultiStepWizard):
        return MultiStepWizard(steps=tuple(rekey(step) for step in document.steps))
    return _map_containers(document, lambda container: tuple(rekey(el) for el in container))


# =============================================================================
# FIELDS
# =============================================================================

def append_field(
    document: Document,
    field_type,
    *,
    field_index: Optional[int] = None,
    step_index: Optional[int] = None,
    j: Optional[int] = None,
    **overrides: Any,
) -> Document:
    """
    Add a new field built from the type's defaults plus overrides.

    - no field_index: append to the end of the addressed field list
    - field_index on a field: the two become a row
    - field_index on a row: append to the row
    - field_index on a repeating group: append into its template
      (into slot j when given, promoting it to a row) and reconcile
    """
    field_type = parse_field_type(field_type)
    container = resolve_container(document, step_index)

    if field_index is None:
        if j is not None:
            raise FormBuilderError(
                "Nested index given without a field index",
                ErrorCode.INVALID_NESTED_INDEX,
            )
        new = _new_field(field_type, overrides, _field_names(container))
        return replace_container(document, container + (new,), step_index)

    check_field_index(container, field_index)
    target = container[field_index]

    if isinstance(target, RepeatingGroup):
        new = _new_field(field_type, overrides, _field_names(target.template))
    else:
        new = _new_field(field_type, overrides, _field_names(container))

    if isinstance(target, RepeatingGroup):
        template = target.template
        if j is None:
            template = template + (new,)
        else:
            check_nested_index(template, j)
            slot = template[j]
            template = _set_item(template, j, slot + (new,) if is_row(slot) else (slot, new))
        updated = _replace_template(target, template)
    elif j is not None:
        raise FormBuilderError(
            "Nested index only applies to a repeating group when appending",
            ErrorCode.INVALID_NESTED_INDEX,
        )
    elif is_row(target):
        updated = target + (new,)
    else:
        updated = (target, new)

    logger.debug("Appended %s field %s at index %s", new.field_type.value, new.id, field_index)
    return replace_container(document, _set_item(container, field_index, updated), step_index)


def drop_field(
    document: Document,
    field_index: int,
    *,
    step_index: Optional[int] = None,
    j: Optional[int] = None,
) -> Document:
    """
    Remove the element at field_index, or only position j inside it.

    A row left with a single field collapses back to that field.
    """
    container = resolve_container(document, step_index)
    check_field_index(container, field_index)

    if j is None:
        return replace_container(document, _drop_item(container, field_index), step_index)

    target = container[field_index]
    items = nested_items(target)
    check_nested_index(items, j)
    remaining = _drop_item(items, j)

    if isinstance(target, RepeatingGroup):
        elements = _set_item(container, field_index, _replace_template(target, remaining))
    elif len(remaining) == 0:
        elements = _drop_item(container, field_index)
    elif len(remaining) == 1:
        elements = _set_item(container, field_index, remaining[0])
    else:
        elements = _set_item(container, field_index, remaining)
    return replace_container(document, elements, step_index)


def edit_field(
    document: Document,
    field_index: int,
    patch: Mapping[str, Any],
    *,
    step_index: Optional[int] = None,
    j: Optional[int] = None,
) -> Document:
    """
    Shallow-merge patch onto the addressed field.

    On a repeating group: with j, patches template slot j and propagates to
    entries; without j, patches the group's own name/label.
    """
    container = resolve_container(document, step_index)
    check_field_index(container, field_index)
    target = container[field_index]
    patch = _without_id(patch)

    if isinstance(target, RepeatingGroup):
        if j is None:
            updated = _patch_group_properties(target, patch)
        else:
            check_nested_index(target.template, j)
            updated = _patch_template_field(target, j, None, patch, True)
    elif is_row(target):
        if j is None:
            raise FormBuilderError(
                "A row needs a nested index to edit one of its fields",
                ErrorCode.INVALID_NESTED_INDEX,
            )
        check_nested_index(target, j)
        if is_row(target[j]):
            raise FormBuilderError(
                f"Position {j} is a row, not a field", ErrorCode.INVALID_NESTED_INDEX
            )
        updated = _set_item(target, j, merge_field(target[j], patch))
    else:
        if j is not None:
            nested_items(target)
        updated = merge_field(target, patch)

    return replace_container(document, _set_item(container, field_index, updated), step_index)


def reorder_fields(
    document: Document,
    new_order: Sequence,
    *,
    field_index: Optional[int] = None,
    step_index: Optional[int] = None,
) -> Document:
    """
    Replace a field list with a permutation of itself.

    Without field_index the whole addressed list is reordered; with it, the
    row (or repeating group template) at that index.
    """
    container = resolve_container(document, step_index)

    if field_index is None:
        new_order = tuple(
            item if isinstance(item, RepeatingGroup) else as_slot(item) for item in new_order
        )
        _check_permutation(container, new_order, "field list")
        return replace_container(document, new_order, step_index)

    check_field_index(container, field_index)
    target = container[field_index]
    items = nested_items(target)
    new_order = as_slots(new_order)
    _check_permutation(items, new_order, "nested list")

    if isinstance(target, RepeatingGroup):
        updated = _replace_template(target, new_order)
    else:
        updated = new_order
    return replace_container(document, _set_item(container, field_index, updated), step_index)


def reset_fields(document: Document) -> Document:
    """Empty document of the same shape; a wizard keeps one empty step."""
    if isinstance(document, FlatList):
        return FlatList()
    if isinstance(document, MultiStepWizard):
        return MultiStepWizard(steps=(Step(),))
    if isinstance(document, RepeatingGroupList):
        return RepeatingGroupList()
    raise TypeError(f"Unsupported document type: {type(document)}")


# =============================================================================
# DOCUMENT SHAPE
# =============================================================================

def set_template(
    document: Document,
    name: str,
    catalog: Optional[Mapping[str, Template]] = None,
) -> Document:
    """
    Replace the whole document with a named template's content.

    The shape comes from the template's own Document class; every node
    gets a fresh id.
    """
    template = get_template(name, catalog)
    logger.debug("Applying template %s (%s)", name, type(template.content).__name__)
    return rekey_document(template.content)


def set_multi_step(document: Document, enabled: bool) -> Document:
    """
    Convert between a flat list and a wizard.

    Flat -> wizard wraps everything into one step. Wizard -> flat
    concatenates every step's fields in step order.
    """
    if isinstance(document, MultiStepWizard):
        if enabled:
            return document
        elements: Tuple[Element, ...] = ()
        for step in document.steps:
            elements += step.fields
        return FlatList(elements=elements)
    if isinstance(document, FlatList):
        if not enabled:
            return document
        return MultiStepWizard(steps=(Step(fields=document.elements),))
    if isinstance(document, RepeatingGroupList):
        if not enabled:
            return document
        raise FormBuilderError(
            "A repeating-group document cannot be converted to a wizard",
            ErrorCode.NOT_SUPPORTED_MODE,
        )
    raise TypeError(f"Unsupported document type: {type(document)}")


def add_step(document: Document, position: Optional[int] = None) -> Document:
    """Insert an empty step after position, or append one."""
    wizard = _require_wizard(document, "add a step")
    step = Step()
    if position is None:
        index = len(wizard.steps)
    else:
        check_step_index(wizard.steps, position)
        index = position + 1
    steps = wizard.steps[:index] + (step,) + wizard.steps[index:]
    return MultiStepWizard(steps=steps, last_added_step=index)


def remove_step(document: Document, step_index: int) -> Document:
    wizard = _require_wizard(document, "remove a step")
    check_step_index(wizard.steps, step_index)
    if len(wizard.steps) <= 1:
        raise FormBuilderError(
            "Cannot remove the last step from a multi-step form",
            ErrorCode.CANNOT_REMOVE_LAST_STEP,
        )
    last = wizard.last_added_step
    if last is not None:
        if last == step_index:
            last = None
        elif last > step_index:
            last -= 1
    return MultiStepWizard(steps=_drop_item(wizard.steps, step_index), last_added_step=last)


def reorder_steps(document: Document, new_order: Sequence[Step]) -> Document:
    wizard = _require_wizard(document, "reorder steps")
    new_order = tuple(new_order)
    _check_permutation(wizard.steps, new_order, "steps")
    return MultiStepWizard(steps=new_order)


# =============================================================================
# REPEATING GROUPS
# =============================================================================

def add_repeating_group(
    document: Document,
    template: Sequence,
    step_index: Optional[int] = None,
    *,
    name: Optional[str] = None,
    label: str = "Repeating Group",
) -> Document:
    """
    Append a new repeating group with one default entry.

    In a wizard the group goes to step_index, else the most recently added
    step, else the last step.
    """
    group = create_group(template, name=name, label=label)

    if isinstance(document, RepeatingGroupList):
        return RepeatingGroupList(groups=document.groups + (group,))
    if isinstance(document, FlatList):
        return FlatList(elements=document.elements + (group,))
    if isinstance(document, MultiStepWizard):
        if step_index is not None:
            target = step_index
        elif document.last_added_step is not None:
            target = document.last_added_step
        else:
            target = len(document.steps) - 1
        check_step_index(document.steps, target)
        step = document.steps[target]
        steps = _set_item(document.steps, target, replace(step, fields=step.fields + (group,)))
        return replace(document, steps=steps)
    raise TypeError(f"Unsupported document type: {type(document)}")


def remove_repeating_group(document: Document, group_id: str) -> Document:
    group = _require_group(document, group_id)

    def visit(container):
        return tuple(el for el in container if el is not group)

    return _map_containers(document, visit)


def update_repeating_group_template(
    document: Document, group_id: str, template: Sequence
) -> Document:
    """Commit a new template and reconcile every entry against it."""
    return _update_group(document, group_id, lambda g: _replace_template(g, template))


def reorder_repeating_group_template(
    document: Document, group_id: str, new_order: Sequence
) -> Document:
    def update(group):
        order = as_slots(new_order)
        _check_permutation(group.template, order, "group template")
        return _replace_template(group, order)

    return _update_group(document, group_id, update)


def _patch_group_properties(group: RepeatingGroup, props: Mapping[str, Any]) -> RepeatingGroup:
    unknown = set(props) - set(GROUP_PROPERTIES)
    if unknown:
        raise TypeError(f"Unsupported repeating group properties: {sorted(unknown)}")
    updated = replace(group, **props)
    if updated.name != group.name:
        updated = reconcile_group(updated)
    return updated


def update_repeating_group_properties(
    document: Document, group_id: str, **props: Any
) -> Document:
    """Change a group's name and/or label; entry names follow a rename."""
    return _update_group(document, group_id, lambda g: _patch_group_properties(g, props))


def sync_group_entries(document: Document, group_id: str) -> Document:
    """Run reconciliation on one group."""
    return _update_group(document, group_id, reconcile_group)


# =============================================================================
# GROUP ENTRIES
# =============================================================================

def add_entry(document: Document, group_id: str) -> Document:
    def update(group):
        return replace(group, entries=group.entries + (new_entry(group),))

    return _update_group(document, group_id, update)


def remove_entry(document: Document, group_id: str, entry_id: str) -> Document:
    """
    Remove an entry; later entries are renamed to their new index.

    Raises:
        FormBuilderError(CANNOT_DELETE_FIRST_ENTRY): entry_id is the default entry
    """

    def update(group):
        if group.entries and group.entries[0].id == entry_id:
            raise FormBuilderError(
                "Cannot delete the first entry (default entry) of a repeating group",
                ErrorCode.CANNOT_DELETE_FIRST_ENTRY,
            )
        index = _require_entry_index(group, entry_id)
        return reconcile_group(replace(group, entries=_drop_item(group.entries, index)))

    return _update_group(document, group_id, update)


def update_entry_fields(
    document: Document, group_id: str, entry_id: str, fields: Sequence
) -> Document:
    """Overwrite one entry's slots (e.g. a bound control changed a value)."""

    def update(group):
        index = _require_entry_index(group, entry_id)
        entry = replace(group.entries[index], fields=as_slots(fields))
        return replace(group, entries=_set_item(group.entries, index, entry))

    return _update_group(document, group_id, update)


# =============================================================================
# GROUP TEMPLATE FIELDS
# =============================================================================

def _patch_slot(slot: Slot, nested_index: Optional[int], patch: Mapping[str, Any]) -> Slot:
    if nested_index is None:
        if is_row(slot):
            raise FormBuilderError(
                "A row needs a nested index to patch one of its fields",
                ErrorCode.INVALID_NESTED_INDEX,
            )
        return merge_field(slot, patch)
    if not is_row(slot):
        raise FormBuilderError(
            "Nested index given for a single field", ErrorCode.INVALID_NESTED_INDEX
        )
    check_nested_index(slot, nested_index)
    return _set_item(slot, nested_index, _patch_slot(slot[nested_index], None, patch))


def _patch_entry_slot(
    slot: Slot,
    nested_index: Optional[int],
    patch: Mapping[str, Any],
    template_field: BaseField,
    name: str,
) -> Slot:
    if nested_index is not None:
        if not is_row(slot) or nested_index >= len(slot):
            return slot
        inner = _patch_entry_slot(slot[nested_index], None, patch, template_field, name)
        return _set_item(slot, nested_index, inner)
    if is_row(slot) or slot.field_type is not template_field.field_type:
        return slot
    attrs = dict(patch)
    if "name" in attrs:
        attrs["name"] = name
    return merge_field(slot, attrs)


def _patch_template_field(
    group: RepeatingGroup,
    field_index: int,
    nested_index: Optional[int],
    patch: Mapping[str, Any],
    also_update_entries: bool,
) -> RepeatingGroup:
    check_field_index(group.template, field_index)
    patch = _without_id(patch)
    old_slot = group.template[field_index]
    new_slot = _patch_slot(old_slot, nested_index, patch)
    updated = replace(group, template=_set_item(group.template, field_index, new_slot))

    if not also_update_entries:
        return updated

    new_field = new_slot if nested_index is None else new_slot[nested_index]
    old_field = old_slot if nested_index is None else old_slot[nested_index]
    if new_field.field_type is not old_field.field_type:
        return reconcile_group(updated)

    entries = []
    for index, entry in enumerate(updated.entries):
        if field_index >= len(entry.fields):
            entries.append(entry)
            continue
        name = entry_field_name(updated.name, index, new_field.name)
        slot = _patch_entry_slot(entry.fields[field_index], nested_index, patch, old_field, name)
        entries.append(replace(entry, fields=_set_item(entry.fields, field_index, slot)))
    return replace(updated, entries=tuple(entries))


def update_group_template_field(
    document: Document,
    group_id: str,
    field_index: int,
    patch: Mapping[str, Any],
    nested_index: Optional[int] = None,
    also_update_entries: bool = True,
) -> Document:
    """
    Patch one template field and copy the same patch into every entry.

    This is the narrow path for cosmetic edits (label, placeholder): entry
    values and ids are untouched. A field_type change falls back to full
    reconciliation.
    """
    return _update_group(
        document,
        group_id,
        lambda g: _patch_template_field(g, field_index, nested_index, patch, also_update_entries),
    )


def add_group_field(
    document: Document, group_id: str, field_type, **overrides: Any
) -> Document:
    """Append a new field to a group's template and reconcile."""
    field_type = parse_field_type(field_type)

    def update(group):
        new = _new_field(field_type, overrides, _field_names(group.template))
        return _replace_template(group, group.template + (new,))

    return _update_group(document, group_id, update)


def remove_group_field(document: Document, group_id: str, field_index: int) -> Document:
    def update(group):
        check_field_index(group.template, field_index)
        return _replace_template(group, _drop_item(group.template, field_index))

    return _update_group(document, group_id, update)


def reorder_group_fields(document: Document, group_id: str, new_order: Sequence) -> Document:
    return reorder_repeating_group_template(document, group_id, new_order)


def add_slot_to_document(document: Document, slot, step_index: Optional[int] = None) -> Document:
    """Append an already-built field, row or group to the addressed list."""
    element = slot if isinstance(slot, RepeatingGroup) else as_slot(slot)
    container = resolve_container(document, step_index)
    return replace_container(document, container + (element,), step_index)


__all__ = [
    "append_field",
    "drop_field",
    "edit_field",
    "reorder_fields",
    "reset_fields",
    "set_template",
    "set_multi_step",
    "add_step",
    "remove_step",
    "reorder_steps",
    "add_repeating_group",
    "remove_repeating_group",
    "update_repeating_group_template",
    "reorder_repeating_group_template",
    "update_repeating_group_properties",
    "sync_group_entries",
    "add_entry",
    "remove_entry",
    "update_entry_fields",
    "update_group_template_field",
    "add_group_field",
    "remove_group_field",
    "reorder_group_fields",
    "add_slot_to_document",
    "rekey_document",
]
