"""
Repeating-group reconciliation.

After a group's template changes, every entry's slots are rebuilt to match
the template position by position, preserving user state where possible.

Preservation rule (structural, not a deep merge):
    - template field vs existing field of the same field_type:
        keep the existing id and attributes, recompute the name
    - template row vs existing row:
        recurse per index, padding/truncating to the template's length
    - anything else (type mismatch, missing position, row vs field):
        fresh copy of the template slot with new ids

Names inside entries are always "{group}[{entry_index}].{template_name}",
so submitted values map back to their group, entry and field.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from formtree.fields import BaseField, field_attributes, new_id, timestamp
from formtree.model import Entry, RepeatingGroup, Slot, as_slots, is_row

logger = logging.getLogger(__name__)


def sanitize_name(name: str) -> str:
    return name.replace("-", "_")


def entry_field_name(group_name: str, entry_index: int, template_name: str) -> str:
    """Submission name of a field inside a group entry."""
    return f"{sanitize_name(group_name)}[{entry_index}].{sanitize_name(template_name)}"


def _carry_over(template: BaseField, existing: BaseField, name: str) -> BaseField:
    # template attributes are the base, caller-set attributes win
    attrs = field_attributes(template)
    attrs.update(field_attributes(existing))
    attrs["id"] = existing.id
    attrs["name"] = name
    return replace(template, **attrs)


def fresh_slot(template: Slot, group_name: str, entry_index: int) -> Slot:
    """Copy of a template slot with new ids and entry-scoped names."""
    if is_row(template):
        return tuple(fresh_slot(item, group_name, entry_index) for item in template)
    return replace(
        template,
        id=new_id(),
        name=entry_field_name(group_name, entry_index, template.name),
    )


def reconcile_slot(
    template: Slot, existing: Optional[Slot], group_name: str, entry_index: int
) -> Slot:
    """Bring one entry slot into agreement with its template slot."""
    if is_row(template):
        if existing is not None and is_row(existing):
            return tuple(
                reconcile_slot(
                    item,
                    existing[i] if i < len(existing) else None,
                    group_name,
                    entry_index,
                )
                for i, item in enumerate(template)
            )
        return fresh_slot(template, group_name, entry_index)

    if (
        existing is not None
        and not is_row(existing)
        and existing.field_type is template.field_type
    ):
        name = entry_field_name(group_name, entry_index, template.name)
        return _carry_over(template, existing, name)
    return fresh_slot(template, group_name, entry_index)


def reconcile_entry(
    template: Tuple[Slot, ...], entry: Entry, group_name: str, entry_index: int
) -> Entry:
    fields = tuple(
        reconcile_slot(
            slot,
            entry.fields[i] if i < len(entry.fields) else None,
            group_name,
            entry_index,
        )
        for i, slot in enumerate(template)
    )
    return replace(entry, fields=fields)


def reconcile_group(group: RepeatingGroup) -> RepeatingGroup:
    """Recompute every entry of a group from its current template."""
    entries = tuple(
        reconcile_entry(group.template, entry, group.name, index)
        for index, entry in enumerate(group.entries)
    )
    logger.debug(
        "Reconciled group %s (%s): %d entries against %d template slots",
        group.id, group.name, len(entries), len(group.template),
    )
    return replace(group, entries=entries)


def new_entry(group: RepeatingGroup) -> Entry:
    """Entry for the next index, built fresh from the template."""
    index = len(group.entries)
    return Entry(
        fields=tuple(fresh_slot(slot, group.name, index) for slot in group.template)
    )


def default_entry(template: Tuple[Slot, ...]) -> Entry:
    """
    First entry of a newly created group.

    Names get a "_default_<ts>" suffix; the first reconciliation rewrites
    them to the indexed form.
    """
    suffix = f"_default_{timestamp()}"

    def build(slot: Slot) -> Slot:
        if is_row(slot):
            return tuple(build(item) for item in slot)
        return replace(slot, id=new_id(), name=f"{sanitize_name(slot.name)}{suffix}")

    return Entry(fields=tuple(build(slot) for slot in template))


def create_group(
    template: Sequence,
    name: Optional[str] = None,
    label: str = "Repeating Group",
) -> RepeatingGroup:
    """New repeating group holding exactly one default entry."""
    slots = as_slots(template)
    return RepeatingGroup(
        name=name or f"group_{timestamp()}",
        label=label,
        template=slots,
        entries=(default_entry(slots),),
    )


def is_shape_compatible(template: Tuple[Slot, ...], fields: Tuple[Slot, ...]) -> bool:
    """Same length and same per-position arity, recursively."""
    if len(template) != len(fields):
        return False
    for t, f in zip(template, fields):
        if is_row(t) != is_row(f):
            return False
        if is_row(t) and not is_shape_compatible(t, f):
            return False
    return True


__all__ = [
    "sanitize_name",
    "entry_field_name",
    "fresh_slot",
    "reconcile_slot",
    "reconcile_entry",
    "reconcile_group",
    "new_entry",
    "default_entry",
    "create_group",
    "is_shape_compatible",
]
