"""
Tests for repeating-group reconciliation.

These tests verify:
    - Entry naming: "{group}[{i}].{base}" with "-" -> "_"
    - Idempotence
    - Preservation of ids and values for same-type fields
    - Fresh fields on type mismatch
    - Arbitrarily nested rows
"""

from dataclasses import replace

from formtree.fields import FieldType, make_field
from formtree.model import Entry, RepeatingGroup
from formtree.reconcile import (
    create_group,
    entry_field_name,
    is_shape_compatible,
    new_entry,
    reconcile_group,
)


def _group_with_entries(template, count=2, name="contacts"):
    group = reconcile_group(create_group(template, name=name))
    for _ in range(count - 1):
        group = replace(group, entries=group.entries + (new_entry(group),))
    return group


class TestNaming:
    """Test the entry field naming rule."""

    def test_entry_field_name(self):
        assert entry_field_name("team-members", 2, "first-name") == "team_members[2].first_name"

    def test_default_entry_suffix(self):
        group = create_group((make_field(FieldType.INPUT, name="email"),), name="g")
        assert len(group.entries) == 1
        assert group.entries[0].fields[0].name.startswith("email_default_")

    def test_default_group_name(self):
        group = create_group((make_field(FieldType.INPUT),))
        assert group.name.startswith("group_")
        assert group.label == "Repeating Group"

    def test_reconcile_renames_default_entry(self):
        group = reconcile_group(create_group((make_field(FieldType.INPUT, name="email"),), name="g"))
        assert group.entries[0].fields[0].name == "g[0].email"

    def test_new_entry_index(self):
        group = _group_with_entries((make_field(FieldType.INPUT, name="email"),), count=3, name="g")
        assert [e.fields[0].name for e in group.entries] == ["g[0].email", "g[1].email", "g[2].email"]


class TestReconcile:
    """Test bringing entries into agreement with the template."""

    def test_idempotent(self):
        template = (make_field(FieldType.INPUT, name="a"), (make_field(FieldType.CHECKBOX, name="b"),))
        group = _group_with_entries(template)
        once = reconcile_group(group)
        assert reconcile_group(once) == once

    def test_preserves_ids_and_values(self):
        template = (make_field(FieldType.INPUT, name="a"),)
        group = _group_with_entries(template)
        entry = group.entries[1]
        filled = replace(entry, fields=(replace(entry.fields[0], value="hello"),))
        group = replace(group, entries=(group.entries[0], filled))

        # Cosmetic template change
        group = reconcile_group(replace(group, template=(replace(template[0], placeholder="x"),)))
        kept = group.entries[1].fields[0]
        assert kept.id == entry.fields[0].id
        assert kept.value == "hello"

    def test_type_mismatch_gets_fresh_field(self):
        template = (make_field(FieldType.INPUT, name="a"),)
        group = _group_with_entries(template)
        old_id = group.entries[1].fields[0].id

        new_template = (make_field(FieldType.CHECKBOX, name="a"),)
        group = reconcile_group(replace(group, template=new_template))
        fresh = group.entries[1].fields[0]
        assert fresh.field_type is FieldType.CHECKBOX
        assert fresh.id != old_id
        assert fresh.name == "contacts[1].a"

    def test_entries_grow_and_shrink(self):
        a = make_field(FieldType.INPUT, name="a")
        b = make_field(FieldType.INPUT, name="b")
        group = _group_with_entries((a,))
        grown = reconcile_group(replace(group, template=(a, b)))
        assert all(len(e.fields) == 2 for e in grown.entries)
        shrunk = reconcile_group(replace(grown, template=(b,)))
        assert all(len(e.fields) == 1 for e in shrunk.entries)

    def test_deeply_nested_rows(self):
        a = make_field(FieldType.INPUT, name="a")
        b = make_field(FieldType.INPUT, name="b")
        c = make_field(FieldType.SWITCH, name="c")
        template = (a, (b, (c, (a,))))
        group = reconcile_group(RepeatingGroup(name="deep", template=template, entries=(Entry(),)))
        fields = group.entries[0].fields
        assert is_shape_compatible(template, fields)
        assert fields[1][1][1][0].name == "deep[0].a"

    def test_row_replacing_field_is_rebuilt(self):
        a = make_field(FieldType.INPUT, name="a")
        group = _group_with_entries((a,))
        group = reconcile_group(replace(group, template=((a, a),)))
        assert all(is_shape_compatible(group.template, e.fields) for e in group.entries)

    def test_rename_group_renames_entries(self):
        group = _group_with_entries((make_field(FieldType.INPUT, name="a"),), name="old")
        group = reconcile_group(replace(group, name="new-name"))
        assert group.entries[1].fields[0].name == "new_name[1].a"


class TestShapeCompatibility:
    """Test structural comparison."""

    def test_length_mismatch(self):
        a = make_field(FieldType.INPUT)
        assert not is_shape_compatible((a,), (a, a))

    def test_row_vs_field(self):
        a = make_field(FieldType.INPUT)
        assert not is_shape_compatible(((a, a),), (a,))
        assert is_shape_compatible(((a, a),), ((a, a),))
