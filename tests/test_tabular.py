"""
Tests for the tabular importer.

Covers:
    - CSV and JSON parsing (explicit and auto-detected)
    - Column type detection
    - Seeding a repeating group from rows
"""

import json

import pytest
from formtree.fields import FieldType
from formtree.reconcile import is_shape_compatible
from formtree.tabular import (
    Column,
    TabularParseError,
    detect_columns,
    detect_value_type,
    group_from_table,
    humanize_label,
    parse_table_string,
    template_from_columns,
)


PEOPLE_CSV = """firstName,age,role,joined
Ada,36,admin,2020-01-05
Linus,28,member,2021-03-10
Grace,45,member,2019-07-22
Alan,41,admin,2018-11-30
"""


class TestParsing:
    """Test turning text into rows."""

    def test_parse_csv(self):
        rows = parse_table_string(PEOPLE_CSV, "csv")
        assert len(rows) == 4
        assert rows[0] == {"firstName": "Ada", "age": "36", "role": "admin", "joined": "2020-01-05"}

    def test_csv_missing_cells(self):
        rows = parse_table_string("a,b\n1", "csv")
        assert rows == [{"a": "1", "b": ""}]

    def test_csv_needs_data_row(self):
        with pytest.raises(TabularParseError, match="at least headers and one data row"):
            parse_table_string("a,b", "csv")

    def test_parse_json_array(self):
        rows = parse_table_string(json.dumps([{"a": 1}, {"a": 2}]), "json")
        assert rows == [{"a": 1}, {"a": 2}]

    def test_parse_json_object(self):
        assert parse_table_string('{"a": 1}', "json") == [{"a": 1}]

    def test_invalid_json(self):
        with pytest.raises(TabularParseError):
            parse_table_string("{broken", "json")

    def test_auto_prefers_json(self):
        assert parse_table_string('[{"a": true}]') == [{"a": True}]

    def test_auto_falls_back_to_csv(self):
        assert parse_table_string(PEOPLE_CSV)[1]["firstName"] == "Linus"

    def test_empty_content(self):
        with pytest.raises(TabularParseError, match="empty"):
            parse_table_string("   ")

    def test_no_rows(self):
        with pytest.raises(TabularParseError, match="No valid data"):
            parse_table_string("[]", "json")

    def test_unknown_file_type(self):
        with pytest.raises(TabularParseError):
            parse_table_string("a", "xlsx")


class TestColumnDetection:
    """Test type sniffing."""

    @pytest.mark.parametrize("value,expected", [
        (None, "string"),
        (True, "boolean"),
        (3, "number"),
        (2.5, "number"),
        ([1], "array"),
        ({"a": 1}, "object"),
        ("2024-02-29", "date"),
        ("12/31/2023", "date"),
        ("2024-13-45", "string"),
        ("hello", "string"),
    ])
    def test_value_types(self, value, expected):
        assert detect_value_type(value) == expected

    def test_labels(self):
        assert humanize_label("firstName") == "First Name"
        assert humanize_label("age") == "Age"

    def test_csv_columns(self):
        columns = detect_columns(parse_table_string(PEOPLE_CSV, "csv"))
        by_key = {c.accessor: c for c in columns}
        assert [c.accessor for c in columns] == ["firstName", "age", "role", "joined"]
        assert by_key["role"].type == "boolean"
        assert by_key["role"].possible_values == ("admin", "member")
        assert by_key["joined"].type == "date"
        assert by_key["firstName"].type == "string"

    def test_enum_needs_repetition(self):
        rows = [{"c": v} for v in ["x", "y", "z", "x", "y", "z"]]
        assert detect_columns(rows)[0].type == "enum"
        assert detect_columns(rows[:3])[0].type == "string"

    def test_json_types(self):
        rows = [{"n": 1, "ok": True, "tags": ["a"]}, {"n": 2, "ok": False, "tags": []}]
        types = [c.type for c in detect_columns(rows)]
        assert types == ["number", "boolean", "array"]


class TestGroupSeeding:
    """Test building a repeating group from a table."""

    def test_template_from_columns(self):
        columns = [
            Column("qty", "Qty", "number", 1),
            Column("name", "Name", "string", 0),
            Column("kind", "Kind", "enum", 2, ("a", "b", "c")),
        ]
        template = template_from_columns(columns)
        assert [f.name for f in template] == ["name", "qty", "kind"]
        assert template[1].type == "number"
        assert template[2].field_type is FieldType.SELECT
        assert [o.value for o in template[2].options] == ["a", "b", "c"]

    def test_group_from_table(self):
        rows = parse_table_string(PEOPLE_CSV, "csv")
        group = group_from_table(rows, name="people")
        assert len(group.entries) == 4
        assert all(is_shape_compatible(group.template, e.fields) for e in group.entries)
        first = group.entries[0].fields
        assert first[0].name == "people[0].firstName"
        assert first[0].value == "Ada"
        assert group.entries[3].fields[2].value == "admin"

    def test_object_values_serialized(self):
        group = group_from_table([{"meta": {"b": 1}}])
        assert group.template[0].field_type is FieldType.TEXTAREA
        assert group.entries[0].fields[0].value == '{"b": 1}'

    def test_no_rows(self):
        with pytest.raises(TabularParseError):
            group_from_table([])
