"""
Tests for field types and field construction.

These tests verify:
    - Every field type has a class and defaults
    - make_field merges defaults with overrides
    - merge_field keeps or rebuilds the variant
"""

import dataclasses

import pytest
from formtree.errors import ErrorCode, FormBuilderError
from formtree.fields import (
    DEFAULT_ATTRIBUTES,
    FIELD_CLASSES,
    CheckboxField,
    FieldType,
    InputField,
    Option,
    SelectField,
    field_attributes,
    make_field,
    merge_field,
    parse_field_type,
)


class TestFieldTypes:
    """Test the field type registry."""

    def test_every_type_has_a_class(self):
        assert set(FIELD_CLASSES) == set(FieldType)

    def test_every_type_has_defaults(self):
        assert set(DEFAULT_ATTRIBUTES) == set(FieldType)

    def test_parse_by_tag(self):
        assert parse_field_type("RadioGroup") is FieldType.RADIO_GROUP
        assert parse_field_type(FieldType.H1) is FieldType.H1

    def test_unknown_tag(self):
        with pytest.raises(FormBuilderError) as exc:
            parse_field_type("Rating")
        assert exc.value.code is ErrorCode.UNKNOWN_FIELD_TYPE


class TestMakeField:
    """Test building fields from defaults."""

    def test_defaults_applied(self):
        f = make_field(FieldType.INPUT)
        assert isinstance(f, InputField)
        assert f.name == "input-field"
        assert f.placeholder == "Enter your text"
        assert f.required is False

    def test_overrides_win(self):
        f = make_field("Input", name="email", type="email", required=True)
        assert f.name == "email"
        assert f.type == "email"
        assert f.required is True

    def test_unique_ids(self):
        assert make_field("Input").id != make_field("Input").id

    def test_static_types_are_static(self):
        assert make_field(FieldType.H2).static is True
        assert make_field(FieldType.SEPARATOR).static is True
        assert make_field(FieldType.CHECKBOX).static is False

    def test_options_coerced(self):
        f = make_field(FieldType.SELECT, options=[("a", "A"), {"value": "b", "label": "B"}])
        assert f.options == (Option("a", "A"), Option("b", "B"))

    def test_foreign_attribute_rejected(self):
        with pytest.raises(TypeError):
            make_field(FieldType.CHECKBOX, placeholder="nope")

    def test_fields_are_frozen(self):
        f = make_field(FieldType.INPUT)
        with pytest.raises(dataclasses.FrozenInstanceError):
            f.name = "other"


class TestMergeField:
    """Test shallow patches."""

    def test_same_type_patch(self):
        f = make_field(FieldType.INPUT, name="a")
        patched = merge_field(f, {"label": "New"})
        assert patched.label == "New"
        assert patched.id == f.id
        assert patched.name == "a"
        assert f.label == "Input Field"

    def test_type_change_rebuilds_variant(self):
        f = make_field(FieldType.INPUT, name="agree", label="Agree", required=True)
        patched = merge_field(f, {"field_type": "Checkbox"})
        assert isinstance(patched, CheckboxField)
        assert patched.id == f.id
        assert patched.name == "agree"
        assert patched.label == "Agree"
        assert patched.required is True
        assert "placeholder" not in field_attributes(patched)

    def test_type_change_with_options(self):
        f = make_field(FieldType.INPUT)
        patched = merge_field(f, {"field_type": "Select", "options": [("x", "X")]})
        assert isinstance(patched, SelectField)
        assert patched.options == (Option("x", "X"),)
