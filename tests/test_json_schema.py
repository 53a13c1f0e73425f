"""
Tests for the JSON Schema backend.
"""

import json

from formtree.backends import generate_json_schema, save_schema_file, schema_to_json
from formtree.backends.json_schema import SCHEMA_DIALECT, field_schema
from formtree.fields import FieldType, make_field
from formtree.model import FlatList, MultiStepWizard, Step
from formtree.operations import add_repeating_group, set_template


class TestFieldSchemas:
    """Test per-field-type mapping."""

    def test_email_input(self):
        f = make_field(FieldType.INPUT, type="email")
        assert field_schema(f)["format"] == "email"

    def test_number_input(self):
        f = make_field(FieldType.INPUT, type="number")
        assert field_schema(f)["type"] == "number"

    def test_otp_min_length(self):
        assert field_schema(make_field(FieldType.OTP))["minLength"] == 6
        assert field_schema(make_field(FieldType.OTP, max_length=4))["minLength"] == 4

    def test_slider_bounds(self):
        schema = field_schema(make_field(FieldType.SLIDER, min=5, max=50))
        assert schema["minimum"] == 5
        assert schema["maximum"] == 50

    def test_select_enum(self):
        schema = field_schema(make_field(FieldType.SELECT))
        assert schema["enum"] == ["1", "2"]
        assert schema["minLength"] == 1

    def test_multi_select_non_empty_array(self):
        schema = field_schema(make_field(FieldType.MULTI_SELECT))
        assert schema["type"] == "array"
        assert schema["minItems"] == 1

    def test_single_toggle_group(self):
        schema = field_schema(make_field(FieldType.TOGGLE_GROUP, type="single"))
        assert schema["type"] == "string"

    def test_checkbox(self):
        assert field_schema(make_field(FieldType.CHECKBOX))["type"] == "boolean"


class TestDocumentSchemas:
    """Test whole-document schemas."""

    def test_contact_us(self):
        schema = generate_json_schema(set_template(FlatList(), "contact_us"), "contactSchema")
        assert schema["$schema"] == SCHEMA_DIALECT
        assert schema["title"] == "contactSchema"
        assert list(schema["properties"]) == ["first_name", "last_name", "email", "message", "agree"]
        assert schema["required"] == ["first_name", "last_name", "email", "message"]

    def test_wizard_steps_merged(self):
        a = make_field(FieldType.INPUT, name="a", required=True)
        b = make_field(FieldType.SWITCH, name="b")
        doc = MultiStepWizard(steps=(Step(fields=(a,)), Step(fields=(b,))))
        schema = generate_json_schema(doc)
        assert set(schema["properties"]) == {"a", "b"}
        assert schema["required"] == ["a"]

    def test_group_is_array_of_objects(self):
        doc = add_repeating_group(
            FlatList(),
            [make_field(FieldType.INPUT, name="full-name", required=True)],
            name="team-members",
        )
        prop = generate_json_schema(doc)["properties"]["team_members"]
        assert prop["type"] == "array"
        assert prop["items"]["properties"]["full_name"]["type"] == "string"
        assert prop["items"]["required"] == ["full_name"]

    def test_static_fields_skipped(self):
        doc = FlatList(elements=(make_field(FieldType.H1),))
        assert generate_json_schema(doc)["properties"] == {}

    def test_save_schema_file(self, tmp_path):
        doc = set_template(FlatList(), "sign_up")
        target = tmp_path / "schema.json"
        save_schema_file(doc, str(target), "signUp")
        assert json.loads(target.read_text()) == json.loads(schema_to_json(doc, "signUp"))
