"""
Tests for the Document Analyzer.

Tests verify that the analyzer correctly:
    - Flattens fields from every shape
    - Summarizes validation state
    - Inventories documents and reports broken invariants
"""

from dataclasses import replace

from formtree.analyzer import analyze_document, flatten_fields, summarize_validation
from formtree.fields import FieldType, make_field
from formtree.model import Entry, FlatList, MultiStepWizard, RepeatingGroup, Step
from formtree.operations import add_entry, add_repeating_group, set_template


def test_flatten_skips_entries():
    """Group entries are copies of the template and are not listed."""
    doc = add_repeating_group(FlatList(), [make_field(FieldType.INPUT)], name="g")
    doc = add_entry(doc, doc.elements[0].id)
    assert len(flatten_fields(doc)) == 1


def test_flatten_wizard_in_step_order():
    a, b = make_field(FieldType.INPUT, name="a"), make_field(FieldType.INPUT, name="b")
    doc = MultiStepWizard(steps=(Step(fields=(b,)), Step(fields=((a,),))))
    assert [f.name for f in flatten_fields(doc)] == ["b", "a"]


def test_summary_of_empty_form():
    summary = summarize_validation(())
    assert not summary.is_valid
    assert summary.total_fields == 0


def test_summary_counts_static_fields():
    fields = (make_field(FieldType.H1), make_field(FieldType.INPUT, required=True))
    summary = summarize_validation(fields)
    assert summary.total_fields == 2
    assert summary.has_required_fields
    assert summary.is_valid


def test_template_inventory():
    """The contact template is a healthy flat form."""
    report = analyze_document(set_template(FlatList(), "contact_us"))
    assert report.shape == "FlatList"
    assert report.total_elements == 5
    assert report.total_fields == 6
    assert report.total_static_fields == 1
    assert report.field_type_usage["Input"] == 3
    assert report.warnings == []


def test_wizard_inventory():
    report = analyze_document(set_template(FlatList(), "sign_up"))
    assert report.total_steps == 2
    assert report.empty_steps == []


def test_group_inventory():
    report = analyze_document(set_template(FlatList(), "team_members"))
    assert report.total_groups == 1
    assert report.total_entries == 1
    assert report.incompatible_entries == []


def test_duplicate_names_and_ids():
    a = make_field(FieldType.INPUT, name="same")
    b = make_field(FieldType.INPUT, name="same")
    report = analyze_document(FlatList(elements=(a, b, a)))
    assert report.duplicate_names == ["same"]
    assert report.duplicate_ids == [a.id]
    assert any("Duplicate ids" in w for w in report.warnings)


def test_stale_entry_reported():
    a = make_field(FieldType.INPUT, name="a")
    entry = Entry(fields=())
    group = RepeatingGroup(name="g", template=(a,), entries=(entry,))
    report = analyze_document(FlatList(elements=(group,)))
    assert report.incompatible_entries == [entry.id]


def test_empty_steps_and_no_interactive_fields():
    doc = MultiStepWizard(steps=(Step(fields=(make_field(FieldType.H1),)), Step()))
    report = analyze_document(doc)
    assert report.empty_steps == [1]
    assert "Form has no interactive fields" in report.warnings


def test_document_not_modified():
    doc = set_template(FlatList(), "contact_us")
    snapshot = replace(doc)
    analyze_document(doc)
    assert doc == snapshot
