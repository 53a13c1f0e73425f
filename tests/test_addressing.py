"""
Tests for (step_index, field_index, j) addressing.

Every coordinate is checked against [0, len); nothing is clamped.
"""

import pytest
from formtree.addressing import (
    Address,
    check_field_index,
    nested_items,
    replace_container,
    resolve,
    resolve_container,
)
from formtree.errors import ErrorCode, FormBuilderError
from formtree.fields import FieldType, make_field
from formtree.model import (
    FlatList,
    MultiStepWizard,
    RepeatingGroup,
    RepeatingGroupList,
    Step,
)


def _fields(n):
    return tuple(make_field(FieldType.INPUT, name=f"f{i}") for i in range(n))


class TestBounds:
    """Test index validation."""

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_field_index_out_of_range(self, index):
        with pytest.raises(FormBuilderError) as exc:
            check_field_index(_fields(3), index)
        assert exc.value.code is ErrorCode.INVALID_FIELD_INDEX
        assert "Must be between 0 and 2" in str(exc.value)

    def test_step_index_out_of_range(self):
        doc = MultiStepWizard(steps=(Step(),))
        with pytest.raises(FormBuilderError) as exc:
            resolve_container(doc, 1)
        assert exc.value.code is ErrorCode.INVALID_STEP_INDEX

    def test_nested_index_on_single_field(self):
        with pytest.raises(FormBuilderError) as exc:
            nested_items(make_field(FieldType.INPUT))
        assert exc.value.code is ErrorCode.INVALID_NESTED_INDEX


class TestResolve:
    """Test resolving nodes from addresses."""

    def test_wizard_defaults_to_first_step(self):
        a, b = _fields(2)
        doc = MultiStepWizard(steps=(Step(fields=(a,)), Step(fields=(b,))))
        assert resolve_container(doc) == (a,)
        assert resolve(doc, Address(field_index=0, step_index=1)) is b

    def test_step_index_ignored_for_flat_list(self):
        a, = _fields(1)
        doc = FlatList(elements=(a,))
        assert resolve(doc, Address(field_index=0, step_index=5)) is a

    def test_resolve_inside_row(self):
        a, b, c = _fields(3)
        doc = FlatList(elements=(a, (b, c)))
        assert resolve(doc, Address(field_index=1, j=1)) is c

    def test_resolve_inside_group_template(self):
        a, b = _fields(2)
        group = RepeatingGroup(template=(a, b))
        doc = RepeatingGroupList(groups=(group,))
        assert resolve(doc, Address(field_index=0, j=1)) is b

    def test_bad_j(self):
        a, b = _fields(2)
        doc = FlatList(elements=((a, b),))
        with pytest.raises(FormBuilderError) as exc:
            resolve(doc, Address(field_index=0, j=2))
        assert exc.value.code is ErrorCode.INVALID_NESTED_INDEX


class TestReplaceContainer:
    """Test rebuilding a document around a new field list."""

    def test_wizard_step_replaced(self):
        a, b = _fields(2)
        doc = MultiStepWizard(steps=(Step(fields=(a,)), Step()))
        new = replace_container(doc, (b,), 1)
        assert new.steps[0] is doc.steps[0]
        assert new.steps[1].fields == (b,)
        assert new.steps[1].id == doc.steps[1].id

    def test_group_list_becomes_flat(self):
        a, = _fields(1)
        group = RepeatingGroup()
        doc = RepeatingGroupList(groups=(group,))
        new = replace_container(doc, (group, a))
        assert isinstance(new, FlatList)
        assert new.elements == (group, a)

    def test_group_list_stays_group_list(self):
        g1, g2 = RepeatingGroup(), RepeatingGroup()
        new = replace_container(RepeatingGroupList(groups=(g1,)), (g1, g2))
        assert isinstance(new, RepeatingGroupList)
