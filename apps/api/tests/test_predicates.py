"""Tests for scope predicates and their SQL compilation."""

import uuid

import pytest

from casecore.core.predicates import (
    MATCH_ALL,
    MATCH_NONE,
    AllOf,
    AnyOf,
    Attr,
    Contains,
    Eq,
    ResourceMeta,
    all_of,
    any_of,
)
from casecore.core.scoping import compile_predicate
from casecore.db.enums import ResourceKind


def test_eq_never_matches_missing_attribute():
    pred = Eq(Attr.PRIMARY_STAFF_ID, uuid.uuid4())
    assert not pred.evaluate(ResourceMeta())


def test_eq_rejects_none_value():
    with pytest.raises(ValueError):
        Eq(Attr.OFFICE_ID, None)


def test_contains_only_on_set_attribute():
    with pytest.raises(ValueError):
        Contains(Attr.OFFICE_ID, uuid.uuid4())
    with pytest.raises(ValueError):
        Eq(Attr.ASSIGNED_STAFF_IDS, uuid.uuid4())


def test_contains_matches_member():
    user_id = uuid.uuid4()
    pred = Contains(Attr.ASSIGNED_STAFF_IDS, user_id)
    assert pred.evaluate(ResourceMeta(assigned_staff_ids=frozenset({user_id})))
    assert not pred.evaluate(ResourceMeta(assigned_staff_ids=frozenset({uuid.uuid4()})))


def test_any_of_folds_constants():
    eq = Eq(Attr.CATEGORY, "Civil")
    assert any_of() == MATCH_NONE
    assert any_of(MATCH_NONE, eq) == eq
    assert any_of(eq, MATCH_ALL) == MATCH_ALL


def test_all_of_folds_constants():
    eq = Eq(Attr.CATEGORY, "Civil")
    assert all_of() == MATCH_ALL
    assert all_of(MATCH_ALL, eq) == eq
    assert all_of(eq, MATCH_NONE) == MATCH_NONE


def test_operators_flatten():
    a = Eq(Attr.CATEGORY, "Civil")
    b = Eq(Attr.CATEGORY, "Familiar")
    c = Eq(Attr.CLIENT_ID, uuid.uuid4())
    combined = (a | b) | c
    assert isinstance(combined, AnyOf)
    assert combined.children == (a, b, c)
    assert isinstance(a & c, AllOf)


def test_compiled_eq_for_assignee_on_case_is_false():
    clause = compile_predicate(Eq(Attr.ASSIGNEE_ID, uuid.uuid4()), ResourceKind.CASE)
    assert str(clause) == "false"


def test_compiled_assignee_uses_task_column():
    clause = compile_predicate(Eq(Attr.ASSIGNEE_ID, uuid.uuid4()), ResourceKind.TASK)
    assert "tasks.assigned_to_id" in str(clause)


def test_compiled_contains_uses_assignment_subquery():
    clause = compile_predicate(Contains(Attr.ASSIGNED_STAFF_IDS, uuid.uuid4()), ResourceKind.CASE)
    assert "case_assignments" in str(clause)
