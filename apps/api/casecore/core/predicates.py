"""Composable scope predicates over resource attributes.

A predicate is a small boolean expression tree. The same tree is evaluated in
memory against a ResourceMeta (single-resource checks) and compiled to a SQL
WHERE clause by `casecore.core.scoping` (list queries), so both paths always
agree on what a caller can see.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class Attr(str, Enum):
    """Attributes a predicate may read."""

    OFFICE_ID = "office_id"
    CATEGORY = "category"
    ASSIGNED_STAFF_IDS = "assigned_staff_ids"
    PRIMARY_STAFF_ID = "primary_staff_id"
    CLIENT_ID = "client_id"
    ASSIGNEE_ID = "assignee_id"


@dataclass(frozen=True)
class ResourceMeta:
    """
    Attributes of one case/appointment/task as seen by the policy engine.

    Appointments and tasks carry their case's office, category, staff and
    client, plus their own assignee.
    """

    office_id: UUID | None = None
    category: str | None = None
    assigned_staff_ids: frozenset[UUID] = field(default_factory=frozenset)
    primary_staff_id: UUID | None = None
    client_id: UUID | None = None
    assignee_id: UUID | None = None

    def get(self, attr: Attr):
        return getattr(self, attr.value)


class Predicate:
    """Base predicate. Combine with `&` and `|`."""

    def evaluate(self, meta: ResourceMeta) -> bool:
        raise NotImplementedError

    def __and__(self, other: Predicate) -> Predicate:
        return all_of(self, other)

    def __or__(self, other: Predicate) -> Predicate:
        return any_of(self, other)


@dataclass(frozen=True)
class MatchAll(Predicate):
    def evaluate(self, meta: ResourceMeta) -> bool:
        return True


@dataclass(frozen=True)
class MatchNone(Predicate):
    def evaluate(self, meta: ResourceMeta) -> bool:
        return False


@dataclass(frozen=True)
class Eq(Predicate):
    """Scalar attribute equals value. Never matches a missing attribute."""

    attr: Attr
    value: object

    def __post_init__(self):
        if self.attr == Attr.ASSIGNED_STAFF_IDS:
            raise ValueError("Use Contains for assigned_staff_ids")
        if self.value is None:
            raise ValueError(f"Eq({self.attr.value}) needs a value")

    def evaluate(self, meta: ResourceMeta) -> bool:
        current = meta.get(self.attr)
        return current is not None and current == self.value


@dataclass(frozen=True)
class Contains(Predicate):
    """Value is a member of a set-valued attribute."""

    attr: Attr
    value: object

    def __post_init__(self):
        if self.attr != Attr.ASSIGNED_STAFF_IDS:
            raise ValueError(f"{self.attr.value} is not set-valued")

    def evaluate(self, meta: ResourceMeta) -> bool:
        return self.value in meta.get(self.attr)


@dataclass(frozen=True)
class AllOf(Predicate):
    children: tuple[Predicate, ...]

    def evaluate(self, meta: ResourceMeta) -> bool:
        return all(child.evaluate(meta) for child in self.children)


@dataclass(frozen=True)
class AnyOf(Predicate):
    children: tuple[Predicate, ...]

    def evaluate(self, meta: ResourceMeta) -> bool:
        return any(child.evaluate(meta) for child in self.children)


MATCH_ALL = MatchAll()
MATCH_NONE = MatchNone()


def all_of(*predicates: Predicate) -> Predicate:
    """AND, folding away constant branches."""
    children: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, MatchNone):
            return MATCH_NONE
        if isinstance(predicate, MatchAll):
            continue
        if isinstance(predicate, AllOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    if not children:
        return MATCH_ALL
    if len(children) == 1:
        return children[0]
    return AllOf(tuple(children))


def any_of(*predicates: Predicate) -> Predicate:
    """OR, folding away constant branches."""
    children: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, MatchAll):
            return MATCH_ALL
        if isinstance(predicate, MatchNone):
            continue
        if isinstance(predicate, AnyOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    if not children:
        return MATCH_NONE
    if len(children) == 1:
        return children[0]
    return AnyOf(tuple(children))
