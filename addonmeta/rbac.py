"""Filtering of the RBAC rules declared by a ClusterServiceVersion."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class Operator(str, Enum):
    """How a filter compares a rule attribute with its arguments."""

    IN = "IN"
    NOT_IN = "NOT_IN"
    EQUAL = "EQUAL"
    NOT_EQUAL = "NOT_EQUAL"
    EXISTS = "EXISTS"
    DOES_NOT_EXIST = "DOES_NOT_EXIST"
    ANY = "ANY"


class PermissionType(str, Enum):
    """Which group of permissions a rule filter looks at."""

    ALL = "all"
    NAMESPACED = "namespaced"
    CLUSTER = "clusterScoped"


@dataclass
class PolicyRule:
    """An RBAC policy rule."""

    verbs: list[str] = field(default_factory=list)
    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    resource_names: list[str] = field(default_factory=list)
    non_resource_urls: list[str] = field(default_factory=list)


@dataclass
class Rule:
    """A policy rule as held by a permission, optionally named."""

    policy_rule: PolicyRule = field(default_factory=PolicyRule)
    name: str = ""


@dataclass
class Permission:
    """The rules granted to one service account."""

    service_account_name: str = ""
    rules: list[Rule] = field(default_factory=list)


@dataclass
class FilterParams:
    """The operator and arguments a filter applies."""

    operator: Operator | str
    args: list[str] = field(default_factory=list)


def _equal(have: Sequence[str], want: Sequence[str]) -> bool:
    return len(have) == len(want) and sorted(have) == sorted(want)


_EVALUATORS: dict[Operator, Callable[[Sequence[str], Sequence[str]], bool]] = {
    Operator.IN: lambda have, want: set(want) <= set(have),
    Operator.NOT_IN: lambda have, want: not set(want) <= set(have),
    Operator.EQUAL: _equal,
    Operator.NOT_EQUAL: lambda have, want: not _equal(have, want),
    Operator.EXISTS: lambda have, want: len(have) > 0,
    Operator.DOES_NOT_EXIST: lambda have, want: len(have) == 0,
    Operator.ANY: lambda have, want: not set(have).isdisjoint(want),
}


def evaluate(rule_args: Sequence[str], params: FilterParams) -> bool:
    """Tell whether ``rule_args`` satisfy ``params``.

    Raises ValueError for an operator that is not supported.
    """
    try:
        operator = Operator(params.operator)
    except ValueError:
        raise ValueError(f"evaluate: unsupported operator {params.operator}") from None
    return _EVALUATORS[operator](list(rule_args), list(params.args))


class Filter(Protocol):
    def filter(self, rule: PolicyRule) -> PolicyRule | None: ...


@dataclass
class AttributeFilter:
    """Keeps a rule when the named attribute satisfies the parameters."""

    params: FilterParams
    attribute: str

    def filter(self, rule: PolicyRule) -> PolicyRule | None:
        return rule if evaluate(getattr(rule, self.attribute), self.params) else None


@dataclass
class APIGroupFilter(AttributeFilter):
    """Filters on a rule's API groups."""

    attribute: str = field(default="api_groups", init=False)


@dataclass
class ResourcesFilter(AttributeFilter):
    """Filters on a rule's resources."""

    attribute: str = field(default="resources", init=False)


@dataclass
class ResourceNamesFilter(AttributeFilter):
    """Filters on a rule's resource names."""

    attribute: str = field(default="resource_names", init=False)


@dataclass
class VerbsFilter(AttributeFilter):
    """Filters on a rule's verbs."""

    attribute: str = field(default="verbs", init=False)


@dataclass
class NonResourceURLsFilter(AttributeFilter):
    """Filters on a rule's non-resource URLs."""

    attribute: str = field(default="non_resource_urls", init=False)


@dataclass
class RuleFilter:
    """A set of filters that must all keep a rule, over some permissions."""

    permission_type: PermissionType | str
    filters: list[Any] = field(default_factory=list)

    def run(self, rule: PolicyRule | None) -> PolicyRule | None:
        """Return ``rule`` if every filter keeps it, otherwise None."""
        if not self.filters or rule is None:
            return rule
        for rule_filter in self.filters:
            if rule_filter.filter(rule) is None:
                return None
        return rule

    def relevant_permissions(self, permissions: CSVPermissions) -> list[Permission]:
        """Return the permissions this filter's permission type selects."""
        try:
            kind = PermissionType(self.permission_type)
        except ValueError:
            return []
        if kind is PermissionType.ALL:
            return [*permissions.cluster_permissions, *permissions.permissions]
        if kind is PermissionType.NAMESPACED:
            return list(permissions.permissions)
        return list(permissions.cluster_permissions)


@dataclass
class CSVPermissions:
    """Cluster-scoped and namespaced permissions of a CSV."""

    cluster_permissions: list[Permission] = field(default_factory=list)
    permissions: list[Permission] = field(default_factory=list)

    def filter_rules(self, rule_filter: RuleFilter) -> list[Rule]:
        """Return the rules that match ``rule_filter``, in declaration order."""
        return [
            rule
            for permission in rule_filter.relevant_permissions(self)
            for rule in permission.rules
            if rule_filter.run(rule.policy_rule) is not None
        ]