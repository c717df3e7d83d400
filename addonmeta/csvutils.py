"""Checks over the RBAC permissions a ClusterServiceVersion requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from addonmeta.operator import ClusterServiceVersion
from addonmeta.rbac import (
    APIGroupFilter,
    CSVPermissions,
    FilterParams,
    Operator,
    Permission,
    PermissionType,
    PolicyRule,
    ResourceNamesFilter,
    ResourcesFilter,
    Rule,
    RuleFilter,
)

_WILDCARD = "*"


def check_for_confidential_obj_access_at_cluster_scope(
    csv_permissions: CSVPermissions,
) -> bool:
    """Tell whether secrets or configmaps are reachable cluster-wide without resource names."""
    rule_filter = RuleFilter(
        PermissionType.CLUSTER,
        [
            APIGroupFilter(FilterParams(Operator.IN, [""])),
            ResourcesFilter(FilterParams(Operator.ANY, ["secrets", "configmaps"])),
            ResourceNamesFilter(FilterParams(Operator.DOES_NOT_EXIST, [])),
        ],
    )
    return bool(csv_permissions.filter_rules(rule_filter))


def wildcard_api_group_present(csv_permissions: CSVPermissions) -> bool:
    """Tell whether any rule lists '*' among its API groups."""
    rule_filter = RuleFilter(
        PermissionType.ALL,
        [APIGroupFilter(FilterParams(Operator.IN, [_WILDCARD]))],
    )
    return bool(csv_permissions.filter_rules(rule_filter))


def wildcard_resource_present(
    csv_permissions: CSVPermissions, owned_apis: list[str]
) -> bool:
    """Tell whether a rule outside the operator's own APIs lists '*' as a resource."""
    rule_filter = RuleFilter(
        PermissionType.ALL,
        [
            APIGroupFilter(FilterParams(Operator.NOT_EQUAL, list(owned_apis))),
            ResourcesFilter(FilterParams(Operator.IN, [_WILDCARD])),
        ],
    )
    return bool(csv_permissions.filter_rules(rule_filter))


def get_apis_owned(csv: ClusterServiceVersion) -> list[str]:
    """Return the API groups of the CRDs the CSV owns, with whitespace removed."""
    return [
        "".join(ch for ch in crd.group if not ch.isspace())
        for crd in csv.owned_custom_resource_definitions
    ]


def _strings(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"field {key!r}: expected a list of strings")
    return list(value)


def _policy_rule(data: Any) -> PolicyRule:
    if not isinstance(data, Mapping):
        raise ValueError("policy rule: expected a mapping")
    return PolicyRule(
        verbs=_strings(data, "verbs"),
        api_groups=_strings(data, "apiGroups"),
        resources=_strings(data, "resources"),
        resource_names=_strings(data, "resourceNames"),
        non_resource_urls=_strings(data, "nonResourceURLs"),
    )


def _permissions(entries: Any) -> list[Permission]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError("permissions: expected a list")
    result = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValueError("permission: expected a mapping")
        account = entry.get("serviceAccountName") or ""
        result.append(
            Permission(
                service_account_name=str(account),
                rules=[Rule(_policy_rule(r)) for r in entry.get("rules") or []],
            )
        )
    return result


def get_permissions(csv: ClusterServiceVersion) -> CSVPermissions:
    """Return the permissions declared by the CSV's install strategy."""
    install = csv.spec.get("install") or {}
    strategy = install.get("spec") or {} if isinstance(install, Mapping) else {}
    if not isinstance(strategy, Mapping):
        raise ValueError("install strategy spec: expected a mapping")
    return CSVPermissions(
        cluster_permissions=_permissions(strategy.get("clusterPermissions")),
        permissions=_permissions(strategy.get("permissions")),
    )