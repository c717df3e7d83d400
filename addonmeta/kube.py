"""Linting of Kubernetes deployments and validation of Kubernetes names."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class DeploymentCheckResult:
    """Outcome of one or more deployment checks."""

    success: bool = True
    reasons: list[str] = field(default_factory=list)

    def join(self, other: DeploymentCheckResult) -> DeploymentCheckResult:
        """Combine two results: both must succeed, reasons are concatenated."""
        return DeploymentCheckResult(
            success=self.success and other.success,
            reasons=[*self.reasons, *other.reasons],
        )


def _result(reasons: Sequence[str]) -> DeploymentCheckResult:
    if reasons:
        return DeploymentCheckResult(success=False, reasons=list(reasons))
    return DeploymentCheckResult()


def reduce_results(results: Iterable[DeploymentCheckResult]) -> DeploymentCheckResult:
    """Join all ``results`` into one; no results at all is a success."""
    combined = DeploymentCheckResult()
    for result in results:
        combined = combined.join(result)
    return combined


DeploymentCheck = Callable[[Mapping[str, Any]], DeploymentCheckResult]


def _containers(deployment: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    spec = deployment.get("spec") or {}
    template = spec.get("template") or {}
    pod_spec = template.get("spec") or {}
    return list(pod_spec.get("containers") or [])


def _reason(container: Mapping[str, Any], reason: str) -> str:
    name = container.get("name") or ""
    return f'container "{name}" is {reason}'


_QUANTITY = re.compile(r"([+-]?[0-9.]+)([eEinumkKMGTP]*[-+]?[0-9]*)")


def _is_zero_quantity(quantity: Any) -> bool:
    if quantity is None:
        return True
    if isinstance(quantity, bool):
        raise ValueError(f"invalid quantity {quantity!r}")
    if isinstance(quantity, (int, float)):
        return quantity == 0
    match = _QUANTITY.fullmatch(str(quantity).strip())
    if match is None:
        raise ValueError(f"invalid quantity {quantity!r}")
    try:
        return float(match.group(1)) == 0
    except ValueError:
        raise ValueError(f"invalid quantity {quantity!r}") from None


def _resource(container: Mapping[str, Any], section: str, name: str) -> Any:
    resources = container.get("resources") or {}
    return (resources.get(section) or {}).get(name)


def has_readiness_probes(deployment: Mapping[str, Any]) -> DeploymentCheckResult:
    """Every container must declare a readiness probe."""
    return _result(
        [
            _reason(c, "missing a readiness probe")
            for c in _containers(deployment)
            if c.get("readinessProbe") is None
        ]
    )


def has_liveness_probes(deployment: Mapping[str, Any]) -> DeploymentCheckResult:
    """Every container must declare a liveness probe."""
    return _result(
        [
            _reason(c, "missing a liveness probe")
            for c in _containers(deployment)
            if c.get("livenessProbe") is None
        ]
    )


def _has_resource(deployment: Mapping[str, Any], resource: str, label: str) -> DeploymentCheckResult:
    reasons = []
    for container in _containers(deployment):
        if _is_zero_quantity(_resource(container, "requests", resource)):
            reasons.append(_reason(container, f"missing {label} requests"))
        if _is_zero_quantity(_resource(container, "limits", resource)):
            reasons.append(_reason(container, f"missing {label} limits"))
    return _result(reasons)


def has_cpu_resource_requirements(deployment: Mapping[str, Any]) -> DeploymentCheckResult:
    """Every container must request and limit CPU."""
    return _has_resource(deployment, "cpu", "CPU")


def has_memory_resource_requirements(deployment: Mapping[str, Any]) -> DeploymentCheckResult:
    """Every container must request and limit memory."""
    return _has_resource(deployment, "memory", "memory")


_DEFAULT_CHECKS: tuple[DeploymentCheck, ...] = (
    has_liveness_probes,
    has_readiness_probes,
    has_cpu_resource_requirements,
    has_memory_resource_requirements,
)


class DeploymentLinter:
    """Runs a set of checks over a decoded Deployment manifest."""

    def __init__(self, checks: Sequence[DeploymentCheck] | None = None) -> None:
        self.checks = list(checks) if checks else list(_DEFAULT_CHECKS)

    def lint(self, deployment: Mapping[str, Any]) -> DeploymentCheckResult:
        return reduce_results(check(deployment) for check in self.checks)


_DNS1123_LABEL_FMT = "[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_LABEL_MSG = (
    "a lowercase RFC 1123 label must consist of lower case alphanumeric "
    "characters or '-', and must start and end with an alphanumeric character"
)
_DNS1123_LABEL_MAX = 63
_DNS1123_SUBDOMAIN_FMT = _DNS1123_LABEL_FMT + "(\\." + _DNS1123_LABEL_FMT + ")*"
_DNS1123_SUBDOMAIN_MSG = (
    "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
    "characters, '-' or '.', and must start and end with an alphanumeric character"
)
_DNS1123_SUBDOMAIN_MAX = 253
_QUALIFIED_NAME_FMT = "([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]"
_QUALIFIED_NAME_MSG = (
    "must consist of alphanumeric characters, '-', '_' or '.', "
    "and must start and end with an alphanumeric character"
)
_QUALIFIED_NAME_MAX = 63

_DNS1123_LABEL = re.compile(_DNS1123_LABEL_FMT)
_DNS1123_SUBDOMAIN = re.compile(_DNS1123_SUBDOMAIN_FMT)
_QUALIFIED_NAME = re.compile(_QUALIFIED_NAME_FMT)


def _regex_error(msg: str, fmt: str, *examples: str) -> str:
    if not examples:
        return f"{msg} (regex used for validation is '{fmt}')"
    shown = " or ".join(f"'{example}', " for example in examples)
    return f"{msg} (e.g. {shown}regex used for validation is '{fmt}')"


def _max_len_error(length: int) -> str:
    return f"must be no more than {length} characters"


def _byte_len(value: str) -> int:
    return len(value.encode())


def _dns1123_label(value: str) -> list[str]:
    errors = []
    if _byte_len(value) > _DNS1123_LABEL_MAX:
        errors.append(_max_len_error(_DNS1123_LABEL_MAX))
    if not _DNS1123_LABEL.fullmatch(value):
        errors.append(
            _regex_error(_DNS1123_LABEL_MSG, _DNS1123_LABEL_FMT, "my-name", "123-abc")
        )
    return errors


def _dns1123_subdomain(value: str) -> list[str]:
    errors = []
    if _byte_len(value) > _DNS1123_SUBDOMAIN_MAX:
        errors.append(_max_len_error(_DNS1123_SUBDOMAIN_MAX))
    if not _DNS1123_SUBDOMAIN.fullmatch(value):
        errors.append(
            _regex_error(_DNS1123_SUBDOMAIN_MSG, _DNS1123_SUBDOMAIN_FMT, "example.com")
        )
    return errors


def _qualified_name(value: str) -> list[str]:
    name_error = _regex_error(
        _QUALIFIED_NAME_MSG, _QUALIFIED_NAME_FMT, "MyName", "my.name", "123-abc"
    )
    errors: list[str] = []
    parts = value.split("/")
    if len(parts) == 1:
        name = parts[0]
    elif len(parts) == 2:
        prefix, name = parts
        if not prefix:
            errors.append("prefix part must be non-empty")
        else:
            errors.extend(f"prefix part {msg}" for msg in _dns1123_subdomain(prefix))
    else:
        return [
            f"a qualified name {name_error} with an optional DNS subdomain prefix "
            "and '/' (e.g. 'example.com/MyName')"
        ]

    if not name:
        errors.append("name part must be non-empty")
    elif _byte_len(name) > _QUALIFIED_NAME_MAX:
        errors.append(f"name part {_max_len_error(_QUALIFIED_NAME_MAX)}")
    if not _QUALIFIED_NAME.fullmatch(name):
        errors.append(f"name part {name_error}")
    return errors


def is_valid_k8s_namespace_name(name: str) -> str:
    """Return why ``name`` is not a valid namespace name, or '' if it is."""
    reasons = _dns1123_label(name)
    if reasons:
        return f'"{name}" is not a valid kubernetes namespace name: {", ".join(reasons)}'
    return ""


def is_valid_k8s_secret_name(name: str) -> str:
    """Return why ``name`` is not a valid secret name, or '' if it is."""
    reasons = _dns1123_subdomain(name)
    if reasons:
        return f'"{name}" is not a valid kubernetes secret name: {", ".join(reasons)}'
    return ""


def is_valid_k8s_annotation_name(name: str) -> str:
    """Return why ``name`` is not a valid annotation name, or '' if it is.

    Annotation names are checked case-insensitively.
    """
    reasons = _qualified_name(name.lower())
    if reasons:
        return f'"{name}" is not a valid kubernetes annotation name: {", ".join(reasons)}'
    return ""


def is_valid_k8s_label_name(name: str) -> str:
    """Return why ``name`` is not a valid label name, or '' if it is."""
    reasons = _qualified_name(name)
    if reasons:
        return f'"{name}" is not a valid kubernetes label name: {", ".join(reasons)}'
    return ""


def _failures(check: Callable[[str], str], names: Iterable[str]) -> list[str]:
    return [msg for msg in map(check, names) if msg]


def are_valid_k8s_annotation_names(*args: str) -> list[str]:
    """Return a failure message for each invalid annotation name."""
    return _failures(is_valid_k8s_annotation_name, args)


def are_valid_k8s_label_names(*args: str) -> list[str]:
    """Return a failure message for each invalid label name."""
    return _failures(is_valid_k8s_label_name, args)


def are_valid_k8s_namespace_names(*args: str) -> list[str]:
    """Return a failure message for each invalid namespace name."""
    return _failures(is_valid_k8s_namespace_name, args)