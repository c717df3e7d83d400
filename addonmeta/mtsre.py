"""Add-on metadata sections specific to managed tenants."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _mapping(data: Any, owner: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{owner}: expected a mapping, got {type(data).__name__}")
    return data


def _scalar(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise TypeError(
            f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _strings(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"field {key!r}: expected a list of strings")
    return list(value)


def _string_map(data: Mapping[str, Any], key: str) -> dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping) or not all(
        isinstance(v, str) for v in value.values()
    ):
        raise TypeError(f"field {key!r}: expected a mapping of strings")
    return {str(k): v for k, v in value.items()}


def _objects(data: Mapping[str, Any], key: str, cls: Any) -> list[Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"field {key!r}: expected a list, got {type(value).__name__}")
    return [cls.from_dict(item) for item in value]


def _nested(data: Mapping[str, Any], key: str, cls: Any) -> Any:
    value = data.get(key)
    return None if value is None else cls.from_dict(value)


def _dump(obj: Any) -> Any:
    return None if obj is None else obj.to_dict()


def _dump_list(items: list[Any] | None) -> list[dict[str, Any]] | None:
    return None if items is None else [item.to_dict() for item in items]


def _without_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass
class Monitoring:
    """Federation settings for a ServiceMonitor (deprecated)."""

    namespace: str = ""
    match_names: list[str] = field(default_factory=list)
    match_labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Monitoring:
        data = _mapping(data, cls.__name__)
        return cls(
            namespace=_scalar(data, "namespace", str, ""),
            match_names=_strings(data, "matchNames", []),
            match_labels=_string_map(data, "matchLabels"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "matchNames": list(self.match_names),
            "matchLabels": dict(self.match_labels),
        }


@dataclass
class MetricsFederation:
    """Federation settings for the metrics ServiceMonitor."""

    namespace: str = ""
    port_name: str = ""
    match_names: list[str] = field(default_factory=list)
    match_labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> MetricsFederation:
        data = _mapping(data, cls.__name__)
        return cls(
            namespace=_scalar(data, "namespace", str, ""),
            port_name=_scalar(data, "portName", str, ""),
            match_names=_strings(data, "matchNames", []),
            match_labels=_string_map(data, "matchLabels"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "portName": self.port_name,
            "matchNames": list(self.match_names),
            "matchLabels": dict(self.match_labels),
        }


@dataclass
class MonitoringStackResource:
    """CPU and memory quantities for Prometheus instances."""

    cpu: str | None = None
    memory: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> MonitoringStackResource:
        data = _mapping(data, cls.__name__)
        return cls(
            cpu=_scalar(data, "cpu", str, None),
            memory=_scalar(data, "memory", str, None),
        )

    def to_dict(self) -> dict[str, Any]:
        return _without_none({"cpu": self.cpu, "memory": self.memory})


@dataclass
class MonitoringStackResources:
    """Requests and limits for Prometheus instances."""

    requests: MonitoringStackResource | None = None
    limits: MonitoringStackResource | None = None

    @classmethod
    def from_dict(cls, data: Any) -> MonitoringStackResources:
        data = _mapping(data, cls.__name__)
        return cls(
            requests=_nested(data, "requests", MonitoringStackResource),
            limits=_nested(data, "limits", MonitoringStackResource),
        )

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {"requests": _dump(self.requests), "limits": _dump(self.limits)}
        )


@dataclass
class MonitoringStack:
    """Settings for the MonitoringStack created when the add-on is installed."""

    enabled: bool | None = None
    resources: MonitoringStackResources | None = None

    @classmethod
    def from_dict(cls, data: Any) -> MonitoringStack:
        data = _mapping(data, cls.__name__)
        return cls(
            enabled=_scalar(data, "enabled", bool, None),
            resources=_nested(data, "resources", MonitoringStackResources),
        )

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {"enabled": self.enabled, "resources": _dump(self.resources)}
        )


@dataclass
class BundleParameters:
    """Parameters passed to the bundle (deprecated)."""

    use_cluster_storage: str | None = None
    alerting_email_address: str | None = None
    bu_alerting_email_address: str | None = None
    alert_smtp_from: str | None = None
    addon_params_secret_name: str | None = None

    _KEYS = (
        ("use_cluster_storage", "useClusterStorage"),
        ("alerting_email_address", "alertingEmailAddress"),
        ("bu_alerting_email_address", "buAlertingEmailAddress"),
        ("alert_smtp_from", "alertSMTPFrom"),
        ("addon_params_secret_name", "addonParamsSecretName"),
    )

    @classmethod
    def from_dict(cls, data: Any) -> BundleParameters:
        data = _mapping(data, cls.__name__)
        return cls(
            **{attr: _scalar(data, key, str, None) for attr, key in cls._KEYS}
        )

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._KEYS}


@dataclass
class PagerDuty:
    """PagerDuty integration settings."""

    escalation_policy: str = ""
    acknowledge_timeout: int = 0
    resolve_timeout: int = 0
    secret_name: str = ""
    secret_namespace: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> PagerDuty:
        data = _mapping(data, cls.__name__)
        return cls(
            escalation_policy=_scalar(data, "snitchNamePostFix", str, ""),
            acknowledge_timeout=_scalar(data, "acknowledgeTimeout", int, 0),
            resolve_timeout=_scalar(data, "resolveTimeout", int, 0),
            secret_name=_scalar(data, "secretName", str, ""),
            secret_namespace=_scalar(data, "secretNamespace", str, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "snitchNamePostFix": self.escalation_policy,
            "acknowledgeTimeout": self.acknowledge_timeout,
            "resolveTimeout": self.resolve_timeout,
            "secretName": self.secret_name,
            "secretNamespace": self.secret_namespace,
        }


@dataclass
class TargetSecretRef:
    """Reference to the secret a snitch URL is written to."""

    name: str | None = None
    namespace: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> TargetSecretRef:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, None),
            namespace=_scalar(data, "namespace", str, None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "namespace": self.namespace}


@dataclass
class DeadmansSnitch:
    """Dead man's snitch configuration set up alongside the add-on."""

    cluster_deployment_selector: dict[str, Any] | None = None
    snitch_name_post_fix: str | None = None
    target_secret_ref: TargetSecretRef | None = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> DeadmansSnitch:
        data = _mapping(data, cls.__name__)
        selector = data.get("clusterDeploymentSelector")
        if selector is not None and not isinstance(selector, Mapping):
            raise TypeError("field 'clusterDeploymentSelector': expected a mapping")
        return cls(
            cluster_deployment_selector=None
            if selector is None
            else copy.deepcopy(dict(selector)),
            snitch_name_post_fix=_scalar(data, "snitchNamePostFix", str, None),
            target_secret_ref=_nested(data, "targetSecretRef", TargetSecretRef),
            tags=_strings(data, "tags", []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "clusterDeploymentSelector": copy.deepcopy(self.cluster_deployment_selector),
            "snitchNamePostFix": self.snitch_name_post_fix,
            "targetSecretRef": _dump(self.target_secret_ref),
            "tags": list(self.tags),
        }


@dataclass
class EnvItem:
    """An environment variable passed to the subscription."""

    name: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> EnvItem:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, ""),
            value=_scalar(data, "value", str, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class Secret:
    """A secret sourced from the vault and made available to the add-on."""

    name: str = ""
    type: str = ""
    vault_path: str = ""
    destination_secret_name: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Secret:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, ""),
            type=_scalar(data, "type", str, ""),
            vault_path=_scalar(data, "vaultPath", str, ""),
            destination_secret_name=_scalar(data, "destinationSecretName", str, None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "vaultPath": self.vault_path,
            "destinationSecretName": self.destination_secret_name,
        }


@dataclass
class Config:
    """Configuration passed to the subscription object."""

    env: list[EnvItem] | None = None
    secrets: list[Secret] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        data = _mapping(data, cls.__name__)
        return cls(
            env=_objects(data, "env", EnvItem),
            secrets=_objects(data, "secrets", Secret),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"env": _dump_list(self.env), "secrets": _dump_list(self.secrets)}


@dataclass
class AdditionalCatalogSource:
    """An extra catalog source created next to the add-on's own."""

    name: str = ""
    image: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> AdditionalCatalogSource:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, ""),
            image=_scalar(data, "image", str, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "image": self.image}


@dataclass
class CredentialsRequest:
    """A request for cloud credentials used by an operator."""

    name: str = ""
    namespace: str = ""
    service_account: str = ""
    policy_permissions: list[str] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CredentialsRequest:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, ""),
            namespace=_scalar(data, "namespace", str, ""),
            service_account=_scalar(data, "service_account", str, ""),
            policy_permissions=_strings(data, "policy_permissions", None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "service_account": self.service_account,
            "policy_permissions": None
            if self.policy_permissions is None
            else list(self.policy_permissions),
        }