"""Add-on metadata and image set resources and their helpers."""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

import yaml

from addonmeta.mtsre import (
    AdditionalCatalogSource,
    BundleParameters,
    Config,
    CredentialsRequest,
    DeadmansSnitch,
    MetricsFederation,
    Monitoring,
    MonitoringStack,
    PagerDuty,
)
from addonmeta.ocm import AddOnParameter, AddOnRequirement, AddOnSubOperator

GROUP = "addonsflow.redhat.openshift.io"
VERSION = "v1alpha1"
API_VERSION = f"{GROUP}/{VERSION}"

_NUMBER = r"(?:0|[1-9][0-9]*)"
_PRERELEASE_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER = re.compile(
    rf"^v{_NUMBER}"
    rf"(?:\.{_NUMBER}"
    rf"(?:\.{_NUMBER}"
    rf"(?:-{_PRERELEASE_IDENT}(?:\.{_PRERELEASE_IDENT})*)?"
    rf"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    rf")?)?$"
)


def is_valid_semver(version: str) -> bool:
    """Tell whether ``version`` is a 'v'-prefixed semantic version.

    The shorthands ``vMAJOR`` and ``vMAJOR.MINOR`` are accepted; a
    prerelease or build suffix requires all three components.
    """
    return bool(_SEMVER.match(version))


@dataclass(frozen=True)
class _Codec:
    load: Callable[[Any, str], Any]
    dump: Callable[[Any], Any]


def _scalar(kind: type) -> _Codec:
    def load(value: Any, key: str) -> Any:
        if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
            raise TypeError(
                f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}"
            )
        return value

    return _Codec(load, lambda value: value)


def _load_strings(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"field {key!r}: expected a list of strings")
    return list(value)


def _load_string_map(value: Any, key: str) -> dict[str, str]:
    if not isinstance(value, Mapping) or not all(
        isinstance(item, str) for item in value.values()
    ):
        raise TypeError(f"field {key!r}: expected a mapping of strings")
    return {str(k): v for k, v in value.items()}


def _objects(cls: Any) -> _Codec:
    def load(value: Any, key: str) -> list[Any]:
        if not isinstance(value, list):
            raise TypeError(
                f"field {key!r}: expected a list, got {type(value).__name__}"
            )
        return [cls.from_dict(item) for item in value]

    return _Codec(load, lambda items: [item.to_dict() for item in items])


def _nested(cls: Any) -> _Codec:
    return _Codec(lambda value, key: cls.from_dict(value), lambda obj: obj.to_dict())


_STR = _scalar(str)
_BOOL = _scalar(bool)
_INT = _scalar(int)
_STRINGS = _Codec(_load_strings, list)
_STRING_MAP = _Codec(_load_string_map, dict)


def _field(key: str, codec: _Codec, default: Any = None, factory: Any = None) -> Any:
    metadata = {"key": key, "codec": codec}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _load_fields(cls: Any, data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__}: expected a mapping, got {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = f.metadata["key"]
        raw = data.get(key)
        if raw is not None:
            kwargs[f.name] = f.metadata["codec"].load(raw, key)
    return cls(**kwargs)


def _dump_fields(obj: Any) -> dict[str, Any]:
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        result[f.metadata["key"]] = None if value is None else f.metadata["codec"].dump(value)
    return result


def _parse_yaml(data: str | bytes) -> Any:
    try:
        loaded = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise ValueError(f"parsing YAML: {err}") from err
    return {} if loaded is None else loaded


@dataclass
class Channel:
    """An OLM channel and its current CSV (legacy builds only)."""

    name: str = _field("name", _STR, "")
    current_csv: str = _field("currentCSV", _STR, "")

    @classmethod
    def from_dict(cls, data: Any) -> Channel:
        return _load_fields(cls, data)

    def to_dict(self) -> dict[str, Any]:
        return _dump_fields(self)


@dataclass
class AddonImageSetSpec:
    """Desired state of an add-on image set."""

    name: str = _field("name", _STR, "")
    index_image: str = _field("indexImage", _STR, "")
    package_image: str = _field("packageImage", _STR, "")
    related_images: list[str] = _field("relatedImages", _STRINGS, factory=list)
    add_on_parameters: list[AddOnParameter] | None = _field(
        "addOnParameters", _objects(AddOnParameter)
    )
    add_on_requirements: list[AddOnRequirement] | None = _field(
        "addOnRequirements", _objects(AddOnRequirement)
    )
    sub_operators: list[AddOnSubOperator] | None = _field(
        "subOperators", _objects(AddOnSubOperator)
    )
    config: Config | None = _field("config", _nested(Config))
    pull_secret_name: str = _field("pullSecretName", _STR, "")
    additional_catalog_sources: list[AdditionalCatalogSource] | None = _field(
        "additionalCatalogSources", _objects(AdditionalCatalogSource)
    )

    @classmethod
    def from_dict(cls, data: Any) -> AddonImageSetSpec:
        return _load_fields(cls, data)

    @classmethod
    def from_yaml(cls, data: str | bytes) -> AddonImageSetSpec:
        return cls.from_dict(_parse_yaml(data))

    def to_dict(self) -> dict[str, Any]:
        return _dump_fields(self)

    def get_semver(self) -> str:
        """Return the 'MAJOR.MINOR.PATCH' version encoded in the name."""
        parts = self.name.split(".", 1)
        if len(parts) == 2 and is_valid_semver(parts[1]):
            return parts[1].removeprefix("v")
        raise ValueError(
            f"Could not parse the imageSet name as a valid semver, {self.name}."
        )


def _resource_json(obj: Any) -> str:
    document: dict[str, Any] = {}
    if obj.api_version:
        document["apiVersion"] = obj.api_version
    if obj.kind:
        document["kind"] = obj.kind
    document["metadata"] = copy.deepcopy(obj.metadata)
    document["spec"] = obj.spec.to_dict()
    document["status"] = {}
    return json.dumps(document, separators=(",", ":"))


@dataclass
class AddonImageSet:
    """An add-on image set resource."""

    spec: AddonImageSetSpec = field(default_factory=AddonImageSetSpec)
    metadata: dict[str, Any] = field(default_factory=dict)
    api_version: str = API_VERSION
    kind: str = "AddonImageSet"

    def to_json(self) -> str:
        return _resource_json(self)


@dataclass
class AddonMetadataSpec:
    """Desired state of an add-on's metadata."""

    id: str = _field("id", _STR, "")
    name: str = _field("name", _STR, "")
    description: str = _field("description", _STR, "")
    link: str = _field("link", _STR, "")
    icon: str = _field("icon", _STR, "")
    label: str = _field("label", _STR, "")
    enabled: bool = _field("enabled", _BOOL, False)
    addon_owner: str = _field("addonOwner", _STR, "")
    quay_repo: str = _field("quayRepo", _STR, "")
    test_harness: str = _field("testHarness", _STR, "")
    install_mode: str = _field("installMode", _STR, "")
    target_namespace: str = _field("targetNamespace", _STR, "")
    namespaces: list[str] = _field("namespaces", _STRINGS, factory=list)
    ocm_quota_name: str = _field("ocmQuotaName", _STR, "")
    ocm_quota_cost: int = _field("ocmQuotaCost", _INT, 0)
    operator_name: str = _field("operatorName", _STR, "")
    default_channel: str = _field("defaultChannel", _STR, "")
    channels: list[Channel] | None = _field("channels", _objects(Channel))
    namespace_labels: dict[str, str] = _field(
        "namespaceLabels", _STRING_MAP, factory=dict
    )
    namespace_annotations: dict[str, str] = _field(
        "namespaceAnnotations", _STRING_MAP, factory=dict
    )
    index_image: str | None = _field("indexImage", _STR)
    add_on_parameters: list[AddOnParameter] | None = _field(
        "addOnParameters", _objects(AddOnParameter)
    )
    add_on_requirements: list[AddOnRequirement] | None = _field(
        "addOnRequirements", _objects(AddOnRequirement)
    )
    sub_operators: list[AddOnSubOperator] | None = _field(
        "subOperators", _objects(AddOnSubOperator)
    )
    image_set_version: str | None = _field("addonImageSetVersion", _STR)
    has_external_resources: bool | None = _field("hasExternalResources", _BOOL)
    addon_notifications: list[str] | None = _field("addonNotifications", _STRINGS)
    common_labels: dict[str, str] | None = _field("commonLabels", _STRING_MAP)
    common_annotations: dict[str, str] | None = _field(
        "commonAnnotations", _STRING_MAP
    )
    monitoring: Monitoring | None = _field("monitoring", _nested(Monitoring))
    metrics_federation: MetricsFederation | None = _field(
        "metricsFederation", _nested(MetricsFederation)
    )
    monitoring_stack: MonitoringStack | None = _field(
        "monitoringStack", _nested(MonitoringStack)
    )
    bundle_parameters: BundleParameters | None = _field(
        "bundleParameters", _nested(BundleParameters)
    )
    starting_csv: str | None = _field("startingCSV", _STR)
    pagerduty: PagerDuty | None = _field("pagerduty", _nested(PagerDuty))
    deadmans_snitch: DeadmansSnitch | None = _field(
        "deadmanssnitch", _nested(DeadmansSnitch)
    )
    extra_resources: list[str] | None = _field("extraResources", _STRINGS)
    config: Config | None = _field("config", _nested(Config))
    pull_secret_name: str = _field("pullSecretName", _STR, "")
    additional_catalog_sources: list[AdditionalCatalogSource] | None = _field(
        "additionalCatalogSources", _objects(AdditionalCatalogSource)
    )
    credentials_requests: list[CredentialsRequest] | None = _field(
        "credentialsRequests", _objects(CredentialsRequest)
    )
    syncset_migration: str | None = _field("syncsetMigration", _STR)
    managed_service: bool | None = _field("managedService", _BOOL)

    @classmethod
    def from_dict(cls, data: Any) -> AddonMetadataSpec:
        return _load_fields(cls, data)

    @classmethod
    def from_yaml(cls, data: str | bytes) -> AddonMetadataSpec:
        return cls.from_dict(_parse_yaml(data))

    def to_dict(self) -> dict[str, Any]:
        return _dump_fields(self)

    def combine_with_image_set(self, image_set: AddonImageSetSpec) -> AddonMetadataSpec:
        """Return a copy of this spec merged with the image set's fields.

        This spec is left unchanged.
        """
        version = image_set.get_semver()
        combined = copy.deepcopy(self)
        combined.index_image = image_set.index_image
        combined.image_set_version = version
        if image_set.add_on_parameters is not None:
            combined.add_on_parameters = copy.deepcopy(image_set.add_on_parameters)
        if image_set.add_on_requirements is not None:
            combined.add_on_requirements = copy.deepcopy(image_set.add_on_requirements)
        if image_set.sub_operators is not None:
            combined.sub_operators = copy.deepcopy(image_set.sub_operators)
        return combined


@dataclass
class AddonMetadata:
    """An add-on metadata resource."""

    spec: AddonMetadataSpec = field(default_factory=AddonMetadataSpec)
    metadata: dict[str, Any] = field(default_factory=dict)
    api_version: str = API_VERSION
    kind: str = "AddonMetadata"

    def to_json(self) -> str:
        return _resource_json(self)