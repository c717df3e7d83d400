"""Operator bundles: their annotations, CSV and version ordering."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from addonmeta.api import AddonMetadataSpec

MANIFESTS_DIR = "manifests"
METADATA_DIR = "metadata"
ANNOTATIONS_FILE = "annotations.yaml"

PACKAGE_ANNOTATION = "operators.operatorframework.io.bundle.package.v1"
CHANNELS_ANNOTATION = "operators.operatorframework.io.bundle.channels.v1"
DEFAULT_CHANNEL_ANNOTATION = "operators.operatorframework.io.bundle.channel.default.v1"

_CSV_KIND = "ClusterServiceVersion"


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r}: expected a string, got {type(value).__name__}")
    return value


@dataclass
class Annotations:
    """Package and channel annotations of a bundle."""

    package_name: str = ""
    channels: list[str] = field(default_factory=list)
    default_channel_name: str = ""

    @classmethod
    def from_registry(cls, data: Mapping[str, Any]) -> Annotations:
        """Build from the mapping found under ``annotations`` in annotations.yaml."""
        return cls(
            package_name=_string(data, PACKAGE_ANNOTATION),
            channels=_string(data, CHANNELS_ANNOTATION).split(","),
            default_channel_name=_string(data, DEFAULT_CHANNEL_ANNOTATION),
        )


@dataclass
class CustomResourceDefinition:
    """A CRD referenced by a CSV."""

    name: str = ""
    group: str = ""
    kind: str = ""
    version: str = ""


def _crds(entries: Any) -> list[CustomResourceDefinition]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError("custom resource definitions: expected a list")
    result = []
    for entry in entries:
        if entry is None:
            continue
        if not isinstance(entry, Mapping):
            raise ValueError("custom resource definition: expected a mapping")
        result.append(
            CustomResourceDefinition(
                name=_string(entry, "name"),
                group=_string(entry, "group"),
                kind=_string(entry, "kind"),
                version=_string(entry, "version"),
            )
        )
    return result


@dataclass
class ClusterServiceVersion:
    """The parts of a CSV the tools work with."""

    name: str = ""
    owned_custom_resource_definitions: list[CustomResourceDefinition] = field(
        default_factory=list
    )
    required_custom_resource_definitions: list[CustomResourceDefinition] = field(
        default_factory=list
    )
    spec: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> ClusterServiceVersion:
        """Build from a decoded ClusterServiceVersion manifest."""
        spec = manifest.get("spec") or {}
        if not isinstance(spec, Mapping):
            raise ValueError("unmarshalling csv spec: expected a mapping")
        metadata = manifest.get("metadata") or {}
        crds = spec.get("customresourcedefinitions") or {}
        if not isinstance(crds, Mapping):
            raise ValueError("getting CustomResourceDefinitions: expected a mapping")
        return cls(
            name=_string(metadata, "name") if isinstance(metadata, Mapping) else "",
            owned_custom_resource_definitions=_crds(crds.get("owned")),
            required_custom_resource_definitions=_crds(crds.get("required")),
            spec=dict(spec),
        )


@dataclass
class Bundle:
    """An operator bundle."""

    annotations: Annotations = field(default_factory=Annotations)
    cluster_service_version: ClusterServiceVersion = field(
        default_factory=ClusterServiceVersion
    )
    bundle_image: str = ""
    channels: list[str] = field(default_factory=list)
    name: str = ""
    package: str = ""
    version: str = ""

    def name_version(self) -> str:
        return f"{self.name}:{self.version}"


def bundle_from_manifests(
    manifests: Iterable[Mapping[str, Any]],
    annotations: Mapping[str, Any] | None,
) -> Bundle:
    """Build a bundle from decoded manifests and its raw annotations.

    When several CSVs are present the last one is used.
    """
    parsed = Annotations() if annotations is None else Annotations.from_registry(annotations)
    csv_manifest = None
    for manifest in manifests:
        if manifest.get("kind") == _CSV_KIND:
            csv_manifest = manifest

    csv = ClusterServiceVersion()
    version = ""
    if csv_manifest is not None:
        csv = ClusterServiceVersion.from_manifest(csv_manifest)
        try:
            version = _string(csv.spec, "version")
        except ValueError as err:
            raise ValueError(f"getting bundle version: {err}") from err

    return Bundle(
        annotations=parsed,
        cluster_service_version=csv,
        channels=list(parsed.channels) if annotations is not None else [],
        name=parsed.package_name,
        package=parsed.package_name,
        version=version,
    )


def _read_manifest(path: Path) -> Mapping[str, Any]:
    try:
        document = next(iter(yaml.safe_load_all(path.read_text())), None)
    except yaml.YAMLError as err:
        raise ValueError(f"reading manifest {str(path)!r}: decoding manifest: {err}") from err
    if not isinstance(document, Mapping):
        raise ValueError(f"reading manifest {str(path)!r}: decoding manifest: not an object")
    return document


def _read_annotations(path: Path) -> Mapping[str, Any]:
    try:
        content = yaml.safe_load(path.read_text())
    except yaml.YAMLError as err:
        raise ValueError(f"unmarshalling file {str(path)!r}: {err}") from err
    if content is None:
        return {}
    if not isinstance(content, Mapping):
        raise ValueError(f"unmarshalling file {str(path)!r}: expected a mapping")
    annotations = content.get("annotations") or {}
    if not isinstance(annotations, Mapping):
        raise ValueError(f"unmarshalling file {str(path)!r}: annotations must be a mapping")
    return annotations


def new_bundle_from_directory(path: str | Path) -> Bundle:
    """Load an unpacked bundle with ``manifests/`` and ``metadata/`` directories."""
    root = Path(path)
    manifests = [
        _read_manifest(item) for item in sorted((root / MANIFESTS_DIR).iterdir())
    ]
    annotations = _read_annotations(root / METADATA_DIR / ANNOTATIONS_FILE)
    return bundle_from_manifests(manifests, annotations)


_NUMERIC = re.compile(r"^[0-9]+$")
_ZERO_KEY: tuple[Any, ...] = (0, 0, 0, 1, ())


def _version_key(text: str) -> tuple[Any, ...]:
    """Sort key for a version parsed leniently; unparsable versions count as 0.0.0."""
    text = text.strip().removeprefix("v")
    core, _, prerelease = text.split("+", 1)[0].partition("-")
    parts = core.split(".")
    if len(parts) > 3 or not all(_NUMERIC.match(p) for p in parts):
        return _ZERO_KEY
    numbers = [int(p) for p in parts] + [0] * (3 - len(parts))
    if not prerelease:
        return (*numbers, 1, ())
    idents = prerelease.split(".")
    if any(not ident for ident in idents):
        return _ZERO_KEY
    pre = tuple((0, int(i)) if _NUMERIC.match(i) else (1, i) for i in idents)
    return (*numbers, 0, pre)


def head_bundle(*args: Bundle) -> Bundle | None:
    """Return the bundle with the highest version, or None if none are given."""
    if not args:
        return None
    return max(args, key=lambda bundle: _version_key(bundle.version))


@dataclass
class MetaBundle:
    """Add-on metadata together with the bundles it refers to."""

    addon_meta: AddonMetadataSpec | None = None
    bundles: list[Bundle] = field(default_factory=list)