import json

import pytest

from addonmeta.api import (
    AddonImageSet,
    AddonImageSetSpec,
    AddonMetadata,
    AddonMetadataSpec,
    Channel,
    is_valid_semver,
)
from addonmeta.mtsre import Config
from addonmeta.ocm import AddOnParameter, AddOnSubOperator

METADATA_YAML = """
id: reference-addon
name: Reference Addon
description: A reference addon.
icon: aWNvbg==
label: api.openshift.com/addon-reference-addon
enabled: true
addonOwner: Team <team@example.com>
quayRepo: quay.io/osd-addons/reference-addon
testHarness: quay.io/osd-addons/reference-addon-test-harness
installMode: OwnNamespace
targetNamespace: reference-addon
namespaces:
  - reference-addon
ocmQuotaName: addon-reference-addon
ocmQuotaCost: 0
operatorName: reference-addon
defaultChannel: alpha
namespaceLabels:
  monitoring-key: middleware
namespaceAnnotations: {}
addonImageSetVersion: latest
channels:
  - name: alpha
    currentCSV: reference-addon.v0.1.0
"""

IMAGESET_YAML = """
name: reference-addon.v0.0.5
indexImage: quay.io/osd-addons/reference-addon-index:abc123
relatedImages:
  - quay.io/osd-addons/reference-addon-bundle:abc123
addOnParameters:
  - id: size
    name: Size
    description: Size of the thing
    value_type: string
    required: true
    editable: false
    enabled: true
subOperators:
  - operator_name: sub
    operator_namespace: sub-ns
    enabled: true
config:
  env:
    - name: KEY
      value: value
  secrets: []
"""


@pytest.mark.parametrize(
    "name, expected",
    [
        ("reference-addon.v0.0.1", "0.0.1"),
        ("reference-addon.v2.3.2", "2.3.2"),
    ],
)
def test_get_semver_valid(name, expected):
    assert AddonImageSetSpec(name=name).get_semver() == expected


@pytest.mark.parametrize("name", ["invalid-semver.v2.3.2.4.5", "invalid_name"])
def test_get_semver_invalid(name):
    with pytest.raises(ValueError, match="valid semver"):
        AddonImageSetSpec(name=name).get_semver()


@pytest.mark.parametrize(
    "version, valid",
    [
        ("v1", True),
        ("v1.2", True),
        ("v1.2.3", True),
        ("v1.2.3-rc.1+build.5", True),
        ("v0.0.0-alpha", True),
        ("1.2.3", False),
        ("v01.2.3", False),
        ("v1.2-pre", False),
        ("v1.2.3-01", False),
        ("v1.2.3.4", False),
        ("v1.2.3+", False),
        ("", False),
    ],
)
def test_is_valid_semver(version, valid):
    assert is_valid_semver(version) is valid


def test_metadata_from_yaml_reads_fields():
    meta = AddonMetadataSpec.from_yaml(METADATA_YAML)
    assert meta.id == "reference-addon"
    assert meta.enabled is True
    assert meta.namespaces == ["reference-addon"]
    assert meta.namespace_labels == {"monitoring-key": "middleware"}
    assert meta.image_set_version == "latest"
    assert meta.index_image is None
    assert meta.channels == [Channel(name="alpha", current_csv="reference-addon.v0.1.0")]


def test_metadata_round_trip_through_dict():
    meta = AddonMetadataSpec.from_yaml(METADATA_YAML.encode())
    assert AddonMetadataSpec.from_dict(meta.to_dict()) == meta


def test_metadata_to_dict_uses_json_keys():
    data = AddonMetadataSpec.from_yaml(METADATA_YAML).to_dict()
    assert data["addonImageSetVersion"] == "latest"
    assert data["ocmQuotaCost"] == 0
    assert data["indexImage"] is None


def test_empty_yaml_gives_defaults():
    meta = AddonMetadataSpec.from_yaml("")
    assert meta == AddonMetadataSpec()
    assert meta.namespaces == []


def test_wrong_type_is_rejected():
    with pytest.raises(TypeError):
        AddonMetadataSpec.from_yaml("ocmQuotaCost: many")


def test_non_mapping_is_rejected():
    with pytest.raises(TypeError):
        AddonImageSetSpec.from_yaml("- a\n- b\n")


def test_malformed_yaml_is_rejected():
    with pytest.raises(ValueError):
        AddonImageSetSpec.from_yaml("name: [unclosed")


def test_imageset_from_yaml():
    image_set = AddonImageSetSpec.from_yaml(IMAGESET_YAML)
    assert image_set.index_image == "quay.io/osd-addons/reference-addon-index:abc123"
    assert image_set.add_on_parameters[0].id == "size"
    assert image_set.sub_operators == [
        AddOnSubOperator(operator_name="sub", operator_namespace="sub-ns", enabled=True)
    ]
    assert image_set.config == Config.from_dict(
        {"env": [{"name": "KEY", "value": "value"}], "secrets": []}
    )
    assert image_set.get_semver() == "0.0.5"


def test_combine_with_image_set():
    meta = AddonMetadataSpec.from_yaml(METADATA_YAML)
    image_set = AddonImageSetSpec.from_yaml(IMAGESET_YAML)
    combined = meta.combine_with_image_set(image_set)

    assert combined.index_image == image_set.index_image
    assert combined.image_set_version == "0.0.5"
    assert combined.add_on_parameters == image_set.add_on_parameters
    assert combined.sub_operators == image_set.sub_operators
    assert combined.add_on_requirements is None
    assert combined.id == meta.id

    # the original is untouched and the copies are independent
    assert meta.index_image is None
    assert meta.image_set_version == "latest"
    combined.add_on_parameters[0].name = "changed"
    assert image_set.add_on_parameters[0].name == "Size"


def test_combine_keeps_own_lists_when_image_set_has_none():
    meta = AddonMetadataSpec(add_on_parameters=[AddOnParameter(id="own")])
    image_set = AddonImageSetSpec(name="x.v1.0.0", index_image="quay.io/osd-addons/x:1")
    combined = meta.combine_with_image_set(image_set)
    assert [p.id for p in combined.add_on_parameters] == ["own"]
    assert combined.image_set_version == "1.0.0"


def test_combine_fails_on_invalid_image_set_name():
    meta = AddonMetadataSpec()
    with pytest.raises(ValueError):
        meta.combine_with_image_set(AddonImageSetSpec(name="invalid_name"))


def test_addon_metadata_to_json():
    resource = AddonMetadata(
        spec=AddonMetadataSpec(id="abc"), metadata={"name": "abc"}
    )
    document = json.loads(resource.to_json())
    assert document["apiVersion"] == "addonsflow.redhat.openshift.io/v1alpha1"
    assert document["kind"] == "AddonMetadata"
    assert document["metadata"] == {"name": "abc"}
    assert document["spec"]["id"] == "abc"


def test_addon_image_set_to_json_omits_empty_type_meta():
    resource = AddonImageSet(
        spec=AddonImageSetSpec(name="a.v1.0.0"), api_version="", kind=""
    )
    document = json.loads(resource.to_json())
    assert "apiVersion" not in document
    assert "kind" not in document
    assert document["spec"]["name"] == "a.v1.0.0"
    assert document["status"] == {}