from pathlib import Path

import pytest
import yaml

from addonmeta.caches import BundleCacheImpl
from addonmeta.extractor import (
    BundleExtractor,
    DefaultBundleExtractor,
    MainExtractor,
    TaglessImageError,
    validate_index_image,
)
from addonmeta.index import IndexExtractor
from addonmeta.operator import Bundle

REF_016 = (
    "quay.io/osd-addons/reference-addon-bundle@sha256:"
    "a62fd3f3b55aa58c587f0b7630f5e70b123d036a1a04a1bd5a866b5c576a04f4"
)
REF_015 = (
    "quay.io/osd-addons/reference-addon-bundle@sha256:"
    "29879d193bd8da42e7b6500252b4d21bef733666bd893de2a3f9b250e591658e"
)

CONTENT = {
    REF_016: ("reference-addon", "reference-addon.v0.1.6", "0.1.6"),
    REF_015: ("reference-addon", "reference-addon.v0.1.5", "0.1.5"),
}


class FakeUnpacker:
    def __init__(self, content=CONTENT, with_csv=True):
        self.content = content
        self.with_csv = with_csv
        self.calls = []

    def __call__(self, image, directory, timeout):
        self.calls.append((image, timeout))
        package, csv_name, version = self.content[image]
        root = Path(directory)
        (root / "manifests").mkdir()
        (root / "metadata").mkdir()
        kind = "ClusterServiceVersion" if self.with_csv else "ConfigMap"
        (root / "manifests" / "csv.yaml").write_text(
            yaml.safe_dump(
                {
                    "apiVersion": "operators.coreos.com/v1alpha1",
                    "kind": kind,
                    "metadata": {"name": csv_name},
                    "spec": {"version": version},
                }
            )
        )
        (root / "metadata" / "annotations.yaml").write_text(
            yaml.safe_dump(
                {
                    "annotations": {
                        "operators.operatorframework.io.bundle.package.v1": package,
                        "operators.operatorframework.io.bundle.channels.v1": "alpha",
                        "operators.operatorframework.io.bundle.channel.default.v1": "alpha",
                    }
                }
            )
        )


@pytest.mark.parametrize(
    "image,package,csv_name,version",
    [
        (REF_016, "reference-addon", "reference-addon.v0.1.6", "0.1.6"),
        (REF_015, "reference-addon", "reference-addon.v0.1.5", "0.1.5"),
    ],
)
def test_default_bundle_extractor(image, package, csv_name, version):
    cache = BundleCacheImpl()
    extractor = DefaultBundleExtractor(FakeUnpacker(), cache=cache)
    for bundle in (extractor.extract(image), cache.get_bundle(image)):
        assert bundle.name == package
        assert bundle.bundle_image == image
        assert bundle.annotations.package_name == package
        assert bundle.cluster_service_version.name == csv_name
        assert bundle.version == version


def test_extract_uses_cache_on_second_call():
    unpacker = FakeUnpacker()
    extractor = DefaultBundleExtractor(unpacker, timeout=5)
    first = extractor.extract(REF_016)
    second = extractor.extract(REF_016)
    assert first == second
    assert unpacker.calls == [(REF_016, 5)]


def test_extract_rejects_bundle_without_csv():
    extractor = DefaultBundleExtractor(FakeUnpacker(with_csv=False))
    with pytest.raises(ValueError, match="content validation failed"):
        extractor.extract(REF_016)


def test_validate_bundle_missing_manifests(tmp_path):
    extractor = DefaultBundleExtractor(FakeUnpacker())
    with pytest.raises(ValueError, match="format validation failed"):
        extractor.validate_bundle(tmp_path)


def test_validate_index_image_errors():
    with pytest.raises(ValueError, match="empty"):
        validate_index_image("")
    with pytest.raises(TaglessImageError):
        validate_index_image("quay.io/osd-addons/reference-addon-index")
    with pytest.raises(ValueError, match="can't parse"):
        validate_index_image("Quay.io/Bad Name:tag")


class FakeIndex(IndexExtractor):
    def __init__(self, images):
        self.images = images
        self.calls = []

    def extract_bundle_images(self, index_image, pkg_name):
        self.calls.append((index_image, pkg_name))
        return list(self.images)

    def extract_all_bundle_images(self, index_image):
        self.calls.append((index_image, None))
        return list(self.images)


class FakeBundles(BundleExtractor):
    def __init__(self, fail_on=None):
        self.fail_on = fail_on

    def extract(self, bundle_image):
        if bundle_image == self.fail_on:
            raise RuntimeError("boom")
        return Bundle(bundle_image=bundle_image)


SQL_IMAGES = [
    "quay.io/osd-addons/reference-addon-bundle:0.1.0-c15cedb",
    "quay.io/osd-addons/reference-addon-bundle:0.1.1-c15cedb",
    "quay.io/osd-addons/reference-addon-bundle:0.1.2-c15cedb",
    "quay.io/osd-addons/reference-addon-bundle:0.1.3-c15cedb",
    "quay.io/osd-addons/reference-addon-bundle:0.1.4-c15cedb",
    "quay.io/osd-addons/reference-addon-bundle:0.1.5-c15cedb",
]
SQL_INDEX = (
    "quay.io/osd-addons/reference-addon-index@sha256:"
    "b9e87a598e7fd6afb4bfedb31e4098435c2105cc8ebe33231c341e515ba9054d"
)


def test_main_extractor_all_bundles():
    extractor = MainExtractor(FakeIndex(SQL_IMAGES), FakeBundles())
    bundles = extractor.extract_all_bundles(SQL_INDEX)
    assert len(bundles) == len(SQL_IMAGES)
    assert [b.bundle_image for b in bundles] == SQL_IMAGES


def test_main_extractor_package_bundles():
    images = ["quay.io/osd-addons/reference-addon-bundle:0.1.6-single"]
    index = FakeIndex(images)
    extractor = MainExtractor(index, FakeBundles())
    index_image = "quay.io/osd-addons/reference-addon-index:file-based-poc"
    bundles = extractor.extract_bundles(index_image, "reference-addon")
    assert {b.bundle_image for b in bundles} == set(images)
    assert index.calls == [(index_image, "reference-addon")]


def test_main_extractor_skips_tagless_image():
    index = FakeIndex(SQL_IMAGES)
    extractor = MainExtractor(index, FakeBundles())
    assert extractor.extract_all_bundles("quay.io/osd-addons/reference-addon-index") == []
    assert index.calls == []


def test_main_extractor_rejects_empty_package():
    extractor = MainExtractor(FakeIndex(SQL_IMAGES), FakeBundles())
    with pytest.raises(ValueError, match="pkgName"):
        extractor.extract_bundles(SQL_INDEX, "")


def test_main_extractor_propagates_bundle_error():
    extractor = MainExtractor(FakeIndex(SQL_IMAGES), FakeBundles(fail_on=SQL_IMAGES[3]))
    with pytest.raises(RuntimeError, match="boom"):
        extractor.extract_all_bundles(SQL_INDEX)