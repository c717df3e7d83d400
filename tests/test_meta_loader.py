import pytest

from addonmeta.meta_loader import MetaLoader, MetaLoaderError, latest_image_set_version

ENV = "stage"
VERSIONS = ["0.0.1", "0.0.2", "0.0.3", "0.0.4", "0.0.5"]
STATIC_INDEX = "quay.io/osd-addons/reference-addon-index:v0.1.0"


def _index_image(version):
    return f"quay.io/osd-addons/reference-addon-index:v{version}"


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def _image_set_yaml(version, extra=""):
    return (
        f"name: reference-addon.v{version}\n"
        f"indexImage: {_index_image(version)}\n"
        "relatedImages: []\n" + extra
    )


@pytest.fixture
def image_set_addon(tmp_path):
    addon = tmp_path / "imagesets" / "reference-addon"
    _write(
        addon / "metadata" / ENV / "addon.yaml",
        "id: reference-addon\nname: Reference Addon\naddonImageSetVersion: '0.0.5'\n",
    )
    for version in VERSIONS:
        extra = ""
        if version == "0.0.5":
            extra = (
                "subOperators:\n"
                "  - operator_name: sub-op\n"
                "    operator_namespace: sub-ns\n"
                "    enabled: true\n"
            )
        _write(
            addon / "addonimagesets" / ENV / f"reference-addon.v{version}.yaml",
            _image_set_yaml(version, extra),
        )
    return addon


@pytest.fixture
def index_image_addon(tmp_path):
    addon = tmp_path / "legacy" / "reference-addon"
    _write(
        addon / "metadata" / ENV / "addon.yaml",
        f"id: reference-addon\nname: Reference Addon\nindexImage: {STATIC_INDEX}\n",
    )
    return addon


@pytest.mark.parametrize("version", ["latest", "0.0.1"])
def test_static_index_image_ignores_version(index_image_addon, version):
    meta = MetaLoader(index_image_addon, ENV, version).load()
    assert meta.index_image == STATIC_INDEX
    assert meta.image_set_version is None


@pytest.mark.parametrize(
    "version, expected_version",
    [("latest", "0.0.5"), ("0.0.1", "0.0.1"), ("", "0.0.5")],
)
def test_image_set_versions(image_set_addon, version, expected_version):
    meta = MetaLoader(image_set_addon, ENV, version).load()
    assert meta.image_set_version == expected_version
    assert meta.index_image == _index_image(expected_version)
    assert meta.id == "reference-addon"


def test_image_set_fields_are_combined(image_set_addon):
    meta = MetaLoader(image_set_addon, ENV).load()
    assert [op.operator_name for op in meta.sub_operators] == ["sub-op"]


def test_legacy_addon_is_rejected(tmp_path):
    addon = tmp_path / "old-addon"
    _write(addon / "metadata" / ENV / "addon.yaml", "id: old-addon\n")
    with pytest.raises(MetaLoaderError, match="legacy addon"):
        MetaLoader(addon, ENV, "").load()


def test_index_image_and_image_set_together_rejected(tmp_path):
    addon = tmp_path / "both"
    _write(
        addon / "metadata" / ENV / "addon.yaml",
        f"indexImage: {STATIC_INDEX}\naddonImageSetVersion: '0.0.1'\n",
    )
    with pytest.raises(MetaLoaderError, match="Can't set both"):
        MetaLoader(addon, ENV, "").load()


def test_missing_image_set_version(image_set_addon):
    with pytest.raises(MetaLoaderError, match="Could not read imageSet"):
        MetaLoader(image_set_addon, ENV, "9.9.9").load()


def test_latest_with_no_image_sets(tmp_path):
    addon = tmp_path / "empty-addon"
    _write(addon / "metadata" / ENV / "addon.yaml", "addonImageSetVersion: latest\n")
    (addon / "addonimagesets" / ENV).mkdir(parents=True)
    with pytest.raises(MetaLoaderError, match="No imageset present"):
        MetaLoader(addon, ENV, "").load()


def test_bad_image_set_name_fails_to_combine(tmp_path):
    addon = tmp_path / "bad-addon"
    _write(addon / "metadata" / ENV / "addon.yaml", "addonImageSetVersion: '1.0.0'\n")
    _write(
        addon / "addonimagesets" / ENV / "bad-addon.v1.0.0.yaml",
        "name: invalid_name\nindexImage: quay.io/osd-addons/bad-index:1\n",
    )
    with pytest.raises(MetaLoaderError, match="Could not combine"):
        MetaLoader(addon, ENV, "").load()


def test_missing_metadata_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        MetaLoader(tmp_path / "nothing", ENV, "").load()


def test_latest_image_set_version_picks_last_name(image_set_addon):
    directory = image_set_addon / "addonimagesets" / ENV
    assert latest_image_set_version(directory) == "reference-addon.v0.0.5.yaml"


def test_latest_image_set_version_empty_directory(tmp_path):
    with pytest.raises(MetaLoaderError):
        latest_image_set_version(tmp_path)


def test_latest_image_set_version_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        latest_image_set_version(tmp_path / "absent")