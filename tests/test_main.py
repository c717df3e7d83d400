import pytest
import yaml

from addonmeta.cli import version_string
from addonmeta.main import ValidateOptions, build_parser, main
from addonmeta.operator import (
    ANNOTATIONS_FILE,
    CHANNELS_ANNOTATION,
    MANIFESTS_DIR,
    METADATA_DIR,
    PACKAGE_ANNOTATION,
)


def _write_bundle(root):
    manifests = root / MANIFESTS_DIR
    manifests.mkdir()
    (manifests / "csv.yaml").write_text(
        yaml.safe_dump(
            {
                "apiVersion": "operators.coreos.com/v1alpha1",
                "kind": "ClusterServiceVersion",
                "metadata": {"name": "reference-addon.v0.1.6"},
                "spec": {"version": "0.1.6"},
            }
        )
    )
    metadata = root / METADATA_DIR
    metadata.mkdir()
    (metadata / ANNOTATIONS_FILE).write_text(
        yaml.safe_dump(
            {
                "annotations": {
                    PACKAGE_ANNOTATION: "reference-addon",
                    CHANNELS_ANNOTATION: "alpha",
                }
            }
        )
    )


def test_version_command_prints_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == version_string()


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "Managed Tenants CLI swiss army knife." in capsys.readouterr().out


def test_bundle_validate_accepts_valid_bundle(tmp_path, capsys):
    _write_bundle(tmp_path)
    assert main(["bundle", "validate", str(tmp_path)]) == 0
    assert capsys.readouterr().out == ""


def test_bundle_validate_rejects_empty_directory(tmp_path, capsys):
    assert main(["bundle", "validate", str(tmp_path)]) == 1
    assert f"validating bundle {tmp_path}" in capsys.readouterr().out


def test_bundle_validate_requires_path():
    with pytest.raises(SystemExit) as excinfo:
        main(["bundle", "validate"])
    assert excinfo.value.code == 2


def test_verbose_flag_anywhere():
    parser = build_parser()
    assert parser.parse_args(["-v", "version"]).verbose is True
    assert parser.parse_args(["version", "-v"]).verbose is True
    assert parser.parse_args(["version"]).verbose is False


def test_invalid_env_rejected():
    with pytest.raises(ValueError, match="is not a valid environment"):
        ValidateOptions(env="dev").verify_flags()


@pytest.mark.parametrize("version", ["", "latest", "1.2.3"])
def test_valid_versions_accepted(version):
    options = ValidateOptions(env="stage", version=version)
    assert options.verify_flags() is None


def test_invalid_version_rejected():
    with pytest.raises(ValueError, match="is not a valid version"):
        ValidateOptions(env="production", version="abc").verify_flags()


def test_enabled_and_disabled_are_exclusive():
    options = ValidateOptions(env="stage", version="latest", enabled="a", disabled="b")
    with pytest.raises(ValueError, match="mutually exclusive"):
        options.verify_flags()


def test_exclusivity_not_checked_without_version():
    options = ValidateOptions(env="integration", enabled="a", disabled="b")
    assert options.verify_flags() is None