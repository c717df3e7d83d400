"""Loading of an add-on's metadata, merged with its image set."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from addonmeta.api import AddonImageSetSpec, AddonMetadataSpec

_log = logging.getLogger(__name__)


class MetaLoaderError(Exception):
    """The add-on metadata or image set could not be loaded."""


def latest_image_set_version(directory: str | os.PathLike[str]) -> str:
    """Return the file name in ``directory`` that sorts last."""
    names = os.listdir(directory)
    if not names:
        raise MetaLoaderError("No imageset present in the directory.")
    return max(names)


class MetaLoader:
    """Loads ``metadata/<env>/addon.yaml`` and the image set it refers to."""

    def __init__(self, addon_dir: str | os.PathLike[str], env: str, version: str = "") -> None:
        self.addon_dir = Path(addon_dir)
        self.addon_name = self.addon_dir.name
        self.env = env
        self.version = version

    def load(self) -> AddonMetadataSpec:
        """Return the metadata, combined with its image set when it uses one."""
        meta = self._read_meta()
        if meta.index_image is None and meta.image_set_version is None:
            raise MetaLoaderError(
                "No validation support for legacy addon. Please use the imageSet feature."
            )
        if meta.index_image is not None and meta.image_set_version is not None:
            raise MetaLoaderError(
                "Can't set both the 'indexImage' and the 'imageSetVersion' field."
            )
        if meta.image_set_version is None:
            return meta

        try:
            image_set = self._read_image_set(meta.image_set_version)
        except (OSError, ValueError, MetaLoaderError) as err:
            raise MetaLoaderError(f"Could not read imageSet, got {err}.") from err
        try:
            return meta.combine_with_image_set(image_set)
        except ValueError as err:
            raise MetaLoaderError(
                f"Could not combine metadata and imageset, got {err}."
            ) from err

    def _read_meta(self) -> AddonMetadataSpec:
        data = (self.addon_dir / "metadata" / self.env / "addon.yaml").read_text()
        _log.debug("Raw metadata read from addon: %s.\n%s", self.addon_name, data)
        return AddonMetadataSpec.from_yaml(data)

    def _read_image_set(self, default_version: str) -> AddonImageSetSpec:
        version = self.version or default_version
        data = self._image_set_path(version).read_text()
        _log.debug("Raw imageSet read from addon: %s.\n%s", self.addon_name, data)
        return AddonImageSetSpec.from_yaml(data)

    def _image_set_path(self, version: str) -> Path:
        base_dir = self.addon_dir / "addonimagesets" / self.env
        if version == "latest":
            return base_dir / latest_image_set_version(base_dir)
        return base_dir / f"{self.addon_name}.v{version}.yaml"