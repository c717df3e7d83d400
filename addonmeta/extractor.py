"""Extraction of operator bundles from index and bundle images."""

from __future__ import annotations

import logging
import re
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import yaml

from addonmeta.caches import BundleCache, BundleCacheImpl
from addonmeta.index import IndexExtractor
from addonmeta.operator import (
    ANNOTATIONS_FILE,
    CHANNELS_ANNOTATION,
    MANIFESTS_DIR,
    METADATA_DIR,
    PACKAGE_ANNOTATION,
    Bundle,
    new_bundle_from_directory,
)

DEFAULT_TIMEOUT = 60.0

# Unpacks the content of a bundle image into a directory, within a timeout in seconds.
BundleUnpacker = Callable[[str, str, float], None]

_MAX_NAME_LENGTH = 255
_ALNUM = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|-+)"
_NAME_COMPONENT = rf"{_ALNUM}(?:{_SEPARATOR}{_ALNUM})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"
_REFERENCE = re.compile(
    rf"^(?P<name>(?:{_DOMAIN}/)?{_NAME_COMPONENT}(?:/{_NAME_COMPONENT})*)"
    rf"(?::{_TAG})?(?:@{_DIGEST})?$"
)


class TaglessImageError(ValueError):
    """The index image has no tag; its add-on is still being onboarded."""

    def __init__(self) -> None:
        super().__init__(
            "indexImage is tagless, skipping the addon as it is not onboarded"
        )


def validate_index_image(index_image: str) -> None:
    """Raise ValueError unless ``index_image`` is a usable, tagged image reference.

    A reference without any ':' raises TaglessImageError.
    """
    if not index_image:
        raise ValueError("invalid empty indexImage")
    if ":" not in index_image:
        raise TaglessImageError()
    match = _REFERENCE.match(index_image)
    if match is None or len(match.group("name")) > _MAX_NAME_LENGTH:
        raise ValueError(
            f"can't parse indexImage '{index_image}', got invalid reference format"
        )


class BundleExtractor(ABC):
    """Extracts a single bundle from its bundle image."""

    @abstractmethod
    def extract(self, bundle_image: str) -> Bundle:
        """Return the bundle contained in ``bundle_image``."""


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as err:
        raise ValueError(f"decoding {path.name}: {err}") from err


def _check_format(root: Path) -> None:
    manifests = root / MANIFESTS_DIR
    if not manifests.is_dir():
        raise ValueError(f"missing {MANIFESTS_DIR} directory")
    annotations_path = root / METADATA_DIR / ANNOTATIONS_FILE
    if not annotations_path.is_file():
        raise ValueError(f"missing {METADATA_DIR}/{ANNOTATIONS_FILE}")
    content = _load_yaml(annotations_path)
    annotations = content.get("annotations") if isinstance(content, Mapping) else None
    if not isinstance(annotations, Mapping):
        raise ValueError(f"{ANNOTATIONS_FILE} holds no annotations")
    for key in (PACKAGE_ANNOTATION, CHANNELS_ANNOTATION):
        if not annotations.get(key):
            raise ValueError(f"missing annotation {key!r}")


def _check_content(manifests: Path) -> None:
    csv_found = False
    for path in sorted(manifests.iterdir()):
        document = _load_yaml(path)
        if not isinstance(document, Mapping):
            raise ValueError(f"{path.name}: manifest is not an object")
        if not document.get("apiVersion") or not document.get("kind"):
            raise ValueError(f"{path.name}: manifest lacks apiVersion or kind")
        if document["kind"] == "ClusterServiceVersion":
            metadata = document.get("metadata")
            if not isinstance(metadata, Mapping) or not metadata.get("name"):
                raise ValueError(f"{path.name}: ClusterServiceVersion has no name")
            csv_found = True
    if not csv_found:
        raise ValueError("no ClusterServiceVersion found")


class DefaultBundleExtractor(BundleExtractor):
    """Unpacks, validates and caches bundles."""

    def __init__(
        self,
        unpacker: BundleUnpacker,
        cache: BundleCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        log: logging.Logger | None = None,
    ) -> None:
        self._unpacker = unpacker
        self.cache = BundleCacheImpl() if cache is None else cache
        self.timeout = timeout
        self.log = logging.getLogger(__name__) if log is None else log

    def extract(self, bundle_image: str) -> Bundle:
        cached = None
        try:
            cached = self.cache.get_bundle(bundle_image)
        except Exception as err:
            self.log.warning("retrieving bundle %r from cache: %s", bundle_image, err)

        if cached is not None:
            self.log.debug("cache hit for %r", bundle_image)
            return cached

        self.log.debug("cache miss for '%s'", bundle_image)
        with tempfile.TemporaryDirectory(prefix="bundle-") as directory:
            self.log.debug("unpacking bundleImage '%s' to '%s'", bundle_image, directory)
            self._unpacker(bundle_image, directory, self.timeout)
            try:
                self.validate_bundle(directory)
            except ValueError as err:
                raise ValueError(f"unpacking and validating bundle: {err}") from err
            bundle = new_bundle_from_directory(directory)

        bundle.bundle_image = bundle_image
        try:
            self.cache.set_bundle(bundle_image, bundle)
        except Exception as err:
            self.log.warning("caching bundle %r: %s", bundle_image, err)
        return bundle

    def validate_bundle(self, directory: str | Path) -> None:
        """Raise ValueError if the unpacked bundle in ``directory`` is malformed."""
        root = Path(directory)
        self.log.debug("validating the unpacked bundle from %s", root)
        try:
            _check_format(root)
        except (OSError, ValueError) as err:
            raise ValueError(f"bundle format validation failed: {err}") from err
        try:
            _check_content(root / MANIFESTS_DIR)
        except (OSError, ValueError) as err:
            raise ValueError(f"bundle content validation failed: {err}") from err


class MainExtractor:
    """Lists bundle images of an index image and extracts their bundles."""

    def __init__(
        self,
        index: IndexExtractor,
        bundle: BundleExtractor,
        log: logging.Logger | None = None,
    ) -> None:
        self.index = index
        self.bundle = bundle
        self.log = logging.getLogger(__name__) if log is None else log

    def extract_bundles(self, index_image: str, pkg_name: str) -> list[Bundle]:
        """Return the bundles of ``pkg_name`` held by ``index_image``.

        A tagless index image yields no bundles.
        """
        if not self._accept(index_image):
            return []
        if not pkg_name:
            self.log.error("invalid empty pkgName")
            raise ValueError("invalid empty pkgName")
        images = self.index.extract_bundle_images(index_image, pkg_name)
        return self._extract_concurrently(images)

    def extract_all_bundles(self, index_image: str) -> list[Bundle]:
        """Return the bundles of every package held by ``index_image``."""
        if not self._accept(index_image):
            return []
        images = self.index.extract_all_bundle_images(index_image)
        return self._extract_concurrently(images)

    def _accept(self, index_image: str) -> bool:
        try:
            validate_index_image(index_image)
        except TaglessImageError:
            self.log.info("skipping tagless image, nothing to extract")
            return False
        except ValueError as err:
            self.log.error("failed to validate indexImage: %s", err)
            raise
        return True

    def _extract_concurrently(self, images: list[str]) -> list[Bundle]:
        if not images:
            return []
        with ThreadPoolExecutor() as pool:
            futures = [pool.submit(self.bundle.extract, image) for image in images]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise