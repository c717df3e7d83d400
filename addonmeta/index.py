"""Extraction of bundle image names from operator index images."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from addonmeta.caches import ALL_BUNDLES_KEY, IndexCache, IndexCacheImpl


@dataclass(frozen=True)
class ListedBundle:
    """A bundle as listed by an index image: its package and image."""

    package: str
    image: str


# Lists the bundles of an index image; an empty package name lists all of them.
BundleLister = Callable[[str, str], Iterable[ListedBundle]]


class IndexExtractor(ABC):
    """Extracts bundle image names from an index image."""

    @abstractmethod
    def extract_bundle_images(self, index_image: str, pkg_name: str) -> list[str]:
        """Return the bundle images of ``pkg_name`` in ``index_image``."""

    @abstractmethod
    def extract_all_bundle_images(self, index_image: str) -> list[str]:
        """Return the bundle images of every package in ``index_image``."""


def parse_bundles(
    cache_key: str, bundles: Iterable[ListedBundle]
) -> tuple[list[str], dict[str, list[str]]]:
    """Split listed bundles into all images and a per-package map for ``cache_key``."""
    images: list[str] = []
    by_package: dict[str, list[str]] = {}
    for bundle in bundles:
        if cache_key == ALL_BUNDLES_KEY or bundle.package == cache_key:
            by_package.setdefault(bundle.package, []).append(bundle.image)
        images.append(bundle.image)
    return images, by_package


class DefaultIndexExtractor(IndexExtractor):
    """Index extractor that lists bundles through ``lister`` and caches the result."""

    def __init__(
        self,
        lister: BundleLister,
        cache: IndexCache | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._lister = lister
        self.cache = IndexCacheImpl() if cache is None else cache
        self.log = logging.getLogger(__name__) if log is None else log

    def extract_bundle_images(self, index_image: str, pkg_name: str) -> list[str]:
        self.log.debug(
            "extracting bundles for '%s', matching pkgName '%s'", index_image, pkg_name
        )
        return self._extract(index_image, pkg_name)

    def extract_all_bundle_images(self, index_image: str) -> list[str]:
        self.log.debug("extracting all bundles for '%s'", index_image)
        return self._extract(index_image, ALL_BUNDLES_KEY)

    def _extract(self, index_image: str, cache_key: str) -> list[str]:
        images = None
        try:
            images = self.cache.get_bundle_images(index_image, cache_key)
        except Exception as err:  # a broken cache only costs a re-listing
            self.log.warning("getting bundle images from cache: %s", err)

        if images is not None:
            self.log.debug("cache hit for '%s'", index_image)
            return sorted(images)

        self.log.debug("cache miss for '%s'", index_image)
        package = "" if cache_key == ALL_BUNDLES_KEY else cache_key
        images, by_package = parse_bundles(cache_key, self._lister(index_image, package))

        try:
            self.cache.set_bundle_images(index_image, by_package)
        except Exception as err:
            self.log.warning("caching bundle images: %s", err)

        return sorted(images)