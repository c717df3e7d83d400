"""Caches of extracted bundles and of the bundle images held by index images."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod

from addonmeta.operator import Bundle
from addonmeta.store import Store, ThreadSafeStore

# Cache key meaning "all bundles of all packages in the index image".
ALL_BUNDLES_KEY = "__ALL__"


class InvalidCacheDataError(ValueError):
    """The cache holds data of an unexpected kind under the requested key."""


class BundleCache(ABC):
    """A cache of bundles keyed by bundle image name."""

    @abstractmethod
    def get_bundle(self, image: str) -> Bundle | None:
        """Return the cached bundle for ``image``, or None on a miss."""

    @abstractmethod
    def set_bundle(self, image: str, bundle: Bundle) -> None:
        """Cache ``bundle`` for ``image``."""


class IndexCache(ABC):
    """A cache of bundle images per package, keyed by index image."""

    @abstractmethod
    def get_bundle_images(self, index_image: str, cache_key: str) -> list[str] | None:
        """Return cached bundle images for a package, or None on a miss."""

    @abstractmethod
    def set_bundle_images(
        self, index_image: str, bundle_images_map: dict[str, list[str]]
    ) -> None:
        """Cache a mapping of package name to bundle images for ``index_image``."""


def _default_store(store: Store | None) -> Store:
    return ThreadSafeStore() if store is None else store


class BundleCacheImpl(BundleCache):
    """A bundle cache backed by a Store."""

    def __init__(self, store: Store | None = None) -> None:
        self._store = _default_store(store)

    def get_bundle(self, image: str) -> Bundle | None:
        try:
            data = self._store.read(image)
        except KeyError:
            return None
        if not isinstance(data, Bundle):
            raise InvalidCacheDataError("invalid bundle data")
        return copy.deepcopy(data)

    def set_bundle(self, image: str, bundle: Bundle) -> None:
        self._store.write(image, copy.deepcopy(bundle))


class IndexCacheImpl(IndexCache):
    """An index cache backed by a Store."""

    def __init__(self, store: Store | None = None) -> None:
        self._store = _default_store(store)

    def get_bundle_images(self, index_image: str, cache_key: str) -> list[str] | None:
        """Return the cached images for ``cache_key``.

        ``ALL_BUNDLES_KEY`` selects every package. None is returned when
        nothing matching is cached.
        """
        try:
            data = self._store.read(index_image)
        except KeyError:
            return None
        if not isinstance(data, dict):
            raise InvalidCacheDataError("invalid index data")
        result = [
            image
            for pkg_name, images in data.items()
            if cache_key == ALL_BUNDLES_KEY or pkg_name == cache_key
            for image in images
        ]
        return result or None

    def set_bundle_images(
        self, index_image: str, bundle_images_map: dict[str, list[str]]
    ) -> None:
        data = {pkg: list(images) for pkg, images in bundle_images_map.items()}
        self._store.write(index_image, data)