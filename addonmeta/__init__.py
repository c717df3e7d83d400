"""Load, combine and check managed add-on metadata, image sets and operator bundles."""

__version__ = "0.1.0"