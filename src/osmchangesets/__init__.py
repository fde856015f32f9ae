"""Streaming decoder and statistics for OpenStreetMap changeset dumps.

Example:
    >>> from osmchangesets import __version__
    >>> __version__.split(".")[0]
    '0'
"""

from importlib import metadata

try:
    __version__ = metadata.version("osm-changesets")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

__all__ = ["__version__"]
