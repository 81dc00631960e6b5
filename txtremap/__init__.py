"""txt-remap: rebuild the chapter headings of plain-text novels."""

from importlib import metadata as _md

__all__ = [
    "chapter_parser",
    "cli",
    "progress",
    "remap",
    "utils",
]

try:
    __version__ = _md.version("txt-remap")
except _md.PackageNotFoundError:  # pragma: no cover - source checkout without install
    __version__ = "0.0.0"
