"""Path, text and JSON helpers shared by the CLI and the file wrapper."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests


def ensure_file(path: str | Path) -> Path:
    """Return the resolved *path*, or raise FileNotFoundError."""

    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    return resolved


def ensure_output_path(path: str | Path) -> Path:
    resolved = Path(path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def read_text(path: str | Path, encoding: str = "utf-8") -> str:
    """Read a whole text file without translating ``\\r\\n``."""

    with Path(path).open("r", encoding=encoding, newline="") as fp:
        return fp.read()


def write_text(text: str, path: str | Path) -> None:
    with Path(path).open("w", encoding="utf-8", newline="") as fp:
        fp.write(text)


def dump_json(data: Any, path: str | Path) -> None:
    """Write *data* as indented UTF-8 JSON, keeping CJK characters readable."""

    with Path(path).open("w", encoding="utf-8") as fp:
        json.dump(data, fp, ensure_ascii=False, indent=2)


def download_text_file(url: str, *, timeout: int = 60, chunk_size: int = 65536) -> Path:
    """Stream the text file at *url* into a temporary file.

    The temporary file keeps the URL's extension (``.txt`` when there is
    none) and must be removed by the caller.

    Raises
    ------
    requests.RequestException
        On network errors or a non-2xx status.
    """

    suffix = Path(urlparse(url).path).suffix or ".txt"
    with requests.get(url, timeout=timeout, stream=True) as resp:
        resp.raise_for_status()
        with tempfile.NamedTemporaryFile(delete=False, prefix="remap-", suffix=suffix) as tmp:
            for chunk in resp.iter_content(chunk_size=chunk_size):
                if chunk:
                    tmp.write(chunk)
    return Path(tmp.name)
