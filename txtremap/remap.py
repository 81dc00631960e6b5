"""Normalise chapter headings of text files on disk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .chapter_parser import build_chapters, classify_text, merge_invalid_matches
from .utils import ensure_file, ensure_output_path, read_text, write_text

OUTPUT_SUFFIX = "_normalized"


@dataclass
class RemapResult:
    """Normalised text of one document plus what the pipeline did to it.

    Parameters
    ----------
    text :
        Rebuilt document.
    candidates :
        Lines that looked like chapter markers (sentinel excluded).
    chapters :
        Chapters emitted with a ``第N章`` heading.
    merged :
        Candidates rejected as markers and folded into a neighbour.
    output_path :
        Where the text was written, when it was.
    """

    text: str
    candidates: int
    chapters: int
    merged: int
    output_path: Path | None = None

    @property
    def summary(self) -> str:
        return f"{self.chapters} chapters, {self.merged} of {self.candidates} candidates merged"


def remap_text(text: str) -> RemapResult:
    matches = classify_text(text)
    records = merge_invalid_matches(matches)
    return RemapResult(
        text=build_chapters(records),
        candidates=len(matches) - 1,
        chapters=sum(1 for r in records if not r.skip and r.number > 0),
        merged=sum(1 for m in matches if m.invalid),
    )


def default_output_path(input_path: str | Path) -> Path:
    """Return ``<dir>/<stem>_normalized<suffix>`` for *input_path*."""

    path = Path(input_path)
    return path.with_name(f"{path.stem}{OUTPUT_SUFFIX}{path.suffix}")


def normalize_file(
    input_path: str | Path,
    output_path: str | Path | None = None,
    *,
    encoding: str = "utf-8",
) -> RemapResult:
    """Normalise the chapters of *input_path* and write the result.

    Parameters
    ----------
    input_path :
        Source text file.
    output_path :
        Destination file. Defaults to :func:`default_output_path`.
    encoding :
        Encoding of the source file. The output is always UTF-8.

    Returns
    -------
    RemapResult
        Counts for the document, with ``output_path`` set to the resolved
        path of the written file.

    Raises
    ------
    FileNotFoundError
        When *input_path* does not exist. Nothing is read or written.
    """

    source = ensure_file(input_path)
    result = remap_text(read_text(source, encoding=encoding))

    target = ensure_output_path(output_path or default_output_path(source))
    write_text(result.text, target)
    result.output_path = target
    return result
