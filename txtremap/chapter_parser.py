"""Detect and normalise chapter headings in plain-text novels.

This module contains helpers for:

* Scanning document lines for chapter-number candidates written with Arabic
  digits or Chinese numerals.
* Rejecting candidates that are not real headings (dates, times, prose lines
  with stray numbers, implausible values).
* Selecting the longest increasing run of chapter numbers and folding the
  remaining candidates back into the chapters around them.
* Rebuilding the text with canonical ``第N章`` headings.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable
import re

import cn2an

# Heading lines longer than this are treated as prose.
MAX_HEADING_LENGTH = 30
# Chapter numerals must start within the first few characters of the line.
MAX_NUMBER_OFFSET = 2
# Values above ``candidate count + MAGNITUDE_MARGIN`` are decoding accidents.
MAGNITUDE_MARGIN = 1000
# Allowed distance of a non-backbone candidate from the last accepted number.
MAX_FORWARD_JUMP = 300
MAX_BACKWARD_JUMP = 10

_NUMBER_PATTERN = re.compile(r"[0-9]+")
_CHINESE_NUMBER_PATTERN = re.compile(r"[零一二三四五六七八九十百千万]+")

_DATE_PATTERN = re.compile(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}", re.ASCII)
_TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}(:\d{2})?", re.ASCII)
_DATETIME_PATTERN = re.compile(
    r"\d{4}[-/]\d{1,2}[-/]\d{1,2}.*?\d{1,2}:\d{2}(:\d{2})?", re.ASCII
)
# Whitespace and byte-order marks around a line.
_EDGE_PATTERN = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")

_HEADING_PREFIX = "第"
_HEADING_CLASSIFIERS = "章回节"
_HEADING_DELIMITERS = r"、\-:：."
_TRAILING_PUNCTUATION = "!！？?;；\"”"


@dataclass
class ChapterMatch:
    """A line that may start a chapter, plus the lines that follow it.

    Parameters
    ----------
    id :
        Position in scan order. ``0`` is reserved for the preamble sentinel
        holding the lines before the first candidate.
    number :
        Decoded chapter number (``0`` for the sentinel).
    original_number :
        Numeral exactly as it appears in the line.
    extended_original_number :
        ``original_number`` widened with adjacent heading marks such as
        ``第``, ``章`` or a trailing ``、``.
    lines :
        Trimmed document lines owned by this record, starting with the
        matching line.
    line_number :
        Zero-based index of the matching line in the document.
    skip :
        When set, the record does not open a new chapter.
    invalid :
        When set, the record is not a chapter marker and its lines are merged
        into the previous retained record. Implies ``skip``.
    """

    id: int
    number: int
    original_number: str
    extended_original_number: str
    lines: list[str] = field(default_factory=list)
    line_number: int = 0
    skip: bool = False
    invalid: bool = False

    @property
    def is_sentinel(self) -> bool:
        return self.id == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "original_number": self.original_number,
            "extended_original_number": self.extended_original_number,
            "line_number": self.line_number,
            "skip": self.skip,
            "invalid": self.invalid,
            "lines": list(self.lines),
        }


@dataclass
class Chapter:
    """A rebuilt chapter: canonical heading plus body text."""

    title: str
    content: str


def process_text(text: str) -> list[ChapterMatch]:
    """Return the reconciled chapter records for *text*.

    Runs the scanner, the validity filter, the sequence selector and the
    reconciler in order. The result always starts with the preamble sentinel.
    """

    return merge_invalid_matches(classify_text(text))


def normalize_chapters(text: str) -> str:
    """Return *text* rebuilt with one canonical heading per chapter."""

    return build_chapters(process_text(text))


def classify_text(text: str) -> list[ChapterMatch]:
    """Return every candidate of *text* with its ``skip``/``invalid`` flags.

    Same as :func:`process_text` without the final merge, so invalid
    candidates are still present as separate records.
    """

    matches = scan_text(text)
    filter_invalid_matches(matches)
    find_longest_increasing_sequence(matches)
    return matches


def scan_text(text: str) -> list[ChapterMatch]:
    """Split *text* into lines and scan them for chapter candidates."""

    return find_chapter_numbers(text.split("\n"))


def trim_line(line: str) -> str:
    """Strip whitespace and byte-order marks from both ends of *line*."""

    return _EDGE_PATTERN.sub("", line)


def find_chapter_numbers(lines: Iterable[str]) -> list[ChapterMatch]:
    """Scan *lines* and return candidate records, sentinel first.

    Each line is trimmed. A line containing Arabic digits (checked first) or
    Chinese numerals opens a new record; any other line is appended to the
    record currently open, which starts out as the sentinel.
    """

    sentinel = ChapterMatch(id=0, number=0, original_number="", extended_original_number="")
    matches: list[ChapterMatch] = [sentinel]
    current = sentinel

    for line_number, raw_line in enumerate(lines):
        line = trim_line(raw_line)

        m = _NUMBER_PATTERN.search(line)
        if m:
            number = int(m.group(0))
        else:
            m = _CHINESE_NUMBER_PATTERN.search(line)
            number = decode_chinese_number(m.group(0)) if m else 0

        if m is None:
            current.lines.append(line)
            continue

        current = ChapterMatch(
            id=len(matches),
            number=number,
            original_number=m.group(0),
            extended_original_number=find_extended_original_number(m.group(0), line),
            lines=[line],
            line_number=line_number,
        )
        matches.append(current)

    return matches


def decode_chinese_number(text: str) -> int:
    """Decode a run of Chinese numerals such as ``一百零三`` into an int.

    Runs that do not form a valid numeral (for example ``万万``) decode to
    ``0`` so the validity filter rejects them.
    """

    try:
        value = cn2an.cn2an(text, "smart")
    except ValueError:
        return 0
    return int(value)


def find_extended_original_number(original_number: str, line: str) -> str:
    """Return *original_number* widened with the heading marks around it.

    Examples
    --------
    >>> find_extended_original_number("七", "第七章、风起")
    '第七章、'
    >>> find_extended_original_number("12", "12. Title")
    '12.'
    """

    if not original_number:
        return ""

    pattern = re.compile(
        f"{_HEADING_PREFIX}?{re.escape(original_number)}"
        f"[{_HEADING_CLASSIFIERS}]?[{_HEADING_DELIMITERS}]?"
    )
    m = pattern.search(line)
    if m:
        return m.group(0)
    return original_number


def filter_invalid_matches(matches: list[ChapterMatch]) -> None:
    """Mark candidates whose first line cannot be a chapter heading.

    A candidate becomes ``invalid`` (and ``skip``) when any of the following
    holds for its first line:

    * the line is longer than :data:`MAX_HEADING_LENGTH`;
    * the numeral is part of a date, a time or a date followed by a time;
    * the numeral is directly followed by ``!``, ``?``, ``;`` or a closing
      quote (optionally after one space);
    * the extended numeral starts after :data:`MAX_NUMBER_OFFSET`;
    * the number is not positive;
    * the number exceeds the candidate count plus :data:`MAGNITUDE_MARGIN`.

    The sentinel is never inspected.
    """

    limit = len(matches) + MAGNITUDE_MARGIN

    for match in matches:
        if match.is_sentinel:
            continue

        line = match.lines[0]

        if len(line) > MAX_HEADING_LENGTH:
            match.invalid = True

        if any(
            _is_special_string(line, pattern, match.original_number)
            for pattern in (_DATE_PATTERN, _TIME_PATTERN, _DATETIME_PATTERN)
        ):
            match.invalid = True

        punctuation = re.compile(
            f"{re.escape(match.original_number)} ?[{re.escape(_TRAILING_PUNCTUATION)}]"
        )
        if _is_special_string(line, punctuation, match.original_number):
            match.invalid = True

        if line.find(match.extended_original_number) > MAX_NUMBER_OFFSET:
            match.invalid = True

        if match.number <= 0 or match.number > limit:
            match.invalid = True

        if match.invalid:
            match.skip = True


def _is_special_string(line: str, pattern: re.Pattern[str], original_number: str) -> bool:
    m = pattern.search(line)
    return bool(m) and original_number in m.group(0)


def find_longest_increasing_sequence(matches: list[ChapterMatch]) -> list[int]:
    """Select the backbone of real chapter markers and flag the rest.

    The backbone is the longest subsequence of non-skipped records whose
    numbers strictly increase. Records outside it become ``skip``; those
    whose number is more than :data:`MAX_FORWARD_JUMP` above or
    :data:`MAX_BACKWARD_JUMP` below the last backbone number seen so far are
    also marked ``invalid``.

    Parameters
    ----------
    matches :
        Records produced by :func:`find_chapter_numbers` after
        :func:`filter_invalid_matches`. Flags are updated in place.

    Returns
    -------
    list[int]
        Ids of the backbone records in document order, sentinel included.
    """

    if not matches:
        return []

    n = len(matches)
    dp = [1] * n
    prev = [-1] * n

    for i in range(1, n):
        if matches[i].skip:
            continue
        for j in range(i):
            if matches[j].skip:
                continue
            if matches[j].number < matches[i].number and dp[j] + 1 > dp[i]:
                dp[i] = dp[j] + 1
                prev[i] = j

    # First index holding the maximum length.
    max_index = max(range(n), key=lambda idx: (dp[idx], -idx))

    sequence: list[ChapterMatch] = []
    current = max_index
    while current != -1:
        sequence.append(matches[current])
        current = prev[current]
    sequence.reverse()

    # Later records with the same number replace earlier ones.
    by_number: dict[int, ChapterMatch] = {}
    for match in sequence:
        by_number[match.number] = match
    final_ids = {match.id for match in by_number.values()}

    last_seq_number = 0
    for match in matches:
        if not match.is_sentinel and match.id not in final_ids:
            match.skip = True
            if (
                match.number > last_seq_number + MAX_FORWARD_JUMP
                or match.number < last_seq_number - MAX_BACKWARD_JUMP
            ):
                match.invalid = True
        if not match.skip and not match.invalid:
            last_seq_number = match.number

    return [match.id for match in by_number.values()]


def merge_invalid_matches(matches: Iterable[ChapterMatch]) -> list[ChapterMatch]:
    """Fold invalid records into the record retained before them.

    Returns new records; the input records are left untouched. Records that
    are ``skip`` but not ``invalid`` are kept as separate entries.
    """

    merged: list[ChapterMatch] = []
    for match in matches:
        if not match.invalid or match.is_sentinel or not merged:
            merged.append(replace(match, lines=list(match.lines)))
        else:
            merged[-1].lines.extend(match.lines)
    return merged


def build_chapters(matches: Iterable[ChapterMatch]) -> str:
    """Rebuild the document text from reconciled records.

    A ``skip`` record adds its lines to the chapter in progress. Any other
    record closes that chapter and opens a new one titled ``第N章`` (or with
    no title when its number is not positive) whose first line is the
    heading line without its extended numeral.
    """

    chapters: list[Chapter] = []

    title = ""
    lines: list[str] = []
    for match in matches:
        if match.skip:
            lines.extend(match.lines)
            continue

        if title or lines:
            chapters.append(Chapter(title=title, content="\n".join(lines)))
            lines = []

        title = chapter_title(match.number)
        if match.lines:
            heading = match.lines[0].replace(match.extended_original_number, "", 1).strip()
            lines.append(heading)
            lines.extend(match.lines[1:])

    if title or lines:
        chapters.append(Chapter(title=title, content="\n".join(lines)))

    return format_chapters(chapters)


def chapter_title(number: int) -> str:
    return f"第{number}章" if number > 0 else ""


def format_chapters(chapters: Iterable[Chapter]) -> str:
    """Join chapters with blank lines, prefixing each body with its title."""

    blocks: list[str] = []
    for chapter in chapters:
        if not chapter.title:
            blocks.append(chapter.content)
        else:
            blocks.append(f"{chapter.title} {chapter.content}")
    return "\n\n".join(blocks)
