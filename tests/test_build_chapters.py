"""Tests for rebuilding normalised text from reconciled chapter records."""

from __future__ import annotations

import re

from txtremap.chapter_parser import (
    Chapter,
    build_chapters,
    chapter_title,
    format_chapters,
    normalize_chapters,
    process_text,
)

MESSY_DOCUMENT = "\n".join(
    [
        "简介",
        "第一章 起",
        "他在2024-03-15 08:30出门",
        "第2章 承",
        "一个人",
        "第3章 转",
        "第50章 错",
        "3. 列表项",
        "第4章 合",
        "  尾声  ",
    ]
)


class TestBuildChapters:
    def test_heading_synthesis_strips_marker(self) -> None:
        assert normalize_chapters("第七章、风起\n山雨欲来") == "第7章 风起\n山雨欲来"

    def test_preamble_is_emitted_without_title(self) -> None:
        text = "序\n第1章 开端\n正文"
        assert normalize_chapters(text) == "序\n\n第1章 开端\n正文"

    def test_salvaged_candidate_stays_inside_previous_chapter(self) -> None:
        text = "\n".join(["第1章 甲", "第2章 乙", "第3章 丙", "第2章 重复", "第4章 丁"])
        assert normalize_chapters(text) == (
            "第1章 甲\n\n第2章 乙\n\n第3章 丙\n第2章 重复\n\n第4章 丁"
        )

    def test_stray_number_merges_into_previous_chapter(self) -> None:
        text = "\n".join(
            ["第98章 甲", "正文", "第99章 乙", "正文", "第50章 丙", "正文", "第100章 丁", "正文"]
        )
        assert normalize_chapters(text) == (
            "第98章 甲\n正文\n\n"
            "第99章 乙\n正文\n第50章 丙\n正文\n\n"
            "第100章 丁\n正文"
        )

    def test_date_line_is_body_text(self) -> None:
        text = "第1章 开端\n2024-03-15 08:30 happened\n第2章 结局"
        assert normalize_chapters(text) == (
            "第1章 开端\n2024-03-15 08:30 happened\n\n第2章 结局"
        )

    def test_windows_line_endings_are_trimmed(self) -> None:
        assert normalize_chapters("第1章 甲\r\n正文\r\n") == "第1章 甲\n正文\n"

    def test_byte_order_mark_is_dropped(self) -> None:
        assert normalize_chapters("\ufeff第1章 开始\n正文") == "第1章 开始\n正文"

    def test_empty_input(self) -> None:
        assert normalize_chapters("") == ""
        assert build_chapters([]) == ""

    def test_chapter_title(self) -> None:
        assert chapter_title(12) == "第12章"
        assert chapter_title(0) == ""

    def test_format_chapters(self) -> None:
        chapters = [Chapter(title="", content="前言"), Chapter(title="第1章", content="内容")]
        assert format_chapters(chapters) == "前言\n\n第1章 内容"


class TestPipelineProperties:
    def test_lines_are_conserved(self) -> None:
        records = process_text(MESSY_DOCUMENT)
        recovered = [line for record in records for line in record.lines]
        assert recovered == [line.strip() for line in MESSY_DOCUMENT.split("\n")]

    def test_sentinel_is_retained(self) -> None:
        records = process_text(MESSY_DOCUMENT)
        assert records[0].id == 0
        assert not records[0].invalid
        assert records[0].lines[0] == "简介"

        records = process_text("")
        assert len(records) == 1
        assert records[0].lines == [""]

    def test_backbone_is_strictly_increasing(self) -> None:
        records = process_text(MESSY_DOCUMENT)
        numbers = [
            r.number for r in records if r.id != 0 and not r.skip and not r.invalid
        ]
        assert numbers
        assert all(a < b for a, b in zip(numbers, numbers[1:]))

    def test_no_record_is_invalid_after_reconciliation(self) -> None:
        records = process_text(MESSY_DOCUMENT)
        assert not any(r.invalid for r in records)

    def test_renormalising_keeps_headings(self) -> None:
        text = "第1章 甲\n正文\n第2章 乙\n正文\n第3章 丙\n正文"
        first = normalize_chapters(text)
        second = normalize_chapters(first)

        heading = re.compile(r"^第\d+章 \S+", re.MULTILINE)
        assert heading.findall(first) == ["第1章 甲", "第2章 乙", "第3章 丙"]
        assert heading.findall(second) == heading.findall(first)
