from __future__ import annotations

from pathlib import Path

import pytest

from txtremap.remap import default_output_path, normalize_file, remap_text


def test_default_output_path():
    assert default_output_path(Path("books/novel.txt")) == Path("books/novel_normalized.txt")
    assert default_output_path("notes") == Path("notes_normalized")


def test_remap_text_counts():
    text = "\n".join(["序", "第1章 甲", "第2章 乙", "第3章 " + "长" * 40, "第3章 丙"])

    result = remap_text(text)

    assert result.candidates == 4
    assert result.chapters == 3
    assert result.merged == 1
    assert result.output_path is None
    assert result.summary == "3 chapters, 1 of 4 candidates merged"
    assert result.text.startswith("序\n\n第1章 甲")


def test_remap_text_without_candidates():
    result = remap_text("只有正文")
    assert (result.candidates, result.chapters, result.merged) == (0, 0, 0)
    assert result.text == "只有正文"


def test_normalize_file_writes_next_to_input(tmp_path):
    src = tmp_path / "novel.txt"
    src.write_text("序\n第一章 开端\n正文", encoding="utf-8")

    result = normalize_file(src)

    assert result.output_path == (tmp_path / "novel_normalized.txt").resolve()
    assert result.output_path.read_text(encoding="utf-8") == "序\n\n第1章 开端\n正文"
    assert result.chapters == 1


def test_normalize_file_explicit_output_creates_directories(tmp_path):
    src = tmp_path / "novel.txt"
    src.write_text("第1章 甲\n正文", encoding="utf-8")
    target = tmp_path / "out" / "nested" / "result.txt"

    result = normalize_file(src, target)

    assert result.output_path == target.resolve()
    assert target.read_text(encoding="utf-8") == "第1章 甲\n正文"


def test_normalize_file_reads_other_encodings(tmp_path):
    src = tmp_path / "gbk.txt"
    src.write_bytes("第二章 归来\n正文".encode("gb18030"))

    result = normalize_file(src, encoding="gb18030")

    assert result.output_path.read_text(encoding="utf-8") == "第2章 归来\n正文"


def test_normalize_file_drops_byte_order_mark(tmp_path):
    src = tmp_path / "bom.txt"
    src.write_text("第1章 甲\n正文", encoding="utf-8-sig")

    result = normalize_file(src)

    assert result.output_path.read_bytes() == "第1章 甲\n正文".encode("utf-8")


def test_normalize_file_missing_input(tmp_path):
    missing = tmp_path / "missing.txt"
    with pytest.raises(FileNotFoundError):
        normalize_file(missing)
    assert not (tmp_path / "missing_normalized.txt").exists()
