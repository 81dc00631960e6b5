"""Command line interface for the txt-remap tool."""

from __future__ import annotations

import argparse
from pathlib import Path
from urllib.parse import urlparse

import requests
from rich.console import Console
from rich.markup import escape

from . import __version__
from .chapter_parser import (
    ChapterMatch,
    chapter_title,
    classify_text,
    process_text,
)
from .progress import TimingReport, timed_step, track_files
from .remap import OUTPUT_SUFFIX, normalize_file
from .utils import (
    download_text_file,
    dump_json,
    ensure_file,
    ensure_output_path,
    read_text,
)

console = Console()

_PREVIEW_WIDTH = 40


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txt-remap",
        description=(
            "Detect chapter markers in plain-text novels and rewrite them "
            "as canonical numbered headings."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    parser._subparsers_action = subparsers  # type: ignore[attr-defined]

    help_parser = subparsers.add_parser(
        "help",
        help="Show help for the CLI or a specific command.",
    )
    help_parser.add_argument(
        "topic",
        type=str,
        nargs="?",
        default=None,
        help="Command name to show help for (e.g. 'normalize').",
    )
    help_parser.set_defaults(func=_run_help)

    normalize_parser = subparsers.add_parser(
        "normalize",
        help="Rewrite chapter headings of one or more text files.",
    )
    normalize_parser.add_argument(
        "inputs",
        type=Path,
        metavar="INPUT",
        nargs="*",
        help="Path(s) to the source text file(s).",
    )
    normalize_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help=(
            f"Output path (single source only; defaults to <name>{OUTPUT_SUFFIX}<ext> "
            "next to the input)."
        ),
    )
    normalize_parser.add_argument(
        "--remote-url",
        type=str,
        default=None,
        help="Remote text file URL to download and normalise.",
    )
    normalize_parser.add_argument(
        "--encoding",
        type=str,
        default="utf-8",
        help="Encoding of the source file(s) (default: utf-8). Output is always UTF-8.",
    )
    normalize_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview detected chapters without writing any file.",
    )
    normalize_parser.set_defaults(func=_run_normalize)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="List chapter candidates and how they were classified.",
    )
    inspect_parser.add_argument(
        "input",
        type=Path,
        metavar="INPUT",
        help="Path to the source text file.",
    )
    inspect_parser.add_argument(
        "--encoding",
        type=str,
        default="utf-8",
        help="Encoding of the source file (default: utf-8).",
    )
    inspect_parser.add_argument(
        "--all",
        dest="show_all",
        action="store_true",
        help="Show every candidate before invalid ones are merged away.",
    )
    inspect_parser.add_argument(
        "--json",
        dest="json_path",
        type=Path,
        default=None,
        help="Also write the candidate records to this JSON file.",
    )
    inspect_parser.set_defaults(func=_run_inspect)

    return parser


def _run_normalize(args: argparse.Namespace) -> None:
    report = TimingReport()
    inputs: list[Path] = list(args.inputs or [])

    if not inputs and not args.remote_url:
        console.print("[red]Provide an input path or --remote-url.[/]")
        raise SystemExit(1)
    if inputs and args.remote_url:
        console.print("[red]Choose only one of input path(s) or --remote-url.[/]")
        raise SystemExit(1)
    if args.output is not None and len(inputs) > 1:
        console.print("[red]--output can only be used with a single input.[/]")
        raise SystemExit(1)

    if args.remote_url:
        try:
            with timed_step("Downloaded remote text", report):
                temp_download = _download_to_temp(args.remote_url)
        except requests.RequestException as exc:
            console.print(f"[red]Failed to download remote text: {escape(str(exc))}[/]")
            raise SystemExit(3) from exc

        output = args.output
        if output is None:
            stem = _derive_output_stem(args.remote_url)
            output = Path.cwd() / f"{stem}{OUTPUT_SUFFIX}.txt"
        try:
            _normalize_one(temp_download, output, args, report, label=args.remote_url)
        finally:
            temp_download.unlink(missing_ok=True)
        report.print_summary()
        return

    sources: list[Path] = []
    for path in inputs:
        try:
            sources.append(ensure_file(path))
        except FileNotFoundError as err:
            console.print(f"[red]{escape(str(err))}[/]")
            raise SystemExit(1) from err

    if len(sources) == 1:
        _normalize_one(sources[0], args.output, args, report)
    else:
        for source in track_files(sources):
            _normalize_one(source, None, args, report)

    report.print_summary()


def _normalize_one(
    source: Path,
    output: Path | None,
    args: argparse.Namespace,
    report: TimingReport,
    *,
    label: str | None = None,
) -> None:
    name = label or str(source)
    try:
        if args.dry_run:
            with timed_step(f"Analysed {name}", report) as step:
                matches = process_text(read_text(source, encoding=args.encoding))
                chapters = sum(1 for m in matches if not m.skip and m.number > 0)
                step.details = f"{chapters} chapters"
            _print_chapter_preview(matches)
            return

        with timed_step(f"Normalised {name}", report) as step:
            result = normalize_file(source, output, encoding=args.encoding)
            step.details = result.summary
    except UnicodeDecodeError as err:
        console.print(
            f"[red]Cannot decode {escape(name)} as {args.encoding}: {err}[/]\n"
            "[yellow]Try --encoding gb18030 for GBK-encoded novels.[/]"
        )
        raise SystemExit(4) from err

    console.print(
        f"[green]Successfully normalized chapters from {escape(name)} "
        f"to {escape(str(result.output_path))}[/]"
    )


def _run_inspect(args: argparse.Namespace) -> None:
    try:
        source = ensure_file(args.input)
        text = read_text(source, encoding=args.encoding)
    except FileNotFoundError as err:
        console.print(f"[red]{escape(str(err))}[/]")
        raise SystemExit(1) from err
    except UnicodeDecodeError as err:
        console.print(f"[red]Cannot decode {escape(str(args.input))} as {args.encoding}: {err}[/]")
        raise SystemExit(4) from err

    if args.show_all:
        matches = classify_text(text)
    else:
        matches = process_text(text)

    _print_match_table(matches)

    if args.json_path is not None:
        target = ensure_output_path(args.json_path)
        dump_json([match.to_dict() for match in matches], target)
        console.print(f"[green]Wrote {len(matches)} records to {escape(str(target))}[/]")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        raise SystemExit(0)

    args.func(args)


def _derive_output_stem(remote_url: str) -> str:
    candidate = Path(urlparse(remote_url).path).stem
    return candidate or "remote_document"


def _download_to_temp(url: str) -> Path:
    return download_text_file(url)


def _describe_flags(match: ChapterMatch) -> str:
    if match.is_sentinel:
        return "preamble"
    if match.invalid:
        return "invalid"
    if match.skip:
        return "skip"
    return "chapter"


def _print_match_table(matches: list[ChapterMatch]) -> None:
    if len(matches) <= 1:
        console.print("[yellow]No chapter candidates found.[/]")

    console.print("[b]Chapter candidates[/]")
    for match in matches:
        first_line = match.lines[0] if match.lines else ""
        console.print(
            f"  #{match.id:<4} line {match.line_number + 1:<6} "
            f"{match.number:>6}  {_describe_flags(match):<8} "
            f"({len(match.lines)} lines) {escape(first_line[:_PREVIEW_WIDTH])}"
        )


def _print_chapter_preview(matches: list[ChapterMatch]) -> None:
    chapters = [match for match in matches if not match.skip and match.number > 0]
    if not chapters:
        console.print("[yellow]No chapters detected.[/]")
        return

    console.print(f"[b]Chapter Preview[/] ({len(chapters)} chapters)")
    for match in chapters:
        heading = match.lines[0].replace(match.extended_original_number, "", 1).strip()
        console.print(
            f"  - {chapter_title(match.number)} {escape(heading[:_PREVIEW_WIDTH])}"
            f" [dim](line {match.line_number + 1})[/]"
        )


def _run_help(args: argparse.Namespace) -> None:
    parser = build_parser()
    subparsers = getattr(parser, "_subparsers_action", None)
    topic = args.topic

    if topic and isinstance(subparsers, argparse._SubParsersAction):
        subparser = subparsers.choices.get(topic)
        if subparser:
            subparser.print_help()
            return
        console.print(f"[yellow]Unknown command '{topic}'. Showing available commands.[/]")

    parser.print_help()
    if topic is None and isinstance(subparsers, argparse._SubParsersAction):
        normalize_parser = subparsers.choices.get("normalize")
        if normalize_parser:
            console.print("\n[b]normalize command options:[/]")
            console.print(normalize_parser.format_help(), markup=False, highlight=False)


if __name__ == "__main__":
    main()
