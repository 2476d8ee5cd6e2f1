#!/usr/bin/env python3
"""CLI entrypoint for the manual library."""
from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from manual_library.catalog import fileops, learning, load_learning_store, pdfmeta, renderer
from manual_library.catalog.library import LibrarySettings, ManualLibrary
from manual_library.catalog.locator import locate
from manual_library.catalog.reconcile import FormInput, MetadataSaver
from manual_library.catalog.scanner import ManualRecord
from manual_library.catalog.suggest import suggest

logger = logging.getLogger("manual_library.catalog.cli")


class LibraryPaths:
    def __init__(self, home: Path) -> None:
        self.home = home
        self.settings_path = home / "settings.json"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_paths(args: argparse.Namespace) -> LibraryPaths:
    return LibraryPaths(learning.resolve_home(getattr(args, "home", None)))


def open_store(paths: LibraryPaths) -> learning.LearningStore:
    return load_learning_store(paths.home)


def resolve_directory(value: str | None, paths: LibraryPaths) -> Path:
    if value:
        resolved = Path(value).expanduser().resolve()
    else:
        directories = LibrarySettings(paths.settings_path).directories
        if not directories:
            raise SystemExit("No directory given and no remembered directories. Run 'scan DIR'.")
        resolved = Path(directories[0])
    if not resolved.is_dir():
        raise SystemExit(f"Directory not found: {resolved}")
    return resolved


def print_json(data: Mapping[str, Any]) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def command_scan(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    directory = resolve_directory(args.directory, paths)
    if args.directory and not args.no_remember:
        LibrarySettings(paths.settings_path).add_directory(directory)
    library = ManualLibrary(open_store(paths))
    manuals = library.scan(directory)
    if not manuals:
        print("No PDF files found")
        return
    print_manual_table(manuals)


def command_dirs(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    directories = LibrarySettings(paths.settings_path).directories
    if not directories:
        print("No remembered directories.")
    for directory in directories:
        print(directory)


def command_locate(args: argparse.Namespace) -> None:
    result = locate(Path(args.path).expanduser())
    if not result.found:
        raise SystemExit(result.error or f"File not found: {args.path}")
    if result.was_renamed:
        print(f"{result.original_name} -> {result.new_name} ({result.match_reason})")
    print(result.found_path)


def command_show(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    library = ManualLibrary(open_store(paths))
    record = record_for(Path(args.path).expanduser())
    opened = library.open_manual(record)
    if opened is None:
        raise SystemExit(f"Could not locate PDF file. Original path: {args.path}")
    print_json(
        {
            "path": str(opened.record.path),
            "source": opened.source,
            "wasRenamed": opened.located.was_renamed,
            "metadata": opened.metadata,
            "suggestions": opened.suggestions.to_dict(),
        }
    )


def command_suggest(args: argparse.Namespace) -> None:
    store = open_store(resolve_paths(args))
    print_json(suggest(store, args.filename).to_dict())


def command_save(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    store = open_store(paths)
    saver = MetadataSaver(store, signature=args.signature, locale=args.locale)
    library = ManualLibrary(store, saver)
    record = record_for(Path(args.path).expanduser())
    opened = library.open_manual(record)
    if opened is None:
        raise SystemExit(f"Could not locate PDF file. Original path: {args.path}")
    form = build_form(args, opened.metadata)
    report = library.save(record, form, opened.metadata)
    if not report.succeeded:
        raise SystemExit(report.message)
    level = logging.WARNING if report.status == "partial" else logging.INFO
    logger.log(level, report.message)
    print(report.pdf_path)


def command_rename(args: argparse.Namespace) -> None:
    result = fileops.rename_file(Path(args.old).expanduser(), Path(args.new).expanduser())
    if not result.ok:
        raise SystemExit(f"Error renaming file: {result.error}")
    print(result.final_path)


def command_sign(args: argparse.Namespace) -> None:
    signature = pdfmeta.resolve_signature(args.signature)
    try:
        backend = pdfmeta.set_producer(Path(args.path).expanduser(), signature)
    except pdfmeta.PdfMetadataError as exc:
        raise SystemExit(f"Failed to add the signature: {exc}") from exc
    logger.info("Producer set with %s", backend)


def command_forget(args: argparse.Namespace) -> None:
    store = open_store(resolve_paths(args))
    try:
        removed = store.forget(args.field, args.value)
    except learning.InvalidSuggestionType as exc:
        raise SystemExit(str(exc)) from exc
    if not removed:
        raise SystemExit(f"No {args.field} suggestion named {args.value!r}")
    print(f"Removed {args.field} suggestion {args.value!r}")


def command_reset(args: argparse.Namespace) -> None:
    if not args.yes:
        raise SystemExit(
            "This erases every learned suggestion and cannot be undone. Re-run with --yes."
        )
    store = open_store(resolve_paths(args))
    store.reset_all(confirm=True)
    print("All learned suggestions were erased.")


def command_render(args: argparse.Namespace) -> None:
    paths = resolve_paths(args)
    directory = resolve_directory(args.directory, paths)
    store = open_store(paths)
    library = ManualLibrary(store)
    manuals = library.scan(directory)
    for manual in manuals:
        opened = library.open_manual(manual)
        if opened is not None:
            manual.metadata = opened.metadata
    output = Path(args.output).expanduser() if args.output else directory / "CATALOG.md"
    content = renderer.render_catalog(manuals, output, stats=store.stats())
    logger.info("Catalog written to %s (%d characters)", output, len(content))


def command_stats(args: argparse.Namespace) -> None:
    print_json(open_store(resolve_paths(args)).stats())


def record_for(path: Path) -> ManualRecord:
    try:
        stat = path.stat()
    except OSError:
        # Possibly renamed; locate() resolves it when the manual is opened.
        return ManualRecord(path=path, size=0, last_modified=datetime.now(UTC))
    return ManualRecord(
        path=path,
        size=stat.st_size,
        last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
    )


def build_form(args: argparse.Namespace, current: Mapping[str, Any]) -> FormInput:
    def pick(value: Any, key: str, default: Any = "") -> Any:
        return value if value is not None else current.get(key, default)

    return FormInput(
        title=pick(args.title, "title"),
        brand=pick(args.brand, "brand"),
        model=pick(args.model, "model"),
        year=pick(args.year, "year", None),
        year_range=pick(args.year_range, "yearRange", None),
        manual_type=pick(args.manual_type, "manualType"),
        bike_type=args.bike_type if args.bike_type else current.get("bikeType", []),
        language=pick(args.language, "language"),
        tags=pick(args.tags, "tags", []),
        description=pick(args.description, "description"),
    )


def print_manual_table(manuals: list[ManualRecord]) -> None:
    print("File".ljust(50), "Brand".ljust(14), "Model".ljust(14), "Year".ljust(6), "Type")
    print("-" * 95)
    for manual in manuals:
        metadata = manual.metadata or {}
        print(
            manual.filename[:50].ljust(50),
            str(metadata.get("brand") or "")[:14].ljust(14),
            str(metadata.get("model") or "")[:14].ljust(14),
            str(metadata.get("year") or "").ljust(6),
            metadata.get("manualType") or "",
        )
    print(f"\n{len(manuals)} PDF files")


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Catalogue PDF manuals")
    parser_obj.add_argument("--home", help="State directory (overrides MANUALS_HOME)")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="List PDF manuals under a directory")
    scan_parser.add_argument("directory", nargs="?", help="Defaults to the first remembered one")
    scan_parser.add_argument(
        "--no-remember", action="store_true", help="Do not remember the directory"
    )
    scan_parser.set_defaults(func=command_scan)

    dirs_parser = subparsers.add_parser("dirs", help="List remembered directories")
    dirs_parser.set_defaults(func=command_dirs)

    locate_parser = subparsers.add_parser("locate", help="Find a PDF that may have been renamed")
    locate_parser.add_argument("path")
    locate_parser.set_defaults(func=command_locate)

    show_parser = subparsers.add_parser("show", help="Show metadata and suggestions for a PDF")
    show_parser.add_argument("path")
    show_parser.set_defaults(func=command_show)

    suggest_parser = subparsers.add_parser("suggest", help="Suggest brand/model/type")
    suggest_parser.add_argument("filename")
    suggest_parser.set_defaults(func=command_suggest)

    save_parser = subparsers.add_parser("save", help="Save metadata and rename after the title")
    save_parser.add_argument("path")
    save_parser.add_argument("--title")
    save_parser.add_argument("--brand")
    save_parser.add_argument("--model")
    save_parser.add_argument("--year")
    save_parser.add_argument("--year-range", help="YYYY-YYYY")
    save_parser.add_argument("--type", dest="manual_type")
    save_parser.add_argument("--bike-type", action="append", help="Repeat for several")
    save_parser.add_argument("--language")
    save_parser.add_argument("--tags", help="Comma-separated")
    save_parser.add_argument("--description")
    save_parser.add_argument("--signature", help="Producer string (overrides MANUALS_SIGNATURE)")
    save_parser.add_argument("--locale", help="Message locale (overrides MANUALS_LOCALE)")
    save_parser.set_defaults(func=command_save)

    rename_parser = subparsers.add_parser("rename", help="Rename a file, suffixing on collision")
    rename_parser.add_argument("old")
    rename_parser.add_argument("new")
    rename_parser.set_defaults(func=command_rename)

    sign_parser = subparsers.add_parser("sign", help="Stamp the producer signature into a PDF")
    sign_parser.add_argument("path")
    sign_parser.add_argument("--signature")
    sign_parser.set_defaults(func=command_sign)

    forget_parser = subparsers.add_parser("forget", help="Delete one learned suggestion")
    forget_parser.add_argument("field", help="brand, model or manualType")
    forget_parser.add_argument("value")
    forget_parser.set_defaults(func=command_forget)

    reset_parser = subparsers.add_parser("reset", help="Erase all learned suggestions")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")
    reset_parser.set_defaults(func=command_reset)

    render_parser = subparsers.add_parser("render", help="Write a Markdown catalog")
    render_parser.add_argument("directory", nargs="?")
    render_parser.add_argument("--output", help="Defaults to CATALOG.md in the directory")
    render_parser.set_defaults(func=command_render)

    stats_parser = subparsers.add_parser("stats", help="Show learning statistics")
    stats_parser.set_defaults(func=command_stats)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
