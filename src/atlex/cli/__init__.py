"""Command-line interface for atlex.

Commands:
    atlex compile PATHS... -o OUT   Generate one Python module per Lexicon
    atlex validate REF FILE         Validate a JSON file against a Lexicon def
    atlex tid [--decode TID]        Mint a new TID, or decode an existing one
    atlex version                   Show version information

Example:
    $ atlex compile lexicons/ -o src/generated
    com.atproto.repo.strongRef -> src/generated/com/atproto/repo/strongRef.py

    $ atlex validate com.atproto.repo.strongRef ref.json
    OK
"""

import argparse
import glob
import json
import logging
import sys
from pathlib import Path
from typing import Sequence


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the atlex CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="atlex",
        description="AT Protocol Lexicon compiler and validator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log progress to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'compile' command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Generate Python modules from Lexicon JSON files",
    )
    compile_parser.add_argument(
        "paths",
        nargs="+",
        help="Lexicon JSON files, directories or glob patterns",
    )
    compile_parser.add_argument(
        "--output", "-o",
        default=".",
        help="Directory the generated modules are written to (default: .)",
    )

    # 'validate' command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a JSON document against a Lexicon definition",
    )
    validate_parser.add_argument(
        "ref",
        help="Lexicon reference, e.g. app.bsky.feed.post or app.bsky.feed.post#replyRef",
    )
    validate_parser.add_argument(
        "file",
        help="JSON file to validate ('-' reads stdin)",
    )
    validate_parser.add_argument(
        "--lexicon-dir",
        action="append",
        default=[],
        help="Directory to load referenced Lexicons from (repeatable)",
    )

    # 'tid' command
    tid_parser = subparsers.add_parser(
        "tid",
        help="Generate or decode a TID",
    )
    tid_parser.add_argument(
        "--decode",
        metavar="TID",
        help="Decode TID into its timestamp and clock id",
    )

    # 'version' command (alternative to --version flag)
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if args.version or args.command == "version":
        return _cmd_version()

    if args.command == "compile":
        return _cmd_compile(paths=args.paths, output=args.output)

    if args.command == "validate":
        return _cmd_validate(ref=args.ref, file=args.file, lexicon_dirs=args.lexicon_dir)

    if args.command == "tid":
        return _cmd_tid(decode=args.decode)

    # No command given
    parser.print_help()
    return 0


def _cmd_version() -> int:
    """Show version information."""
    from atlex import __version__

    print(f"atlex {__version__}")
    return 0


def _expand_paths(patterns: Sequence[str]) -> list[Path]:
    """Resolve files, directories (searched recursively) and globs."""
    found: list[Path] = []
    for pattern in patterns:
        matches = [Path(m) for m in sorted(glob.glob(pattern, recursive=True))]
        if not matches:
            matches = [Path(pattern)]
        for path in matches:
            if path.is_dir():
                found.extend(sorted(path.rglob("*.json")))
            else:
                found.append(path)
    return found


def _cmd_compile(paths: Sequence[str], output: str) -> int:
    """Compile Lexicon files and write one module per Lexicon id."""
    from atlex._exceptions import LexiconCompileError
    from atlex.lexicon import LexiconDocument, LexiconRegistry, write_module

    files = _expand_paths(paths)
    if not files:
        print("No Lexicon files found.", file=sys.stderr)
        return 1

    registry = LexiconRegistry()
    failures = 0
    for path in files:
        try:
            document = LexiconDocument.from_file(path)
            bundle = registry.register(document)
            written = write_module(bundle, output)
        except (LexiconCompileError, OSError) as e:
            print(f"{path}: {e}", file=sys.stderr)
            failures += 1
            continue
        print(f"{bundle.id} -> {written}")

    if failures:
        print(f"{failures} of {len(files)} Lexicon file(s) failed.", file=sys.stderr)
        return 1
    return 0


def _cmd_validate(ref: str, file: str, lexicon_dirs: Sequence[str]) -> int:
    """Validate a JSON file and report the first failure."""
    from atlex._config import load_config
    from atlex._exceptions import (
        IdentifierFormatError,
        LexiconCompileError,
        LexiconReferenceError,
    )
    from atlex.lexicon import BundledSource, DirectorySource, LexiconRegistry

    config = load_config()
    sources = [DirectorySource(d) for d in (*lexicon_dirs, *config.lexicon_paths)]
    if config.include_bundled:
        sources.append(BundledSource())
    registry = LexiconRegistry(sources, strict=config.strict_field_types)

    try:
        if file == "-":
            data = json.load(sys.stdin)
        else:
            data = json.loads(Path(file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read {file}: {e}", file=sys.stderr)
        return 2

    try:
        result = registry.validate(ref, data)
    except (IdentifierFormatError, LexiconCompileError, LexiconReferenceError) as e:
        print(str(e), file=sys.stderr)
        return 2

    if result.ok:
        print("OK")
        return 0
    print(f"{result.error.path_str}: {result.error.message}")
    return 1


def _cmd_tid(decode: str | None) -> int:
    """Print a fresh TID, or the parts of an existing one."""
    from atlex.identifiers import TID

    if decode is None:
        print(TID.now())
        return 0

    tid = TID.decode(decode)
    if tid is None:
        print(f"Not a valid TID: {decode!r}", file=sys.stderr)
        return 1
    print(f"timestamp: {tid.timestamp}")
    print(f"clock_id:  {tid.clock_id}")
    print(f"datetime:  {tid.to_datetime().isoformat()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
