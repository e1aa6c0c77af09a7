#!/usr/bin/env python3
"""
Unified build script for the ebook manuscript.

Combines building (epub, html, pdf, odt), manifest inspection and
link checking into a single entry point.

Usage:
    python build.py --epub --html          Build epub + html
    python build.py --all                  Build every format
    python build.py --all --sample         Build from Sample.txt
    python build.py --all --fail-fast      Stop at the first failed format
    python build.py manifest               Show resolved chapter order
    python build.py links                  Check every link in the manuscript

Requires: pandoc, PyYAML, httpx
"""

import os
import sys
import argparse
import traceback

# Ensure bookpress is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bookpress.config import BuildConfig, ConfigError
from bookpress.resolve import resolve_manifest, build_document_body, ManifestError
from bookpress.builders import BUILDERS, DEFAULT_FORMATS, get_builder
from bookpress.builders.base import ConversionFailed
from bookpress.links import LinkValidator, check_manuscript_links
from bookpress.errors import DetectedErrors, BuildFailed


# ── Load config ────────────────────────────────────────────────────────


def load_config(args):
    """Load book.yaml for the project. Exits on failure."""
    try:
        return BuildConfig.load(args.project, path=args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)


def resolve_chapters(config, sample=False):
    """Resolve the manifest to chapter paths. Exits on failure."""
    manifest = config.manifest_name(sample)
    try:
        return resolve_manifest(
            config.manuscript_path, manifest, blank_lines=config.blank_lines
        )
    except ManifestError as e:
        print(f"Error: {e}")
        sys.exit(1)


# ── Build command ──────────────────────────────────────────────────────


def selected_formats(args, config):
    if args.all:
        return list(DEFAULT_FORMATS)
    formats = [fmt for fmt in BUILDERS if getattr(args, fmt, False)]
    return formats or list(config.formats)


def cmd_build(args):
    """Build one or more output formats."""
    config = load_config(args)
    formats = selected_formats(args, config)
    continue_on_error = config.continue_on_error and not args.fail_fast

    config.summary()
    if args.sample:
        print(f"  Mode:   sample ({config.sample_manifest})")

    # Every chapter is checked before any converter runs
    chapters = resolve_chapters(config, sample=args.sample)
    if not chapters:
        print("Error: Manifest lists no chapters")
        sys.exit(1)
    body = build_document_body(chapters)

    output_dir = os.path.abspath(args.output_dir) if args.output_dir else config.output_path
    os.makedirs(output_dir, exist_ok=True)
    print(f"  Output: {output_dir}")

    results = {}
    for fmt in formats:
        builder = get_builder(fmt, config, verbose=args.verbose)
        builder.log(f"  Input: {len(chapters)} files")
        try:
            builder.build(body, config.manuscript_path, output_dir)
            results[fmt] = True
        except ConversionFailed:
            results[fmt] = False
            if not continue_on_error:
                break

    # Summary
    print(f"\n{'─' * 60}")
    failed = [fmt for fmt, ok in results.items() if not ok]
    skipped = [fmt for fmt in formats if fmt not in results]
    if failed:
        print(f"  Done with errors: {', '.join(failed)} failed")
        if skipped:
            print(f"  Not attempted: {', '.join(skipped)}")
        sys.exit(1)
    else:
        print(f"  Done. {len(results)} format(s) built successfully.")


# ── Manifest command ───────────────────────────────────────────────────


def cmd_manifest(args):
    """Print the resolved chapter order."""
    config = load_config(args)
    chapters = resolve_chapters(config, sample=args.sample)

    print(f"\n  Manifest: {config.manifest_name(args.sample)}")
    for i, path in enumerate(chapters, 1):
        print(f"  {i:>3}. {os.path.relpath(path, config.manuscript_path)}")
    print(f"  {len(chapters)} chapter(s)")


# ── Links command ──────────────────────────────────────────────────────


def cmd_links(args):
    """Probe every link in the manuscript."""
    config = load_config(args)
    link_cfg = config.link_check

    color = not args.no_color and sys.stdout.isatty()
    workers = args.workers if args.workers is not None else link_cfg["workers"]
    timeout = args.timeout or link_cfg["timeout"]
    deadline = args.deadline if args.deadline is not None else link_cfg["deadline"]

    print(f"\n{'─' * 60}")
    print(f"  Checking links: {config.manuscript_path}")
    print(f"{'─' * 60}")

    errors = DetectedErrors(color=color)
    with LinkValidator(
        timeout=timeout,
        warn_statuses=link_cfg["warn_statuses"],
        color=color,
    ) as validator:
        check_manuscript_links(
            config.manuscript_path,
            validator,
            errors,
            workers=workers,
            deadline=deadline,
            verbose=args.verbose,
        )

    try:
        errors.assert_none()
    except BuildFailed:
        sys.exit(1)


# ── Argument Parser ────────────────────────────────────────────────────


def positive_int(value):
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        description="Ebook manuscript build pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s --epub --html              Build epub + html
  %(prog)s --all                      Build every format
  %(prog)s build . --pdf --fail-fast  Build PDF, stop on failure
  %(prog)s manifest --sample          Show the sample chapter order
  %(prog)s links --workers 16         Check links with 16 probes at once
        """,
    )

    sub = parser.add_subparsers(dest="command")

    # ── build (default when no subcommand) ─────────────────
    build_p = sub.add_parser("build", help="Build output formats (default)")
    _add_project_args(build_p)
    _add_build_args(build_p)

    # ── manifest ───────────────────────────────────────────
    man_p = sub.add_parser("manifest", help="Show resolved chapter order")
    _add_project_args(man_p)
    man_p.add_argument("--sample", action="store_true", help="Use the sample manifest")

    # ── links ──────────────────────────────────────────────
    links_p = sub.add_parser("links", help="Check every link in the manuscript")
    _add_project_args(links_p)
    links_p.add_argument("--workers", type=positive_int, help="Concurrent probes")
    links_p.add_argument("--timeout", type=float, help="Per-probe timeout (seconds)")
    links_p.add_argument("--deadline", type=float, help="Overall limit (seconds)")
    links_p.add_argument("--no-color", action="store_true", help="Plain output")
    links_p.add_argument("--verbose", "-v", action="store_true")

    return parser


def _add_project_args(parser):
    parser.add_argument(
        "project", nargs="?", default=".", help="Project root (default: cwd)"
    )
    parser.add_argument("--config", help="Config file (default: <project>/book.yaml)")


def _add_build_args(parser):
    """Add format flags and build options to a parser."""
    fmt = parser.add_argument_group("output formats")
    fmt.add_argument("--epub", action="store_true", help="Build EPUB")
    fmt.add_argument("--html", action="store_true", help="Build HTML")
    fmt.add_argument("--pdf", action="store_true", help="Build PDF")
    fmt.add_argument("--odt", action="store_true", help="Build ODT")
    fmt.add_argument("--all", action="store_true", help="Build every format")

    opts = parser.add_argument_group("options")
    opts.add_argument(
        "--sample", action="store_true", help="Build from the sample manifest"
    )
    opts.add_argument("--output-dir", help="Override output directory")
    opts.add_argument(
        "--fail-fast", action="store_true", help="Stop after the first failed format"
    )
    opts.add_argument("--verbose", "-v", action="store_true")


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)

    # Allow bare "build.py --epub" without the "build" subcommand:
    # If the first arg isn't a known subcommand, prepend "build".
    known_commands = {"build", "manifest", "links"}
    if not argv or argv[0] in ("-h", "--help"):
        args = parser.parse_args(argv)
    elif argv[0] not in known_commands:
        args = parser.parse_args(["build"] + argv)
    else:
        args = parser.parse_args(argv)

    dispatch = {
        "build": cmd_build,
        "manifest": cmd_manifest,
        "links": cmd_links,
    }

    handler = dispatch.get(args.command)
    if handler:
        handler(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)
