"""
Manifest resolution and chapter assembly.

A manifest (Book.txt, Sample.txt) lists chapter files one per line, in
reading order. Everything that needs the ordered chapter list imports
from here.
"""

import os
import shlex


class ManifestError(Exception):
    """Base class for manifest resolution failures."""
    pass


class ManifestNotFound(ManifestError):
    """The manifest file itself does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Manifest not found: {path}")


class ChapterMissing(ManifestError):
    """A manifest entry does not point at an existing file."""

    def __init__(self, entry, path=None):
        self.entry = entry
        self.path = path
        super().__init__(f"Chapter listed in manifest does not exist: '{entry}'")


def strip_line_ending(line):
    """Remove the trailing line terminator (\\n, \\r\\n or \\r) from a line."""
    return line.rstrip("\r\n")


def read_manifest(manifest_path):
    """
    Read raw manifest entries in order.

    Duplicates are kept. Raises ManifestNotFound if the file is missing.
    """
    if not os.path.isfile(manifest_path):
        raise ManifestNotFound(manifest_path)

    with open(manifest_path, "r", encoding="utf-8") as f:
        return [strip_line_ending(line) for line in f]


def resolve_manifest(manuscript_dir, manifest_name, blank_lines="skip"):
    """
    Resolve a manifest to an ordered list of absolute chapter paths.

    Every entry is checked before anything is returned, so a build never
    starts converting from an incomplete manifest.

    blank_lines:
        "skip"   blank or whitespace-only lines are ignored
        "error"  they are treated as chapter references (and fail)
    """
    manuscript_dir = os.path.abspath(manuscript_dir)
    entries = read_manifest(os.path.join(manuscript_dir, manifest_name))

    paths = []
    for entry in entries:
        if not entry.strip() and blank_lines == "skip":
            continue

        path = os.path.join(manuscript_dir, entry)
        if not entry.strip() or not os.path.isfile(path):
            raise ChapterMissing(entry, path)
        paths.append(os.path.abspath(path))

    return paths


def build_document_body(paths):
    """
    Join chapter paths into one include expression for the converter.

    Each path is shell-quoted and separated by a single space; manifest
    order is preserved exactly.
    """
    return " ".join(shlex.quote(path) for path in paths)


def split_document_body(body):
    """Turn an include expression back into argv entries."""
    return shlex.split(body)
