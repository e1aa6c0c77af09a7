"""Shared fixtures: a small manuscript project on disk."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from bookpress.config import BuildConfig

BOOK_YAML = """\
title: Test Book
author: Jane Writer
basename: test-book
"""


def write_manifest(manuscript: Path, entries: list[str], name: str = "Book.txt") -> Path:
    """Write manifest entries one per line."""
    path = manuscript / name
    path.write_text("".join(f"{entry}\n" for entry in entries), encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project root with book.yaml, two chapters and a Book.txt manifest."""
    (tmp_path / "book.yaml").write_text(BOOK_YAML, encoding="utf-8")
    manuscript = tmp_path / "manuscript"
    (manuscript / "images").mkdir(parents=True)
    (manuscript / "Stylesheets").mkdir()
    (manuscript / "images" / "title_page.png").write_bytes(b"\x89PNG")
    (manuscript / "Stylesheets" / "Global.css").write_text("body {}\n")
    (manuscript / "a.md").write_text("# Chapter A\n\nSee https://example.com/a,\n")
    (manuscript / "b.md").write_text("# Chapter B\n")
    write_manifest(manuscript, ["a.md", "b.md"])
    return tmp_path


@pytest.fixture
def config(project: Path) -> BuildConfig:
    return BuildConfig.load(str(project))


def mock_client(handler) -> httpx.Client:
    """httpx client that answers every request with handler."""
    return httpx.Client(transport=httpx.MockTransport(handler))
