"""Unit tests for URI extraction, probing and classification."""

from __future__ import annotations

import threading
from pathlib import Path

import httpx
import pytest

from bookpress import links
from bookpress.errors import DetectedErrors
from bookpress.links import (
    HARD_ERROR,
    OK,
    PROBE_EXCEPTION,
    SKIPPED,
    WARNING,
    LinkValidator,
    check_manuscript_links,
    extract_uris,
    extract_uris_from_text,
    manuscript_files,
)

from conftest import mock_client


# ── Extraction ─────────────────────────────────────────


def test_trailing_comma_stripped() -> None:
    assert extract_uris_from_text("see https://example.com/a,") == {"https://example.com/a"}


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("(see http://example.com/x).", "http://example.com/x"),
        ("at https://example.com:", "https://example.com"),
        ("[docs](https://example.com/docs)", "https://example.com/docs"),
        ("write to mailto:me@example.com.", "mailto:me@example.com"),
        ("<https://example.com/q?a=1&b=2>", "https://example.com/q?a=1&b=2"),
    ],
)
def test_prose_punctuation_stripped(text: str, expected: str) -> None:
    assert extract_uris_from_text(text) == {expected}


def test_extraction_is_unique_per_file(tmp_path: Path) -> None:
    path = tmp_path / "ch.md"
    path.write_text("http://a.example/ and http://a.example/ again, ftp://skip.me\n")

    assert extract_uris(str(path)) == {"http://a.example/"}


def test_extraction_tolerates_binary(tmp_path: Path) -> None:
    path = tmp_path / "img.png"
    path.write_bytes(b"\x89PNG\xff\xfe http://x.example/y \x00")

    assert extract_uris(str(path)) == {"http://x.example/y"}


def test_manuscript_files_skip_directories(project: Path) -> None:
    files = manuscript_files(str(project / "manuscript"))

    names = [Path(f).name for f in files]
    assert names == ["Book.txt", "a.md", "b.md"]


# ── Classification ─────────────────────────────────────


def _status_handler(statuses: dict[str, int]):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        return httpx.Response(statuses[str(request.url)])

    return handler


@pytest.mark.parametrize(
    ("status", "outcome"),
    [
        (200, OK),
        (301, OK),
        (400, WARNING),
        (403, WARNING),
        (401, HARD_ERROR),
        (404, HARD_ERROR),
        (500, HARD_ERROR),
    ],
)
def test_status_classification(status: int, outcome: str) -> None:
    uri = "https://example.com/page"
    validator = LinkValidator(client=mock_client(_status_handler({uri: status})))

    result = validator.validate(uri)

    assert result.outcome == outcome
    assert result.status == status


def test_warning_is_not_fatal_error_is() -> None:
    statuses = {"https://a.example/": 403, "https://b.example/": 500}
    validator = LinkValidator(client=mock_client(_status_handler(statuses)))

    assert not validator.validate("https://a.example/").fatal
    assert validator.validate("https://b.example/").fatal


def test_connection_error_is_probe_exception() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    validator = LinkValidator(client=mock_client(handler))
    result = validator.validate("http://dead.invalid/x")

    assert result.outcome == PROBE_EXCEPTION
    assert "Name or service not known" in result.detail
    assert result.message.startswith("Error while checking http://dead.invalid/x: ")


def test_malformed_uri_is_probe_exception() -> None:
    validator = LinkValidator(client=mock_client(_status_handler({})))

    result = validator.validate("http://example.com:port/")

    assert result.outcome == PROBE_EXCEPTION


def test_mailto_not_probed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("mailto must not be probed")

    validator = LinkValidator(client=mock_client(handler))
    result = validator.validate("mailto:me@example.com")

    assert result.outcome == SKIPPED
    assert not result.fatal


def test_custom_warn_statuses() -> None:
    uri = "https://example.com/"
    validator = LinkValidator(
        client=mock_client(_status_handler({uri: 429})), warn_statuses=[429]
    )
    assert validator.validate(uri).outcome == WARNING


def test_make_client_disables_certificate_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    """https links are probed without verifying certificates."""
    captured: dict = {}

    def fake_client(**kwargs: object) -> object:
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(links.httpx, "Client", fake_client)

    links.make_client(timeout=60)

    assert captured["verify"] is False
    assert captured["follow_redirects"] is False
    assert captured["timeout"].read == 60


def test_make_client_settings() -> None:
    client = links.make_client(timeout=60)
    try:
        assert client.timeout.read == 60
        assert client.follow_redirects is False
    finally:
        client.close()


# ── Whole run ──────────────────────────────────────────


def test_validate_all_records_every_uri() -> None:
    """One bad link does not stop the others from being probed."""
    seen = []
    lock = threading.Lock()

    def handler(request: httpx.Request) -> httpx.Response:
        with lock:
            seen.append(str(request.url))
        if request.url.host == "dead.invalid":
            raise httpx.ConnectError("unresolvable", request=request)
        return httpx.Response(404 if request.url.path == "/gone" else 200)

    uris = [
        "http://dead.invalid/x",
        "https://example.com/gone",
        "https://example.com/",
        "https://example.com/ok",
    ]
    errors = DetectedErrors(color=False)
    validator = LinkValidator(client=mock_client(handler), color=False)

    results = validator.validate_all(uris, errors, workers=4)

    assert sorted(seen) == sorted(uris)
    assert len(results) == 4
    assert len(errors) == 2
    assert set(errors.verdict) == set(uris)
    assert errors.verdict["https://example.com/"].outcome == OK


def test_validate_all_deadline() -> None:
    release = threading.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "slow.example":
            release.wait(5)
        return httpx.Response(200)

    errors = DetectedErrors(color=False)
    validator = LinkValidator(client=mock_client(handler), color=False)
    try:
        validator.validate_all(
            ["https://slow.example/", "https://fast.example/"],
            errors,
            workers=2,
            deadline=0.5,
        )
    finally:
        release.set()

    assert errors.verdict["https://fast.example/"].outcome == OK
    slow = errors.verdict["https://slow.example/"]
    assert slow.outcome == PROBE_EXCEPTION
    assert "deadline" in slow.detail
    assert len(errors) == 1


def test_end_to_end_manuscript(project: Path) -> None:
    """A dead host and a live page yield exactly one failure."""
    manuscript = project / "manuscript"
    (manuscript / "a.md").write_text("# A\n\nBroken: http://dead.invalid/x.\n")
    (manuscript / "b.md").write_text("# B\n\nLive: https://example.com/\n")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "dead.invalid":
            raise httpx.ConnectError("unresolvable host", request=request)
        return httpx.Response(200)

    errors = DetectedErrors(color=False)
    validator = LinkValidator(client=mock_client(handler), color=False)

    check_manuscript_links(str(manuscript), validator, errors, workers=2)

    verdict = errors.verdict
    assert verdict["http://dead.invalid/x"].outcome == PROBE_EXCEPTION
    assert verdict["https://example.com/"].outcome == OK
    assert len(errors) == 1
    assert "[in a.md]" in errors.messages[0]
