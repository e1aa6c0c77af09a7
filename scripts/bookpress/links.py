"""
Link integrity checking for the manuscript.

Extracts every http(s)/mailto URI from the manuscript files, probes each
with a HEAD request, and classifies the response:

    400, 403          warning   (bot blocking; never fails the build)
    > 400             error     (fails the build)
    anything else     ok        (2xx, redirects, ...)
    request raised    exception (fails the build, carries the detail)

Probes run on a small thread pool; results are funnelled into a
DetectedErrors instance so one run reports every broken link.
"""

import os
import re
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlsplit

import httpx

from bookpress.errors import paint


URI_PATTERN = re.compile(r"(?:https?://|mailto:)[^\s<>\"'`{}|\\^\[\]]+", re.IGNORECASE)
TRAILING_PUNCTUATION = re.compile(r"[.),:]+$")

DEFAULT_TIMEOUT = 60
DEFAULT_WORKERS = 8
WARN_STATUSES = (400, 403)

OK = "ok"
WARNING = "warning"
HARD_ERROR = "error"
PROBE_EXCEPTION = "exception"
SKIPPED = "skipped"

FATAL_OUTCOMES = (HARD_ERROR, PROBE_EXCEPTION)

OUTCOME_COLOR = {
    OK: "green",
    WARNING: "yellow",
    HARD_ERROR: "red",
    PROBE_EXCEPTION: "red",
}

URIRecord = namedtuple("URIRecord", ["uri", "source"])


@dataclass(frozen=True)
class ProbeResult:
    uri: str
    outcome: str
    status: Optional[int] = None
    reason: str = ""
    detail: str = ""
    sources: tuple = ()

    @property
    def fatal(self):
        return self.outcome in FATAL_OUTCOMES

    @property
    def status_line(self):
        return f"{self.uri} => {self.status}, {self.reason}"

    @property
    def message(self):
        if self.outcome == PROBE_EXCEPTION:
            text = f"Error while checking {self.uri}: {self.detail}"
        elif self.outcome == HARD_ERROR:
            text = f"Error while checking {self.uri}: {self.status_line}"
        elif self.outcome == SKIPPED:
            text = f"{self.uri} => not probed ({self.detail})"
        else:
            text = self.status_line

        if self.sources:
            text += f" [in {', '.join(self.sources)}]"
        return text


# ── Extraction ─────────────────────────────────────────────────────────


def normalize_uri(match):
    """Strip prose punctuation that the pattern swallowed at the end."""
    return TRAILING_PUNCTUATION.sub("", match)


def extract_uris_from_text(text):
    uris = set()
    for match in URI_PATTERN.findall(text):
        uri = normalize_uri(match)
        if uri:
            uris.add(uri)
    return uris


def extract_uris(path):
    """Return the set of normalized URIs found in a file."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return extract_uris_from_text(f.read())


def manuscript_files(manuscript_dir, verbose=False):
    """Regular files directly inside the manuscript directory, sorted."""
    files = []
    for name in sorted(os.listdir(manuscript_dir)):
        path = os.path.join(manuscript_dir, name)
        if not os.path.isfile(path):
            if verbose:
                print(f"  skipping {path} - not a file")
            continue
        files.append(path)
    return files


def extract_records(files, verbose=False):
    """Yield a URIRecord for every URI in every file."""
    for path in files:
        if verbose:
            print(f"  Processing {path}")
        for uri in sorted(extract_uris(path)):
            yield URIRecord(uri, path)


# ── Validation ─────────────────────────────────────────────────────────


def make_client(timeout=DEFAULT_TIMEOUT):
    """HTTP client for probing: no certificate checks, no redirects."""
    return httpx.Client(
        verify=False,
        timeout=httpx.Timeout(timeout),
        follow_redirects=False,
    )


class LinkValidator:
    """
    Probe URIs and classify the responses.

    Usage:
        with LinkValidator(timeout=60) as validator:
            result = validator.validate("https://example.com/")
            validator.validate_all(uris, errors, workers=8)
    """

    def __init__(self, client=None, timeout=DEFAULT_TIMEOUT,
                 warn_statuses=WARN_STATUSES, color=True):
        self._owns_client = client is None
        self.client = client or make_client(timeout)
        self.warn_statuses = tuple(warn_statuses)
        self.color = color

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Single probe ───────────────────────────────────────

    def classify(self, status):
        if status in self.warn_statuses:
            return WARNING
        if status > 400:
            return HARD_ERROR
        return OK

    def validate(self, uri):
        """Probe one URI. Never raises for network or URI problems."""
        try:
            scheme = urlsplit(uri).scheme.lower()
            if scheme == "mailto":
                return ProbeResult(uri, SKIPPED, detail="mailto link")

            # Full URI including the query string; some hosts answer 404 for
            # the bare path of a query-driven page.
            response = self.client.head(uri)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            return ProbeResult(uri, PROBE_EXCEPTION, detail=f"{type(e).__name__}: {e}")

        status = response.status_code
        return ProbeResult(
            uri,
            self.classify(status),
            status=status,
            reason=response.reason_phrase,
        )

    # ── Whole run ──────────────────────────────────────────

    def report(self, result):
        color = OUTCOME_COLOR.get(result.outcome)
        line = result.message
        print(f"  {paint(line, color, self.color) if color else line}")

    def validate_all(self, uris, errors, workers=DEFAULT_WORKERS, deadline=None,
                     sources=None):
        """
        Probe every URI on a bounded thread pool and record each result.

        sources:  optional mapping of URI to the files it appeared in.
        deadline: optional overall limit in seconds; probes still running
                  when it passes are recorded as probe exceptions.

        Returns the list of ProbeResults in completion order.
        """
        sources = sources or {}
        uris = sorted(set(uris))
        results = []

        def finish(result):
            result = replace(result, sources=tuple(sources.get(result.uri, ())))
            self.report(result)
            errors.record(result)
            results.append(result)

        executor = ThreadPoolExecutor(max_workers=workers)
        futures = {executor.submit(self.validate, uri): uri for uri in uris}
        pending = set(futures)
        try:
            for future in as_completed(futures, timeout=deadline):
                pending.discard(future)
                finish(future.result())
        except FuturesTimeout:
            for future in sorted(pending, key=futures.get):
                if future.done():
                    finish(future.result())
                else:
                    future.cancel()
                    finish(ProbeResult(
                        futures[future], PROBE_EXCEPTION,
                        detail=f"deadline of {deadline}s exceeded",
                    ))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results


def check_manuscript_links(manuscript_dir, validator, errors,
                           workers=DEFAULT_WORKERS, deadline=None, verbose=False):
    """Extract URIs from every manuscript file and validate them all."""
    sources = {}
    for record in extract_records(manuscript_files(manuscript_dir, verbose), verbose):
        sources.setdefault(record.uri, []).append(os.path.basename(record.source))

    print(f"  Checking {len(sources)} unique links with {workers} workers")
    return validator.validate_all(
        sources, errors, workers=workers, deadline=deadline, sources=sources
    )
