"""
Base builder class for all output formats.

Subclasses set `fmt` / `format_name` / `extension` and implement
`format_options()`. Shared logic (common pandoc options, job composition,
pandoc invocation, logging) lives here.
"""

import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from bookpress.resolve import split_document_body


PANDOC = "pandoc"


class ConversionFailed(Exception):
    """Raised when the converter exits non-zero for a format."""

    def __init__(self, fmt, exit_status, output=""):
        self.fmt = fmt
        self.exit_status = exit_status
        self.output = output
        super().__init__(f"{fmt} conversion failed (exit {exit_status})")


@dataclass(frozen=True)
class FormatJob:
    """Everything one converter call needs for a single output format."""

    fmt: str
    options: list
    output_filename: str
    inputs: list = field(default_factory=list)


@dataclass(frozen=True)
class ConversionResult:
    fmt: str
    output_file: str
    exit_status: int
    stdout: str = ""
    stderr: str = ""


class BaseBuilder(ABC):
    """
    Abstract base for format builders.

    Subclasses must define:
        fmt:          str    — format tag ("epub", "pdf", ...)
        format_name:  str    — human-readable name ("EPUB", "PDF", ...)
        extension:    str    — output file extension (".epub", ".pdf", ...)
        format_options(): method — format-specific pandoc options
    """

    fmt = None          # Override in subclass
    format_name = None  # Override in subclass
    extension = None    # Override in subclass

    def __init__(self, config, verbose=False):
        self.config = config
        self.verbose = verbose

    # ── Output path ────────────────────────────────────────

    @property
    def output_filename(self):
        return f"{self.config.basename}{self.extension}"

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.config.title}")
        print(f"{'─' * 60}")

    # ── Job composition (pure) ─────────────────────────────

    def common_options(self):
        """Options shared by every format."""
        opts = [
            "--toc",
            f"--toc-depth={self.config.toc_depth}",
            "--from=markdown+smart",
        ]
        opts.extend(self.config.metadata_args())
        opts.append(f"--highlight-style={self.config.highlight_style}")
        return opts

    def stylesheet_option(self):
        return f"--css={self.config.stylesheet_path}"

    def extra_inputs(self):
        """Input files placed before the chapters (none by default)."""
        return []

    def job(self):
        return FormatJob(
            fmt=self.fmt,
            options=self.common_options() + self.format_options(),
            output_filename=self.output_filename,
            inputs=self.extra_inputs(),
        )

    # ── Pandoc invocation ──────────────────────────────────

    def command(self, job, document_body, output_file):
        cmd = [PANDOC]
        cmd.extend(job.options)
        cmd.extend(job.inputs)
        cmd.extend(split_document_body(document_body))
        cmd.extend(["-o", output_file])
        return cmd

    def run(self, document_body, working_dir, output_dir):
        """
        Convert the document body once for this format.

        Returns a ConversionResult. Raises ConversionFailed on a non-zero
        exit; any output file left behind by the failed call is removed.
        """
        job = self.job()
        output_file = os.path.abspath(os.path.join(output_dir, job.output_filename))
        cmd = self.command(job, document_body, output_file)

        self.log(f"  Command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                cwd=working_dir,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise ConversionFailed(job.fmt, 127, f"{PANDOC} not found on PATH")

        if result.returncode != 0:
            if os.path.exists(output_file):
                os.remove(output_file)
            raise ConversionFailed(
                job.fmt, result.returncode, (result.stderr or result.stdout or "").strip()
            )

        return ConversionResult(
            fmt=job.fmt,
            output_file=output_file,
            exit_status=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def build(self, document_body, working_dir, output_dir):
        """
        Run the conversion with console reporting.

        Returns the ConversionResult; ConversionFailed propagates to the
        caller after its diagnostics are printed.
        """
        self.header()
        try:
            result = self.run(document_body, working_dir, output_dir)
        except ConversionFailed as e:
            print(f"  ✗ {self.format_name} generation failed (exit {e.exit_status})")
            for line in e.output.splitlines()[:20]:
                print(f"    {line}")
            raise

        print(f"  ✓ {result.output_file}")
        return result

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def format_options(self):
        """
        Format-specific options appended after the common block.
        """
        ...
