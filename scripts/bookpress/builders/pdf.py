"""
PDF builder.

Pandoc renders through LaTeX; the .pdf output extension makes it run the
PDF engine itself. Chapters map to top-level divisions.
"""

from bookpress.builders.base import BaseBuilder


class PdfBuilder(BaseBuilder):
    fmt = "pdf"
    format_name = "PDF"
    extension = ".pdf"

    def format_options(self):
        opts = [
            self.stylesheet_option(),
            "--standalone",
            "--top-level-division=chapter",
            "--to=latex",
        ]

        engine = self.config.pdf.get("engine")
        if engine:
            opts.append(f"--pdf-engine={engine}")

        return opts
