"""
HTML builder.

Single standalone page. An optional cover page from the manuscript
directory is placed ahead of the chapters.
"""

from bookpress.builders.base import BaseBuilder


class HtmlBuilder(BaseBuilder):
    fmt = "html"
    format_name = "HTML"
    extension = ".html"

    def format_options(self):
        return [
            self.stylesheet_option(),
            "--standalone",
            "--to=html",
        ]

    def extra_inputs(self):
        cover_page = self.config.html.get("cover_page")
        return [f"./{cover_page}"] if cover_page else []
