"""
EPUB builder.

Pipeline: pandoc → epub, styled with the global stylesheet and the
manuscript cover image.
"""

from bookpress.builders.base import BaseBuilder


class EpubBuilder(BaseBuilder):
    fmt = "epub"
    format_name = "EPUB"
    extension = ".epub"

    def format_options(self):
        return [
            self.stylesheet_option(),
            f"--epub-cover-image={self.config.cover_image_path}",
            "--to=epub",
        ]
