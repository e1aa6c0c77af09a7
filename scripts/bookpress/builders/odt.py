from bookpress.builders.base import BaseBuilder


class OdtBuilder(BaseBuilder):
    fmt = "odt"
    format_name = "ODT"
    extension = ".odt"

    def format_options(self):
        # ODT has no cover image support
        return [
            self.stylesheet_option(),
            "--standalone",
            "--to=odt",
        ]
