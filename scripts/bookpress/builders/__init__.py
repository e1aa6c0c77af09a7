from bookpress.builders.epub import EpubBuilder
from bookpress.builders.html import HtmlBuilder
from bookpress.builders.pdf import PdfBuilder
from bookpress.builders.odt import OdtBuilder

BUILDERS = {
    "epub": EpubBuilder,
    "html": HtmlBuilder,
    "pdf": PdfBuilder,
    "odt": OdtBuilder,
}

# --all builds these
DEFAULT_FORMATS = ["epub", "html", "pdf", "odt"]


class UnsupportedFormat(Exception):
    """Raised for a format tag with no registered builder."""

    def __init__(self, fmt):
        self.fmt = fmt
        super().__init__(
            f"Unsupported format '{fmt}' (expected one of: {', '.join(BUILDERS)})"
        )


def get_builder(fmt, config, verbose=False):
    """Instantiate the builder for a format tag."""
    try:
        builder_cls = BUILDERS[fmt]
    except KeyError:
        raise UnsupportedFormat(fmt) from None
    return builder_cls(config=config, verbose=verbose)


def build_job(fmt, config):
    """Compose the FormatJob for a format. No I/O."""
    return get_builder(fmt, config).job()
