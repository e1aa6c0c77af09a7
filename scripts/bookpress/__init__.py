"""
bookpress — ebook manuscript build and link-check toolchain.

Public API:
    from bookpress.config import BuildConfig
    from bookpress.resolve import resolve_manifest, build_document_body
    from bookpress.builders import BUILDERS, DEFAULT_FORMATS, build_job
    from bookpress.links import LinkValidator, extract_uris
    from bookpress.errors import DetectedErrors
"""
