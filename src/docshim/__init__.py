"""docshim - markdown shorthand transpiler and page search index."""

__version__ = "0.1.0"
