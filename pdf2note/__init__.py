"""Convert PDF documents into page images linked from a markdown note."""

__version__ = "0.4.0"
