"""Command-line interface for pdf2note."""
