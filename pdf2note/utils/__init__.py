"""Shared helpers: logging, concurrency and PDF collaborators."""
