"""Resumable batch dispatch of YouTube video IDs to a comment-parsing agent."""

__version__ = "0.1.0"

__all__ = ["__version__"]
