"""Command-line tools and debug helpers."""
