"""Command-line tools for Cellarbook."""
