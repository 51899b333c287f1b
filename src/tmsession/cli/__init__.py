"""Command line interface for tm."""
