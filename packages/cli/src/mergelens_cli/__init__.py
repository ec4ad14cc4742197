"""Command-line interface for mergelens."""
