"""Merge-bot commit parsing, analysis and the repository coordinator."""
