"""In-memory cache backends for analysis results."""
