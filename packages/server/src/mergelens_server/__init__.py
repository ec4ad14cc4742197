"""FastAPI application serving merge rankings."""
