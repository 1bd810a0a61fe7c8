"""FastAPI web interface for papertrade."""
