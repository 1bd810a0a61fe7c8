"""Service layer for papertrade."""
