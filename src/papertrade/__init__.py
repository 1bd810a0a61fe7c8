"""papertrade: paper trading simulator core and web API."""

__version__ = "1.0.0"
