"""Board/part outline reconstruction from outline-layer graphics."""

__version__ = "0.1.0"
