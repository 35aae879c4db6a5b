"""Media folder indexing toolkit."""

__version__ = "0.1.0"
