"""Content-management API for serialized fiction."""

__version__ = "0.1.0"
