"""AccessHub - identity and access management REST backend."""

__version__ = "0.1.0"
