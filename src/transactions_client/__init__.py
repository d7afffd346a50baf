"""Client-side consistency layer for the transactions CRUD service."""

__version__ = "0.1.0"
