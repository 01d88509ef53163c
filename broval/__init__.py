"""Typed values, vectors, records and tables, and their binary wire encoding."""

__version__ = "0.1.0"
__all__ = ["constants", "records", "shm", "sync", "tables", "values", "vector", "wire"]