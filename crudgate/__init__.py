"""Table-agnostic REST gateway over SQLite and MySQL."""

__version__ = "0.1.0"
