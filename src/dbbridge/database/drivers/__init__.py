"""Driver implementations behind the ``DatabaseDriver`` contract."""

from .base import DatabaseDriver
from .dummy import CannedResult, DummyDriver, default_results
from .mysql import PyMySQLDriver

__all__ = [
    "DatabaseDriver",
    "CannedResult",
    "DummyDriver",
    "default_results",
    "PyMySQLDriver",
]
