"""Utility functions for dbbridge operations.

This module provides the small string and SQL helpers shared by the
metadata service, the database list and the logging layer.

Classes:
    ValidationUtils: Validation helpers
    SqlUtils: Identifier quoting, wildcard escaping and LIKE matching
    SortUtils: Natural ordering helpers

Example:
    >>> SqlUtils.backquote("my`table")
    '`my``table`'
    >>> sorted(["t10", "t2"], key=SortUtils.natural_key)
    ['t2', 't10']
"""

import re
from typing import Any, List, Pattern, Tuple


class ValidationUtils:
    """Utility class for validation operations."""

    IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

    @classmethod
    def validate_identifier(cls, identifier: str, *, allow_empty: bool = False) -> bool:
        """Validate identifier string.

        Args:
            identifier: String to validate as identifier
            allow_empty: Whether to allow empty strings

        Returns:
            True if identifier is valid

        Example:
            >>> ValidationUtils.validate_identifier("my_var_123")
            True
            >>> ValidationUtils.validate_identifier("123_invalid")
            False
        """
        if not identifier:
            return allow_empty

        return bool(cls.IDENTIFIER_PATTERN.match(identifier))


class SqlUtils:
    """Utility class for building SQL fragments."""

    @staticmethod
    def backquote(identifier: str) -> str:
        """Quote an identifier with backticks, doubling embedded backticks.

        Example:
            >>> SqlUtils.backquote("test")
            '`test`'
        """
        return "`" + identifier.replace("`", "``") + "`"

    @staticmethod
    def escape_wildcards(text: str) -> str:
        """Escape LIKE wildcards so the text matches literally.

        Example:
            >>> SqlUtils.escape_wildcards("my_db%")
            'my\\\\_db\\\\%'
        """
        return text.replace("_", "\\_").replace("%", "\\%")

    @staticmethod
    def like_to_regex(pattern: str) -> Pattern[str]:
        """Translate a SQL LIKE pattern into a compiled regular expression.

        ``%`` matches any run of characters, ``_`` a single character and a
        backslash escapes the next character. Matching is case-insensitive,
        mirroring the server's default collation for identifiers.
        """
        parts: List[str] = []
        escaped = False
        for char in pattern:
            if escaped:
                parts.append(re.escape(char))
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == "%":
                parts.append(".*")
            elif char == "_":
                parts.append(".")
            else:
                parts.append(re.escape(char))
        if escaped:
            parts.append(re.escape("\\"))
        return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class SortUtils:
    """Utility class for ordering helpers."""

    _DIGITS = re.compile(r"(\d+)")

    @classmethod
    def natural_key(cls, text: Any) -> Tuple[Tuple[int, Any], ...]:
        """Build a case-insensitive natural sort key.

        Digit runs compare numerically, everything else compares as
        lower-cased text.
        """
        key = []
        for chunk in cls._DIGITS.split(str(text)):
            if not chunk:
                continue
            if chunk.isdigit():
                key.append((0, int(chunk)))
            else:
                key.append((1, chunk.lower()))
        return tuple(key)

    @staticmethod
    def to_number(value: Any) -> float:
        """Coerce a metadata value (often a string or None) to a number."""
        if value is None or value == "":
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
