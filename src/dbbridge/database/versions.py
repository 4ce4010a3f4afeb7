# src/dbbridge/database/versions.py
"""Server version parsing and error classification.

Functions:
    version_to_int: Encode a free-form version string as one integer
    format_error: Turn a server error into a user-facing message
    is_system_schema: Recognize the server's own schemas
    needs_upgrade: Compare a server version against the supported minimum

Example:
    >>> version_to_int("10.1.22-MariaDB-")
    100122
    >>> format_error(1146, "Table 'test.x' doesn't exist")
    "#1146 - Table 'test.x' doesn't exist"
"""

import re
from dataclasses import dataclass

DEFAULT_COLLATION = "utf8_general_ci"

SYSTEM_SCHEMAS = frozenset({"information_schema", "performance_schema", "mysql", "sys"})

# client and server error numbers with dedicated guidance
CR_CONNECTION_ERROR = 2002
CR_CONN_HOST_ERROR = 2003
ER_ACCESS_DENIED_NO_PASSWORD_ERROR = 1698
ER_CANT_CREATE_TABLE = 1005

SERVER_NOT_RESPONDING = "The server is not responding."
SOCKET_NOT_CONFIGURED = (
    "The server is not responding (or the local server's socket is not correctly configured)."
)
LOGOUT_GUIDANCE = "Logout and try as another user. (logout)"
PRIVILEGE_GUIDANCE = "Please check privileges of directory containing database."
ENGINE_STATUS_GUIDANCE = "See the InnoDB engine status page for details. (engines/InnoDB/Status)"

_VERSION = re.compile(r"(\d+)(?:[.-](\d+))?(?:[.-](\d+))?")


def version_to_int(version: str) -> int:
    """Parse ``major.minor.patch`` into ``major*10000 + minor*100 + patch``.

    Missing components count as zero and anything after the third numeric
    component (vendor tags and the like) is ignored. Strings without any
    digits parse to 0.
    """
    match = _VERSION.search(version or "")
    if match is None:
        return 0
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major * 10000 + minor * 100 + patch


def format_error(error_number: int, error_message: str) -> str:
    """Classify a server error into a message fit for end users.

    Known connectivity, authentication and storage engine failures get a
    guidance text appended. Other positive error numbers are prefixed to
    the raw message; non-positive ones return the message unchanged.
    """
    error_message = error_message or ""
    if error_number <= 0:
        return error_message

    formatted = f"#{error_number} - {error_message}"
    if error_number == CR_CONNECTION_ERROR:
        return f"{formatted} - {SOCKET_NOT_CONFIGURED}"
    if error_number == CR_CONN_HOST_ERROR:
        return f"{formatted} - {SERVER_NOT_RESPONDING}"
    if error_number == ER_ACCESS_DENIED_NO_PASSWORD_ERROR:
        return f"{formatted} - {LOGOUT_GUIDANCE}"
    if error_number == ER_CANT_CREATE_TABLE:
        if "errno: 13" in error_message:
            return f"{formatted} - {PRIVILEGE_GUIDANCE}"
        return f"{formatted} - {ENGINE_STATUS_GUIDANCE}"
    return formatted


def is_system_schema(schema_name: str) -> bool:
    """Whether ``schema_name`` is one of the server's own schemas."""
    return (schema_name or "").lower() in SYSTEM_SCHEMAS


def needs_upgrade(version_int: int, minimum: int) -> bool:
    """Whether a known server version is older than ``minimum``."""
    return 0 < version_int < minimum


@dataclass(frozen=True)
class ServerVersion:
    """Version information read from a connected server."""

    version: str
    version_int: int
    comment: str = ""

    @classmethod
    def from_strings(cls, version: str, comment: str = "") -> "ServerVersion":
        return cls(version=version or "", version_int=version_to_int(version), comment=comment or "")

    @property
    def major(self) -> int:
        return self.version_int // 10000

    @property
    def is_mariadb(self) -> bool:
        return "mariadb" in self.version.lower()

    @property
    def is_percona(self) -> bool:
        return "percona" in self.comment.lower()
