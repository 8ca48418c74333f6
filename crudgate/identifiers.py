"""
Row identity resolution for /:table/:ident routes.

One handler shape serves integer-keyed, GUID-keyed and arbitrarily-keyed
tables: a v1/v4 UUID matches the ``guid`` column, otherwise a ``key`` query
parameter names the column, otherwise ``id`` is used.
"""

import re
from enum import Enum
from typing import NamedTuple, Optional

GUID_COLUMN = "guid"
DEFAULT_COLUMN = "id"

# canonical 8-4-4-4-12 layout with the RFC 4122 variant nibble
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_GUID_VERSIONS = (1, 4)


class IdentifierKind(str, Enum):
    GUID = "guid"
    KEY = "key"
    ID = "id"


class IdentifierFilter(NamedTuple):
    column: str
    value: str
    kind: IdentifierKind


def uuid_version(ident: str) -> Optional[int]:
    """Version nibble of a canonical UUID string, or None if ident is not one."""
    if not ident or not _UUID_RE.fullmatch(ident):
        return None
    return int(ident[14], 16)


def is_guid(ident: str) -> bool:
    """True for canonical v1 or v4 UUIDs."""
    return uuid_version(ident) in _GUID_VERSIONS


def resolve_identifier(ident: str, key: Optional[str] = None) -> IdentifierFilter:
    if is_guid(ident):
        return IdentifierFilter(GUID_COLUMN, ident, IdentifierKind.GUID)
    if key:
        return IdentifierFilter(key, ident, IdentifierKind.KEY)
    return IdentifierFilter(DEFAULT_COLUMN, ident, IdentifierKind.ID)
