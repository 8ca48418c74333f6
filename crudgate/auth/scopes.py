import re
from typing import FrozenSet, Iterable, Optional

# sentinel required-scope: any resolved key passes
ANY_SCOPE = "any"

_SCOPE_DELIMITERS = re.compile(r"[,; .|]+")


def parse_scopes(scopes: Optional[str]) -> FrozenSet[str]:
    """Split a stored scopes string on any run of , ; space . or |"""
    if not scopes:
        return frozenset()
    return frozenset(p for p in _SCOPE_DELIMITERS.split(str(scopes)) if p)


def has_scope(granted: Iterable[str], required: str) -> bool:
    if required == ANY_SCOPE:
        return True
    return required in set(granted)
