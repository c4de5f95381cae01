"""
Memoization of probe results.

Results are keyed by (language, check kind, key). A missing entry means
"not probed yet", which is distinct from a cached negative result, so
lookups return the ``MISSING`` sentinel rather than None or False.
"""

from typing import Any, Dict, Iterator, Tuple

from .types import CheckKind, Language


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ProbeCache:
    """
    Per-prober result store.

    A disabled cache remembers nothing: ``set`` is ignored and every
    lookup returns ``MISSING``.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._entries: Dict[Tuple[Language, CheckKind, str], Any] = {}

    def get(self, language: Language, kind: CheckKind, key: str) -> Any:
        """Return the cached result or ``MISSING``."""
        return self._entries.get((language, kind, key), MISSING)

    def contains(self, language: Language, kind: CheckKind, key: str) -> bool:
        return (language, kind, key) in self._entries

    def set(self, language: Language, kind: CheckKind, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[(language, kind, key)] = value

    def items(self, language: Language) -> Iterator[Tuple[CheckKind, str, Any]]:
        """Yield (kind, key, result) for one language, oldest first."""
        for (entry_language, kind, key), value in self._entries.items():
            if entry_language is language:
                yield kind, key, value

    def __len__(self) -> int:
        return len(self._entries)
