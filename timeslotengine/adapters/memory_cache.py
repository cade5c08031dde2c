"""
Process-local profile cache.
"""

from typing import Any, Dict, Optional


class InMemoryProfileCache:
    """Dictionary-backed cache with the same interface as the Redis one."""

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._entries.get(key)
        return dict(value) if value is not None else None

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        self._entries[key] = dict(value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
