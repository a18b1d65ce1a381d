"""Parsed-template cache.

Memoizes parser output keyed by ``(template identifier, content
fingerprint)``.  One cache instance is owned by a ``TemplateEngine`` (or
passed to it explicitly) and lives for the process; it is never persisted
and never evicts, since the set of built-in templates is small and fixed.
"""

from __future__ import annotations

import hashlib
import threading
from typing import Callable

from .nodes import ParsedTemplate

ParseFn = Callable[[str], ParsedTemplate]


def fingerprint(raw_text: str) -> str:
    """SHA-256 hex digest of the template text."""
    return hashlib.sha256(raw_text.encode("utf-8")).hexdigest()


class TemplateCache:
    """Thread-safe ``(identifier, fingerprint) -> ParsedTemplate`` store.

    The lock is held across the parse itself so that two callers racing on
    the same key still trigger exactly one parse.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], ParsedTemplate] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_parse(self, identifier: str, raw_text: str, parse_fn: ParseFn) -> ParsedTemplate:
        key = (identifier, fingerprint(raw_text))
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
                return entry
            entry = parse_fn(raw_text)
            self._entries[key] = entry
            self.misses += 1
            return entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
