"""Template variant resolution.

The loader turns a template identifier plus the active project options into
raw template text.  Architecture style and database provider are the only
selectors; the lookup table is built once at construction so resolution is a
handful of dictionary lookups from most to least specific key.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import TemplateNotFoundError
from .options import Architecture, DatabaseProvider, ProjectOptions
from .sources import BUILTIN_SOURCES, TemplateId, TemplateSource

VariantKey = tuple[TemplateId, Optional[Architecture], Optional[DatabaseProvider]]


class TemplateLoader:
    """Resolves ``(identifier, options)`` to raw template text."""

    def __init__(self, sources: Iterable[TemplateSource] | None = None) -> None:
        self._table: dict[VariantKey, str] = {}
        for source in BUILTIN_SOURCES if sources is None else sources:
            key = (TemplateId(source.identifier), source.architecture, source.database)
            if key in self._table:
                raise ValueError(f"Duplicate template variant registered: {_describe(key)}")
            self._table[key] = source.text

    def resolve(self, identifier: TemplateId | str, options: ProjectOptions) -> str:
        """Return the raw text of the best-matching variant.

        Raises:
            TemplateNotFoundError: No variant is registered for the
                identifier under the given architecture and database.
        """
        identifier = TemplateId(identifier)
        arch, db = options.architecture, options.database
        for key in (
            (identifier, arch, db),
            (identifier, arch, None),
            (identifier, None, db),
            (identifier, None, None),
        ):
            text = self._table.get(key)
            if text is not None:
                return text
        raise TemplateNotFoundError(identifier.value, arch.value, db.value)

    def identifiers(self) -> list[TemplateId]:
        """Every identifier with at least one registered variant."""
        return sorted({key[0] for key in self._table}, key=lambda i: i.value)

    def variants(self, identifier: TemplateId | str) -> list[VariantKey]:
        identifier = TemplateId(identifier)
        return [key for key in self._table if key[0] is identifier]


def _describe(key: VariantKey) -> str:
    identifier, arch, db = key
    return (
        f"{identifier.value} (architecture={arch.value if arch else '*'}, "
        f"database={db.value if db else '*'})"
    )
