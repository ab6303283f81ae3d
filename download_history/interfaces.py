"""
Interfaces for revision history sources.
"""

from __future__ import annotations

from typing import Iterator, Protocol

from .models import RevisionRecord


class RevisionSource(Protocol):
    """Yield revisions of a tracked stats file, oldest first."""

    def iter_revisions(self, plugin_id: str) -> Iterator[RevisionRecord]:
        ...
