"""Shared ``global`` scope bound into every render context."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from zclgen.store.database import Database

T = TypeVar("T")


@dataclass(frozen=True)
class GenerationScope:
    """Database handle plus the metadata package templates render against."""

    db: Database
    package_id: int

    def read(self, fn: Callable[..., T], *args: object) -> T:
        """Run ``fn(tx, *args)`` in a read-only transaction."""
        with self.db.reader() as tx:
            return fn(tx, *args)

    async def query(self, fn: Callable[..., T], *args: object) -> T:
        """Run ``fn(tx, package_id, *args)`` in a worker thread."""
        return await asyncio.to_thread(self.read, fn, self.package_id, *args)

    async def fetch(self, fn: Callable[..., T], *args: object) -> T:
        """Run ``fn(tx, *args)`` in a worker thread (for by-id child lookups)."""
        return await asyncio.to_thread(self.read, fn, *args)
