"""Wait-time module ports."""

from typing import Protocol

from src.modules.catalog.domain.catalog import MasterEntry
from src.modules.waits.domain.entities import LiveStatus, Snapshot


class StatusFetcher(Protocol):
    """Fetch one attraction's live status.

    失败时抛出 FetchError 子类。
    """

    async def fetch_status(self, entry: MasterEntry) -> LiveStatus: ...


class SnapshotRepository(Protocol):
    """Best-effort persistence of the last completed refresh."""

    async def save(self, snapshot: Snapshot) -> None: ...

    async def load(self) -> Snapshot | None: ...

    async def clear(self) -> None: ...


class FavoritesRepository(Protocol):
    """Persistence of the favorite attraction ids."""

    async def load(self) -> set[str]: ...

    async def save(self, favorites: set[str]) -> None: ...
