from __future__ import annotations

import asyncio
import heapq
import itertools
import random
from typing import Iterable, List

import pytest

from storefront.app.config import Settings
from storefront.app.models import MenuItem, MenuTags


class VirtualClock:
    """Clock whose sleeps only complete when the test advances time."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms
        self._waiters: list = []
        self._seq = itertools.count()

    def monotonic_ms(self) -> int:
        return self.now_ms

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now_ms + round(seconds * 1000), next(self._seq), fut))
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for _, _, fut in self._waiters if not fut.done())

    async def settle(self) -> None:
        for _ in range(50):
            await asyncio.sleep(0)

    async def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        await self.settle()
        while self._waiters and self._waiters[0][0] <= target:
            deadline, _, fut = heapq.heappop(self._waiters)
            if fut.done():
                continue
            self.now_ms = deadline
            fut.set_result(None)
            await self.settle()
        self.now_ms = target
        await self.settle()


class ScriptedRandom(random.Random):
    """Returns pool members by id in a fixed order, cycling."""

    def __init__(self, ids: Iterable[str]) -> None:
        super().__init__(0)
        self._ids = list(ids)
        self._next = itertools.cycle(self._ids)
        self.draws: List[str] = []

    def choice(self, seq):  # type: ignore[override]
        wanted = next(self._next)
        for item in seq:
            if item.id == wanted:
                self.draws.append(wanted)
                return item
        raise AssertionError(f"{wanted} not in pool")


def make_item(item_id: str, price: int, name: str | None = None, **kwargs) -> MenuItem:
    return MenuItem(
        id=item_id,
        name=name or item_id,
        price=price,
        image=f"https://example.test/{item_id}.jpg",
        tags=kwargs.pop("tags", MenuTags()),
        **kwargs,
    )


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def item_a() -> MenuItem:
    return make_item("A", 50, name="Aloo Paratha")


@pytest.fixture
def item_b() -> MenuItem:
    return make_item("B", 80, name="Paneer Paratha")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_directory=tmp_path / "data", log_directory=tmp_path / "logs")
