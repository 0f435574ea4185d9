from __future__ import annotations

from contextlib import asynccontextmanager


class FakeSessionLocal:
    @staticmethod
    @asynccontextmanager
    async def begin():
        yield object()
