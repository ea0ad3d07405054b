"""Per-scope mutual exclusion for schema version bookkeeping.

Version assignment and the is-latest flag must change one writer at a
time per (application, service) scope, while different scopes proceed in
parallel. Locks are created on demand and dropped once nobody holds or
waits on them.
"""
import asyncio
from contextlib import asynccontextmanager


def scope_key(application_id: int, service_id: int | None) -> str:
    return f"{application_id}:{service_id if service_id is not None else '-'}"


class ScopeLockRegistry:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, application_id: int, service_id: int | None):
        key = scope_key(application_id, service_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


scope_locks = ScopeLockRegistry()
