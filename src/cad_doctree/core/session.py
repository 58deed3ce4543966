"""Single-owner access to the CAD host automation session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from cad_doctree.core.paths import canonical
from cad_doctree.core.ports.cad_host import CadHost, DocumentHandle
from cad_doctree.errors import NoSessionError, SessionBusyError

logger = logging.getLogger(__name__)


class SessionGate:
    """Mutual exclusion around the host with a bounded wait.

    Requests queue on the lock in arrival order; a request that cannot
    acquire it within ``timeout`` seconds fails with ``SessionBusyError``.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self.timeout):
                await self._lock.acquire()
        except TimeoutError as exc:
            raise SessionBusyError(f"CAD session busy, gave up after {self.timeout:g}s") from exc
        try:
            yield
        finally:
            self._lock.release()


class CadSession:
    """The process-wide host session: host, gate and the open assembly."""

    def __init__(self, host: CadHost, gate: SessionGate | None = None) -> None:
        self.host = host
        self.gate = gate or SessionGate()
        self._assembly: DocumentHandle | None = None

    @property
    def is_open(self) -> bool:
        return self._assembly is not None

    @property
    def active_assembly(self) -> Path | None:
        return self._assembly.path if self._assembly is not None else None

    def require_open(self) -> DocumentHandle:
        if self._assembly is None:
            raise NoSessionError("No assembly is open. Call open-assembly first.")
        return self._assembly

    async def open_assembly(self, path: str | Path) -> Path:
        async with self.gate.hold():
            if self._assembly is not None:
                await self.host.close(self._assembly)
                self._assembly = None
            self._assembly = await self.host.open(path, writable=True)
            logger.info("Opened assembly %s", self._assembly.path)
            return self._assembly.path

    async def close_assembly(self) -> Path | None:
        async with self.gate.hold():
            if self._assembly is None:
                logger.info("Close requested with no open assembly")
                return None
            handle, self._assembly = self._assembly, None
            await self.host.close(handle)
            logger.info("Closed assembly %s", handle.path)
            return handle.path

    @asynccontextmanager
    async def document(self, path: str | Path, writable: bool = False) -> AsyncIterator[DocumentHandle]:
        """Open *path* under the gate and close it when the block exits."""
        async with self.gate.hold():
            active = self._assembly
            if active is not None and active.path == canonical(path) and (active.writable or not writable):
                yield active
                return
            handle = await self.host.open(path, writable=writable)
            try:
                yield handle
            finally:
                await self.host.close(handle)

    async def shutdown(self) -> None:
        if self._assembly is not None:
            await self.host.close(self._assembly)
            self._assembly = None
        await self.host.dispose()
