from __future__ import annotations

from collections.abc import AsyncIterator

from cad_doctree.config import get_settings
from cad_doctree.core.session import CadSession, SessionGate
from cad_doctree.host.filesystem import FileSystemCadHost

_session: CadSession | None = None


async def get_session() -> AsyncIterator[CadSession]:
    """Yield the process-wide ``CadSession``, creating it lazily on first call."""
    global _session  # noqa: PLW0603
    if _session is None:
        _session = CadSession(FileSystemCadHost(), SessionGate(get_settings().session_timeout))
    yield _session


async def shutdown_session() -> None:
    global _session  # noqa: PLW0603
    if _session is not None:
        await _session.shutdown()
        _session = None
