from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from cad_doctree.core.session import CadSession
from cad_doctree.errors import InvalidRequestError
from cad_doctree.models import PropertyValue

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?\s*(?P<unit>[A-Za-z_ ]*)\s*$")


@dataclass(frozen=True)
class ParameterChange:
    name: str
    value: PropertyValue


def format_expression(value: PropertyValue, current: str) -> str:
    """Numbers keep the unit of the current expression (``10 mm`` -> ``12 mm``)."""
    if isinstance(value, bool):
        raise InvalidRequestError(f"Invalid parameter value: {value!r}", field="newValue")
    if isinstance(value, str):
        return value
    match = _LEADING_NUMBER.match(current)
    unit = match.group("unit").strip() if match else ""
    number = f"{value:g}" if isinstance(value, float) else str(value)
    return f"{number} {unit}" if unit else number


async def change_parameters(session: CadSession, part_path: str | Path, changes: Iterable[ParameterChange]) -> int:
    """Apply all changes to one part, saving only when every change succeeded."""
    count = 0
    async with session.document(part_path, writable=True) as handle:
        for change in changes:
            current = await session.host.get_parameter(handle, change.name)
            expression = format_expression(change.value, current)
            await session.host.set_parameter(handle, change.name, expression)
            logger.info("Set parameter %s = %s in %s", change.name, expression, handle.path)
            count += 1
        if handle.dirty:
            await session.host.save(handle)
    return count
