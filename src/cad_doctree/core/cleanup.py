from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from cad_doctree.core.paths import canonical
from cad_doctree.core.report import aggregate
from cad_doctree.errors import ReasonCode, translate_os_error
from cad_doctree.models import BatchReport

logger = logging.getLogger(__name__)


def delete_files(paths: Iterable[str | Path]) -> BatchReport:
    """Delete exactly the listed files, one outcome per entry. No glob expansion."""
    report = BatchReport()
    for raw in paths:
        path = canonical(raw)
        if path.is_dir():
            report.add("failed_deletes", path, reason=ReasonCode.VALIDATION, detail="Not a file")
            continue
        try:
            path.unlink()
        except OSError as exc:
            error = translate_os_error(exc, path, "Delete")
            logger.warning("%s", error.message)
            report.add("failed_deletes", path, reason=error.reason, detail=error.message)
            continue
        report.add("deleted", path)
        logger.info("Deleted %s", path)
    return aggregate(report)
