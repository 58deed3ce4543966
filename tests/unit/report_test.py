"""Unit tests for report aggregation."""

from __future__ import annotations

from cad_doctree.core.report import aggregate, summarize
from cad_doctree.errors import ReasonCode
from cad_doctree.models import BatchReport


def test_empty_report_is_vacuous_success() -> None:
    merged = aggregate(BatchReport())

    assert merged.success
    assert merged.summary is not None
    assert merged.summary.success_rate == 100.0


def test_aggregate_merges_without_mutating_inputs() -> None:
    first = BatchReport()
    first.add("renamed", "/m/A.iam", target="/m/NEW-A.iam")
    first.files_to_delete.append("/m/A.iam")
    second = BatchReport()
    second.add("processed", "/d/A.idw", count=1)
    second.add("failed", "/d/B.idw", reason=ReasonCode.AMBIGUOUS_REFERENCE)
    second.files_to_delete.append("/m/A.iam")

    merged = aggregate(first, second)

    assert merged.paths("renamed") == ["/m/A.iam"]
    assert merged.paths("failed") == ["/d/B.idw"]
    assert merged.files_to_delete == ["/m/A.iam"]
    assert not merged.success
    assert first.summary is None
    assert first.failed == []


def test_success_rate_counts_attempts_against_errors() -> None:
    report = BatchReport()
    for path in ("/a", "/b", "/c"):
        report.add("processed", path)
    report.add("failed_renames", "/d", reason=ReasonCode.COLLISION)

    summary = summarize(report)

    assert summary.failed_count == 1
    assert summary.success_rate == 75.0


def test_report_serializes_camel_case() -> None:
    report = aggregate(BatchReport())
    body = report.model_dump(by_alias=True)

    assert "updatedReferences" in body
    assert "filesToDelete" in body
    assert "successRate" in body["summary"]
