"""
Offline dataset quality report.

Summarizes the buildings dataset before a tour runs on it: how many records
parsed, which were skipped and why, and which identifiers or display names
collide (colliding ids would make two buildings share one tracked state).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Literal

from artour.catalog.loader import DatasetLoad

Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class QualityIssue:
    severity: Severity
    code: str
    message: str
    examples: list[str] = field(default_factory=list)


def build_quality_report(load: DatasetLoad) -> dict[str, Any]:
    issues: list[QualityIssue] = []

    if load.errors:
        issues.append(
            QualityIssue(
                severity="warning",
                code="malformed_records",
                message=f"{len(load.errors)} record(s) skipped.",
                examples=[f"#{e.index} {e.record_id or '?'}: {e.reason}" for e in load.errors[:10]],
            )
        )

    id_counts = Counter(b.id for b in load.buildings)
    dup_ids = sorted(k for k, v in id_counts.items() if v > 1)
    if dup_ids:
        issues.append(
            QualityIssue(
                severity="error",
                code="duplicate_ids",
                message="Duplicate building ids in dataset.",
                examples=dup_ids[:10],
            )
        )

    name_counts = Counter(b.name.casefold() for b in load.buildings)
    dup_names = sorted(k for k, v in name_counts.items() if v > 1)
    if dup_names:
        issues.append(
            QualityIssue(
                severity="warning",
                code="duplicate_names",
                message="Several buildings share a display name.",
                examples=dup_names[:10],
            )
        )

    missing_enrichment = [b.id for b in load.buildings if not (b.image_url or b.description_url)]
    if missing_enrichment:
        issues.append(
            QualityIssue(
                severity="warning",
                code="no_enrichment_urls",
                message=f"{len(missing_enrichment)} building(s) have neither imageUrl nor descriptionUrl.",
                examples=missing_enrichment[:10],
            )
        )

    return {
        "source": load.source,
        "building_count": len(load.buildings),
        "skipped_count": len(load.errors),
        "ok": not any(i.severity == "error" for i in issues),
        "issues": [
            {"severity": i.severity, "code": i.code, "message": i.message, "examples": i.examples}
            for i in issues
        ],
    }
