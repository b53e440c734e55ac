# src/cache/fingerprint.py — v3
"""Content fingerprints for cached artifacts.

A fingerprint summarizes the *current* state of everything that affects a
rendered artifact: a format tag, identity fields, and volatility signals
(collection sizes and their newest timestamps). Any edit that would change
the output moves at least one signal, so a stale artifact is never served
and no explicit invalidation call is needed.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

from reportcache.render.models import RecordStamp, ReportSources

# Bump whenever the rendering logic changes the shape of its output.
FORMAT_VERSION = "v2"
NIL_SENTINEL = "nil"
SEPARATOR = "|"


def fingerprint_components(components: Sequence[Any]) -> str:
    """Hash an ordered tuple of components into a SHA-256 hex digest.

    Absent values contribute NIL_SENTINEL rather than being dropped, so the
    position of every component stays fixed.
    """
    joined = SEPARATOR.join(_normalize(c) for c in components)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def report_components(sources: ReportSources) -> list[Any]:
    """Ordered fingerprint inputs of a composite report."""
    student = sources.student
    survey = sources.survey
    advisor = sources.advisor

    return [
        FORMAT_VERSION,
        sources.student_id,
        student.updated_at if student else None,
        student.user_updated_at if student else None,
        survey.id if survey else None,
        survey.updated_at if survey else None,
        advisor.id if advisor else None,
        advisor.updated_at if advisor else None,
        advisor.user_updated_at if advisor else None,
        len(sources.responses),
        _max_time(r.updated_at for r in sources.responses),
        _max_time(r.created_at for r in sources.responses),
        len(sources.feedback),
        _max_time(f.updated_at for f in sources.feedback),
        _max_time(f.created_at for f in sources.feedback),
        _max_id(sources.feedback),
        sources.status,
        sources.completion_date,
    ]


def compute_report_fingerprint(sources: ReportSources) -> str:
    """Fingerprint of a composite report's current source data."""
    return fingerprint_components(report_components(sources))


def compute_file_fingerprint(path: Path, extra: Iterable[Any] = ()) -> str:
    """Fingerprint of a static input file: version, location and content."""
    content_hash = hashlib.sha256(path.read_bytes()).hexdigest()
    return fingerprint_components(
        [FORMAT_VERSION, str(path.resolve()), content_hash, *extra]
    )


def _normalize(value: Any) -> str:
    if value is None or value == "":
        return NIL_SENTINEL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return str(value)


def _max_time(values: Iterable[datetime | None]) -> datetime | None:
    present = [_as_utc(v) for v in values if v is not None]
    return max(present) if present else None


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC so they compare with aware ones.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _max_id(records: Sequence[RecordStamp]) -> Any:
    ids = [r.id for r in records if r.id is not None]
    if not ids:
        return None
    try:
        return max(ids)
    except TypeError:
        # Mixed int/str ids: compare on their string form.
        return max(str(i) for i in ids)
