"""Merge strategies used when an event lands on an existing rollup.

A merger receives the stored notification (``None`` for the first event of a
key) and the incoming payload and returns the payload to persist. Mergers are
registered per notification type so the counting rule stays configurable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from careerzone.domain.entities import (
    NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
    EntityReference,
    Notification,
)
from careerzone.utils import now_in_app_timezone

LATEST_APPLICANTS_LIMIT = 2


@dataclass(frozen=True)
class NotificationPayload:
    """Content of an event before it is stored."""

    title: str
    message: str = ""
    entity: EntityReference | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


RollupMerger = Callable[[Notification | None, NotificationPayload], NotificationPayload]


def merge_counter(existing: Notification | None, payload: NotificationPayload) -> NotificationPayload:
    """Count events under ``metadata.count`` and keep the newest content.

    An incoming ``count`` is added to the stored one; events without a
    positive count add 1.
    """

    previous = 0
    base: dict[str, Any] = {}
    if existing is not None:
        base = dict(existing.metadata or {})
        previous = _as_int(base.get("count"))
    incoming = _as_int(payload.metadata.get("count"))
    if incoming < 1:
        incoming = 1
    metadata = {**base, **payload.metadata, "count": previous + incoming}
    return replace(payload, metadata=metadata)


def merge_job_applicants(
    existing: Notification | None, payload: NotificationPayload
) -> NotificationPayload:
    """Fold a new applicant into the "N new applicants for job X" rollup.

    Incoming metadata may carry ``applicant_id``/``applicant_name`` for the new
    applicant and an optional cumulative ``total_applicants``; the larger of
    that value and the number of distinct applicants seen wins.
    """

    previous = dict(existing.metadata or {}) if existing is not None else {}
    incoming = dict(payload.metadata)

    job_id = incoming.get("job_id", previous.get("job_id"))
    job_title = incoming.get("job_title") or previous.get("job_title") or ""

    applicant_ids: list[str] = [str(value) for value in previous.get("applicant_ids", [])]
    latest: list[dict[str, Any]] = [
        dict(item) for item in previous.get("latest_applicants", []) if isinstance(item, Mapping)
    ]

    applicant_id = incoming.get("applicant_id")
    if applicant_id is not None:
        applicant_id = str(applicant_id)
        if applicant_id not in applicant_ids:
            applicant_ids.append(applicant_id)
        latest = [item for item in latest if item.get("applicant_id") != applicant_id]
        latest.insert(
            0,
            {
                "applicant_id": applicant_id,
                "applicant_name": incoming.get("applicant_name") or "A candidate",
                "applied_at": incoming.get("applied_at") or now_in_app_timezone().isoformat(),
            },
        )
    latest = latest[:LATEST_APPLICANTS_LIMIT]

    total = max(
        len(applicant_ids),
        _as_int(incoming.get("total_applicants")),
        _as_int(previous.get("total_applicants")),
    )

    metadata = {
        key: value
        for key, value in incoming.items()
        if key not in {"applicant_id", "applicant_name", "applied_at"}
    }
    metadata.update(
        {
            "job_id": job_id,
            "job_title": job_title,
            "applicant_ids": applicant_ids,
            "latest_applicants": latest,
            "total_applicants": total,
        }
    )

    names = [item["applicant_name"] for item in latest]
    entity = payload.entity
    if entity is None and job_id is not None:
        entity = EntityReference(type="Job", id=str(job_id))
    return NotificationPayload(
        title=payload.title or f'New applicants for "{job_title}"',
        message=build_applicants_message(names, total, job_title),
        entity=entity,
        metadata=metadata,
    )


def build_applicants_message(names: list[str], total: int, job_title: str) -> str:
    """Return the rollup text, e.g. ``"Ann, Bob and 3 others applied to ..."``."""

    suffix = f'applied to your "{job_title}" job.'
    shown = names[:LATEST_APPLICANTS_LIMIT]
    if not shown:
        if total == 1:
            return f"1 candidate {suffix}"
        return f"{total} candidates {suffix}"

    others = max(total - len(shown), 0)
    if others == 0:
        return f"{', '.join(shown)} {suffix}"
    noun = "other" if others == 1 else "others"
    return f"{', '.join(shown)} and {others} {noun} {suffix}"


DEFAULT_MERGERS: dict[str, RollupMerger] = {
    NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP: merge_job_applicants,
}


def resolve_merger(
    notification_type: str, mergers: Mapping[str, RollupMerger] | None = None
) -> RollupMerger:
    registry = DEFAULT_MERGERS if mergers is None else mergers
    return registry.get(notification_type, merge_counter)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


__all__ = [
    "DEFAULT_MERGERS",
    "LATEST_APPLICANTS_LIMIT",
    "NotificationPayload",
    "RollupMerger",
    "build_applicants_message",
    "merge_counter",
    "merge_job_applicants",
    "resolve_merger",
]
