"""Tests for the notification ledger use cases."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from careerzone.application.use_cases.notifications import (
    NotificationLedger,
    NotificationPayload,
    merge_counter,
    notify_application_status_changed,
    notify_application_submitted,
    notify_interview_scheduled_change,
    notify_job_alert,
    notify_job_recommendation,
    notify_new_applicant,
    notify_offer_response,
    notify_profile_viewed,
)
from careerzone.domain.entities import (
    NOTIFICATION_TYPE_APPLICATION,
    NOTIFICATION_TYPE_INTERVIEW,
    NOTIFICATION_TYPE_JOB_ALERT,
    NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
    NOTIFICATION_TYPE_SYSTEM,
    EntityReference,
    Notification,
)
from careerzone.domain.exceptions import (
    ConflictError,
    DuplicateKeyError,
    LedgerStorageError,
    NotFoundError,
    ValidationError,
)
from careerzone.infrastructure.database import SessionLocal
from careerzone.infrastructure.repositories import NotificationRepository
from careerzone.infrastructure.retention import NotificationRetentionSweeper
from careerzone.utils import now_in_app_timezone


class RecordingNotifier:
    def __init__(self) -> None:
        self.dispatched: list[tuple[Notification, bool]] = []

    def dispatch(self, notification: Notification, *, created: bool = True) -> None:
        self.dispatched.append((notification, created))


class ExplodingNotifier:
    def dispatch(self, notification: Notification, *, created: bool = True) -> None:
        raise RuntimeError("socket closed")


def _payload(title: str = "Heads up", message: str = "Something happened", **metadata) -> NotificationPayload:
    return NotificationPayload(title=title, message=message, metadata=metadata)


def test_untagged_events_are_always_stored(session) -> None:
    ledger = NotificationLedger(session)

    first, first_created = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    second, second_created = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())

    assert first_created is True
    assert second_created is True
    assert first.id != second.id
    assert first.aggregation_key is None
    assert ledger.get_unread_count("user-1") == 2


def test_blank_aggregation_key_is_treated_as_untagged(session) -> None:
    ledger = NotificationLedger(session)

    ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(), aggregation_key="  ")
    ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(), aggregation_key="")

    assert ledger.list_for_user("user-1").total_items == 2


def test_events_with_same_key_collapse_into_one_row(session) -> None:
    ledger = NotificationLedger(session)

    first, created = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="alert:42"
    )
    assert created is True
    assert first.metadata["count"] == 1

    for _ in range(2):
        merged, created = ledger.record_event(
            "user-1",
            NOTIFICATION_TYPE_JOB_ALERT,
            _payload(message="Newer content"),
            aggregation_key="alert:42",
        )
        assert created is False

    assert merged.id == first.id
    assert merged.metadata["count"] == 3
    assert merged.message == "Newer content"
    assert ledger.list_for_user("user-1").total_items == 1


def test_key_is_scoped_by_user_and_type(session) -> None:
    ledger = NotificationLedger(session)

    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")
    ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(), aggregation_key="k")
    ledger.record_event("user-2", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")
    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="other")

    assert ledger.list_for_user("user-1").total_items == 3
    assert ledger.list_for_user("user-2").total_items == 1


def test_job_applicants_rollup_counts_distinct_applicants(session) -> None:
    ledger = NotificationLedger(session)

    for candidate_id, name in [("c-1", "Ann"), ("c-2", "Bob"), ("c-3", "Cid")]:
        notification = notify_new_applicant(
            ledger,
            recruiter_id="recruiter-1",
            job_id="job-7",
            job_title="Backend Engineer",
            candidate_profile_id=candidate_id,
            candidate_name=name,
        )

    page = ledger.list_for_user("recruiter-1")
    assert page.total_items == 1
    assert notification.type == NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP
    assert notification.aggregation_key == "job:job-7:applicants"
    assert notification.metadata["total_applicants"] == 3
    assert notification.metadata["applicant_ids"] == ["c-1", "c-2", "c-3"]
    assert [item["applicant_name"] for item in notification.metadata["latest_applicants"]] == [
        "Cid",
        "Bob",
    ]
    assert notification.message == 'Cid, Bob and 1 other applied to your "Backend Engineer" job.'
    assert notification.entity == EntityReference(type="Job", id="job-7")


def test_job_applicants_rollup_ignores_repeat_applicant(session) -> None:
    ledger = NotificationLedger(session)

    for _ in range(2):
        notification = notify_new_applicant(
            ledger,
            recruiter_id="recruiter-1",
            job_id="job-7",
            job_title="Backend Engineer",
            candidate_profile_id="c-1",
            candidate_name="Ann",
        )

    assert notification.metadata["total_applicants"] == 1
    assert notification.message == 'Ann applied to your "Backend Engineer" job.'


def test_merged_rollup_resurfaces_as_unread(session) -> None:
    ledger = NotificationLedger(session)
    rollup, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="alert:1"
    )
    ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(title="Later"))
    ledger.mark_read(rollup.id, "user-1")

    merged, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="alert:1"
    )

    assert merged.is_read is False
    assert merged.read_at is None
    assert merged.created_at >= rollup.created_at
    assert ledger.list_for_user("user-1").items[0].id == rollup.id


def test_custom_merger_registry_is_used(session) -> None:
    def keep_first(existing, payload):
        return payload if existing is None else NotificationPayload(
            title=existing.title, message=existing.message, metadata=existing.metadata
        )

    ledger = NotificationLedger(session, mergers={NOTIFICATION_TYPE_JOB_ALERT: keep_first})

    ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(title="First"), aggregation_key="k"
    )
    merged, created = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(title="Second"), aggregation_key="k"
    )
    counted, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_SYSTEM, _payload(), aggregation_key="k"
    )

    assert created is False
    assert merged.title == "First"
    assert counted.metadata["count"] == 1


def test_lost_insert_race_is_retried_as_merge(session, monkeypatch) -> None:
    ledger = NotificationLedger(session)
    repository = ledger._repository
    original_lookup = repository.get_by_aggregation_key
    calls = {"count": 0}

    def racing_lookup(**kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            with SessionLocal() as other_session:
                NotificationLedger(other_session).record_event(
                    "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k"
                )
            return None
        return original_lookup(**kwargs)

    monkeypatch.setattr(repository, "get_by_aggregation_key", racing_lookup)

    notification, created = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k"
    )

    assert created is False
    assert calls["count"] == 2
    assert notification.metadata["count"] == 2
    assert ledger.list_for_user("user-1").total_items == 1


def test_race_exhaustion_raises_duplicate_key(session, monkeypatch) -> None:
    ledger = NotificationLedger(session, max_attempts=2)
    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")

    monkeypatch.setattr(ledger._repository, "get_by_aggregation_key", lambda **kwargs: None)

    with pytest.raises(DuplicateKeyError) as excinfo:
        ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")

    assert excinfo.value.aggregation_key == "k"
    assert ledger.list_for_user("user-1").total_items == 1


def test_mark_read_is_idempotent(session) -> None:
    ledger = NotificationLedger(session)
    notification, _ = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())

    first = ledger.mark_read(notification.id, "user-1")
    second = ledger.mark_read(notification.id, "user-1")

    assert first.is_read is True
    assert first.read_at is not None
    assert second.read_at == first.read_at
    assert ledger.get_unread_count("user-1") == 0


def test_mark_read_of_foreign_or_missing_notification_fails(session) -> None:
    ledger = NotificationLedger(session)
    notification, _ = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())

    with pytest.raises(NotFoundError):
        ledger.mark_read(notification.id, "user-2")
    with pytest.raises(NotFoundError):
        ledger.mark_read(9999, "user-1")

    assert ledger.get_unread_count("user-1") == 1


def test_mark_all_read_reports_modified_rows(session) -> None:
    ledger = NotificationLedger(session)
    first, _ = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    for _ in range(2):
        ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    ledger.record_event("user-2", NOTIFICATION_TYPE_SYSTEM, _payload())
    ledger.mark_read(first.id, "user-1")

    assert ledger.mark_all_read("user-1") == 2
    assert ledger.mark_all_read("user-1") == 0
    assert ledger.get_unread_count("user-1") == 0
    assert ledger.get_unread_count("user-2") == 1


def test_mark_many_read_only_touches_own_unread_rows(session) -> None:
    ledger = NotificationLedger(session)
    own, _ = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    foreign, _ = ledger.record_event("user-2", NOTIFICATION_TYPE_SYSTEM, _payload())

    assert ledger.mark_many_read([own.id, foreign.id], "user-1") == 1
    assert ledger.mark_many_read([own.id], "user-1") == 0
    assert ledger.mark_many_read([], "user-1") == 0
    assert ledger.get_unread_count("user-2") == 1


def test_list_for_user_paginates_newest_first(session) -> None:
    ledger = NotificationLedger(session)
    created = [
        ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(title=f"n{index}"))[0]
        for index in range(5)
    ]
    ledger.mark_read(created[0].id, "user-1")

    first_page = ledger.list_for_user("user-1", limit=2)
    assert [item.title for item in first_page.items] == ["n4", "n3"]
    assert first_page.total_items == 5
    assert first_page.total_pages == 3

    last_page = ledger.list_for_user("user-1", page=3, limit=2)
    assert [item.title for item in last_page.items] == ["n0"]

    unread = ledger.list_for_user("user-1", unread_only=True)
    assert unread.total_items == 4
    assert all(not item.is_read for item in unread.items)


def test_list_for_user_clamps_paging(session) -> None:
    ledger = NotificationLedger(session)

    assert ledger.list_for_user("user-1").limit == 10
    assert ledger.list_for_user("user-1", limit=500).limit == 50
    assert ledger.list_for_user("user-1", limit=0).limit == 1
    assert ledger.list_for_user("user-1", page=0).current_page == 1
    assert ledger.list_for_user("user-1").total_pages == 0


@pytest.mark.parametrize(
    ("user_id", "notification_type", "payload"),
    [
        ("", NOTIFICATION_TYPE_SYSTEM, _payload()),
        ("user-1", "newsletter", _payload()),
        ("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(title="  ")),
        ("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(message="")),
    ],
)
def test_invalid_events_are_rejected(session, user_id, notification_type, payload) -> None:
    ledger = NotificationLedger(session)

    with pytest.raises(ValidationError):
        ledger.record_event(user_id, notification_type, payload)

    assert ledger.list_for_user("user-1").total_items == 0


def test_notifier_receives_created_and_merged_events(session) -> None:
    notifier = RecordingNotifier()
    ledger = NotificationLedger(session, notifier=notifier)

    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")
    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")

    assert [created for _, created in notifier.dispatched] == [True, False]
    assert notifier.dispatched[0][0].id == notifier.dispatched[1][0].id


def test_notifier_failure_does_not_fail_the_event(session) -> None:
    ledger = NotificationLedger(session, notifier=ExplodingNotifier())

    notification, created = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_SYSTEM, _payload()
    )

    assert created is True
    assert notification.id is not None


def test_purge_expired_removes_only_old_rows(session) -> None:
    ledger = NotificationLedger(session, retention_days=30)
    ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    now = now_in_app_timezone()

    assert ledger.purge_expired(now=now) == 0
    assert ledger.purge_expired(now=now + timedelta(days=31)) == 1
    assert ledger.list_for_user("user-1").total_items == 0


def test_retention_sweeper_deletes_expired_rows(session) -> None:
    NotificationLedger(session).record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    sweeper = NotificationRetentionSweeper(
        SessionLocal, retention_days=7, interval_seconds=0
    )

    assert sweeper.sweep_once(now=now_in_app_timezone() + timedelta(days=1)) == 0
    assert sweeper.sweep_once(now=now_in_app_timezone() + timedelta(days=8)) == 1
    assert NotificationRepository(session).count_for_user("user-1") == 0


def test_event_helpers_store_expected_notifications(session) -> None:
    ledger = NotificationLedger(session)

    submitted = notify_application_submitted(
        ledger,
        candidate_id="cand-1",
        application_id="app-9",
        job_id="job-7",
        job_title="Backend Engineer",
    )
    viewed = notify_profile_viewed(
        ledger, candidate_id="cand-1", recruiter_id="rec-3", company_name="Acme"
    )
    for _ in range(2):
        recommended = notify_job_recommendation(
            ledger,
            candidate_id="cand-1",
            job_id="job-8",
            job_title="Data Engineer",
            company_name="Acme",
        )

    assert submitted.type == NOTIFICATION_TYPE_APPLICATION
    assert submitted.entity == EntityReference(type="Application", id="app-9")
    assert viewed.message == "Acme viewed your profile."
    assert recommended.aggregation_key == "job:job-8:recommendation"
    assert recommended.metadata["count"] == 2

    status = notify_application_status_changed(
        ledger,
        candidate_id="cand-1",
        application_id="app-9",
        job_id="job-7",
        job_title="Backend Engineer",
        company_name="Acme",
        status="SUITABLE",
    )
    assert status.type == NOTIFICATION_TYPE_APPLICATION
    assert status.title == "Application status updated"
    assert status.message == (
        'The employer marked your application for "Backend Engineer" at Acme as a good fit.'
    )
    assert status.metadata["status"] == "SUITABLE"

    response = notify_offer_response(
        ledger,
        recruiter_id="rec-3",
        application_id="app-9",
        job_id="job-7",
        job_title="Backend Engineer",
        candidate_name="Ann",
        status="ACCEPTED",
    )
    assert response.user_id == "rec-3"
    assert response.title == "The candidate accepted your offer"
    assert response.message == 'Ann accepted your offer for "Backend Engineer".'
    assert response.metadata["status"] == "OFFER_ACCEPTED"

    moved_to = datetime(2024, 6, 3, 15, 30, tzinfo=timezone.utc)
    notify_interview_scheduled_change(
        ledger, user_id="cand-1", interview_id="int-4", room_name="Tech round", change="reminder"
    )
    interview = notify_interview_scheduled_change(
        ledger,
        user_id="cand-1",
        interview_id="int-4",
        room_name="Tech round",
        change="rescheduled",
        scheduled_at=moved_to,
    )
    assert interview.type == NOTIFICATION_TYPE_INTERVIEW
    assert interview.aggregation_key == "interview:int-4:schedule"
    assert interview.title == "Interview rescheduled"
    assert interview.metadata["change"] == "rescheduled"
    assert interview.metadata["scheduled_at"] == moved_to.isoformat()
    assert interview.metadata["count"] == 2

    notify_job_alert(
        ledger, user_id="cand-1", subscription_id="sub-5", job_ids=["job-1"], keyword="python"
    )
    alert = notify_job_alert(
        ledger,
        user_id="cand-1",
        subscription_id="sub-5",
        job_ids=["job-2", "job-3"],
        keyword="python",
    )
    assert alert.type == NOTIFICATION_TYPE_JOB_ALERT
    assert alert.aggregation_key == "job_alert:sub-5"
    assert alert.message == '2 new jobs match your search for "python".'
    assert alert.metadata["job_ids"] == ["job-2", "job-3"]
    assert alert.metadata["count"] == 2

    assert ledger.list_for_user("cand-1").total_items == 6
    assert ledger.list_for_user("rec-3").total_items == 1


def test_event_helpers_reject_unknown_values(session) -> None:
    ledger = NotificationLedger(session)

    with pytest.raises(ValidationError):
        notify_interview_scheduled_change(
            ledger, user_id="cand-1", interview_id="int-4", room_name="Tech", change="moved"
        )
    with pytest.raises(ValidationError):
        notify_job_alert(ledger, user_id="cand-1", subscription_id="sub-5", job_ids=[], keyword="go")
    with pytest.raises(ValidationError):
        notify_offer_response(
            ledger,
            recruiter_id="rec-3",
            application_id="app-9",
            job_id="job-7",
            job_title="Backend Engineer",
            candidate_name="Ann",
            status="MAYBE",
        )

    assert ledger.list_for_user("cand-1").total_items == 0


def test_counter_merger_counts_from_existing_metadata() -> None:
    existing = Notification(
        id=1,
        user_id="user-1",
        type=NOTIFICATION_TYPE_JOB_ALERT,
        title="t",
        message="m",
        metadata={"count": 4, "source": "digest"},
    )

    merged = merge_counter(existing, _payload(extra="yes"))

    assert merged.metadata == {"count": 5, "source": "digest", "extra": "yes"}


def test_counter_merger_adds_caller_supplied_count(session) -> None:
    ledger = NotificationLedger(session)

    first, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(count=3), aggregation_key="digest"
    )
    merged, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(count=4), aggregation_key="digest"
    )

    assert first.metadata["count"] == 3
    assert merged.metadata["count"] == 7


def test_concurrent_events_on_one_key_keep_every_count(session, run_concurrently) -> None:
    NotificationLedger(session).record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k"
    )

    def worker(_: int) -> None:
        with SessionLocal() as worker_session:
            NotificationLedger(worker_session, max_attempts=50).record_event(
                "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k"
            )

    run_concurrently(worker, 10)

    with SessionLocal() as check_session:
        page = NotificationLedger(check_session).list_for_user("user-1")
        assert page.total_items == 1
        assert page.items[0].metadata["count"] == 11


def test_concurrent_applicants_are_all_counted(session, run_concurrently) -> None:
    def worker(index: int) -> None:
        with SessionLocal() as worker_session:
            notify_new_applicant(
                NotificationLedger(worker_session, max_attempts=50),
                recruiter_id="recruiter-1",
                job_id="J1",
                job_title="Backend Engineer",
                candidate_profile_id=f"c-{index}",
                candidate_name=f"Candidate {index}",
            )

    run_concurrently(worker, 10)

    with SessionLocal() as check_session:
        page = NotificationLedger(check_session).list_for_user("recruiter-1")
        assert page.total_items == 1
        rollup = page.items[0]
        assert rollup.metadata["total_applicants"] == 10
        assert sorted(rollup.metadata["applicant_ids"]) == sorted(f"c-{index}" for index in range(10))


def test_update_with_stale_version_is_rejected(session) -> None:
    ledger = NotificationLedger(session)
    stored, _ = ledger.record_event(
        "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k"
    )
    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")
    repository = NotificationRepository(session)

    with pytest.raises(ConflictError):
        repository.update(replace(stored, title="Stale write"))

    current = repository.get(stored.id)
    assert current.version == stored.version + 1
    assert current.title == "Heads up"
    assert current.metadata["count"] == 2


def test_update_of_deleted_notification_is_not_found(session) -> None:
    ledger = NotificationLedger(session)
    stored, _ = ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload())
    ledger.purge_expired(now=now_in_app_timezone() + timedelta(days=31))

    with pytest.raises(NotFoundError):
        NotificationRepository(session).update(stored)


def test_unserializable_metadata_on_insert_raises_storage_error(session) -> None:
    ledger = NotificationLedger(session)

    with pytest.raises(LedgerStorageError):
        ledger.record_event("user-1", NOTIFICATION_TYPE_SYSTEM, _payload(bad={1, 2}))

    assert ledger.list_for_user("user-1").total_items == 0


def test_unserializable_metadata_on_merge_raises_storage_error(session) -> None:
    ledger = NotificationLedger(session)
    ledger.record_event("user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(), aggregation_key="k")

    with pytest.raises(LedgerStorageError):
        ledger.record_event(
            "user-1", NOTIFICATION_TYPE_JOB_ALERT, _payload(bad={1, 2}), aggregation_key="k"
        )

    stored = ledger.list_for_user("user-1").items
    assert len(stored) == 1
    assert stored[0].metadata == {"count": 1}
