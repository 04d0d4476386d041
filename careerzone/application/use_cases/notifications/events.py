"""Notifications emitted for marketplace events."""

from __future__ import annotations

from datetime import datetime

from careerzone.domain.entities import (
    NOTIFICATION_TYPE_APPLICATION,
    NOTIFICATION_TYPE_INTERVIEW,
    NOTIFICATION_TYPE_JOB_ALERT,
    NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
    NOTIFICATION_TYPE_PROFILE_VIEW,
    NOTIFICATION_TYPE_RECOMMENDATION,
    EntityReference,
    Notification,
)
from careerzone.domain.exceptions import ValidationError

from .ledger import NotificationLedger
from .rollups import NotificationPayload


def applicants_aggregation_key(job_id: str) -> str:
    return f"job:{job_id}:applicants"


def notify_new_applicant(
    ledger: NotificationLedger,
    *,
    recruiter_id: str,
    job_id: str,
    job_title: str,
    candidate_profile_id: str,
    candidate_name: str | None = None,
) -> Notification:
    """Fold a new application into the recruiter's per-job applicants rollup."""

    payload = NotificationPayload(
        title=f'New applicants for "{job_title}"',
        entity=EntityReference(type="Job", id=str(job_id)),
        metadata={
            "job_id": str(job_id),
            "job_title": job_title,
            "applicant_id": str(candidate_profile_id),
            "applicant_name": candidate_name or "A candidate",
            "url": f"/jobs/{job_id}/applicants",
        },
    )
    notification, _ = ledger.record_event(
        recruiter_id,
        NOTIFICATION_TYPE_JOB_APPLICANTS_ROLLUP,
        payload,
        aggregation_key=applicants_aggregation_key(job_id),
    )
    return notification


def notify_application_submitted(
    ledger: NotificationLedger,
    *,
    candidate_id: str,
    application_id: str,
    job_id: str,
    job_title: str,
) -> Notification:
    """Confirm to the candidate that the application was sent."""

    payload = NotificationPayload(
        title="Application submitted",
        message=f'Your application for "{job_title}" was sent to the employer.',
        entity=EntityReference(type="Application", id=str(application_id)),
        metadata={"job_id": str(job_id), "application_id": str(application_id)},
    )
    notification, _ = ledger.record_event(
        candidate_id, NOTIFICATION_TYPE_APPLICATION, payload
    )
    return notification


def notify_profile_viewed(
    ledger: NotificationLedger,
    *,
    candidate_id: str,
    recruiter_id: str,
    company_name: str,
) -> Notification:
    """Tell a candidate that a company looked at their profile."""

    payload = NotificationPayload(
        title="Your profile was viewed",
        message=f"{company_name} viewed your profile.",
        entity=EntityReference(type="RecruiterProfile", id=str(recruiter_id)),
        metadata={"recruiter_id": str(recruiter_id), "company_name": company_name},
    )
    notification, _ = ledger.record_event(
        candidate_id, NOTIFICATION_TYPE_PROFILE_VIEW, payload
    )
    return notification


def notify_job_recommendation(
    ledger: NotificationLedger,
    *,
    candidate_id: str,
    job_id: str,
    job_title: str,
    company_name: str | None = None,
) -> Notification:
    """Recommend a job; repeated recommendations of one job collapse."""

    where = f" at {company_name}" if company_name else ""
    payload = NotificationPayload(
        title="A job that fits your profile",
        message=f'"{job_title}"{where} matches your profile.',
        entity=EntityReference(type="Job", id=str(job_id)),
        metadata={"job_id": str(job_id), "job_title": job_title},
    )
    notification, _ = ledger.record_event(
        candidate_id,
        NOTIFICATION_TYPE_RECOMMENDATION,
        payload,
        aggregation_key=f"job:{job_id}:recommendation",
    )
    return notification


APPLICATION_STATUS_MESSAGES = {
    "SUITABLE": 'The employer marked your application for "{job_title}" at {company} as a good fit.',
    "SCHEDULED_INTERVIEW": 'The employer scheduled an interview for your application to "{job_title}" at {company}.',
    "OFFER_SENT": 'You received a job offer for "{job_title}" at {company}.',
    "OFFER_ACCEPTED": 'Welcome aboard! You are now part of {company} as "{job_title}".',
    "REJECTED": 'The employer decided not to move forward with your application for "{job_title}" at {company}.',
}

APPLICATION_STATUS_TITLES = {
    "OFFER_SENT": "Job offer received",
    "OFFER_ACCEPTED": "You got the job",
}

OFFER_RESPONSE_TITLES = {
    "OFFER_ACCEPTED": "The candidate accepted your offer",
    "OFFER_DECLINED": "The candidate declined your offer",
}


def notify_application_status_changed(
    ledger: NotificationLedger,
    *,
    candidate_id: str,
    application_id: str,
    job_id: str,
    job_title: str,
    company_name: str,
    status: str,
) -> Notification:
    """Tell a candidate that the employer moved their application."""

    template = APPLICATION_STATUS_MESSAGES.get(status)
    if template is None:
        message = (
            f'Your application for "{job_title}" at {company_name} '
            f"moved to {status}."
        )
    else:
        message = template.format(job_title=job_title, company=company_name)
    title = APPLICATION_STATUS_TITLES.get(status, "Application status updated")

    payload = NotificationPayload(
        title=title,
        message=message,
        entity=EntityReference(type="Application", id=str(application_id)),
        metadata={
            "application_id": str(application_id),
            "job_id": str(job_id),
            "status": status,
        },
    )
    notification, _ = ledger.record_event(
        candidate_id, NOTIFICATION_TYPE_APPLICATION, payload
    )
    return notification


def notify_offer_response(
    ledger: NotificationLedger,
    *,
    recruiter_id: str,
    application_id: str,
    job_id: str,
    job_title: str,
    candidate_name: str,
    status: str,
) -> Notification:
    """Tell a recruiter whether the candidate accepted or declined the offer."""

    if status == "ACCEPTED":
        status = "OFFER_ACCEPTED"
    if status not in OFFER_RESPONSE_TITLES:
        raise ValidationError(f"Unknown offer response: {status}")
    verb = "accepted" if status == "OFFER_ACCEPTED" else "declined"

    payload = NotificationPayload(
        title=OFFER_RESPONSE_TITLES[status],
        message=f'{candidate_name} {verb} your offer for "{job_title}".',
        entity=EntityReference(type="Application", id=str(application_id)),
        metadata={
            "application_id": str(application_id),
            "job_id": str(job_id),
            "status": status,
        },
    )
    notification, _ = ledger.record_event(
        recruiter_id, NOTIFICATION_TYPE_APPLICATION, payload
    )
    return notification


INTERVIEW_CHANGES = {
    "reminder": ("Upcoming interview", 'Your interview "{room}" starts at {when}.'),
    "rescheduled": ("Interview rescheduled", 'Your interview "{room}" was moved to {when}.'),
    "canceled": ("Interview canceled", 'Your interview "{room}" was canceled.'),
}


def notify_interview_scheduled_change(
    ledger: NotificationLedger,
    *,
    user_id: str,
    interview_id: str,
    room_name: str,
    change: str,
    scheduled_at: datetime | None = None,
) -> Notification:
    """Notify a participant about a reminder, reschedule or cancellation.

    Changes to one interview share the key ``interview:<id>:schedule`` so the
    participant only sees the latest state of the schedule.
    """

    if change not in INTERVIEW_CHANGES:
        raise ValidationError(f"Unknown interview change: {change}")
    title, template = INTERVIEW_CHANGES[change]
    when = scheduled_at.isoformat() if scheduled_at is not None else "the scheduled time"

    payload = NotificationPayload(
        title=title,
        message=template.format(room=room_name, when=when),
        entity=EntityReference(type="InterviewRoom", id=str(interview_id)),
        metadata={
            "interview_id": str(interview_id),
            "change": change,
            "scheduled_at": scheduled_at.isoformat() if scheduled_at is not None else None,
        },
    )
    notification, _ = ledger.record_event(
        user_id,
        NOTIFICATION_TYPE_INTERVIEW,
        payload,
        aggregation_key=f"interview:{interview_id}:schedule",
    )
    return notification


def notify_job_alert(
    ledger: NotificationLedger,
    *,
    user_id: str,
    subscription_id: str,
    job_ids: list[str],
    keyword: str,
) -> Notification:
    """Collapse the matches of a job alert subscription into one notification."""

    if not job_ids:
        raise ValidationError("job_ids must not be empty")
    noun = "job" if len(job_ids) == 1 else "jobs"
    payload = NotificationPayload(
        title=f'New jobs for "{keyword}"',
        message=f'{len(job_ids)} new {noun} match your search for "{keyword}".',
        entity=EntityReference(type="JobAlertSubscription", id=str(subscription_id)),
        metadata={
            "subscription_id": str(subscription_id),
            "job_ids": [str(job_id) for job_id in job_ids],
            "keyword": keyword,
            "url": f"/my-settings/job-alerts/{subscription_id}",
        },
    )
    notification, _ = ledger.record_event(
        user_id,
        NOTIFICATION_TYPE_JOB_ALERT,
        payload,
        aggregation_key=f"job_alert:{subscription_id}",
    )
    return notification


__all__ = [
    "applicants_aggregation_key",
    "notify_application_status_changed",
    "notify_application_submitted",
    "notify_interview_scheduled_change",
    "notify_job_alert",
    "notify_job_recommendation",
    "notify_new_applicant",
    "notify_offer_response",
    "notify_profile_viewed",
]
