"""
Session accrual: replay completed sessions since the anchor and count what the
student consumed. Totals run from the anchor and are never reset per cycle;
splitting into cycles is the classifier's job.
"""
import logging
from operator import itemgetter

from billing.errors import InvalidInputError
from billing.records import (
    ATTENDED_MARKS,
    AccrualResult,
    CycleAnchor,
    CycleConfig,
    MARK_ABSENT,
    MARK_LATE,
    MARK_STATUSES,
    SESSION_COMPLETED,
    SESSION_STATUSES,
    to_timestamp,
)

logger = logging.getLogger(__name__)


def billable_timeline(group_id, anchor: CycleAnchor, config: CycleConfig, sessions, now):
    """
    Return [(session_at, session)] for completed sessions of the group inside
    (anchor, min(now, semester_end)] and not before semester_start, oldest first.
    Every session date is validated, including those that end up filtered out.
    """
    upper = now if config.semester_end is None else min(now, config.semester_end)
    seen_ids = set()
    timeline = []
    for session in sessions:
        session_at = to_timestamp(session.date, f"Session {session.id}")
        if session.status not in SESSION_STATUSES:
            raise InvalidInputError(f"Session {session.id} has unknown status {session.status!r}")
        if session.group_id != group_id:
            logger.debug("[billing] session %s belongs to group %s, skipped", session.id, session.group_id)
            continue
        if session.id in seen_ids:
            raise InvalidInputError(f"Session {session.id} is listed twice")
        seen_ids.add(session.id)
        if session.status != SESSION_COMPLETED:
            continue
        if session_at > upper:
            continue
        if config.semester_start is not None and session_at < config.semester_start:
            continue
        if not anchor.admits(session_at):
            continue
        timeline.append((session_at, session))
    # Stable: sessions sharing a timestamp keep the order they were supplied in
    timeline.sort(key=itemgetter(0))
    return timeline


def marks_for_student(student_id, marks):
    """Map session_id -> mark status for one student; a second mark for the same session is rejected."""
    by_session = {}
    for mark in marks:
        if mark.student_id != student_id:
            continue
        if mark.status not in MARK_STATUSES:
            raise InvalidInputError(
                f"Attendance for student {student_id} in session {mark.session_id} has unknown status {mark.status!r}"
            )
        if mark.session_id in by_session:
            raise InvalidInputError(
                f"Student {student_id} has more than one attendance mark for session {mark.session_id}"
            )
        by_session[mark.session_id] = mark.status
    return by_session


def walk_sessions(student_id, group_id, anchor: CycleAnchor, config: CycleConfig, sessions, marks, now) -> AccrualResult:
    """
    Count countable and attended sessions since the anchor.

    A missing mark is an absence. present/late always count; absent counts only
    when the group bills absences.
    """
    now = to_timestamp(now, "now")
    timeline = billable_timeline(group_id, anchor, config, sessions, now)
    mark_by_session = marks_for_student(student_id, marks)

    attended = 0
    absent = 0
    late = 0
    countable_dates = []
    for session_at, session in timeline:
        mark = mark_by_session.get(session.id, MARK_ABSENT)
        was_there = mark in ATTENDED_MARKS
        if was_there:
            attended += 1
            if mark == MARK_LATE:
                late += 1
        else:
            absent += 1
        if was_there or config.count_absences:
            countable_dates.append(session_at)

    result = AccrualResult(
        countable_sessions=len(countable_dates),
        attended_sessions=attended,
        absent_sessions=absent,
        late_sessions=late,
        walked_sessions=len(timeline),
        countable_dates=tuple(countable_dates),
        first_session_at=timeline[0][0] if timeline else None,
        last_session_at=timeline[-1][0] if timeline else None,
    )
    logger.debug(
        "[billing] student=%s group=%s walked=%s countable=%s attended=%s absent=%s",
        student_id, group_id, result.walked_sessions, result.countable_sessions,
        result.attended_sessions, result.absent_sessions,
    )
    return result
