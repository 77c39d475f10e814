"""
Submission Store
================
The only write path for volunteer submissions and their committee links.

submit() runs as one transaction: the submission row and its committee
links are committed together or not at all. Committee ids come from the
public form, so unknown, inactive, malformed, or repeated ids are dropped
without failing the submission.
"""

import logging
import uuid
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from errors import StorageError, SubmissionError
from storage.db import get_session_factory, session_scope
from storage.models import Committee, SubmissionCommittee, VolunteerSubmission

logger = logging.getLogger(__name__)


def clean_text(value):
    """Trim free text; blank becomes None"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_email(email):
    if email is None:
        return None
    return str(email).strip().lower()


def _parse_committee_id(raw):
    try:
        return raw if isinstance(raw, uuid.UUID) else uuid.UUID(str(raw))
    except (ValueError, TypeError, AttributeError):
        return None


class SubmissionStore:
    """Transactional access to submissions and committees"""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or get_session_factory()

    def submit(
        self,
        full_name,
        email,
        phone=None,
        city_county=None,
        interests=None,
        interest_other_text=None,
        experience=None,
        time_available=None,
        volunteer_format=None,
        motivation=None,
        committee_ids=None,
    ) -> str:
        """Insert a submission and its committee links atomically

        Returns:
            str: The new submission id

        Raises:
            SubmissionError: The submission violated a database constraint;
                nothing was written.
            StorageError: Any other database failure; nothing was written.
        """
        submission = VolunteerSubmission(
            full_name=full_name,
            email=normalize_email(email),
            phone=clean_text(phone),
            city_county=clean_text(city_county),
            interests=list(interests or []),
            interest_other_text=clean_text(interest_other_text),
            experience=clean_text(experience),
            time_available=clean_text(time_available),
            volunteer_format=clean_text(volunteer_format),
            motivation=clean_text(motivation),
        )

        try:
            with session_scope(self.session_factory) as session:
                session.add(submission)
                session.flush()

                linked = self._link_committees(session, submission.id, committee_ids or [])
                submission_id = str(submission.id)
        except IntegrityError as e:
            raise SubmissionError(f"Submission rejected: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Submission could not be stored: {e}") from e

        logger.info(f"Stored submission {submission_id} with {linked} committee(s)")
        return submission_id

    def _link_committees(self, session, submission_id, committee_ids) -> int:
        """Add a link for each active committee id; returns links created"""
        candidates = []
        for raw in committee_ids:
            committee_id = _parse_committee_id(raw)
            if committee_id is None:
                logger.warning(f"Skipping malformed committee id: {raw!r}")
                continue
            if committee_id not in candidates:
                candidates.append(committee_id)

        if not candidates:
            return 0

        active_ids = set(session.execute(
            select(Committee.id).where(
                Committee.id.in_(candidates),
                Committee.is_active.is_(True),
            )
        ).scalars())

        linked = 0
        for committee_id in candidates:
            if committee_id not in active_ids:
                logger.warning(f"Skipping unknown or inactive committee: {committee_id}")
                continue
            session.add(SubmissionCommittee(submission_id=submission_id, committee_id=committee_id))
            linked += 1

        session.flush()
        return linked

    def list_active_committees(self) -> list:
        """Committees shown on the public form"""
        try:
            with session_scope(self.session_factory) as session:
                committees = session.execute(
                    select(Committee)
                    .where(Committee.is_active.is_(True))
                    .order_by(Committee.sort_order, Committee.name)
                ).scalars()
                return [c.to_dict() for c in committees]
        except SQLAlchemyError as e:
            raise StorageError(f"Committees could not be loaded: {e}") from e

    def get_submission(self, submission_id):
        """Load a stored submission as a sync record (None if not found)"""
        parsed = _parse_committee_id(submission_id)
        if parsed is None:
            return None

        try:
            with session_scope(self.session_factory) as session:
                submission = session.get(VolunteerSubmission, parsed)
                if submission is None:
                    return None
                return submission.to_record()
        except SQLAlchemyError as e:
            raise StorageError(f"Submission could not be loaded: {e}") from e
