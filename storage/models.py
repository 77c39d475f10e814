"""
Storage Models
==============
Committees, volunteer submissions, and the join table linking them.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class Committee(Base):
    """A named, activatable category a volunteer can select.

    Referenced committees are disabled with is_active, never deleted.
    """

    __tablename__ = "committees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    slug = Column(String(100), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Committee {self.slug}>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "slug": self.slug,
            "name": self.name,
            "sort_order": self.sort_order,
        }


class VolunteerSubmission(Base):
    """One volunteer interest form, written once and never updated"""

    __tablename__ = "volunteer_interest_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    city_county = Column(Text, nullable=True)
    interests = Column(JSON, default=list, nullable=False)
    interest_other_text = Column(Text, nullable=True)
    experience = Column(Text, nullable=True)
    time_available = Column(Text, nullable=True)
    volunteer_format = Column(Text, nullable=True)
    motivation = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    committee_links = relationship(
        "SubmissionCommittee",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<VolunteerSubmission {self.email}>"

    def to_record(self) -> dict:
        """Row as the webhook delivers it, plus selected committee slugs"""
        return {
            "id": str(self.id),
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "city_county": self.city_county,
            "interests": list(self.interests or []),
            "interest_other_text": self.interest_other_text,
            "experience": self.experience,
            "time_available": self.time_available,
            "volunteer_format": self.volunteer_format,
            "motivation": self.motivation,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "committees": [link.committee.slug for link in self.committee_links],
        }


class SubmissionCommittee(Base):
    """Committee selected on a submission; only created alongside the submission"""

    __tablename__ = "volunteer_submission_committees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id = Column(
        Uuid,
        ForeignKey("volunteer_interest_submissions.id", ondelete="CASCADE"),
        nullable=False,
    )
    committee_id = Column(
        Uuid,
        ForeignKey("committees.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    submission = relationship("VolunteerSubmission", back_populates="committee_links")
    committee = relationship("Committee")

    __table_args__ = (
        UniqueConstraint("submission_id", "committee_id", name="vsc_unique"),
        Index("vsc_submission_id_idx", "submission_id"),
        Index("vsc_committee_id_created_at_idx", "committee_id", "created_at"),
    )

    def __repr__(self):
        return f"<SubmissionCommittee {self.submission_id} -> {self.committee_id}>"
