"""
Storage Module
==============
Relational storage for volunteer submissions and committees (SQLAlchemy).
"""

from storage.models import Base, Committee, SubmissionCommittee, VolunteerSubmission
from storage.submissions import SubmissionStore

__all__ = [
    'Base',
    'Committee',
    'SubmissionCommittee',
    'VolunteerSubmission',
    'SubmissionStore',
]
