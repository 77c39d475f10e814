"""
Sync Module
===========
Data synchronization from volunteer submissions to Mailchimp.

Available syncs:
- volunteers: Member merge fields and volunteer tags for one submission
"""

from sync.volunteers import VolunteerSync, extract_record, run_volunteer_sync

__all__ = [
    'VolunteerSync',
    'extract_record',
    'run_volunteer_sync',
]
