"""
Volunteer Sync
==============
Syncs one volunteer submission to the Mailchimp audience.

Triggered by a database webhook carrying the new submission row.

Steps:
1. Upsert the member (subscriber hash of the lowercased email), overwriting
   merge fields with the latest submission
2. Read the member's current tags
3. One tag batch: every volunteer-managed tag on the member -> inactive,
   every tag built from the submission -> active

Tags outside the volunteer namespace (see sync.tags) are never sent.
Each run recomputes the full tag state, so a failed run is simply retried.
"""

import logging
from clients.mailchimp import MailchimpClient, subscriber_hash
from config import Config
from errors import ConfigurationError, InvalidPayloadError
from sync.tags import build_volunteer_tags, is_volunteer_tag

logger = logging.getLogger(__name__)


# Form option codes -> text shown in the TIMEAVL merge field
TIME_AVAILABLE_LABELS = {
    "1-2_hours": "1–2 hours per week",
    "3-5_hours": "3–5 hours per week",
    "project_based": "Project-based",
}


def extract_record(payload) -> dict:
    """Unwrap a webhook body into the submission record

    Database webhooks send {"type": "INSERT", "record": {...}}; older
    triggers use "new". A bare record is accepted as-is.
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError("Invalid JSON")

    record = payload.get("record") or payload.get("new") or payload
    if not isinstance(record, dict):
        raise InvalidPayloadError("Invalid JSON")
    return record


class VolunteerSync:
    """Sync a volunteer submission to Mailchimp"""

    def __init__(self, mailchimp: MailchimpClient = None):
        self.mailchimp = mailchimp or MailchimpClient()
        self.list_id = Config.MAILCHIMP_AUDIENCE_ID

    def format_time_available(self, value: str) -> str:
        """Display text for a time_available code (raw value if unknown)"""
        if not value:
            return ""
        return TIME_AVAILABLE_LABELS.get(value, value)

    def build_merge_fields(self, record: dict) -> dict:
        """Merge fields for the member; absent values are sent as "" to clear them"""
        return {
            "FULLNAME": record.get("full_name") or "",
            "PHONE": record.get("phone") or "",
            "COUNTY": record.get("city_county") or "",
            "EXPERIENCE": record.get("experience") or "",
            "TIMEAVL": self.format_time_available(record.get("time_available")),
            "VOLFORMAT": record.get("volunteer_format") or "",
            "MOTIVATION": record.get("motivation") or "",
            "INTOTHER": record.get("interest_other_text") or "",
        }

    def build_tag_batch(self, current_tags: list, desired_tags: list) -> list:
        """Combine deactivations and activations into one tag batch

        Args:
            current_tags: Tags on the member, as returned by Mailchimp
            desired_tags: Tag names built from the submission

        Returns:
            list: {"name", "status"} directives, each name exactly once
        """
        desired = set(desired_tags)
        batch = []
        seen = set()

        for tag in current_tags:
            name = tag.get("name") or ""
            if tag.get("status", "active") != "active":
                continue
            if not is_volunteer_tag(name) or name in desired or name in seen:
                continue
            seen.add(name)
            batch.append({"name": name, "status": "inactive"})

        for name in desired_tags:
            batch.append({"name": name, "status": "active"})

        return batch

    def sync(self, record: dict, dry_run: bool = False) -> dict:
        """Run the sync for one submission record

        Args:
            record: Submission row (full_name, email, interests, ...)
            dry_run: If True, compute the tags without calling Mailchimp

        Returns:
            dict: Sync results (email, subscriber_hash, activated, deactivated)
        """
        raw_email = record.get("email") if isinstance(record, dict) else None
        if not raw_email or not str(raw_email).strip():
            raise InvalidPayloadError("Missing email")

        interests = record.get("interests")
        if interests is not None and not isinstance(interests, list):
            raise InvalidPayloadError("interests must be a list")
        if any(not isinstance(item, str) for item in interests or []):
            raise InvalidPayloadError("interests must be a list of strings")

        email = str(raw_email).strip().lower()
        member_hash = subscriber_hash(email)
        desired_tags = build_volunteer_tags(record)

        results = {
            'email': email,
            'subscriber_hash': member_hash,
            'activated': desired_tags,
            'deactivated': [],
            'dry_run': dry_run
        }

        if dry_run:
            logger.info(f"[DRY RUN] Would tag {email}: {desired_tags}")
            return results

        if not self.list_id:
            logger.error("Mailchimp audience id not configured")
            raise ConfigurationError("Missing MAILCHIMP_AUDIENCE_ID")

        logger.info(f"Starting volunteer sync for {email} ({member_hash})")

        # Step 1: Upsert member
        self.mailchimp.upsert_member(
            self.list_id,
            member_hash,
            email,
            self.build_merge_fields(record)
        )

        # Step 2: Current tags
        current_tags = self.mailchimp.get_member_tags(self.list_id, member_hash)

        # Step 3: Deactivate stale volunteer tags, activate the new set
        batch = self.build_tag_batch(current_tags, desired_tags)
        self.mailchimp.update_member_tags(self.list_id, member_hash, batch)

        results['deactivated'] = [t['name'] for t in batch if t['status'] == 'inactive']

        logger.info(f"Volunteer sync complete for {email}: "
                    f"{len(desired_tags)} active, "
                    f"{len(results['deactivated'])} deactivated")

        return results


def run_volunteer_sync(record: dict, dry_run: bool = False) -> dict:
    """Convenience function to run the volunteer sync

    Args:
        record: Submission record or webhook body
        dry_run: Preview tags without calling Mailchimp
    """
    sync = VolunteerSync()
    return sync.sync(extract_record(record), dry_run=dry_run)
