"""
Mailchimp Client
================
Client for the Mailchimp Marketing API (audience members and tags).

Members are addressed by subscriber hash: the MD5 hex digest of the
lowercased email address.
"""

import hashlib
import json
import logging
import requests
from config import Config
from errors import ConfigurationError, MailchimpError

logger = logging.getLogger(__name__)


def subscriber_hash(email: str) -> str:
    """Mailchimp member id for an email address"""
    normalized = (email or "").strip().lower()
    return hashlib.md5(normalized.encode('utf-8')).hexdigest()


class MailchimpClient:
    """Client for Mailchimp API"""

    def __init__(self):
        self.dc = Config.MAILCHIMP_DC
        self.api_key = Config.MAILCHIMP_API_KEY
        self.base_url = Config.mailchimp_base_url()
        self.timeout = Config.MAILCHIMP_TIMEOUT

    # =========================================================================
    # HTTP METHODS
    # =========================================================================

    def _request(self, method: str, endpoint: str, data: dict = None):
        """Make an authenticated request, raising MailchimpError on failure"""
        if not self.dc or not self.api_key:
            logger.error("Mailchimp credentials not configured")
            raise ConfigurationError("Missing MAILCHIMP_DC or MAILCHIMP_API_KEY")

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.info(f"Mailchimp {method}: {endpoint}")

        try:
            response = requests.request(
                method,
                url,
                auth=("anystring", self.api_key),
                headers={"Content-Type": "application/json"},
                json=data,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Mailchimp Error: {str(e)}")
            raise MailchimpError(None, str(e)) from e

        logger.info(f"Mailchimp Response: {response.status_code}")

        # Tag updates return 204 No Content
        text = response.text
        try:
            parsed = json.loads(text) if text else None
        except ValueError:
            parsed = text

        if not response.ok:
            raise MailchimpError(response.status_code, self._error_detail(parsed))

        return parsed

    @staticmethod
    def _error_detail(parsed) -> str:
        """Pull a readable message out of an API problem document"""
        if isinstance(parsed, dict):
            return parsed.get("detail") or parsed.get("title") or json.dumps(parsed)
        if parsed is None:
            return ""
        return str(parsed)

    # =========================================================================
    # MEMBERS
    # =========================================================================

    def upsert_member(self, list_id: str, member_hash: str, email: str, merge_fields: dict) -> dict:
        """Create or update a list member.

        New members are subscribed; an existing member keeps its current
        status, only email and merge fields are overwritten.
        """
        return self._request("PUT", f"lists/{list_id}/members/{member_hash}", {
            "email_address": email,
            "status_if_new": "subscribed",
            "merge_fields": merge_fields
        })

    # =========================================================================
    # TAGS
    # =========================================================================

    def get_member_tags(self, list_id: str, member_hash: str) -> list:
        """Get a member's tags as a list of {"id", "name", "date_added"} dicts

        Mailchimp only lists tags that are currently applied. An unknown
        member raises MailchimpError(404, ...).
        """
        result = self._request("GET", f"lists/{list_id}/members/{member_hash}/tags")
        return (result or {}).get("tags", [])

    def update_member_tags(self, list_id: str, member_hash: str, tags: list) -> None:
        """Apply a batch of {"name", "status"} tag directives

        status is "active" or "inactive"; tags not in the batch are left alone.
        """
        self._request("POST", f"lists/{list_id}/members/{member_hash}/tags", {
            "tags": tags
        })
