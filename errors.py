"""
Roster Errors
=============
One exception per failure category. Routes turn these into JSON errors
using ``http_status``.
"""


class RosterError(Exception):
    """Base class for all Roster failures"""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class InvalidPayloadError(RosterError):
    """Bad client input: malformed JSON, missing email, missing fields"""

    http_status = 400


class UnauthorizedError(RosterError):
    """Webhook secret missing or wrong"""

    http_status = 401


class ConfigurationError(RosterError):
    """Required settings (credentials, audience id) are not configured"""

    http_status = 500


class StorageError(RosterError):
    """The database could not be reached or queried"""

    http_status = 500


class SubmissionError(StorageError):
    """The submission insert violated a storage constraint"""

    http_status = 500


class MailchimpError(RosterError):
    """Non-success response (or transport failure) from the Mailchimp API"""

    http_status = 502

    def __init__(self, status, detail):
        self.status = status
        self.detail = detail
        if status is None:
            message = f"Mailchimp request failed: {detail}"
        else:
            message = f"Mailchimp {status}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "provider_status": self.status,
            "provider_detail": self.detail,
        }
