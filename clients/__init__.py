"""
Roster API Clients
==================
Clients for external services: Mailchimp
"""

from .mailchimp import MailchimpClient, subscriber_hash

__all__ = ['MailchimpClient', 'subscriber_hash']
