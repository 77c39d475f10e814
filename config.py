"""
Roster Configuration
====================
All settings and environment variables in one place.
"""

import os
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


class Config:
    """Application configuration"""

    # Flask
    DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'
    PORT = int(os.environ.get('PORT', 5000))

    # Database
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///roster.db')

    # Mailchimp - Marketing API v3, basic auth with the API key
    MAILCHIMP_DC = os.environ.get('MAILCHIMP_DC', '')
    MAILCHIMP_API_KEY = os.environ.get('MAILCHIMP_API_KEY', '')
    MAILCHIMP_AUDIENCE_ID = os.environ.get('MAILCHIMP_AUDIENCE_ID', '')
    MAILCHIMP_TIMEOUT = int(os.environ.get('MAILCHIMP_TIMEOUT', 30))

    # Shared secret sent by the database webhook in x-webhook-secret
    WEBHOOK_SECRET = os.environ.get(
        'WEBHOOK_SECRET',
        os.environ.get('SUPABASE_WEBHOOK_SECRET', '')
    )

    @classmethod
    def mailchimp_base_url(cls) -> str:
        """Marketing API root for the configured datacenter"""
        return f"https://{cls.MAILCHIMP_DC}.api.mailchimp.com/3.0"

    @classmethod
    def validate(cls):
        """Check for required environment variables"""
        missing = []
        if not cls.MAILCHIMP_DC:
            missing.append("MAILCHIMP_DC")
        if not cls.MAILCHIMP_API_KEY:
            missing.append("MAILCHIMP_API_KEY")
        if not cls.MAILCHIMP_AUDIENCE_ID:
            missing.append("MAILCHIMP_AUDIENCE_ID")
        return missing
