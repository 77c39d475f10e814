"""
Roster - Volunteer Interest Sync
================================
Main Flask application.

Routes:
- POST /api/volunteers            volunteer form submission (with committees)
- GET  /api/committees            active committees for the form
- POST /webhooks/volunteer-sync   database webhook -> Mailchimp sync
- GET  /health                    configuration check

The storage logic lives in storage/, the Mailchimp sync in sync/ and clients/
"""

import hmac
import logging
import sys
import click
from flask import Flask, request, jsonify
from config import Config
from errors import InvalidPayloadError, RosterError, UnauthorizedError
from storage.db import get_engine, init_db
from storage.submissions import SubmissionStore
from sync.volunteers import VolunteerSync, extract_record

# =============================================================================
# LOGGING SETUP
# =============================================================================

# Configure logging to stdout
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


# =============================================================================
# FLASK APP
# =============================================================================

app = Flask(__name__)

SUBMISSION_TEXT_FIELDS = (
    'phone',
    'city_county',
    'interest_other_text',
    'experience',
    'time_available',
    'volunteer_format',
    'motivation',
)

_store = None


def get_submission_store() -> SubmissionStore:
    """Get the process-wide submission store"""
    global _store
    if _store is None:
        _store = SubmissionStore()
    return _store


def get_volunteer_sync() -> VolunteerSync:
    """Build a sync for one webhook call"""
    return VolunteerSync()


def check_webhook_secret():
    """Reject the request unless x-webhook-secret matches (when one is configured)"""
    expected = Config.WEBHOOK_SECRET or ""
    if not expected:
        return
    provided = request.headers.get('x-webhook-secret', '')
    if not hmac.compare_digest(provided.encode('utf-8'), expected.encode('utf-8')):
        raise UnauthorizedError("Unauthorized")


def _text(data: dict, key: str) -> str:
    """Optional string field; anything but a string or null is rejected"""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidPayloadError(f"{key} must be a string")
    return value


def _list(data: dict, key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise InvalidPayloadError(f"{key} must be a list")
    return value


def _string_list(data: dict, key: str) -> list:
    value = _list(data, key)
    if any(not isinstance(item, str) for item in value):
        raise InvalidPayloadError(f"{key} must be a list of strings")
    return value


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.errorhandler(RosterError)
def handle_roster_error(error):
    """Return a JSON error with the status for the failure category"""
    if error.http_status >= 500:
        logger.error(f"{type(error).__name__}: {error.message}")
    else:
        logger.warning(f"{type(error).__name__}: {error.message}")
    return jsonify(error.to_dict()), error.http_status


@app.errorhandler(405)
def method_not_allowed(error):
    return jsonify({"error": "Method not allowed"}), 405


# =============================================================================
# ROUTES
# =============================================================================

@app.route('/api/volunteers', methods=['POST'])
def submit_volunteer():
    """Store a volunteer form submission and its committee selections"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPayloadError("Invalid JSON")

    full_name = (_text(data, 'full_name') or '').strip()
    email = (_text(data, 'email') or '').strip()
    if not full_name:
        raise InvalidPayloadError("Missing full_name")
    if not email:
        raise InvalidPayloadError("Missing email")

    fields = {key: _text(data, key) for key in SUBMISSION_TEXT_FIELDS}
    # Unusable committee ids are skipped by the store, not rejected here
    submission_id = get_submission_store().submit(
        full_name=full_name,
        email=email,
        interests=_string_list(data, 'interests'),
        committee_ids=_list(data, 'committee_ids'),
        **fields
    )

    logger.info(f"Volunteer submission received: {submission_id}")
    return jsonify({"id": submission_id}), 201


@app.route('/api/committees')
def committees():
    """Active committees, in display order"""
    return jsonify({"committees": get_submission_store().list_active_committees()})


@app.route('/webhooks/volunteer-sync', methods=['POST'])
def volunteer_sync():
    """Sync the submission carried by a database webhook to Mailchimp"""
    check_webhook_secret()

    body = request.get_json(silent=True)
    if body is None:
        raise InvalidPayloadError("Invalid JSON")

    record = extract_record(body)
    results = get_volunteer_sync().sync(record)

    return jsonify({"ok": True, **results})


@app.route('/health')
def health():
    """Health check endpoint (no auth required)"""
    missing = Config.validate()
    if missing:
        logger.warning(f"Health check failed - missing: {missing}")
        return jsonify({
            "status": "unhealthy",
            "missing_config": missing
        }), 500

    logger.debug("Health check passed")
    return jsonify({"status": "healthy", "service": "roster"})


# =============================================================================
# CLI
# =============================================================================

@app.cli.command('init-db')
def init_db_command():
    """Create the database tables"""
    init_db(get_engine())
    click.echo("Database tables created")


@app.cli.command('resync')
@click.argument('submission_id')
@click.option('--dry-run', is_flag=True, help="Show the tags without calling Mailchimp")
def resync_command(submission_id, dry_run):
    """Re-run the Mailchimp sync for a stored submission"""
    record = get_submission_store().get_submission(submission_id)
    if record is None:
        raise click.ClickException(f"Submission not found: {submission_id}")

    try:
        results = get_volunteer_sync().sync(record, dry_run=dry_run)
    except RosterError as e:
        raise click.ClickException(e.message) from e

    prefix = "[DRY RUN] " if dry_run else ""
    click.echo(f"{prefix}{results['email']}: active={', '.join(results['activated'])}")
    if results['deactivated']:
        click.echo(f"{prefix}deactivated={', '.join(results['deactivated'])}")


# =============================================================================
# STARTUP
# =============================================================================

logger.info("=" * 60)
logger.info("Roster - Volunteer Interest Sync")
logger.info("=" * 60)

missing = Config.validate()
if missing:
    logger.warning(f"Missing environment variables: {', '.join(missing)}")
else:
    logger.info("All environment variables configured")

logger.info(f"Mailchimp datacenter: {Config.MAILCHIMP_DC or '(unset)'}")
logger.info(f"Webhook secret: {'configured' if Config.WEBHOOK_SECRET else 'not configured'}")
logger.info("=" * 60)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    logger.info(f"Starting development server on port {Config.PORT}")
    app.run(
        host='0.0.0.0',
        port=Config.PORT,
        debug=Config.DEBUG
    )
