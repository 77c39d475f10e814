"""
Volunteer Tags
==============
Maps a volunteer submission to the Mailchimp tags it should carry.

Tag names:
- role-volunteer (always)
- county-<county>
- interest-<interest> (known form labels use fixed names, see INTEREST_TAGS)
- experience-<level>
- availability-<time available>
- format-<volunteer format>

Every tag under these names is owned by the volunteer sync; anything else on
a member (added by staff or other automations) is never touched.
"""

import re

ROLE_TAG = "role-volunteer"

VOLUNTEER_TAG_PREFIXES = (
    "interest-",
    "experience-",
    "availability-",
    "format-",
    "county-",
)

# Form interest label (slugified) -> tag name
INTEREST_TAGS = {
    "social-media": "interest-social-media",
    "graphic-design": "interest-graphic-design",
    "writing-content-creation": "interest-writing-content",
    "photography-video": "interest-photography-video",
    "email-or-text-campaigns": "interest-email-text-campaigns",
    "event-promotion": "interest-event-promotion",
    "media-press-support": "interest-media-press",
    "general-communications-support": "interest-general-communications",
    "other": "interest-other",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text) -> str:
    """Turn a free-text label into a lowercase hyphenated identifier

    "Event Promotion & Outreach" -> "event-promotion-and-outreach"
    """
    value = str(text or "").strip().lower().replace("&", "and")
    return _NON_ALNUM.sub("-", value).strip("-")


def interest_to_tag(label: str) -> str:
    """Tag for one interest label; unknown labels fall back to interest-<slug>"""
    key = slugify(label)
    if not key:
        return None
    return INTEREST_TAGS.get(key, f"interest-{key}")


def _prefixed(prefix: str, value) -> str:
    """prefix-<slug>, or None when the value has nothing to slugify"""
    key = slugify(value)
    return f"{prefix}-{key}" if key else None


def build_volunteer_tags(record: dict) -> list:
    """Build the deduplicated tag list for a submission record

    Args:
        record: Submission fields (city_county, interests, experience,
            time_available, volunteer_format). Missing or blank fields
            contribute no tag.

    Returns:
        list: Tag names, first occurrence order, no duplicates
    """
    tags = [ROLE_TAG, _prefixed("county", record.get("city_county"))]

    for interest in record.get("interests") or []:
        tags.append(interest_to_tag(interest))

    tags.append(_prefixed("experience", record.get("experience")))
    tags.append(_prefixed("availability", record.get("time_available")))
    tags.append(_prefixed("format", record.get("volunteer_format")))

    return list(dict.fromkeys(tag for tag in tags if tag))


def is_volunteer_tag(name: str) -> bool:
    """True if the tag belongs to the volunteer sync and may be deactivated"""
    return name == ROLE_TAG or name.startswith(VOLUNTEER_TAG_PREFIXES)
