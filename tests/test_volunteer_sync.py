import hashlib

import pytest

from config import Config
from errors import ConfigurationError, InvalidPayloadError, MailchimpError
from sync.volunteers import VolunteerSync, extract_record, run_volunteer_sync


@pytest.fixture
def jane():
    return {
        "full_name": "Jane Doe",
        "email": "Jane@Example.com",
        "phone": None,
        "city_county": "Orange County",
        "interests": ["Social Media", "Other"],
        "interest_other_text": "Translation",
        "experience": "Beginner",
        "time_available": "1-2_hours",
        "volunteer_format": None,
        "motivation": "Give back",
    }


JANE_HASH = hashlib.md5(b"jane@example.com").hexdigest()


class TestVolunteerSync:
    """End-to-end sync against a fake Mailchimp"""

    def test_upsert_uses_hash_of_normalized_email(self, fake_mailchimp, jane):
        VolunteerSync().sync(jane)

        put = fake_mailchimp.calls_for("PUT")[0]
        assert put["url"].endswith(f"/lists/list123/members/{JANE_HASH}")
        assert put["json"]["email_address"] == "jane@example.com"

    def test_merge_fields_clear_absent_values(self, fake_mailchimp, jane):
        VolunteerSync().sync(jane)

        merge_fields = fake_mailchimp.calls_for("PUT")[0]["json"]["merge_fields"]
        assert merge_fields == {
            "FULLNAME": "Jane Doe",
            "PHONE": "",
            "COUNTY": "Orange County",
            "EXPERIENCE": "Beginner",
            "TIMEAVL": "1–2 hours per week",
            "VOLFORMAT": "",
            "MOTIVATION": "Give back",
            "INTOTHER": "Translation",
        }

    def test_unknown_time_code_passes_through(self, fake_mailchimp, jane):
        jane["time_available"] = "Evenings only"
        VolunteerSync().sync(jane)

        merge_fields = fake_mailchimp.calls_for("PUT")[0]["json"]["merge_fields"]
        assert merge_fields["TIMEAVL"] == "Evenings only"

    def test_tag_batch_replaces_volunteer_tags_only(self, fake_mailchimp, jane):
        fake_mailchimp.tags = [
            {"id": 1, "name": "vip"},
            {"id": 2, "name": "role-volunteer"},
            {"id": 3, "name": "interest-graphic-design"},
            {"id": 4, "name": "county-los-angeles"},
            {"id": 5, "name": "format-weekends"},
        ]

        VolunteerSync().sync(jane)

        calls = [c["method"] for c in fake_mailchimp.calls]
        assert calls == ["PUT", "GET", "POST"]

        batch = fake_mailchimp.calls_for("POST")[0]["json"]["tags"]
        statuses = {t["name"]: t["status"] for t in batch}

        assert len(batch) == len(statuses)
        assert "vip" not in statuses
        assert statuses["interest-graphic-design"] == "inactive"
        assert statuses["county-los-angeles"] == "inactive"
        assert statuses["format-weekends"] == "inactive"
        for name in ("role-volunteer", "county-orange-county", "interest-social-media",
                     "interest-other", "experience-beginner", "availability-1-2-hours"):
            assert statuses[name] == "active"

    def test_results(self, fake_mailchimp, jane):
        fake_mailchimp.tags = [{"name": "experience-expert"}]

        results = VolunteerSync().sync(jane)

        assert results["email"] == "jane@example.com"
        assert results["subscriber_hash"] == JANE_HASH
        assert results["deactivated"] == ["experience-expert"]
        assert "experience-beginner" in results["activated"]
        assert results["dry_run"] is False

    def test_missing_email_makes_no_calls(self, fake_mailchimp, jane):
        jane["email"] = "   "

        with pytest.raises(InvalidPayloadError):
            VolunteerSync().sync(jane)

        assert fake_mailchimp.calls == []

    def test_string_interests_rejected(self, fake_mailchimp, jane):
        """Test a bare string is not split into one tag per letter"""
        jane["interests"] = "Social Media"

        with pytest.raises(InvalidPayloadError, match="interests must be a list"):
            VolunteerSync().sync(jane)

        assert fake_mailchimp.calls == []

    def test_missing_audience_id(self, fake_mailchimp, jane, monkeypatch):
        monkeypatch.setattr(Config, "MAILCHIMP_AUDIENCE_ID", "")

        with pytest.raises(ConfigurationError):
            VolunteerSync().sync(jane)

        assert fake_mailchimp.calls == []

    def test_provider_failure_stops_sync(self, fake_mailchimp, jane):
        fake_mailchimp.fail = ("GET", 404, {"title": "Resource Not Found", "detail": "Not found"})

        with pytest.raises(MailchimpError) as exc_info:
            VolunteerSync().sync(jane)

        assert exc_info.value.status == 404
        assert fake_mailchimp.calls_for("POST") == []

    def test_dry_run_makes_no_calls(self, fake_mailchimp, jane):
        results = VolunteerSync().sync(jane, dry_run=True)

        assert fake_mailchimp.calls == []
        assert results["dry_run"] is True
        assert "county-orange-county" in results["activated"]

    def test_rerun_converges(self, fake_mailchimp, jane):
        """Test a second sync leaves the same active set"""
        VolunteerSync().sync(jane)
        first = fake_mailchimp.calls_for("POST")[0]["json"]["tags"]

        fake_mailchimp.tags = [{"name": t["name"]} for t in first if t["status"] == "active"]
        VolunteerSync().sync(jane)
        second = fake_mailchimp.calls_for("POST")[1]["json"]["tags"]

        assert all(t["status"] == "active" for t in second)
        assert {t["name"] for t in second} == {t["name"] for t in first}


class TestExtractRecord:
    """Test webhook body unwrapping"""

    def test_record_envelope(self):
        assert extract_record({"type": "INSERT", "record": {"email": "a@b.c"}}) == {"email": "a@b.c"}

    def test_new_envelope(self):
        assert extract_record({"new": {"email": "a@b.c"}}) == {"email": "a@b.c"}

    def test_bare_record(self):
        assert extract_record({"email": "a@b.c"}) == {"email": "a@b.c"}

    @pytest.mark.parametrize("body", [None, [], "text", {"record": ["x"]}])
    def test_rejects_non_objects(self, body):
        with pytest.raises(InvalidPayloadError):
            extract_record(body)


def test_run_volunteer_sync_accepts_envelope(fake_mailchimp, jane):
    results = run_volunteer_sync({"type": "INSERT", "record": jane})

    assert results["subscriber_hash"] == JANE_HASH
    assert len(fake_mailchimp.calls) == 3
