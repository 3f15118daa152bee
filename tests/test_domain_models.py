"""Unit tests for domain models."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from jobwizard.domain.models import (
    USER_ACTED_STATUSES,
    AiUsage,
    Application,
    ApplicationStatus,
    BlockedCompany,
    JobPosting,
    JobRecord,
    JobStatus,
    ManualApplication,
    ManualApplicationStatus,
    SkillAssessment,
)
from tests.helpers import make_posting, make_record

NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


class TestJobRecord:
    """Tests for the fetcher-level JobRecord."""

    def test_fields_are_stripped(self):
        record = make_record(company="  Acme ", title=" Rails Engineer ", location="  Remote ")

        assert record.company == "Acme"
        assert record.title == "Rails Engineer"
        assert record.location == "Remote"

    @pytest.mark.parametrize("field", ["company", "title", "url", "source"])
    def test_required_text_fields(self, field):
        with pytest.raises(ValidationError, match="cannot be empty"):
            make_record(**{field: "   "})

    def test_description_defaults_to_empty(self):
        assert make_record(description=None).description == ""

    def test_external_id_is_stringified(self):
        assert make_record(external_id=4012345).external_id == "4012345"
        assert make_record(external_id="  ").external_id is None

    def test_blank_location_is_none(self):
        assert make_record(location="   ").location is None

    def test_posted_at_is_utc(self):
        record = make_record(posted_at=datetime(2025, 11, 1, 12, 0, tzinfo=timezone(timedelta(hours=-4))))

        assert record.posted_at == datetime(2025, 11, 1, 16, 0, tzinfo=timezone.utc)

    def test_naive_posted_at_is_treated_as_utc(self):
        record = make_record(posted_at=datetime(2025, 11, 1, 12, 0))

        assert record.posted_at.tzinfo == timezone.utc

    def test_defaults(self):
        record = JobRecord(company="Acme", title="Dev", url="https://x.test/1", source="lever")

        assert record.remote is False
        assert record.metadata == {}
        assert record.score == 0.0


class TestJobPosting:
    """Tests for stored postings and their status transitions."""

    def test_defaults(self):
        posting = JobPosting(company="Acme", title="Dev", url="https://x.test/1")

        assert posting.status == "suggested"
        assert posting.applied_at is None
        assert posting.metadata == {}

    def test_mark_applied(self):
        posting = make_posting()
        posting.mark_applied(NOW)

        assert posting.status == JobStatus.APPLIED.value
        assert posting.applied_at == NOW

    def test_mark_exported_and_ignored(self):
        posting = make_posting()
        posting.mark_exported(NOW)
        assert posting.status == "exported"
        assert posting.exported_at == NOW

        posting.mark_ignored()
        assert posting.status == "ignored"
        assert posting.ignored_at is not None

    def test_invalid_status_assignment_is_rejected(self):
        posting = make_posting()

        with pytest.raises(ValidationError):
            posting.status = "archived"

    def test_generated_today(self):
        posting = make_posting()
        assert posting.generated_today(NOW.date()) is False

        posting.mark_exported(NOW)

        assert posting.generated_today(date(2025, 11, 4)) is True
        assert posting.generated_today(date(2025, 11, 5)) is False

    @pytest.mark.parametrize("source,expected", [(None, True), ("", True), ("manual", True), ("lever", False)])
    def test_is_manual(self, source, expected):
        assert make_posting(source=source).is_manual is expected

    def test_summary(self):
        posting = make_posting(description="x" * 250)

        assert posting.summary() == "x" * 197 + "..."
        assert len(posting.summary(50)) == 50
        assert make_posting(description="Short").summary() == "Short"

    def test_user_acted_statuses(self):
        assert set(USER_ACTED_STATUSES) == {"applied", "ignored", "exported"}
        assert JobStatus.SUGGESTED.value not in USER_ACTED_STATUSES


class TestApplication:
    def test_flag_accessors(self):
        flags = {
            "warnings": [{"rule": "on_call"}],
            "blocking": [{"rule": "clearance"}],
            "info": [],
            "unverified_skills": [{"skill": "Terraform"}],
        }
        application = Application(company="Acme", role="Dev", job_description="Rails", flags=flags)

        assert application.warnings == [{"rule": "on_call"}]
        assert application.blocking_flags == [{"rule": "clearance"}]
        assert application.info_flags == []
        assert application.unverified_skills == [{"skill": "Terraform"}]

    def test_missing_flags(self):
        application = Application(company="Acme", role="Dev", job_description="Rails", flags=None)

        assert application.flags == {}
        assert application.warnings == []

    def test_documents_ready(self):
        application = Application(company="Acme", role="Dev", job_description="Rails")
        assert application.status == ApplicationStatus.DRAFT.value
        assert application.documents_ready is False

        application.status = ApplicationStatus.GENERATED
        assert application.documents_ready is False

        application.output_path = "/tmp/Acme - Dev"
        assert application.documents_ready is True

    def test_job_description_required(self):
        with pytest.raises(ValidationError):
            Application(company="Acme", role="Dev", job_description="  ")


class TestSkillAssessment:
    def test_skill_name_is_normalized(self):
        assessment = SkillAssessment(job_posting_id=1, skill_name="  Kubernetes ", have=True, proficiency=3)

        assert assessment.skill_name == "kubernetes"

    def test_have_requires_proficiency(self):
        with pytest.raises(ValidationError, match="proficiency is required"):
            SkillAssessment(job_posting_id=1, skill_name="Go", have=True)

    @pytest.mark.parametrize("proficiency", [0, 6])
    def test_proficiency_range(self, proficiency):
        with pytest.raises(ValidationError, match="between 1 and 5"):
            SkillAssessment(job_posting_id=1, skill_name="Go", have=True, proficiency=proficiency)

    def test_dont_have_rejects_proficiency(self):
        with pytest.raises(ValidationError, match="must be empty"):
            SkillAssessment(job_posting_id=1, skill_name="Go", have=False, proficiency=2)

    def test_dont_have_without_proficiency(self):
        assessment = SkillAssessment(job_posting_id=1, skill_name="Go")

        assert assessment.have is False
        assert assessment.proficiency is None


class TestBlockedCompany:
    def test_exact_match_is_case_insensitive(self):
        blocked = BlockedCompany(name="Initech", reason="Spam")

        assert blocked.matches("INITECH") is True
        assert blocked.matches("Initech Labs") is False
        assert blocked.matches("") is False
        assert blocked.matches(None) is False

    def test_pattern_match(self):
        blocked = BlockedCompany(name=r"^globex\b", pattern=True, reason="Ghosted")

        assert blocked.matches("Globex Corporation") is True
        assert blocked.matches("The Globex") is False

    def test_invalid_pattern_falls_back_to_substring(self):
        blocked = BlockedCompany(name="umbrella[", pattern=True, reason="Bad regex")

        assert blocked.matches("Umbrella[ Corp") is True
        assert blocked.matches("Umbrella Corp") is False

    def test_reason_required(self):
        with pytest.raises(ValidationError):
            BlockedCompany(name="Initech", reason=" ")


class TestManualApplication:
    def test_defaults_and_summary(self):
        application = ManualApplication(company="Acme", position="Backend Engineer", applied_at=date(2025, 11, 3))

        assert application.status == ManualApplicationStatus.SUBMITTED.value
        assert application.summary == "Acme - Backend Engineer"

    def test_applied_at_accepts_iso_string(self):
        application = ManualApplication(company="Acme", position="Dev", applied_at="2025-11-03")

        assert application.applied_at == date(2025, 11, 3)

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            ManualApplication(company="Acme", position="Dev", applied_at=date.today(), status="ghosted")


class TestAiUsage:
    def test_cost_and_tokens(self):
        usage = AiUsage(
            model="gpt-4o-mini",
            feature="cover_letter",
            prompt_tokens=1200,
            completion_tokens=300,
            cached_input_tokens=100,
            cost_cents=250,
        )

        assert usage.cost_dollars == 2.5
        assert usage.total_tokens == 1600

    def test_negative_tokens_are_rejected(self):
        with pytest.raises(ValidationError):
            AiUsage(model="gpt-4o-mini", feature="resume", prompt_tokens=-1)
