"""Tests for resume and cover letter generation."""

import json
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import openai
import pytest

from jobwizard.config.environment import EnvironmentConfig
from jobwizard.config.exceptions import ConfigurationError
from jobwizard.config.loader import load_profile
from jobwizard.config.models import AIWriterSettings, SkillEntry
from jobwizard.documents import (
    AnthropicWriter,
    ApplicationDocumentGenerator,
    DocumentGenerationError,
    DocumentRenderer,
    GenerationError,
    JdParser,
    OpenAIWriter,
    OutputManager,
    ResumeBuilder,
    TemplatesWriter,
    WriterFactory,
    extract_jd_skills,
    skill_phrase,
)
from jobwizard.documents.writers import build_system_prompt, build_user_prompt, parse_response
from jobwizard.documents.writers.base import BaseWriter
from jobwizard.domain.models import Application, SkillAssessment
from jobwizard.persistence import (
    ApplicationRepository,
    JobPostingRepository,
    RecordNotFoundError,
    SkillAssessmentRepository,
    close_database,
    get_session,
    init_database,
)
from jobwizard.rules.rules import Rules
from jobwizard.skills.experience import ExperienceProfile
from tests.helpers import CONFIG_FIXTURES, make_posting

JD = "We use Ruby on Rails, PostgreSQL, Kubernetes and Terraform. Our recruiter will reach out."
TODAY = date(2025, 11, 4)


@pytest.fixture
def profile():
    return load_profile(CONFIG_FIXTURES / "profile.yml")


@pytest.fixture
def experience():
    return ExperienceProfile.load(CONFIG_FIXTURES / "experience.yml")


@pytest.fixture
def templates_writer():
    return TemplatesWriter(today=TODAY)


class StubWriter(BaseWriter):
    """Writer returning a canned result, optionally failing a number of times first."""

    name = "stub"

    def __init__(self, result=None, failures=0):
        self.result = result or {"cover_letter": "Stub letter body.", "unverified_skills": []}
        self.failures = failures
        self.calls = 0

    def cover_letter(self, profile, experience, jd_text, company, role, allowed_skills=None):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("writer exploded")
        return dict(self.result)


def openai_response(payload, prompt_tokens=1000, completion_tokens=500):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            prompt_tokens_details=SimpleNamespace(cached_tokens=200),
        ),
    )


class TestSkillPhrases:
    def test_levels(self):
        assert skill_phrase(SkillEntry(name="Ruby", level="expert", context="8 years")) == (
            "Deep experience with Ruby (8 years)"
        )
        assert skill_phrase(SkillEntry(name="RSpec", level="intermediate")) == (
            "Working proficiency with RSpec"
        )
        assert skill_phrase(SkillEntry(name="React", level="basic")) == "Familiar with React"

    def test_long_context_is_left_out(self):
        skill = SkillEntry(name="Ruby", level="expert", context="x" * 150)

        assert skill_phrase(skill) == "Deep experience with Ruby"

    def test_extract_jd_skills(self):
        assert extract_jd_skills(JD) == ["Ruby on Rails", "PostgreSQL", "Kubernetes", "Terraform"]
        assert extract_jd_skills(None) == []


class TestJdParser:
    def test_labelled_fields(self):
        parsed = JdParser("Company: Acme Inc\nPosition: Backend Engineer\n").parse()

        assert parsed == {"company": "Acme", "role": "Backend Engineer"}

    def test_first_line_and_hiring_sentence(self):
        text = "Globex\nWe are hiring a Senior Rails Developer to join our team."

        assert JdParser(text).company() == "Globex"
        assert JdParser(text).role() == "Senior Rails Developer"

    def test_email_domain(self):
        text = "send your resume to jobs@initech.com today and we will get back to you soon."

        assert JdParser(text).company() == "initech"

    def test_nothing_found(self):
        assert JdParser("").parse() == {"company": None, "role": None}


class TestResumeBuilder:
    def test_skill_split(self, profile, experience, templates_writer):
        builder = ResumeBuilder(JD, profile, experience, writer=templates_writer)

        assert builder.claimed_skills == ["Ruby on Rails", "PostgreSQL"]
        assert builder.not_claimed_skills == ["Kubernetes", "Terraform"]
        assert builder.unverified_skills == ["Kubernetes", "Terraform"]

    def test_company_and_role_fallbacks(self, profile, experience):
        builder = ResumeBuilder("ruby and rails work", profile, experience)

        assert builder.company == "the company"
        assert builder.role == "this position"

    def test_resume_context(self, profile, experience):
        context = ResumeBuilder(JD, profile, experience).resume_context()

        assert context["expert_phrases"] == [
            "Deep experience with Ruby (8 years)",
            "Deep experience with Ruby on Rails (8 years, Rails 4 through 7)",
            "Deep experience with PostgreSQL",
        ]
        assert context["intermediate_names"] == ["RSpec", "Docker"]
        assert context["basic_names"] == ["React"]
        assert context["contact_line"] == (
            "jordan@riveradev.io • +1 555 0100 • Portland, OR • linkedin.com/in/jordanrivera"
        )

    def test_allowed_skills_narrow_the_resume(self, profile, experience):
        builder = ResumeBuilder(JD, profile, experience, allowed_skills=["ruby", "postgresql"])

        by_level = builder.skills_by_level()

        # "ruby" also admits "Ruby on Rails"
        assert [skill.name for skill in by_level["expert"]] == ["Ruby", "Ruby on Rails", "PostgreSQL"]
        assert by_level["intermediate"] == []
        assert by_level["basic"] == []

    def test_build_resume(self, profile, experience):
        resume = ResumeBuilder(JD, profile, experience).build_resume()

        lines = resume.splitlines()
        assert lines[0] == "Jordan Rivera"
        assert "PROFESSIONAL SUMMARY" in lines
        assert "Working proficiency: RSpec, Docker" in lines
        assert "Also familiar with: React" in lines
        assert "Billing Co" in lines
        assert "Senior Backend Engineer | 2019 - present" in lines
        assert "• Led the upgrade from Rails 5 to Rails 7" in lines
        assert "B.S. Computer Science" in lines
        assert "Oregon State University | 2015" in lines
        assert "Kubernetes" not in resume
        assert resume.endswith("\n")

    def test_build_cover_letter_with_templates(self, profile, experience, templates_writer):
        builder = ResumeBuilder(
            JD, profile, experience, writer=templates_writer, company="Acme", role="Senior Backend Engineer"
        )

        letter = builder.build_cover_letter()

        assert letter.startswith("Jordan Rivera\njordan@riveradev.io")
        assert "November 04, 2025" in letter
        assert "Dear Acme Hiring Team," in letter
        assert "Senior Backend Engineer position at Acme" in letter
        assert "background in Ruby, Ruby on Rails, PostgreSQL" in letter
        assert "In my most recent role at Billing Co, I cut invoice generation time" in letter
        assert "Acme's needs for backend and engineer" in letter
        assert "• Led the upgrade from Rails 5 to Rails 7" in letter
        assert letter.rstrip().endswith("Best regards,\nJordan Rivera")
        assert builder.unverified_skills == ["Kubernetes", "Terraform"]

    def test_writer_failure_falls_back_to_templates(self, profile, experience):
        writer = StubWriter(
            {"cover_letter": None, "unverified_skills": ["Kubernetes", "Helm"], "error": "rate limited"}
        )
        builder = ResumeBuilder(JD, profile, experience, writer=writer, company="Acme", role="Dev")

        body = builder.cover_letter_text()

        assert "I am writing to express my strong interest in the Dev position at Acme." in body
        assert builder.unverified_skills == ["Kubernetes", "Terraform", "Helm"]

    def test_writer_letter_is_used(self, profile, experience):
        builder = ResumeBuilder(JD, profile, experience, writer=StubWriter(), company="Acme", role="Dev")

        assert builder.cover_letter_text() == "Stub letter body."


class TestTemplatesWriter:
    def test_greeting_without_hiring_hint(self, profile, experience, templates_writer):
        letter = templates_writer.compose(profile, experience, "Ruby role", "Acme", "Dev")

        assert "Dear Hiring Manager," in letter

    def test_allowed_skills_filter_achievements(self, profile, experience, templates_writer):
        letter = templates_writer.compose(profile, experience, "", "Acme", "Dev", allowed_skills=["rails"])

        assert "I led the upgrade from rails 5 to rails 7." in letter
        assert "•" not in letter

    def test_no_positions(self, profile, templates_writer):
        letter = templates_writer.compose(profile, ExperienceProfile({}), "", "Acme", "Dev")

        assert "background in full-stack development" in letter
        assert "experience building scalable applications" in letter
        assert "particularly in areas requiring dev" in letter

    @pytest.mark.parametrize(
        "role,expected",
        [
            ("Senior Backend Engineer", "backend and engineer"),
            ("Staff Engineer", "engineer"),
            ("Lead", "technical expertise"),
        ],
    )
    def test_role_keywords(self, role, expected):
        assert TemplatesWriter.role_keywords(role) == expected


class TestPrompts:
    def test_system_prompt(self):
        prompt = build_system_prompt("cover_letter", "friendly")

        assert "a cover letter" in prompt
        assert "friendly voice" in prompt
        assert '"cover_letter"' in prompt

    def test_resume_system_prompt(self):
        assert '"resume_snippets"' in build_system_prompt("resume")

    def test_user_prompt_contains_verified_facts(self, profile, experience):
        prompt = build_user_prompt("cover_letter", "Acme", "Dev", JD, profile, experience)

        assert "COMPANY: Acme" in prompt
        assert "name: Jordan Rivera" in prompt
        assert "Billing Co" in prompt
        assert "Kubernetes" in prompt  # only from the job description

    def test_parse_response(self):
        data = parse_response('{"cover_letter": "Hi", "unverified_skills": "Go"}', ["cover_letter"])

        assert data == {"cover_letter": "Hi", "unverified_skills": ["Go"]}

    @pytest.mark.parametrize(
        "content,message",
        [
            ("not json", "Failed to parse JSON"),
            ("[1, 2]", "Expected a JSON object"),
            ('{"unverified_skills": []}', "Missing keys in response: cover_letter"),
        ],
    )
    def test_parse_response_errors(self, content, message):
        with pytest.raises(GenerationError, match=message):
            parse_response(content, ["cover_letter", "unverified_skills"])


class TestOpenAIWriter:
    @pytest.fixture
    def settings(self):
        return AIWriterSettings(writer="openai", openai_api_key="sk-test")

    def test_cover_letter(self, settings, profile, experience):
        client = Mock()
        client.chat.completions.create.return_value = openai_response(
            {"cover_letter": "Dear Acme,", "unverified_skills": ["Kubernetes"]}
        )
        recorder = Mock()
        writer = OpenAIWriter(settings, client=client, recorder=recorder)

        result = writer.cover_letter(profile, experience, JD, "Acme", "Dev")

        assert result == {"cover_letter": "Dear Acme,", "unverified_skills": ["Kubernetes"]}
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.7
        assert kwargs["response_format"] == {"type": "json_object"}
        recorder.log.assert_called_once_with(
            model="gpt-4o-mini",
            feature="cover_letter",
            usage={"prompt_tokens": 1000, "completion_tokens": 500, "cached_input_tokens": 200},
            meta={"company": "Acme", "role": "Dev"},
        )

    def test_resume_snippets(self, settings, profile, experience):
        client = Mock()
        client.chat.completions.create.return_value = openai_response(
            {"resume_snippets": ["Built billing"], "unverified_skills": []}
        )

        result = OpenAIWriter(settings, client=client).resume_snippets(profile, experience, JD, "Acme", "Dev")

        assert result["resume_snippets"] == ["Built billing"]
        assert client.chat.completions.create.call_args.kwargs["temperature"] == 0.5

    def test_api_error_is_reported(self, settings, profile, experience):
        client = Mock()
        client.chat.completions.create.side_effect = openai.OpenAIError("rate limited")

        result = OpenAIWriter(settings, client=client).cover_letter(profile, experience, JD, "Acme", "Dev")

        assert result["cover_letter"] is None
        assert "openai API error: rate limited" in result["error"]

    def test_empty_content(self, settings, profile, experience):
        client = Mock()
        client.chat.completions.create.return_value = openai_response("   ")

        result = OpenAIWriter(settings, client=client).cover_letter(profile, experience, JD, "Acme", "Dev")

        assert result["error"] == "No content in openai response"

    def test_missing_key(self):
        with pytest.raises(GenerationError, match="OPENAI_API_KEY is not set"):
            OpenAIWriter(AIWriterSettings(writer="openai"))


class TestAnthropicWriter:
    def test_cover_letter(self, profile, experience):
        settings = AIWriterSettings(writer="anthropic", anthropic_api_key="sk-ant-test")
        client = Mock()
        client.messages.create.return_value = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text='{"cover_letter": "Dear Acme,",'),
                SimpleNamespace(type="text", text=' "unverified_skills": []}'),
            ],
            usage=SimpleNamespace(input_tokens=900, output_tokens=300, cache_read_input_tokens=None),
        )
        recorder = Mock()

        result = AnthropicWriter(settings, client=client, recorder=recorder).cover_letter(
            profile, experience, JD, "Acme", "Dev"
        )

        assert result["cover_letter"] == "Dear Acme,"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-3-5-haiku-latest"
        assert kwargs["messages"][0]["role"] == "user"
        assert recorder.log.call_args.kwargs["usage"] == {
            "prompt_tokens": 900,
            "completion_tokens": 300,
            "cached_input_tokens": 0,
        }

    def test_missing_key(self):
        with pytest.raises(GenerationError, match="ANTHROPIC_API_KEY is not set"):
            AnthropicWriter(AIWriterSettings(writer="anthropic"))


class TestWriterFactory:
    def test_default_is_templates(self):
        assert isinstance(WriterFactory.build(), TemplatesWriter)

    def test_openai(self):
        writer = WriterFactory.build(AIWriterSettings(writer="openai", openai_api_key="sk-test"))

        assert isinstance(writer, OpenAIWriter)

    def test_anthropic(self):
        writer = WriterFactory.build(AIWriterSettings(writer="anthropic", anthropic_api_key="sk-ant"))

        assert isinstance(writer, AnthropicWriter)

    @pytest.mark.parametrize("writer", ["openai", "anthropic"])
    def test_missing_key_falls_back(self, writer):
        assert isinstance(WriterFactory.build(AIWriterSettings(writer=writer)), TemplatesWriter)


class TestDocumentRenderer:
    def test_missing_variable_raises(self):
        with pytest.raises(DocumentGenerationError, match="cover_letter.txt.j2"):
            DocumentRenderer().render_cover_letter({"name": "Jordan"})

    def test_cover_letter(self):
        text = DocumentRenderer().render_cover_letter(
            {"name": "Jordan", "contact_line": "jordan@riveradev.io", "body": "Hello"}
        )

        assert text == "Jordan\njordan@riveradev.io\n\nHello\n"


class TestOutputManager:
    STAMP = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)

    def test_simple_layout(self, tmp_path):
        manager = OutputManager("Acme Corp", "Backend Engineer", tmp_path / "out", tmp_path / "tmp", timestamp=self.STAMP)

        assert manager.output_path == tmp_path / "out" / "Acme Corp - Backend Engineer - 2025-11-04"
        assert manager.tmp_path == tmp_path / "tmp" / "Applications" / "Acme-Corp" / "Backend-Engineer" / "2025-11-04"

    def test_nested_layout(self, tmp_path):
        manager = OutputManager(
            "Acme Corp", "Backend Engineer", tmp_path / "out", tmp_path / "tmp", path_style="nested", timestamp=self.STAMP
        )

        assert manager.output_path == (
            tmp_path / "out" / "Applications" / "Acme-Corp" / "Backend-Engineer" / "2025-11-04"
        )

    def test_write_documents_and_latest_link(self, tmp_path):
        manager = OutputManager("Acme", "Dev", tmp_path / "out", tmp_path / "tmp", timestamp=self.STAMP)
        manager.ensure_directories()

        manager.write_resume("resume text")
        manager.write_cover_letter("letter text")
        manager.update_latest_symlink()

        assert manager.documents_exist() is True
        assert manager.resume_path.read_text(encoding="utf-8") == "resume text"
        assert manager.tmp_cover_letter_path.read_text(encoding="utf-8") == "letter text"
        latest = tmp_path / "out" / "Latest"
        assert latest.is_symlink()
        assert latest.resolve() == manager.output_path.resolve()

    def test_latest_link_is_replaced(self, tmp_path):
        first = OutputManager("Acme", "Dev", tmp_path / "out", tmp_path / "tmp", timestamp=self.STAMP)
        second = OutputManager("Globex", "Dev", tmp_path / "out", tmp_path / "tmp", timestamp=self.STAMP)
        for manager in (first, second):
            manager.ensure_directories().update_latest_symlink()

        assert (tmp_path / "out" / "Latest").resolve() == second.output_path.resolve()

    def test_path_traversal_is_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid path characters"):
            OutputManager("../etc", "Dev", tmp_path, tmp_path)


class TestApplicationDocumentGenerator:
    @pytest.fixture
    def env(self, tmp_path):
        init_database(f"sqlite:///{tmp_path / 'docs.db'}")
        yield EnvironmentConfig(
            config_dir=CONFIG_FIXTURES,
            output_root=tmp_path / "out",
            tmp_root=tmp_path / "tmp",
        )
        close_database()

    @pytest.fixture
    def generator(self, env, templates_writer):
        return ApplicationDocumentGenerator(
            env,
            writer=templates_writer,
            rules=Rules.load(CONFIG_FIXTURES / "rules.yml"),
            sleep=Mock(),
        )

    @staticmethod
    def add_posting(**overrides):
        with get_session() as session:
            return JobPostingRepository(session).add(make_posting(**overrides))

    def test_generate_for_posting(self, generator):
        posting = self.add_posting(
            description="Ruby on Rails and Terraform. Pager rotation applies.",
        )

        result = generator.generate_for_posting(posting.id)

        assert result["resume"].exists()
        assert result["cover_letter"].exists()
        assert result["directory"].startswith(str(generator.env.output_root))
        with get_session() as session:
            stored_posting = JobPostingRepository(session).get(posting.id)
            application = ApplicationRepository(session).get(result["application_id"])
        assert stored_posting.status == "exported"
        assert application.status == "generated"
        assert application.output_path == result["directory"]
        assert application.job_posting_id == posting.id
        assert [flag["rule"] for flag in application.warnings] == ["on_call"]
        assert [flag["skill"] for flag in application.unverified_skills] == ["Terraform"]

    def test_assessments_narrow_the_resume(self, generator):
        posting = self.add_posting(description="Ruby on Rails with Kubernetes and React.")
        with get_session() as session:
            repository = SkillAssessmentRepository(session)
            repository.upsert(
                SkillAssessment(job_posting_id=posting.id, skill_name="Kubernetes", have=True, proficiency=4)
            )
            repository.upsert(SkillAssessment(job_posting_id=posting.id, skill_name="React", have=False))

        result = generator.generate_for_posting(posting.id)

        resume = result["resume"].read_text(encoding="utf-8")
        assert "Deep experience with Ruby (8 years)" in resume
        # React was assessed as missing
        assert "Also familiar with" not in resume
        assert "Working proficiency: RSpec, Docker" in resume

    def test_already_generated_today_is_skipped(self, generator):
        posting = self.add_posting(description="Ruby on Rails.")
        first = generator.generate_for_posting(posting.id)

        result = generator.generate_for_posting(posting.id)

        assert first["skipped"] is False
        assert result["skipped"] is True
        assert result["exported_at"] is not None
        with get_session() as session:
            applications = ApplicationRepository(session).list_for_posting(posting.id)
        assert len(applications) == 1

    def test_force_regenerates_on_the_same_day(self, generator):
        posting = self.add_posting(description="Ruby on Rails.")
        generator.generate_for_posting(posting.id)

        result = generator.generate_for_posting(posting.id, force=True)

        assert result["skipped"] is False
        assert result["resume"].exists()
        with get_session() as session:
            applications = ApplicationRepository(session).list_for_posting(posting.id)
        assert len(applications) == 2

    def test_unknown_posting(self, generator):
        with pytest.raises(RecordNotFoundError):
            generator.generate_for_posting(999)

    def test_generate_for_text(self, generator):
        text = "Globex\nWe are hiring a Senior Rails Developer to work on Ruby billing."

        result = generator.generate_for_text(text)

        with get_session() as session:
            application = ApplicationRepository(session).get(result["application_id"])
        assert application.company == "Globex"
        assert application.role == "Senior Rails Developer"
        assert application.job_posting_id is None
        assert "Globex - Senior Rails Developer - " in result["directory"]

    def test_generate_for_text_overrides(self, generator):
        result = generator.generate_for_text("Ruby work", company="Initech", role="Rails Engineer")

        assert "Initech - Rails Engineer - " in result["directory"]

    def test_retry_then_success(self, env):
        writer = StubWriter(failures=1)
        generator = ApplicationDocumentGenerator(
            env, writer=writer, rules=Rules({}), sleep=Mock(), retry_wait_seconds=5
        )

        result = generator.generate_for_text("Ruby work", company="Acme", role="Dev")

        generator._sleep.assert_called_once_with(5)
        assert "Stub letter body." in result["cover_letter"].read_text(encoding="utf-8")

    def test_retries_exhausted(self, env):
        generator = ApplicationDocumentGenerator(
            env, writer=StubWriter(failures=5), rules=Rules({}), sleep=Mock()
        )

        with pytest.raises(RuntimeError, match="writer exploded"):
            generator.generate_for_text("Ruby work", company="Acme", role="Dev")

        assert generator._sleep.call_count == 2

    def test_invalid_documents_mark_error(self, tmp_path, env, templates_writer):
        env.config_dir = tmp_path / "empty"
        env.config_dir.mkdir()
        generator = ApplicationDocumentGenerator(env, writer=templates_writer, rules=Rules({}), max_attempts=1)
        with get_session() as session:
            application = ApplicationRepository(session).add(
                Application(company="Acme", role="Dev", job_description="Ruby")
            )

        with pytest.raises(ConfigurationError):
            generator.generate(application)

        with get_session() as session:
            assert ApplicationRepository(session).get(application.id).status == "error"
