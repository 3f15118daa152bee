"""Command-line entry point for Job Wizard."""

import argparse
import signal
import sys
import threading
import time
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from jobwizard.ai.stats import UsageStats
from jobwizard.config.duration import DurationParseError, parse_duration, validate_duration_range
from jobwizard.config.environment import EnvironmentConfig, load_environment_config
from jobwizard.config.exceptions import ConfigurationError
from jobwizard.config.loader import find_config_dir
from jobwizard.config.validators import validate_documents
from jobwizard.documents.exceptions import DocumentGenerationError
from jobwizard.documents.generator import ApplicationDocumentGenerator
from jobwizard.domain.models import (
    BlockedCompany,
    JobPosting,
    JobStatus,
    ManualApplication,
    ManualApplicationStatus,
    SkillAssessment,
)
from jobwizard.fetchers.exceptions import FetcherError
from jobwizard.logging import get_logger
from jobwizard.logging.config import configure_logging
from jobwizard.persistence import (
    BlockedCompanyRepository,
    JobPostingRepository,
    ManualApplicationRepository,
    PersistenceError,
    SkillAssessmentRepository,
    close_database,
    get_session,
    init_database,
)
from jobwizard.pipeline import FetchRunResult, JobFetchService
from jobwizard.rules.engine import MANUAL_SOURCE, RulesEngine
from jobwizard.rules.rules import RulesProvider
from jobwizard.rules.writer import SafeRulesWriter
from jobwizard.scheduler import SchedulerService
from jobwizard.skills.detector import SkillDetector
from jobwizard.skills.effective import EffectiveSkillsService
from jobwizard.skills.experience import ExperienceProfile
from jobwizard.utils.text import truncate
from jobwizard.utils.timestamps import format_date

logger = get_logger(__name__, component="cli")

DEFAULT_SCHEDULE_INTERVAL = "6h"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-wizard",
        description="Job Wizard - fetch, screen and track job postings and generate tailored documents",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding rules.yml, sources.yml, profile.yml and experience.yml",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides LOG_LEVEL)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    fetch = commands.add_parser("fetch", help="Fetch all active sources once")
    fetch.add_argument("--show-rejections", action="store_true", help="List jobs rejected by the rules")
    fetch.set_defaults(handler=cmd_fetch)

    schedule = commands.add_parser("schedule", help="Fetch periodically until interrupted")
    schedule.add_argument("--interval", default=None, help="Fetch interval, e.g. 30m, 6h or PT6H")
    schedule.set_defaults(handler=cmd_schedule)

    _add_jobs_parser(commands)

    generate = commands.add_parser("generate", help="Generate a resume and cover letter")
    target = generate.add_mutually_exclusive_group(required=True)
    target.add_argument("job_id", nargs="?", type=int, help="Stored job posting ID")
    target.add_argument("--jd-file", type=Path, help="File holding a job description")
    generate.add_argument("--company", help="Company name (detected from the description if omitted)")
    generate.add_argument("--role", help="Role title (detected from the description if omitted)")
    generate.add_argument(
        "--force", action="store_true", help="Regenerate even if documents were generated today"
    )
    generate.set_defaults(handler=cmd_generate)

    blocklist = commands.add_parser("blocklist", help="Manage blocked companies")
    blocklist_commands = blocklist.add_subparsers(dest="blocklist_command", required=True)
    blocklist_commands.add_parser("list").set_defaults(handler=cmd_blocklist_list)
    blocklist_add = blocklist_commands.add_parser("add")
    blocklist_add.add_argument("name", help="Company name, or a regex with --pattern")
    blocklist_add.add_argument("--reason", required=True)
    blocklist_add.add_argument("--pattern", action="store_true", help="Treat name as a regex")
    blocklist_add.set_defaults(handler=cmd_blocklist_add)
    blocklist_remove = blocklist_commands.add_parser("remove")
    blocklist_remove.add_argument("blocked_id", type=int)
    blocklist_remove.set_defaults(handler=cmd_blocklist_remove)

    filters = commands.add_parser("filters", help="Edit exclude keywords in rules.yml")
    filter_commands = filters.add_subparsers(dest="filters_command", required=True)
    exclude_add = filter_commands.add_parser("exclude-add")
    exclude_add.add_argument("keyword")
    exclude_add.set_defaults(handler=cmd_filters_exclude_add)
    exclude_remove = filter_commands.add_parser("exclude-remove")
    exclude_remove.add_argument("keyword")
    exclude_remove.set_defaults(handler=cmd_filters_exclude_remove)

    manual = commands.add_parser("manual", help="Track applications made outside the job board")
    manual_commands = manual.add_subparsers(dest="manual_command", required=True)
    manual_list = manual_commands.add_parser("list")
    manual_list.add_argument("--status", choices=[s.value for s in ManualApplicationStatus])
    manual_list.set_defaults(handler=cmd_manual_list)
    manual_add = manual_commands.add_parser("add")
    manual_add.add_argument("company")
    manual_add.add_argument("position")
    manual_add.add_argument("--applied-at", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default today)")
    manual_add.add_argument("--url", dest="job_url")
    manual_add.add_argument("--notes")
    manual_add.set_defaults(handler=cmd_manual_add)
    manual_status = manual_commands.add_parser("status")
    manual_status.add_argument("application_id", type=int)
    manual_status.add_argument("status", choices=[s.value for s in ManualApplicationStatus])
    manual_status.set_defaults(handler=cmd_manual_status)

    commands.add_parser("ai-usage", help="Month-to-date AI cost report").set_defaults(handler=cmd_ai_usage)

    rejections = commands.add_parser(
        "rejections", help="Re-check suggested jobs against the current rules"
    )
    rejections.add_argument("--limit", type=int, default=10)
    rejections.set_defaults(handler=cmd_rejections)

    commands.add_parser("validate", help="Validate the YAML documents").set_defaults(handler=cmd_validate)

    return parser


def _add_jobs_parser(commands) -> None:
    jobs = commands.add_parser("jobs", help="Browse and update job postings")
    job_commands = jobs.add_subparsers(dest="jobs_command", required=True)

    jobs_list = job_commands.add_parser("list")
    jobs_list.add_argument("--status", choices=[s.value for s in JobStatus], default=None)
    jobs_list.add_argument("--remote", action="store_true", help="Remote jobs only")
    jobs_list.add_argument("--limit", type=int, default=50)
    jobs_list.set_defaults(handler=cmd_jobs_list)

    jobs_add = job_commands.add_parser("add", help="Add a posting by hand")
    jobs_add.add_argument("--company", required=True)
    jobs_add.add_argument("--title", required=True)
    jobs_add.add_argument("--url", required=True)
    description = jobs_add.add_mutually_exclusive_group()
    description.add_argument("--description", default="")
    description.add_argument("--description-file", type=Path)
    jobs_add.add_argument("--location")
    jobs_add.add_argument("--remote", action="store_true")
    jobs_add.set_defaults(handler=cmd_jobs_add)

    for name, status in (
        ("applied", JobStatus.APPLIED),
        ("ignore", JobStatus.IGNORED),
        ("exported", JobStatus.EXPORTED),
    ):
        transition = job_commands.add_parser(name, help=f"Mark a posting {status.value}")
        transition.add_argument("job_id", type=int)
        transition.set_defaults(handler=cmd_jobs_mark, status=status.value)

    assess = job_commands.add_parser("assess", help="Record whether you have a skill a posting asks for")
    assess.add_argument("job_id", type=int)
    assess.add_argument("skill")
    have = assess.add_mutually_exclusive_group(required=True)
    have.add_argument("--have", dest="have", action="store_true")
    have.add_argument("--not-have", dest="have", action="store_false")
    assess.add_argument("--proficiency", type=int, default=None, help="1-5, required with --have")
    assess.set_defaults(handler=cmd_jobs_assess)

    skills = job_commands.add_parser("skills", help="Effective skills for a posting")
    skills.add_argument("job_id", type=int)
    skills.set_defaults(handler=cmd_jobs_skills)


def _print_fetch_result(result: FetchRunResult) -> None:
    if result.skipped:
        print("Fetch skipped: another fetch is still running")
        return

    print(
        f"Fetched {result.total} jobs: {result.added} added, {result.updated} updated, "
        f"{result.skipped_by_status} skipped by status, {result.duplicates} duplicates"
    )
    if result.invalid:
        print(f"  {result.invalid} jobs could not be stored")
    for provider, count in sorted(result.by_provider.items()):
        print(f"  {provider}: {count}")
    for error in result.errors:
        print(f"  ERROR {error}")


def _blocked_companies() -> List[BlockedCompany]:
    with get_session() as session:
        return BlockedCompanyRepository(session).list_all()


def cmd_fetch(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    service = JobFetchService(env)
    result = service.fetch_all()
    _print_fetch_result(result)

    if args.show_rejections:
        for entry in service.recent_rejections(limit=50):
            print(f"  REJECTED {entry['company']} - {entry['title']}: {'; '.join(entry['reasons'])}")

    return 1 if result.had_errors else 0


def cmd_schedule(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    interval = args.interval
    if interval:
        try:
            interval_seconds = parse_duration(interval)
            validate_duration_range(interval_seconds)
        except DurationParseError as e:
            raise ConfigurationError(
                f"Invalid --interval: {e}",
                suggestions=["Use a duration such as 30m, 6h or PT6H"],
            )
    else:
        interval_seconds = env.schedule_interval_seconds or parse_duration(DEFAULT_SCHEDULE_INTERVAL)

    service = JobFetchService(env)
    shutdown_event = threading.Event()
    scheduler = SchedulerService(
        fetch_callable=lambda: _print_fetch_result(service.fetch_all()),
        interval_seconds=interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler.start()
    print(f"Fetching every {interval_seconds} seconds. Press Ctrl+C to stop.")

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler.shutdown(wait=False)
    return 0


def cmd_jobs_list(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        postings = JobPostingRepository(session).list(
            status=args.status, remote_only=args.remote, limit=args.limit
        )

    if not postings:
        print("No job postings found")
        return 0

    for posting in postings:
        location = posting.location or ("Remote" if posting.remote else "")
        print(
            f"{posting.id:>5}  {posting.score:>6.1f}  {posting.status:<9}  "
            f"{truncate(f'{posting.company} - {posting.title}', 60):<60}  {location}"
        )
        print(f"       {posting.url}")
    return 0


def create_manual_posting(
    posting: JobPosting,
    engine: Optional[RulesEngine] = None,
    session_factory: Callable = get_session,
) -> JobPosting:
    """Store a hand-entered posting after the rules engine accepts it.

    Manual postings skip the required-keyword check but not the others.

    Raises:
        ValueError: With the rejection reasons when the rules reject it
    """
    posting = posting.model_copy(update={"source": MANUAL_SOURCE})
    if engine is None:
        blocked = _blocked_companies()
        engine = RulesEngine(RulesProvider.current(), blocked_companies=lambda: blocked)

    decision = engine.should_reject(posting)
    if decision.rejected:
        raise ValueError(f"Job rejected: {'; '.join(decision.reasons)}")

    with session_factory() as session:
        return JobPostingRepository(session).add(posting)


def cmd_jobs_add(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    description = args.description
    if args.description_file:
        description = args.description_file.read_text(encoding="utf-8")

    posting = create_manual_posting(
        JobPosting(
            company=args.company,
            title=args.title,
            url=args.url,
            description=description,
            location=args.location,
            remote=args.remote,
        )
    )
    print(f"Added job {posting.id}: {posting.company} - {posting.title}")
    return 0


def cmd_jobs_mark(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        posting = JobPostingRepository(session).mark(args.job_id, args.status)
    print(f"Job {posting.id} marked {posting.status}")
    return 0


def cmd_jobs_assess(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    assessment = SkillAssessment(
        job_posting_id=args.job_id,
        skill_name=args.skill,
        have=args.have,
        proficiency=args.proficiency,
    )
    with get_session() as session:
        JobPostingRepository(session).get_or_raise(args.job_id)
        saved = SkillAssessmentRepository(session).upsert(assessment)

    detail = f"have (proficiency {saved.proficiency})" if saved.have else "don't have"
    print(f"Job {saved.job_posting_id}: {saved.skill_name} - {detail}")
    return 0


def cmd_jobs_skills(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    experience = ExperienceProfile.load(env.experience_path)
    with get_session() as session:
        posting = JobPostingRepository(session).get_or_raise(args.job_id)
        assessments = SkillAssessmentRepository(session).list_for_posting(args.job_id)

    detector = SkillDetector(posting.description, experience)
    analysis = detector.analyze()
    service = EffectiveSkillsService(experience, assessments, env.proficiency_threshold)
    summary = service.skill_summary()

    print(f"{posting.company} - {posting.title}")
    print(f"  Verified in job description: {', '.join(analysis['verified']) or '-'}")
    print(f"  Unverified in job description: {', '.join(analysis['unverified']) or '-'}")
    assessed = {assessment.skill_name for assessment in assessments}
    for candidate in detector.assessment_candidates():
        if candidate["name"] in assessed:
            state = "assessed"
        elif candidate["in_profile"]:
            state = "in profile"
        else:
            state = "to assess"
        print(f"  Candidate {candidate['name']}: {state}")
    for assessment in assessments:
        detail = f"have ({assessment.proficiency})" if assessment.have else "don't have"
        print(f"  Assessed {assessment.skill_name}: {detail}")
    print(
        f"  Effective skills: {summary['total_effective']} "
        f"({summary['verified_count']} declared, +{summary['included_count']} assessed, "
        f"-{summary['excluded_count']} excluded)"
    )
    print(f"  {', '.join(service.effective_skills())}")
    return 0


def cmd_generate(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    generator = ApplicationDocumentGenerator(env)
    if args.jd_file:
        result = generator.generate_for_text(
            args.jd_file.read_text(encoding="utf-8"), company=args.company, role=args.role
        )
    else:
        result = generator.generate_for_posting(args.job_id, force=args.force)
        if result["skipped"]:
            print(f"Documents already generated today for job {args.job_id} (use --force to regenerate)")
            return 0

    print(f"Documents written to {result['directory']}")
    print(f"  Resume:       {result['resume']}")
    print(f"  Cover letter: {result['cover_letter']}")
    if result["unverified_skills"]:
        print(f"  Unverified skills (left out): {', '.join(result['unverified_skills'])}")
    return 0


def cmd_blocklist_list(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    blocked = _blocked_companies()
    if not blocked:
        print("No blocked companies")
    for entry in blocked:
        kind = "regex" if entry.pattern else "exact"
        print(f"{entry.id:>5}  {entry.name} ({kind}): {entry.reason}")
    return 0


def cmd_blocklist_add(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        blocked = BlockedCompanyRepository(session).add(
            BlockedCompany(name=args.name, pattern=args.pattern, reason=args.reason)
        )
    print(f"Blocked {blocked.name} (id {blocked.id})")
    return 0


def cmd_blocklist_remove(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        blocked = BlockedCompanyRepository(session).remove(args.blocked_id)
    print(f"Unblocked {blocked.name}")
    return 0


def _edit_rules(action: Callable[[SafeRulesWriter], bool], env: EnvironmentConfig, done: str) -> int:
    writer = SafeRulesWriter(env.rules_path)
    if action(writer):
        print(done)
        return 0
    for error in writer.errors:
        print(f"Error: {error}", file=sys.stderr)
    return 1


def cmd_filters_exclude_add(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    return _edit_rules(
        lambda writer: writer.add_exclude_keyword(args.keyword),
        env,
        f"Added exclude keyword '{args.keyword}'",
    )


def cmd_filters_exclude_remove(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    return _edit_rules(
        lambda writer: writer.remove_exclude_keyword(args.keyword),
        env,
        f"Removed exclude keyword '{args.keyword}'",
    )


def cmd_manual_list(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        applications = ManualApplicationRepository(session).list(status=args.status)

    if not applications:
        print("No manual applications")
    for application in applications:
        print(
            f"{application.id:>5}  {application.applied_at.isoformat()}  "
            f"{application.status:<12}  {application.summary}"
        )
    return 0


def cmd_manual_add(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        application = ManualApplicationRepository(session).add(
            ManualApplication(
                company=args.company,
                position=args.position,
                applied_at=args.applied_at or date.today(),
                job_url=args.job_url,
                notes=args.notes,
            )
        )
    print(f"Tracked {application.summary} (id {application.id})")
    return 0


def cmd_manual_status(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        application = ManualApplicationRepository(session).update_status(
            args.application_id, args.status
        )
    print(f"{application.summary}: {application.status}")
    return 0


def cmd_ai_usage(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    with get_session() as session:
        stats = UsageStats(session).month_to_date()

    print(f"AI usage this month: ${stats['total_dollars']:.2f} across {stats['count']} calls")
    for feature, cents in sorted(stats["by_feature"].items()):
        print(f"  {feature}: ${cents / 100.0:.2f}")
    for usage in stats["recent"]:
        print(
            f"  {format_date(usage.created_at)}  {usage.model:<20}  {usage.feature:<14}  "
            f"{usage.total_tokens:>7} tokens  ${usage.cost_dollars:.4f}"
        )
    return 0


def cmd_rejections(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    blocked = _blocked_companies()
    engine = RulesEngine(RulesProvider.current(), blocked_companies=lambda: blocked)
    with get_session() as session:
        postings = JobPostingRepository(session).list_active()

    for posting in postings:
        engine.should_reject(posting)

    rejections = engine.recent_rejections(limit=args.limit)
    if not rejections:
        print(f"All {len(postings)} suggested jobs pass the current rules")
    for entry in rejections:
        print(f"{entry['job_id']:>5}  {entry['company']} - {entry['title']}: {'; '.join(entry['reasons'])}")
    return 0


def cmd_validate(args: argparse.Namespace, env: EnvironmentConfig) -> int:
    validate_documents(env.profile_path, env.experience_path, env.rules_path)
    print(f"profile.yml, experience.yml and rules.yml in {env.config_dir} are valid")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one CLI command.

    Returns:
        Exit code: 0 on success, 1 on configuration or runtime errors.
        argparse exits with 2 on usage errors.
    """
    start_time = time.time()
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        env = load_environment_config()
        if args.config_dir is not None:
            env.config_dir = find_config_dir(args.config_dir)

        configure_logging(
            level=args.log_level or env.log_level or "INFO",
            format_type=env.log_format,
            environment=env.environment,
        )
        RulesProvider.configure(env.rules_path)
        init_database(env.database_url)

        logger.info(
            f"Running command: {args.command}",
            extra={"event": "cli.command.started", "command": args.command},
        )
        try:
            return args.handler(args, env)
        finally:
            close_database()
            logger.info(
                "Command finished",
                extra={
                    "event": "cli.command.finished",
                    "command": args.command,
                    "duration_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except (
        PersistenceError,
        FetcherError,
        DocumentGenerationError,
        ValidationError,
        ValueError,
        OSError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"Command failed: {e}",
            extra={"event": "cli.command.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Unexpected error",
            extra={
                "event": "cli.command.crashed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
