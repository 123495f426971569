# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Main entry point for the Resume Forge CLI.
"""

import argparse
import sys
import logging
from pathlib import Path
from collections import deque

from dotenv import load_dotenv
from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from resume_forge.config import Settings
from resume_forge.document_store import DocumentStore
from resume_forge.examples_cache import ExampleCache, JsonFileStorage
from resume_forge.exceptions import ResumeForgeError, InputError
from resume_forge.formatting import HtmlFormattingClient
from resume_forge.ingest import ResumeParser, ingest_resume, load_portfolio_file, read_url
from resume_forge.job_list import create_manual_job, load_jobs_csv, select_jobs, selected_jobs
from resume_forge.llm_client import ContentGenerationClient, get_provider, PROVIDERS
from resume_forge.models import DocumentSelection
from resume_forge.pipeline import GenerationOrchestrator
from resume_forge.settings_store import SettingsStore
from resume_forge.ssl_helpers import set_ca_bundle_override

logger = logging.getLogger(__name__)

# CLI flag -> ExampleTexts field
EXAMPLE_FLAGS = {
    "example_resume": "example_resume_text",
    "example_cover_letter": "example_cover_letter_text",
    "styled_resume": "styled_resume_text",
    "styled_cover_letter": "styled_cover_letter_text",
}


class StatusLogHandler(logging.Handler):
    """
    Custom handler to store the last N logs for a scrolling status display,
    under a one-line "job N of M" header.
    """
    def __init__(self, console, maxlen=5):
        super().__init__()
        self.console = console
        self.maxlen = maxlen
        self.logs = deque(maxlen=maxlen)
        self.status = ""
        self.live = None

    def emit(self, record):
        try:
            msg = self.format(record)
            self.logs.append(msg)
            self.refresh()
        except Exception:
            self.handleError(record)

    def set_status(self, status: str):
        self.status = status
        self.refresh()

    def refresh(self):
        if self.live:
            self.live.update(self.get_renderable())

    def get_renderable(self):
        logs = Text("\n".join(self.logs), style="dim grey50")
        if not self.status:
            return logs
        return Group(Text(self.status, style="bold cyan"), logs)


def setup_logging(verbosity: int, quiet: bool = False, custom_handler: logging.Handler = None,
                  log_dir: Path = Path("user_content/logs")):
    """
    Configures logging:
    - File: user_content/logs/resume_forge.log (DEBUG)
    - Console: Default=INFO (dim status), -q=ERROR, -v=WARNING, -vv=INFO, -vvv=DEBUG
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "resume_forge.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if quiet or verbosity == 0:
        level = logging.ERROR
    elif verbosity == 1:
        level = logging.WARNING
    elif verbosity == 2:
        level = logging.INFO
    else:
        level = logging.DEBUG

    if custom_handler:
        custom_handler.setLevel(level)
        custom_handler.setFormatter(logging.Formatter('%(message)s'))
        root.addHandler(custom_handler)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        root.addHandler(console_handler)

    # Silence some noisy libs if not in super debug
    if verbosity < 3:
        for name in ("httpx", "httpcore", "openai", "anthropic", "google_genai"):
            logging.getLogger(name).setLevel(logging.WARNING)


def parse_selection(value: str):
    """'all' or a comma-separated list of 1-based job numbers."""
    value = (value or "all").strip()
    if value.lower() == "all":
        return "all"
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as e:
        raise InputError(f"Invalid --select value '{value}'. Use 'all' or e.g. '1,3'.") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI powered resume and cover letter generator")
    parser.add_argument("--resume", help="Resume to tailor (PDF, DOCX or parsed JSON)")
    parser.add_argument("--jobs", help="CSV export of job postings")
    parser.add_argument("--company", help="Add a single job by hand: company name")
    parser.add_argument("--position", help="Add a single job by hand: position title")
    parser.add_argument("--description", help="Job description for --company/--position (text, file path or URL)")
    parser.add_argument("--select", default="all", help="Jobs to generate for: 'all' (default) or numbers like '1,3'")
    parser.add_argument("--type", dest="document_type", choices=[s.value for s in DocumentSelection],
                        help="Documents to generate (default: both)")
    parser.add_argument("--portfolio", help="Portfolio site structure as JSON, used for inline section links")
    parser.add_argument("--example-resume", help="Resume whose writing style the content should follow")
    parser.add_argument("--example-cover-letter", help="Cover letter whose writing style the content should follow")
    parser.add_argument("--styled-resume", help="Resume whose visual layout the HTML should follow")
    parser.add_argument("--styled-cover-letter", help="Cover letter whose visual layout the HTML should follow")
    parser.add_argument("--refresh-examples", action="store_true", help="Forget cached examples and reload the defaults")
    parser.add_argument("--output-dir", help="Where to write the HTML documents (default: user_content/generated)")
    parser.add_argument("--content-provider", choices=list(PROVIDERS), help="Provider that writes the content")
    parser.add_argument("--formatting-provider", choices=list(PROVIDERS), help="Provider that produces the HTML")
    parser.add_argument("--concurrency", type=int, help="Jobs processed at once (default: 1)")
    parser.add_argument("--list-recent", action="store_true", help="List recently used settings and exit")
    parser.add_argument("--clear-recent", action="store_true", help="Delete all recent settings and exit")
    parser.add_argument("--load-recent", metavar="ID", help="Reuse the resume and jobs of a recent run")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase output verbosity (-v=WARNING, -vv=INFO, -vvv=DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress status output (ERROR only)")
    parser.add_argument("--ca-bundle", help="Path to a custom CA certificate bundle for HTTPS verification (proxy environments)")
    return parser


def main():
    try:
        _main_cli()
    except KeyboardInterrupt:
        # Use stderr so it captures attention even if stdout is redirected or rich
        sys.stderr.write("\n\033[31m[-] Cancelled by user\033[0m\n")
        sys.exit(130)


def _main_cli():
    """
    Parses arguments, loads the resume and jobs, runs the generation pipeline
    and writes the documents.
    """
    parser = build_parser()
    args = parser.parse_args()

    load_dotenv()
    settings = Settings.from_env()

    if args.ca_bundle:
        set_ca_bundle_override(args.ca_bundle)

    if args.list_recent or args.clear_recent:
        sys.exit(_recent_settings_command(args, settings))

    if args.quiet:
        setup_logging(0, quiet=True, log_dir=settings.logs_dir)
        sys.exit(_run_main_logic(args, parser, settings))
    elif args.verbose == 0:
        # Default mode: scrolling status log
        console = Console()
        status_handler = StatusLogHandler(console)
        setup_logging(2, custom_handler=status_handler, log_dir=settings.logs_dir)

        with Live(status_handler.get_renderable(), refresh_per_second=4, console=console) as live:
            status_handler.live = live
            logger.info("--- Resume Forge ---")
            code = _run_main_logic(args, parser, settings, status_handler)
        sys.exit(code)
    else:
        setup_logging(args.verbose, log_dir=settings.logs_dir)
        logger.info("--- Resume Forge ---")
        sys.exit(_run_main_logic(args, parser, settings))


def _recent_settings_command(args, settings: Settings) -> int:
    console = Console()
    store = SettingsStore(settings.settings_file)
    try:
        if args.clear_recent:
            store.clear()
            console.print("Recent settings cleared.")
            return 0

        records = store.recent()
    except ResumeForgeError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    if not records:
        console.print("No recent settings.")
        return 0

    table = Table(title="Recent settings")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Documents")
    table.add_column("Jobs", justify="right")
    table.add_column("Created")
    for record in records:
        table.add_row(record.id[:8], record.name, record.style_name, str(len(record.jobs_data)),
                      record.created_at[:19].replace("T", " "))
    console.print(table)
    return 0


def _read_description(value: str) -> str:
    if value and value.startswith(("http://", "https://")):
        logger.info(f"Fetching job description from: {value}")
        return read_url(value)
    if value and Path(value).is_file():
        return Path(value).read_text(encoding="utf-8")
    return value or ""


def _run_main_logic(args, parser, settings: Settings, status_handler: StatusLogHandler = None) -> int:
    """
    Runs one generation. Returns the process exit code: 0 when at least one
    document was written, 1 otherwise.
    """
    if args.content_provider:
        settings.content_provider = args.content_provider
    if args.formatting_provider:
        settings.formatting_provider = args.formatting_provider
    if args.concurrency:
        settings.concurrency = max(1, args.concurrency)

    try:
        resume, jobs, selection = _load_inputs(args, parser, settings)

        jobs = select_jobs(jobs, parse_selection(args.select))
        chosen = selected_jobs(jobs)
        if not chosen:
            raise InputError("No jobs selected")
        for i, job in enumerate(chosen, start=1):
            logger.info(f"    {i}. {job.position} @ {job.company_name}")

        examples = _load_examples(args, settings)
        portfolio = load_portfolio_file(args.portfolio) if args.portfolio else None

        content_client = ContentGenerationClient(get_provider(settings.content_provider, settings, "content"))
        formatting_client = HtmlFormattingClient(get_provider(settings.formatting_provider, settings, "formatting"))
    except ResumeForgeError as e:
        logger.error(f"Error: {e}")
        return 1

    def on_progress(index, total, job):
        if status_handler:
            status_handler.set_status(f"Job {index} of {total}: {job.position} @ {job.company_name}")

    orchestrator = GenerationOrchestrator(
        content_client,
        formatting_client,
        settings_store=SettingsStore(settings.settings_file),
        concurrency=settings.concurrency,
    )
    try:
        result = orchestrator.run_sync(
            resume, jobs, selection, examples=examples, portfolio=portfolio, on_progress=on_progress
        )
    except ResumeForgeError as e:
        logger.error(f"Error: {e}")
        return 1

    if not result.success:
        logger.error(f"Generation failed: {result.error}")
        return 1

    if result.is_partial:
        logger.warning(f"    [!] Only {len(result.documents)} of {result.requested_documents} documents were generated")
        for failure in result.failures:
            logger.warning(f"        - {failure.document_type.label} for job {failure.job_id}: {failure.error}")

    output_dir = Path(args.output_dir) if args.output_dir else settings.output_dir
    try:
        paths = DocumentStore(result.documents).export(output_dir, jobs)
    except OSError as e:
        logger.error(f"Error writing documents: {e}")
        return 1

    logger.info(f"Done! {len(paths)} document(s) written to {output_dir}")
    return 0


def _load_inputs(args, parser, settings: Settings):
    """Resume, job list and document selection from a recent record or from files."""
    selection = DocumentSelection(args.document_type) if args.document_type else None

    if args.load_recent:
        record = SettingsStore(settings.settings_file).get(args.load_recent)
        if record is None:
            raise InputError(f"No recent settings with id '{args.load_recent}'")
        logger.info(f"Loaded recent settings '{record.name}'")
        resume = record.resume()
        jobs = record.jobs()
        selection = selection or record.selection()
    else:
        resume = None
        jobs = []

    if args.resume:
        logger.info(f"Ingesting resume from: {args.resume}")
        resume_parser = None
        if Path(args.resume).suffix.lower() in (".pdf", ".docx"):
            resume_parser = ResumeParser(get_provider(settings.effective_parser_provider, settings, "parser"))
        resume = ingest_resume(args.resume, resume_parser)

    if args.jobs:
        jobs = load_jobs_csv(args.jobs)
    if args.company or args.position:
        jobs = list(jobs) + [create_manual_job(args.company, args.position, _read_description(args.description))]

    if resume is None:
        parser.error("--resume is required unless --load-recent is used.")
    if not jobs:
        parser.error("Provide --jobs, --company/--position or --load-recent.")

    return resume, jobs, selection or DocumentSelection.BOTH


def _load_examples(args, settings: Settings):
    cache = ExampleCache(JsonFileStorage(settings.examples_cache_file))
    if args.refresh_examples:
        cache.invalidate()
    for flag, field_name in EXAMPLE_FLAGS.items():
        path = getattr(args, flag)
        if path:
            cache.put_file(field_name, path)
    return cache.load()


if __name__ == "__main__":
    main()
