#!/usr/bin/env python3
"""
GitHub Actions pipeline status across an organization.

Enumerates every repository an organization (or user account) exposes to the
resolved token, lists each repository's workflows, and attaches the latest run
of each workflow. Results are printed as JSON and optionally summarized in a
Markdown report.

Token order: stored credential of --principal (credentials file) -> --token ->
GITHUB_PAT / GITHUB_TOKEN from the environment or .env.

Usage examples:
- Organizations visible to the token:
  ./scan_pipelines.py orgs
- Org-wide pipelines with latest runs, plus a Markdown report:
  ./scan_pipelines.py pipelines --org acme --report -v
- Jobs and steps of a run:
  ./scan_pipelines.py run-jobs --owner acme --repo api --run-id 123456
- Synthesized log summary of one job:
  ./scan_pipelines.py job-log --owner acme --repo api --run-id 123456 --job-id 789
"""

import argparse
import datetime
import json
import logging
import os
import re
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv

from pipewatch.config import PipewatchConfig
from pipewatch.errors import PipewatchError
from pipewatch.github.models import AggregationResult
from pipewatch.service import PipelineService

# Load environment variables from .env file
load_dotenv()


def setup_logging(verbosity: int = 1):
    level = logging.INFO
    if verbosity > 1:
        level = logging.DEBUG
    elif verbosity == 0:
        level = logging.WARNING
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    try:
        os.makedirs('logs', exist_ok=True)
        handlers.append(logging.FileHandler('logs/pipewatch.log'))
    except OSError as e:
        print(f"Warning: file logging disabled: {e}", file=sys.stderr)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def _cell(value: Any) -> str:
    if value is None:
        return ''
    return str(value).replace('|', '\\|')


def _report_filename(org: str) -> str:
    # Keep the report inside report_dir whatever the org argument contains
    safe = re.sub(r"[^A-Za-z0-9._-]", "_", os.path.basename(org.strip().rstrip("/\\")))
    if safe in ("", ".", ".."):
        safe = "org"
    return f"{safe}_pipelines.md"


def write_pipeline_report(report_dir: str, org: str, result: AggregationResult) -> str:
    """Write a Markdown summary of an aggregation and return its path."""
    os.makedirs(report_dir, exist_ok=True)
    md_path = os.path.join(report_dir, _report_filename(org))
    with open(md_path, 'w') as f:
        f.write("# Pipeline Status\n\n")
        f.write(f"**Organization:** {org}\n\n")
        f.write(f"- Generated: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"- Repositories processed: {result.repositories_done}/{result.repositories_total}\n")
        f.write(f"- Pipelines: {len(result.pipelines)}\n")
        if result.partial:
            f.write("- **Partial result:** aggregation was cancelled or timed out\n")
        f.write("\n")

        f.write("## Pipelines\n\n")
        if not result.pipelines:
            f.write("(none found)\n\n")
        else:
            f.write("| Repo | Workflow | File | State | Status | Conclusion | Event | Branch | Actor | Updated | URL |\n")
            f.write("|------|----------|------|-------|--------|------------|-------|--------|-------|---------|-----|\n")
            for p in result.pipelines:
                run = p.latest_run
                f.write(
                    f"| {_cell(p.owner)}/{_cell(p.repo)} | {_cell(p.workflow.name)} | `{_cell(p.workflow.path)}` | "
                    f"{_cell(p.workflow.state)} | {_cell(run.status if run else 'no runs')} | "
                    f"{_cell(run.conclusion if run else '')} | {_cell(run.event if run else '')} | "
                    f"{_cell(run.head_branch if run else '')} | {_cell(run.actor if run else '')} | "
                    f"{_cell(run.updated_at if run else '')} | {_cell(run.url if run else p.workflow.html_url)} |\n"
                )
            f.write("\n")

        if result.skipped:
            f.write("## Skipped repositories\n\n")
            f.write("| Repo | Reason |\n")
            f.write("|------|--------|\n")
            for s in result.skipped:
                f.write(f"| {_cell(s.owner)}/{_cell(s.repo)} | {s.reason.value} |\n")
    return md_path


def build_parser(config: PipewatchConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='GitHub Actions pipeline status across an organization')
    parser.add_argument('--token', type=str, help='GitHub token (used when the principal has no stored token)')
    parser.add_argument('--principal', type=str, help='Principal id to look up in the credentials file')
    parser.add_argument('--credentials-file', type=str, default=config.credentials_file,
                        help='YAML file of stored credentials (default: PIPEWATCH_CREDENTIALS_FILE)')
    parser.add_argument('-v', '--verbose', action='count', default=1, help='Increase verbosity')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('orgs', help='List organizations visible to the token')

    p = sub.add_parser('pipelines', help='List workflows (and latest runs) of every repository')
    p.add_argument('--org', type=str, default=os.getenv('GITHUB_ORG'),
                   help='Organization or user (default: GITHUB_ORG)')
    p.add_argument('--no-runs', action='store_true', help='Skip latest-run lookups')
    p.add_argument('--workers', type=int, default=config.max_workers,
                   help=f'Concurrent repositories (default: {config.max_workers})')
    p.add_argument('--deadline', type=float, default=config.deadline_sec,
                   help='Seconds before returning a partial result')
    p.add_argument('--exclude-forks', action='store_true', help='Skip forked repositories')
    p.add_argument('--exclude-archived', action='store_true', help='Skip archived repositories')
    p.add_argument('--report', action='store_true', help='Also write a Markdown report')
    p.add_argument('--output-dir', type=str, default=os.getenv('PIPELINE_REPORT_DIR', 'pipeline_reports'),
                   help='Report directory (default: pipeline_reports)')

    for name, help_text in (('run-jobs', 'List jobs and steps of a run'),
                            ('job-log', 'Synthesize a log summary of one job')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('--owner', type=str, required=True)
        p.add_argument('--repo', type=str, required=True)
        p.add_argument('--run-id', type=str, required=True)
        if name == 'job-log':
            p.add_argument('--job-id', type=str, required=True)

    return parser


def run_command(service: PipelineService, args: argparse.Namespace) -> Optional[int]:
    credential = service.resolve_token(args.principal, args.token)

    if args.command == 'orgs':
        print(json.dumps(service.list_organizations(credential), indent=2))
    elif args.command == 'pipelines':
        result = service.aggregate_pipelines(
            args.org, credential, include_runs=not args.no_runs, deadline_sec=args.deadline
        )
        print(json.dumps(result.to_dict(), indent=2))
        if args.report:
            path = write_pipeline_report(os.path.abspath(args.output_dir), args.org, result)
            logging.info(f"Report written to {path}")
        if result.partial:
            logging.warning("Partial result: not every repository was processed")
            return 2
    elif args.command == 'run-jobs':
        print(json.dumps(service.list_run_jobs(args.owner, args.repo, args.run_id, credential).to_dict(), indent=2))
    elif args.command == 'job-log':
        print(service.synthesize_job_log(args.owner, args.repo, args.run_id, args.job_id, credential))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = PipewatchConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser = build_parser(config)
    args = parser.parse_args(argv)

    if args.quiet:
        args.verbose = 0
    setup_logging(args.verbose)

    config.credentials_file = args.credentials_file
    if args.command == 'pipelines':
        if args.workers < 1:
            parser.error('--workers must be at least 1')
        config.max_workers = args.workers
        config.pool_size = max(config.pool_size, args.workers)
        config.include_forks = not args.exclude_forks
        config.include_archived = not args.exclude_archived

    service = PipelineService(config)
    try:
        return run_command(service, args) or 0
    except PipewatchError as e:
        logging.error(f"{e.__class__.__name__}: {e.message}")
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(1)
