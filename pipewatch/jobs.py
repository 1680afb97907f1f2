"""
Run expansion into jobs and steps, and the text summary of a single job.

GitHub serves raw job logs only as a ZIP archive, so the "log" produced here is
synthesized from job and step metadata.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from .github.client import GitHubClient
from .github.models import Credential, Job, RunJobs

logger = logging.getLogger("pipewatch.jobs")

NO_JOB_TEXT = "(No job found to assemble log)"
RAW_LOG_NOTE = (
    "(Raw log not fetched: the API delivers job logs only as a ZIP archive; "
    "this is a synthesized summary.)"
)
MISSING = "n/a"


class JobStepExpander:
    def __init__(self, client: GitHubClient) -> None:
        self.client = client

    def expand(self, owner: str, repo: str, run_id: int, credential: Credential) -> RunJobs:
        """All jobs of a run, steps in the order the API returned them.

        An empty job list is a valid answer. Remote failures propagate.
        """
        data = self.client.list_run_jobs(owner, repo, run_id, credential)
        jobs = tuple(Job.from_dict(j) for j in data.get('jobs') or [])
        logger.debug(f"{owner}/{repo} run {run_id}: {len(jobs)} jobs")
        return RunJobs(total_count=data.get('total_count') or len(jobs), jobs=jobs)


def _fmt(value: Optional[Any]) -> str:
    if value is None or value == '':
        return MISSING
    return str(value)


class LogSynthesizer:
    """Renders a job's metadata as a short, deterministic text block."""

    def render_job(self, job: Job) -> str:
        lines: List[str] = [
            f"Job: {job.name} | status: {_fmt(job.status)} | conclusion: {_fmt(job.conclusion)}",
            f"Started: {_fmt(job.started_at)} | Completed: {_fmt(job.completed_at)}",
            "",
            "Steps:",
        ]
        # sorted() is stable, so steps sharing a number keep their relative order
        for step in sorted(job.steps, key=lambda s: (s.number is None, s.number or 0)):
            lines.append(
                f" - #{_fmt(step.number)} {step.name} | status: {_fmt(step.status)}"
                f" | conclusion: {_fmt(step.conclusion)} | started: {_fmt(step.started_at)}"
                f" | completed: {_fmt(step.completed_at)}"
            )
        lines.append("")
        lines.append(RAW_LOG_NOTE)
        return "\n".join(lines)

    def synthesize(self, job_id: Any, run_jobs: RunJobs) -> str:
        job = run_jobs.find(job_id)
        if job is None:
            logger.info(f"Job {job_id} not found among {len(run_jobs.jobs)} jobs")
            return NO_JOB_TEXT
        return self.render_job(job)
