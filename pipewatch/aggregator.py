"""
Organization-wide pipeline aggregation.

Repositories are enumerated on the worker pool, then processed by it. Each
worker lists one repository's workflows and, if requested, the latest run of
each workflow. Results land in a slot per repository (indexed by enumeration
position) so output order never depends on completion order.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import RemoteRateLimited
from .github.models import (
    AggregationResult,
    Credential,
    Pipeline,
    Repository,
    SkippedRepository,
)
from .repositories import RepositoryEnumerator
from .workflows import RunStatusFetcher, WorkflowCollector

logger = logging.getLogger("pipewatch.aggregator")

# How often the coordinator wakes up to check the deadline and cancel signal
_POLL_INTERVAL_SEC = 0.1


@dataclass(frozen=True)
class RepositoryOutcome:
    pipelines: Tuple[Pipeline, ...] = ()
    skipped: Optional[SkippedRepository] = None


class PipelineAggregator:
    def __init__(
        self,
        enumerator: RepositoryEnumerator,
        collector: WorkflowCollector,
        run_fetcher: RunStatusFetcher,
        max_workers: int = 5,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.enumerator = enumerator
        self.collector = collector
        self.run_fetcher = run_fetcher
        self.max_workers = max_workers

    def process_repository(
        self,
        repo: Repository,
        credential: Credential,
        include_runs: bool = True,
        stop: Optional[threading.Event] = None,
    ) -> Optional[RepositoryOutcome]:
        """Workflows (and latest runs) of one repository.

        Returns None if ``stop`` was set before the repository was finished.
        """
        listing = self.collector.collect(repo, credential)
        if listing.skipped:
            return RepositoryOutcome(
                skipped=SkippedRepository(repo.owner, repo.name, listing.skip_reason)
            )

        pipelines: List[Pipeline] = []
        for wf in listing.workflows:
            if stop is not None and stop.is_set():
                return None
            latest_run = None
            if include_runs:
                latest_run = self.run_fetcher.fetch(repo.owner, repo.name, wf.id, credential)
            pipelines.append(Pipeline(owner=repo.owner, repo=repo.name, workflow=wf, latest_run=latest_run))
        return RepositoryOutcome(pipelines=tuple(pipelines))

    def aggregate(
        self,
        org: str,
        credential: Credential,
        include_runs: bool = True,
        deadline_sec: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AggregationResult:
        """Aggregate every workflow of every repository under ``org``.

        Args:
            org: Organization or user login
            credential: Validated credential
            include_runs: Attach the latest run of each workflow
            deadline_sec: Stop waiting after this many seconds and return a
                partial result
            cancel_event: Setting it has the same effect as the deadline expiring

        Raises:
            OrgOrUserNotFound: from repository enumeration
            RemoteAPIError: any failure that is not repository-local; queued
                repositories are abandoned first
        """
        started = time.monotonic()
        slots: List[Optional[RepositoryOutcome]] = []
        stop = threading.Event()

        def worker(index: int, repo: Repository) -> None:
            if stop.is_set():
                return
            slots[index] = self.process_repository(repo, credential, include_runs, stop)

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="pipewatch")
        try:
            # Enumeration runs on the pool too, so the deadline and cancel signal cover it
            listing = executor.submit(self.enumerator.enumerate, org, credential)
            interrupted, fatal = self._wait({listing: 0}, started, deadline_sec, cancel_event)
            if not interrupted and fatal is None:
                repos = listing.result()
                slots.extend([None] * len(repos))
                logger.info(f"Processing {len(repos)} repositories of {org} with {self.max_workers} workers")
                futures = {executor.submit(worker, i, r): i for i, r in enumerate(repos)}
                interrupted, fatal = self._wait(futures, started, deadline_sec, cancel_event)
        finally:
            stop.set()
            # In-flight calls are abandoned, not awaited
            executor.shutdown(wait=False, cancel_futures=True)

        if fatal is not None:
            if isinstance(fatal, RemoteRateLimited):
                logger.warning(f"Rate limited; abandoned remaining repositories (retry after {fatal.retry_after}s)")
            else:
                logger.error(f"Aggregation of {org} failed: {fatal}")
            raise fatal

        return self._assemble(list(slots), interrupted)

    @staticmethod
    def _wait(
        futures: Dict[Future, int],
        started: float,
        deadline_sec: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> Tuple[bool, Optional[BaseException]]:
        """Wait for ``futures`` until all finish, one fails, or the caller gives up.

        Returns ``(interrupted, fatal)``. Failures are compared only among the
        futures found failed in the same wake-up; there the lowest index wins.
        """
        pending = set(futures)
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Aggregation cancelled by caller")
                return True, None
            timeout = _POLL_INTERVAL_SEC
            if deadline_sec is not None:
                remaining = deadline_sec - (time.monotonic() - started)
                if remaining <= 0:
                    logger.warning(f"Aggregation deadline of {deadline_sec}s reached")
                    return True, None
                timeout = min(timeout, remaining)

            done, pending = wait(pending, timeout=timeout, return_when=FIRST_EXCEPTION)
            failed = sorted(
                ((futures[f], f.exception()) for f in done if f.exception() is not None),
                key=lambda item: item[0],
            )
            if failed:
                return False, failed[0][1]
        return False, None

    @staticmethod
    def _assemble(slots: List[Optional[RepositoryOutcome]], interrupted: bool) -> AggregationResult:
        result = AggregationResult(repositories_total=len(slots))
        seen = set()
        for outcome in slots:
            if outcome is None:
                continue
            result.repositories_done += 1
            if outcome.skipped is not None:
                result.skipped.append(outcome.skipped)
                continue
            for pipeline in outcome.pipelines:
                if pipeline.key in seen:
                    continue
                seen.add(pipeline.key)
                result.pipelines.append(pipeline)
        result.partial = interrupted or result.repositories_done < result.repositories_total
        return result
