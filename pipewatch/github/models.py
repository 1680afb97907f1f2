"""
Data models for GitHub Actions pipeline status.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .utils import mask_token


class TokenSource(str, Enum):
    """Where a resolved credential came from."""
    STORED = 'stored'
    HEADER = 'header'
    ENVIRONMENT = 'env'


class SkipReason(str, Enum):
    """Why a repository contributed no pipelines."""
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'
    CONFLICT = 'conflict'


@dataclass(frozen=True)
class Credential:
    """A bearer token plus its provenance.

    The token never shows up in ``repr``/``str``; use :attr:`masked` for display.
    """
    token: str = field(repr=False)
    source: TokenSource

    @property
    def masked(self) -> str:
        return mask_token(self.token)

    def __str__(self) -> str:
        return f"{self.masked} ({self.source.value})"


@dataclass(frozen=True)
class StoredCredential:
    """Credential record handed back by a credential store (already decrypted)."""
    token: Optional[str] = field(default=None, repr=False)
    client_id: Optional[str] = None
    callback_url: Optional[str] = None
    homepage_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredCredential':
        return cls(
            token=data.get('token') or data.get('pat'),
            client_id=data.get('client_id'),
            callback_url=data.get('callback_url'),
            homepage_url=data.get('homepage_url'),
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """Profile view that is safe to show: no secrets in clear."""
        token = (self.token or '').strip()
        return {
            'configured': bool(token or (self.client_id and self.callback_url)),
            'pat_masked': mask_token(token) if token else None,
            'client_id': self.client_id,
            'callback_url': self.callback_url,
            'homepage_url': self.homepage_url,
        }


@dataclass(frozen=True)
class Repository:
    """Repository coordinates from a repository listing."""
    owner: str
    name: str
    full_name: str = ''
    is_fork: bool = False
    is_archived: bool = False
    is_private: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.owner.lower(), self.name.lower())

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_owner: str) -> 'Repository':
        owner = (data.get('owner') or {}).get('login') or default_owner
        name = data.get('name') or ''
        return cls(
            owner=owner,
            name=name,
            full_name=data.get('full_name') or f"{owner}/{name}",
            is_fork=bool(data.get('fork', False)),
            is_archived=bool(data.get('archived', False)),
            is_private=bool(data.get('private', False)),
        )


@dataclass(frozen=True)
class Workflow:
    """A GitHub Actions workflow definition."""
    id: int
    name: str
    path: Optional[str] = None
    state: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    html_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Workflow':
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            path=data.get('path'),
            state=data.get('state'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            html_url=data.get('html_url'),
        )


@dataclass(frozen=True)
class Run:
    """The most recent run of a workflow."""
    run_id: int
    status: Optional[str] = None
    conclusion: Optional[str] = None
    event: Optional[str] = None
    head_branch: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    url: Optional[str] = None
    actor: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Run':
        return cls(
            run_id=data.get('id'),
            status=data.get('status'),
            conclusion=data.get('conclusion'),
            event=data.get('event'),
            head_branch=data.get('head_branch'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            url=data.get('html_url'),
            actor=(data.get('actor') or {}).get('login'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'runId': self.run_id,
            'status': self.status,
            'conclusion': self.conclusion,
            'event': self.event,
            'head_branch': self.head_branch,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'url': self.url,
            'actor': self.actor,
        }


@dataclass(frozen=True)
class Step:
    number: int
    name: str
    status: Optional[str] = None
    conclusion: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Step':
        return cls(
            number=data.get('number'),
            name=data.get('name') or '',
            status=data.get('status'),
            conclusion=data.get('conclusion'),
            started_at=data.get('started_at'),
            completed_at=data.get('completed_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'name': self.name,
            'status': self.status,
            'conclusion': self.conclusion,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
        }


@dataclass(frozen=True)
class Job:
    """A job of a workflow run; steps keep the order the API returned."""
    id: int
    name: str
    status: Optional[str] = None
    conclusion: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    url: Optional[str] = None
    steps: Tuple[Step, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            status=data.get('status'),
            conclusion=data.get('conclusion'),
            started_at=data.get('started_at'),
            completed_at=data.get('completed_at'),
            url=data.get('html_url'),
            steps=tuple(Step.from_dict(s) for s in data.get('steps') or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'conclusion': self.conclusion,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
            'url': self.url,
            'steps': [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class RunJobs:
    total_count: int
    jobs: Tuple[Job, ...] = ()

    def find(self, job_id: Any) -> Optional[Job]:
        wanted = str(job_id)
        for job in self.jobs:
            if str(job.id) == wanted:
                return job
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_count': self.total_count,
            'jobs': [j.to_dict() for j in self.jobs],
        }


@dataclass(frozen=True)
class Pipeline:
    """One workflow of one repository with its latest run (or ``None``)."""
    owner: str
    repo: str
    workflow: Workflow
    latest_run: Optional[Run] = None

    @property
    def key(self) -> Tuple[str, str, int]:
        return (self.owner, self.repo, self.workflow.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'owner': self.owner,
            'repo': self.repo,
            'workflowId': self.workflow.id,
            'name': self.workflow.name,
            'path': self.workflow.path,
            'state': self.workflow.state,
            'created_at': self.workflow.created_at,
            'updated_at': self.workflow.updated_at,
            'url': self.workflow.html_url,
            'latest_run': self.latest_run.to_dict() if self.latest_run else None,
        }


@dataclass(frozen=True)
class RepositoryWorkflows:
    """Outcome of listing one repository's workflows.

    Exactly one of ``workflows`` (possibly empty) or ``skip_reason`` is meaningful.
    """
    repository: Repository
    workflows: Tuple[Workflow, ...] = ()
    skip_reason: Optional[SkipReason] = None

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


@dataclass(frozen=True)
class SkippedRepository:
    owner: str
    repo: str
    reason: SkipReason

    def to_dict(self) -> Dict[str, Any]:
        return {'owner': self.owner, 'repo': self.repo, 'reason': self.reason.value}


@dataclass
class AggregationResult:
    """Pipelines in repository enumeration order.

    ``partial`` is set when the aggregation was cancelled or hit its deadline
    before every repository was processed.
    """
    pipelines: List[Pipeline] = field(default_factory=list)
    skipped: List[SkippedRepository] = field(default_factory=list)
    partial: bool = False
    repositories_total: int = 0
    repositories_done: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pipelines': [p.to_dict() for p in self.pipelines],
            'partial': self.partial,
            'skipped': [s.to_dict() for s in self.skipped],
        }
