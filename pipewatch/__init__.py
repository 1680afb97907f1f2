"""Organization-wide GitHub Actions pipeline status."""
from .aggregator import PipelineAggregator
from .config import PipewatchConfig
from .credentials import CredentialStore, InMemoryCredentialStore, YamlFileCredentialStore
from .errors import (
    InvalidCredential,
    NoCredential,
    OrgOrUserNotFound,
    PipewatchError,
    RemoteAPIError,
    RemoteRateLimited,
    RemoteTransient,
    RequestValidationError,
)
from .jobs import JobStepExpander, LogSynthesizer
from .repositories import RepositoryEnumerator
from .service import PipelineService
from .token_resolver import TokenResolver
from .workflows import RunStatusFetcher, WorkflowCollector

__all__ = [
    'PipelineAggregator',
    'PipewatchConfig',
    'CredentialStore',
    'InMemoryCredentialStore',
    'YamlFileCredentialStore',
    'InvalidCredential',
    'NoCredential',
    'OrgOrUserNotFound',
    'PipewatchError',
    'RemoteAPIError',
    'RemoteRateLimited',
    'RemoteTransient',
    'RequestValidationError',
    'JobStepExpander',
    'LogSynthesizer',
    'RepositoryEnumerator',
    'PipelineService',
    'TokenResolver',
    'RunStatusFetcher',
    'WorkflowCollector',
]

__version__ = '0.1.0'
