"""Data models for bump-dependents.

These Pydantic models represent the core data structures passed between
the discovery, reconciliation, mutation and publishing steps.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class DependencyClassification(str, Enum):
    """How a dependency is declared in a single manifest."""

    PROD = "PROD"
    DEV = "DEV"
    NONE = "NONE"


class PackageManagerKind(str, Enum):
    """Package managers that know how to `add` a dependency."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"
    UNKNOWN = "unknown"


class OutcomeStatus(str, Enum):
    CREATED = "pull-request-created"
    PUSHED = "pushed-to-existing-branch"
    SKIPPED = "skipped"
    FAILED = "failed"


def aggregate_classification(
    classifications: Iterable[DependencyClassification],
) -> DependencyClassification:
    """Fold per-manifest classifications into one for the whole repository.

    PROD if any manifest is PROD, else DEV if any is DEV, else NONE.
    """
    seen = set(classifications)
    if DependencyClassification.PROD in seen:
        return DependencyClassification.PROD
    if DependencyClassification.DEV in seen:
        return DependencyClassification.DEV
    return DependencyClassification.NONE


class RepositoryTarget(BaseModel):
    """A repository found by code search, with the manifests that matched.

    Attributes:
        name: Repository name without the owner.
        url: HTML URL used for cloning and pushing.
        node_id: GraphQL node id, needed to open a pull request.
        id: Numeric repository id, used to group search hits.
        manifest_paths: Paths (relative to the repo root) of matching files,
                        in the order search returned them.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    node_id: str
    id: int
    manifest_paths: list[str] = Field(default_factory=list)


class RepositoryMetadata(BaseModel):
    """Default branch and topic-derived package manager of a repository."""

    default_branch: str
    package_manager: PackageManagerKind | None = None


class DependencyChange(BaseModel):
    """The version bump applied to every dependent repository in a run.

    Attributes:
        name: Dependency name exactly as it appears in package.json.
        version: Version to install.
        commit_message_prod: Commit message (and PR title) used when the
                             dependency is a production dependency anywhere
                             in the repository.
        commit_message_dev: Commit message used otherwise.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    commit_message_prod: str
    commit_message_dev: str

    def commit_message_for(self, classification: DependencyClassification) -> str:
        if classification is DependencyClassification.PROD:
            return self.commit_message_prod
        return self.commit_message_dev


class FreshBranch(BaseModel):
    """No tracked pull request exists: branch off `base_branch`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fresh"] = "fresh"
    base_branch: str
    branch_name: str

    @property
    def checkout_branch(self) -> str:
        return self.base_branch


class ReusedBranch(BaseModel):
    """A tracked pull request is open: keep pushing to its head branch."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reused"] = "reused"
    branch_name: str

    @property
    def checkout_branch(self) -> str:
        return self.branch_name


ReconciliationDecision = Union[FreshBranch, ReusedBranch]


class Outcome(BaseModel):
    """Result of reconciling one repository.

    Attributes:
        repository: Repository name.
        status: What happened.
        url: Pull request URL, set only when a pull request was created.
        reason: Why the repository was skipped or failed.
    """

    repository: str
    status: OutcomeStatus
    url: str | None = None
    reason: str | None = None

    @classmethod
    def created(cls, repository: str, url: str) -> Outcome:
        return cls(repository=repository, status=OutcomeStatus.CREATED, url=url)

    @classmethod
    def pushed(cls, repository: str) -> Outcome:
        return cls(repository=repository, status=OutcomeStatus.PUSHED)

    @classmethod
    def skipped(cls, repository: str, reason: str) -> Outcome:
        return cls(repository=repository, status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, repository: str, reason: str) -> Outcome:
        return cls(repository=repository, status=OutcomeStatus.FAILED, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.status in (OutcomeStatus.CREATED, OutcomeStatus.PUSHED)
