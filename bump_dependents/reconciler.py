"""Decide which branch a repository's bump lands on, and check it out.

A run started with a tracking id first looks for an open pull request whose
body carries the id. If one exists the bump is pushed to its head branch;
otherwise a new branch is cut from the base branch. The new branch name only
depends on the dependency and version, so re-running the same bump converges
on the same branch.
"""

from __future__ import annotations

from pathlib import Path

from .config import RunConfig
from .github import GitHub
from .models import (
    DependencyChange,
    FreshBranch,
    ReconciliationDecision,
    RepositoryMetadata,
    RepositoryTarget,
    ReusedBranch,
)
from .shell import info, warn
from .vcs import authenticated_url, clone, create_branch


def tracking_marker(tracking_id: str) -> str:
    """HTML comment embedded in pull request bodies, invisible when rendered."""
    return f"<!-- {tracking_id} -->"


def working_branch_name(change: DependencyChange) -> str:
    return f"bot/bump-{change.name}-{change.version}"


def reconcile(
    target: RepositoryTarget,
    change: DependencyChange,
    metadata: RepositoryMetadata,
    config: RunConfig,
    github: GitHub,
) -> ReconciliationDecision:
    """Pick the branch to work on for one repository.

    Raises:
        GitHubError: If the tracked pull request search fails. Guessing
            "no pull request" here would open a duplicate.
    """
    if config.tracking_id:
        existing = github.find_tracked_branch(
            target.name, tracking_marker(config.tracking_id)
        )
        if existing:
            info(f"Reusing branch {existing} of the open tracked PR")
            return ReusedBranch(branch_name=existing)

    base = config.base_branch or metadata.default_branch
    return FreshBranch(base_branch=base, branch_name=working_branch_name(change))


def clone_path(target: RepositoryTarget, config: RunConfig) -> Path:
    return config.clones_dir / target.name


def prepare_working_clone(
    target: RepositoryTarget,
    decision: ReconciliationDecision,
    config: RunConfig,
) -> Path:
    """Clone the repository and put the working branch in place.

    Returns:
        Path to the working clone.

    Raises:
        VCSError: If cloning or branch creation fails. Nothing may be
            mutated without a valid branch.
    """
    clone_dir = clone_path(target, config)
    try:
        clone_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        warn(f"Unable to create directory where clone should end up: {exc}")

    info(f"Cloning {target.name} with branch {decision.checkout_branch} from {target.url}")
    clone(
        authenticated_url(target.url, config.token),
        clone_dir,
        decision.checkout_branch,
        secret=config.token,
    )

    if isinstance(decision, FreshBranch):
        info(f"Creating branch {decision.branch_name}")
        create_branch(clone_dir, decision.branch_name)

    return clone_dir
