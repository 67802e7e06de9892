"""Push a bumped working clone and open (or reuse) its pull request.

Pushing a fresh branch and opening its pull request are two separate remote
side effects. When the second one fails the pushed branch is deleted again:
a branch without a pull request carries no tracking marker, so no later run
would ever find it.
"""

from __future__ import annotations

from pathlib import Path

from .config import RunConfig
from .errors import CompensationError, PublishError, VCSError
from .github import GitHub
from .models import (
    FreshBranch,
    Outcome,
    ReconciliationDecision,
    RepositoryTarget,
)
from .reconciler import tracking_marker
from .shell import info, warn
from .vcs import authenticated_url, delete_remote_branch, push


def remove_orphaned_branch(
    clone_dir: Path, remote_url: str, branch: str, token: str
) -> None:
    """Delete a pushed branch whose pull request could not be opened.

    Raises:
        CompensationError: If the remote branch could not be deleted.
    """
    try:
        delete_remote_branch(clone_dir, remote_url, branch, secret=token)
    except VCSError as exc:
        raise CompensationError(str(exc)) from exc


def publish(
    clone_dir: Path,
    target: RepositoryTarget,
    decision: ReconciliationDecision,
    commit_message: str,
    config: RunConfig,
    github: GitHub,
) -> Outcome:
    """Commit, push and finish the pull request side of one repository.

    Returns:
        `created` with the PR URL for a fresh branch, `pushed` for a reused
        branch, or `failed` if the push or the PR creation failed.
    """
    remote_url = authenticated_url(target.url, config.token)
    branch = decision.branch_name

    info(f"Pushing changes to branch {branch} of {target.url}")
    try:
        push(
            clone_dir,
            remote_url,
            branch,
            commit_message,
            config.committer_name,
            config.committer_email,
            secret=config.token,
        )
    except VCSError as exc:
        warn(f"Pushing changes failed: {exc}")
        return Outcome.failed(target.name, f"push failed: {exc}")

    if not isinstance(decision, FreshBranch):
        info(f"Pushed new changes to existing remote branch {branch}")
        return Outcome.pushed(target.name)

    body = tracking_marker(config.tracking_id) if config.tracking_id else ""
    info("Creating PR")
    try:
        url = github.create_pull_request(
            target.node_id, branch, decision.base_branch, commit_message, body
        )
    except PublishError as exc:
        warn(f"Opening PR failed: {exc}")
        info("Attempting to remove branch that was pushed to remote")
        try:
            remove_orphaned_branch(clone_dir, remote_url, branch, config.token)
        except CompensationError as cleanup_exc:
            warn(f"Could not remove branch after failed PR creation: {cleanup_exc}")
        return Outcome.failed(target.name, f"opening PR failed: {exc}")

    info(f"PR for {target.name} is created -> {url}")
    return Outcome.created(target.name, url)
