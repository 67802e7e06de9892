"""Bump pipeline: read → discover → reconcile → mutate → publish.

This module orchestrates a bump-dependents run:
1. Read the name and version of the dependency from its package.json
2. Search the owner's repositories for package.json files mentioning it
3. For every dependent repository, one at a time:
   a. Pick the branch: the head of an open tracked PR, or a fresh one
   b. Clone the repository and set up that branch
   c. Detect the package manager the repository uses
   d. Install the new version in each package.json that declares it
   e. Push, then open a pull request unless one already exists
4. Print the outcome of every repository

Repositories are isolated from each other: whatever goes wrong in one is
recorded as its outcome and the run moves on to the next. Only a failed
search for dependents ends the run.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import semver

from .config import RunConfig
from .errors import ParseError, VCSError
from .github import GitHub
from .manifest import MANIFEST_FILENAME, load_manifest
from .models import (
    DependencyChange,
    DependencyClassification,
    Outcome,
    OutcomeStatus,
    RepositoryTarget,
)
from .mutator import bump_manifests
from .package_manager import ProbeContext, resolve
from .publisher import publish
from .reconciler import clone_path, prepare_working_clone, reconcile
from .shell import info, step, warn


def load_dependency_change(manifest_dir: str, config: RunConfig) -> DependencyChange:
    """Read the dependency to bump from `manifest_dir`/package.json.

    Raises:
        ReadError: If the package.json cannot be read.
        ParseError: If it is malformed, unnamed, or its version is not semver.
    """
    path = Path(manifest_dir.strip()) / MANIFEST_FILENAME
    if config.local_repo_path:
        path = config.local_repo_path / path

    info(f"Reading {path} to identify the dependency to bump")
    manifest = load_manifest(path)

    name = manifest.get("name")
    version = manifest.get("version")
    if not isinstance(name, str) or not name:
        raise ParseError(f"{path} has no package name")
    if not isinstance(version, str) or not semver.Version.is_valid(version):
        raise ParseError(f"{path} has no valid semantic version: {version!r}")

    return DependencyChange(
        name=name,
        version=version,
        commit_message_prod=config.prod_message(name, version),
        commit_message_dev=config.dev_message(name, version),
    )


def manifest_dirs_to_process(config: RunConfig, github: GitHub) -> list[str]:
    """Explicit manifest directories, or every package.json dir in search mode."""
    if not config.search:
        return list(config.manifest_dirs)

    dirs = github.search_manifest_dirs(config.repository)
    if config.ignore_paths:
        dirs = [d for d in dirs if not any(ignored in d for ignored in config.ignore_paths)]
    return dirs


def reset_clones_dir(clones_dir: Path) -> None:
    """Remove leftovers of a previous package so clones start from scratch."""
    if clones_dir.exists():
        try:
            shutil.rmtree(clones_dir)
        except OSError as exc:
            warn(f"Could not clean up clones folder: {exc}")


def discard_clone(clone_dir: Path) -> None:
    if clone_dir.exists():
        try:
            shutil.rmtree(clone_dir)
        except OSError as exc:
            warn(f"Could not remove working clone {clone_dir}: {exc}")


def process_repository(
    target: RepositoryTarget,
    change: DependencyChange,
    config: RunConfig,
    github: GitHub,
) -> Outcome:
    """Reconcile, bump and publish a single repository."""
    metadata = github.get_repository(target.name)
    decision = reconcile(target, change, metadata, config, github)

    try:
        clone_dir = prepare_working_clone(target, decision, config)
    except VCSError as exc:
        warn(f"Setting up {target.name} failed: {exc}")
        return Outcome.failed(target.name, f"setup failed: {exc}")

    context = ProbeContext(
        metadata=metadata,
        clone_dir=clone_dir,
        manifest_paths=list(target.manifest_paths),
    )
    kind = resolve(context)
    classification = bump_manifests(
        clone_dir,
        list(target.manifest_paths),
        change,
        kind,
        config.default_package_manager,
    )
    if classification is DependencyClassification.NONE:
        info(f"{change.name} was not bumped in any package.json of {target.name}")
        return Outcome.skipped(target.name, "no package.json declares the dependency")

    commit_message = change.commit_message_for(classification)
    return publish(clone_dir, target, decision, commit_message, config, github)


def process_repositories(
    targets: list[RepositoryTarget],
    change: DependencyChange,
    config: RunConfig,
    github: GitHub,
) -> list[Outcome]:
    """Process dependent repositories in discovery order.

    Returns:
        One outcome per target, in the same order. Exceptions never escape;
        they become `failed` outcomes.
    """
    ignored = config.ignored_repository_names
    outcomes: list[Outcome] = []

    for target in targets:
        if target.name in ignored:
            info(f"Ignoring {target.name}")
            outcomes.append(Outcome.skipped(target.name, "ignored"))
            continue

        step(f"{target.name}: bumping {change.name} to {change.version}")
        try:
            outcome = process_repository(target, change, config, github)
        except Exception as exc:
            warn(f"Processing {target.name} failed: {exc}")
            outcome = Outcome.failed(target.name, str(exc))
        finally:
            discard_clone(clone_path(target, config))
        outcomes.append(outcome)

    return outcomes


def run_for_package(manifest_dir: str, config: RunConfig, github: GitHub) -> list[Outcome]:
    """Bump the dependency defined in `manifest_dir` in all its dependents.

    Raises:
        ReadError, ParseError: If the dependency's own package.json is unusable.
        DiscoveryError: If searching for dependents fails.
    """
    step(f"Bumping dependents of {manifest_dir or './'}")
    change = load_dependency_change(manifest_dir, config)
    info(f"Identified dependency as {change.name} with version {change.version}")

    targets = github.search_dependents(change.name)
    if not targets:
        info(
            f"No dependents found. No version bump performed. "
            f"Looks like {change.name} is not used in {config.owner}"
        )
        return []

    ignored = ", ".join(sorted(config.ignored_repository_names))
    info(f"Found {len(targets)} repositories using {change.name} (ignored: {ignored})")
    return process_repositories(targets, change, config, github)


def report_outcomes(outcomes: list[Outcome]) -> None:
    """Print one line per repository plus totals."""
    step("Summary")
    if not outcomes:
        info("No dependent repositories were processed. Nothing to do.")
        return

    for outcome in outcomes:
        if outcome.status is OutcomeStatus.CREATED:
            info(f"{outcome.repository}: pull request created -> {outcome.url}")
        elif outcome.status is OutcomeStatus.PUSHED:
            info(f"{outcome.repository}: pushed to existing branch")
        else:
            info(f"{outcome.repository}: {outcome.status.value} ({outcome.reason})")

    succeeded = sum(1 for o in outcomes if o.succeeded)
    failed = sum(1 for o in outcomes if o.status is OutcomeStatus.FAILED)
    skipped = len(outcomes) - succeeded - failed
    info(f"{succeeded} succeeded, {skipped} skipped, {failed} failed")


def run_bump(config: RunConfig, github: GitHub | None = None) -> list[Outcome]:
    """Execute the full bump pipeline.

    Args:
        config: Settings resolved at the command line boundary.
        github: API client; built from the config when not given.

    Returns:
        Outcomes of every dependent repository of every processed package.
    """
    github = github or GitHub(config.owner, config.token)

    manifest_dirs = manifest_dirs_to_process(config, github)
    if not manifest_dirs:
        info("No package.json directories to process.")
        return []
    info(f"Processing package.json files in: {', '.join(d or './' for d in manifest_dirs)}")

    outcomes: list[Outcome] = []
    try:
        for manifest_dir in manifest_dirs:
            # Clones of one package's dependents must not leak into the next one
            reset_clones_dir(config.clones_dir)
            outcomes.extend(run_for_package(manifest_dir, config, github))
    finally:
        # Pull requests opened for earlier packages are listed even when a
        # later package aborts the run
        report_outcomes(outcomes)
    return outcomes
