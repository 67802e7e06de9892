"""CLI entry point for bump-dependents.

Every option can also be given through the environment, either under its
plain name or as the `INPUT_*` variable GitHub Actions sets for action inputs.
"""

from __future__ import annotations

from pathlib import Path

import click
from pydantic import ValidationError

from bump_dependents.config import RunConfig, parse_comma_list
from bump_dependents.errors import BumpError
from bump_dependents.pipeline import run_bump


def _inputs(*names: str) -> list[str]:
    """Environment variables for an option: plain aliases first, then INPUT_<NAME>."""
    return [*names[1:], f"INPUT_{names[0].upper()}"]


@click.command()
@click.version_option(package_name="bump-dependents")
@click.option(
    "--packagejson-path",
    envvar=_inputs("packagejson_path", "PACKAGE_JSON_LOC"),
    default="./",
    show_default=True,
    help="Comma separated directories holding the package.json of each dependency to bump.",
)
@click.option(
    "--search",
    envvar=_inputs("search", "SEARCH"),
    type=click.BOOL,
    default=False,
    show_default=True,
    help="Find the package.json directories by searching this repository.",
)
@click.option(
    "--ignore-paths",
    envvar=_inputs("ignore_paths", "IGNORE_PATHS"),
    default="",
    help="Comma separated path fragments to skip in search mode.",
)
@click.option(
    "--repos-to-ignore",
    envvar=_inputs("repos_to_ignore"),
    default="",
    help="Comma separated repository names that must not be bumped.",
)
@click.option(
    "--custom-id",
    envvar=_inputs("custom_id", "CUSTOM_ID"),
    default=None,
    help="Tracking id: keep updating the open PR carrying it instead of opening new ones.",
)
@click.option("--commit-message-prod", envvar=_inputs("commit_message_prod"), default=None)
@click.option("--commit-message-dev", envvar=_inputs("commit_message_dev"), default=None)
@click.option(
    "--base-branch",
    envvar=_inputs("base_branch"),
    default=None,
    help="Branch to open PRs against. Defaults to each repository's default branch.",
)
@click.option(
    "--committer-username",
    envvar=_inputs("committer_username"),
    default="web-flow",
    show_default=True,
)
@click.option(
    "--committer-email",
    envvar=_inputs("committer_email"),
    default="noreply@github.com",
    show_default=True,
)
@click.option(
    "--github-token",
    envvar=_inputs("github_token", "GITHUB_TOKEN"),
    required=True,
    help="Token allowed to search, clone, push and open PRs in the organization.",
)
@click.option(
    "--repository",
    envvar="GITHUB_REPOSITORY",
    required=True,
    help="owner/name of the repository the bump is started from.",
)
@click.option(
    "--local-repo-path",
    envvar="LOCAL_REPO_PATH",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Where the repository above is checked out, if not the current directory.",
)
@click.option(
    "--clones-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("clones"),
    show_default=True,
    help="Scratch directory for working clones. It is wiped between packages.",
)
def cli(
    packagejson_path: str,
    search: bool,
    ignore_paths: str,
    repos_to_ignore: str,
    custom_id: str | None,
    commit_message_prod: str | None,
    commit_message_dev: str | None,
    base_branch: str | None,
    committer_username: str,
    committer_email: str,
    github_token: str,
    repository: str,
    local_repo_path: Path | None,
    clones_dir: Path,
) -> None:
    """Bump a dependency in every repository of the organization that uses it."""
    try:
        config = RunConfig(
            token=github_token,
            repository=repository,
            manifest_dirs=parse_comma_list(packagejson_path),
            search=search,
            ignore_paths=parse_comma_list(ignore_paths),
            ignored_repositories=parse_comma_list(repos_to_ignore),
            tracking_id=custom_id or None,
            commit_message_prod=commit_message_prod or None,
            commit_message_dev=commit_message_dev or None,
            base_branch=base_branch or None,
            committer_name=committer_username,
            committer_email=committer_email,
            clones_dir=clones_dir.resolve(),
            local_repo_path=local_repo_path,
        )
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration:\n{exc}") from exc

    try:
        run_bump(config)
    except BumpError as exc:
        raise click.ClickException(str(exc)) from exc
