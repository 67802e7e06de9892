"""Run configuration.

Everything read from the command line or the environment is resolved once,
in cli.py, into a RunConfig. Inner steps only ever see this object.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .models import PackageManagerKind

DEFAULT_COMMIT_MESSAGE_PROD = "fix: update {name} to {version} version and others"
DEFAULT_COMMIT_MESSAGE_DEV = "chore: update {name} to {version} version and others"


def parse_comma_list(value: str | None) -> list[str]:
    """Split a comma separated input into clean items.

    Whitespace and quotes around each item are dropped, as are empty items:
    ' "a", b ,,' → ["a", "b"]
    """
    if not value:
        return []
    items = (item.strip().replace('"', "").replace("'", "") for item in value.split(","))
    return [item for item in items if item]


class RunConfig(BaseModel):
    """Settings for one bump-dependents run.

    Attributes:
        token: GitHub token used for the API and for cloning/pushing.
        repository: "owner/name" of the repository the run was started from.
        manifest_dirs: Directories (relative to the repo root) holding the
                       package.json of each dependency to bump.
        search: Derive manifest_dirs by searching the invoking repository.
        ignore_paths: In search mode, drop directories containing any of these.
        ignored_repositories: Dependent repositories that are never touched.
        tracking_id: When set, reuse the open pull request whose body carries
                     this id instead of opening a new one.
        commit_message_prod: Overrides the production commit message.
        commit_message_dev: Overrides the development commit message.
        base_branch: Branch to open pull requests against instead of the
                     repository's default branch.
        committer_name: Name used for the bump commit.
        committer_email: Email used for the bump commit.
        default_package_manager: Installer used when none can be detected.
        clones_dir: Scratch directory for working clones.
        local_repo_path: Prefix for manifest_dirs when the invoking repository
                         is checked out somewhere other than the current
                         directory.
    """

    token: str = Field(..., min_length=1)
    repository: str
    manifest_dirs: list[str] = Field(default_factory=lambda: ["./"])
    search: bool = False
    ignore_paths: list[str] = Field(default_factory=list)
    ignored_repositories: list[str] = Field(default_factory=list)
    tracking_id: str | None = None
    commit_message_prod: str | None = None
    commit_message_dev: str | None = None
    base_branch: str | None = None
    committer_name: str = "web-flow"
    committer_email: str = "noreply@github.com"
    default_package_manager: PackageManagerKind = PackageManagerKind.NPM
    clones_dir: Path = Field(default_factory=lambda: Path.cwd() / "clones")
    local_repo_path: Path | None = None

    @field_validator("repository")
    @classmethod
    def _check_repository(cls, value: str) -> str:
        owner, _, name = value.partition("/")
        if not owner or not name or "/" in name:
            raise ValueError(f"expected 'owner/name', got {value!r}")
        return value

    @field_validator("default_package_manager")
    @classmethod
    def _check_default_package_manager(
        cls, value: PackageManagerKind
    ) -> PackageManagerKind:
        if value is PackageManagerKind.UNKNOWN:
            raise ValueError("the default package manager must be a real installer")
        return value

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def repository_name(self) -> str:
        return self.repository.split("/")[1]

    @property
    def ignored_repository_names(self) -> set[str]:
        """Explicitly ignored repositories plus the invoking repository."""
        return {*self.ignored_repositories, self.repository_name}

    def prod_message(self, name: str, version: str) -> str:
        return self.commit_message_prod or DEFAULT_COMMIT_MESSAGE_PROD.format(
            name=name, version=version
        )

    def dev_message(self, name: str, version: str) -> str:
        return self.commit_message_dev or DEFAULT_COMMIT_MESSAGE_DEV.format(
            name=name, version=version
        )
