"""GitHub API access through the gh CLI.

Covers the four GitHub collaborators of a run: code search for dependent
repositories, repository metadata, tracked pull request lookup and pull
request creation.
"""

from __future__ import annotations

import json
import re
import subprocess
from collections.abc import Iterable
from typing import Any

from .errors import DiscoveryError, GitHubError, PublishError
from .manifest import KNOWN_PACKAGE_MANAGERS, MANIFEST_FILENAME, is_manifest_path
from .models import PackageManagerKind, RepositoryMetadata, RepositoryTarget
from .shell import gh, info

# Checked in this order when a repository carries more than one topic
TOPIC_PRIORITY = ("pnpm", "yarn", "bun", "npm")

CREATE_PR_MUTATION = """
mutation createPr(
  $branchName: String!, $id: ID!, $title: String!, $baseBranch: String!, $body: String!
) {
  createPullRequest(input: {
    baseRefName: $baseBranch,
    headRefName: $branchName,
    title: $title,
    repositoryId: $id,
    body: $body
  }) {
    pullRequest {
      url
    }
  }
}
"""


def package_manager_from_topics(topics: Iterable[str]) -> PackageManagerKind | None:
    """Map repository topics to a package manager, e.g. ["pnpm", "web"] → pnpm."""
    present = set(topics)
    for topic in TOPIC_PRIORITY:
        if topic in present:
            return KNOWN_PACKAGE_MANAGERS[topic]
    return None


def group_search_hits(items: list[dict[str, Any]]) -> list[RepositoryTarget]:
    """Group code search hits by repository, keeping first-seen order.

    Each hit is one file; a repository with three matching package.json
    files yields one target with three paths.
    """
    grouped: dict[int, dict[str, Any]] = {}
    for item in items:
        repo = item["repository"]
        entry = grouped.setdefault(repo["id"], {"repository": repo, "paths": []})
        entry["paths"].append(item["path"])

    return [
        RepositoryTarget(
            name=entry["repository"]["name"],
            url=entry["repository"]["html_url"],
            node_id=entry["repository"]["node_id"],
            id=entry["repository"]["id"],
            manifest_paths=entry["paths"],
        )
        for entry in grouped.values()
    ]


class GitHub:
    """GitHub API client scoped to one owner (user or organization)."""

    def __init__(self, owner: str, token: str):
        self.owner = owner
        self.token = token

    def _api(
        self, endpoint: str, *args: str, error: type[GitHubError] = GitHubError
    ) -> Any:
        try:
            output = gh("api", endpoint, *args, token=self.token)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or f"exit {exc.returncode}").strip()
            raise error(f"gh api {endpoint} failed: {detail}") from None
        except FileNotFoundError:
            raise error("gh CLI not found. Please install GitHub CLI.") from None

        try:
            return json.loads(output) if output else {}
        except json.JSONDecodeError as exc:
            raise error(f"Invalid JSON response from {endpoint}: {exc}") from None

    def _search(
        self, kind: str, query: str, *extra: str, error: type[GitHubError]
    ) -> list[dict[str, Any]]:
        data = self._api(
            f"search/{kind}",
            "--method",
            "GET",
            "-f",
            f"q={query}",
            "-f",
            "per_page=100",
            *extra,
            error=error,
        )
        return list(data.get("items") or [])

    def search_dependents(self, dependency_name: str) -> list[RepositoryTarget]:
        """Find repositories of the owner whose package.json mentions the dependency.

        Raises:
            DiscoveryError: If the search itself fails. No matches is not an error.
        """
        query = (
            f'"{dependency_name}" user:{self.owner} in:file filename:{MANIFEST_FILENAME}'
        )
        return group_search_hits(self._search("code", query, error=DiscoveryError))

    def search_manifest_dirs(self, repository: str) -> list[str]:
        """List directories holding a package.json in `owner/name`.

        The root directory is returned as an empty string.
        """
        query = f"repo:{repository} in:file filename:{MANIFEST_FILENAME}"
        items = self._search("code", query, error=DiscoveryError)
        return [
            re.sub(rf"{re.escape(MANIFEST_FILENAME)}$", "", item["path"])
            for item in items
            if is_manifest_path(item["path"])
        ]

    def get_repository(self, repo: str) -> RepositoryMetadata:
        data = self._api(f"repos/{self.owner}/{repo}")
        return RepositoryMetadata(
            default_branch=data["default_branch"],
            package_manager=package_manager_from_topics(data.get("topics") or []),
        )

    def find_tracked_branch(self, repo: str, marker: str) -> str | None:
        """Return the head branch of the open pull request carrying `marker`.

        If several pull requests match, the first one in API order is used.

        Returns:
            Branch name, or None when no open pull request carries the marker.
        """
        query = f'"{marker}" repo:{self.owner}/{repo} type:pr is:open'
        items = self._search(
            "issues", query, "-f", "advanced_search=true", error=GitHubError
        )
        if not items:
            return None

        info("Found PRs:")
        for item in items:
            info(f"  #{item['number']} {item['title']} ({item['html_url']})")
        first = items[0]
        info(f"PR that bot operates on: #{first['number']}")

        pull = self._api(f"repos/{self.owner}/{repo}/pulls/{first['number']}")
        return pull["head"]["ref"]

    def create_pull_request(
        self,
        repository_id: str,
        head: str,
        base: str,
        title: str,
        body: str = "",
    ) -> str:
        """Open a pull request and return its URL.

        Raises:
            PublishError: If GitHub rejects the pull request.
        """
        data = self._api(
            "graphql",
            "-f",
            f"query={CREATE_PR_MUTATION}",
            "-f",
            f"branchName={head}",
            "-f",
            f"id={repository_id}",
            "-f",
            f"title={title}",
            "-f",
            f"baseBranch={base}",
            "-f",
            f"body={body}",
            error=PublishError,
        )
        try:
            return data["data"]["createPullRequest"]["pullRequest"]["url"]
        except (KeyError, TypeError):
            raise PublishError(f"Unexpected createPullRequest response: {data}") from None
