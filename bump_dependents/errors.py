"""Error types raised while bumping a dependency across repositories.

Every error is caught at the narrowest scope that can still make progress
(a manifest file or a repository). Only discovery errors end a run.
"""

from __future__ import annotations


class BumpError(Exception):
    """Base class for all bump-dependents errors."""


class ReadError(BumpError):
    """A manifest file could not be read."""


class ParseError(BumpError):
    """A manifest file is not a well-formed JSON object."""


class VCSError(BumpError):
    """A git clone, branch, push or branch deletion failed."""


class InstallError(BumpError):
    """The package-manager invocation failed."""


class GitHubError(BumpError):
    """A GitHub API call made through gh failed."""


class DiscoveryError(GitHubError):
    """Searching the organization for dependent repositories failed."""


class PublishError(GitHubError):
    """Opening the pull request failed after the branch was pushed."""


class CompensationError(BumpError):
    """Cleaning up an orphaned remote branch failed."""
