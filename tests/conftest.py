"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from bump_dependents.config import RunConfig
from bump_dependents.models import DependencyChange, RepositoryMetadata, RepositoryTarget


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Write a package.json (or any JSON file) under tmp_path."""

    def _write(relative: str = "package.json", content: Any = None) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(json.dumps(content if content is not None else {}))
        return path

    return _write


@pytest.fixture
def config(tmp_path: Path) -> RunConfig:
    """Run configuration with clones kept under tmp_path."""
    return RunConfig(
        token="s3cr3t",
        repository="acme/design-system",
        clones_dir=tmp_path / "clones",
    )


@pytest.fixture
def change() -> DependencyChange:
    return DependencyChange(
        name="@acme/ui",
        version="2.1.0",
        commit_message_prod="fix: update @acme/ui to 2.1.0 version and others",
        commit_message_dev="chore: update @acme/ui to 2.1.0 version and others",
    )


@pytest.fixture
def make_target() -> Callable[..., RepositoryTarget]:
    def _make(name: str = "web-app", paths: list[str] | None = None, id: int = 1) -> RepositoryTarget:
        return RepositoryTarget(
            name=name,
            url=f"https://github.com/acme/{name}",
            node_id=f"R_{name}",
            id=id,
            manifest_paths=paths if paths is not None else ["package.json"],
        )

    return _make


@pytest.fixture
def metadata() -> RepositoryMetadata:
    return RepositoryMetadata(default_branch="main")
