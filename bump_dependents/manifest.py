"""package.json reading and inspection utilities.

All functions here are read-only: writing a new version into a manifest is
left to the package manager (see mutator.py) so lockfiles stay in sync.
"""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import Any

from .errors import ParseError, ReadError
from .models import DependencyClassification, PackageManagerKind

MANIFEST_FILENAME = "package.json"

# Values accepted in the "packageManager" field and in repository topics
KNOWN_PACKAGE_MANAGERS = {
    PackageManagerKind.NPM.value: PackageManagerKind.NPM,
    PackageManagerKind.YARN.value: PackageManagerKind.YARN,
    PackageManagerKind.PNPM.value: PackageManagerKind.PNPM,
    PackageManagerKind.BUN.value: PackageManagerKind.BUN,
}


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file.

    Raises:
        ReadError: If the file cannot be read.
        ParseError: If the content is not a JSON object.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReadError(f"There was a problem reading {path}: {exc}") from exc
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ParseError(f"There was a problem parsing {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"{path} does not contain a JSON object")
    return data


def is_manifest_path(path: str) -> bool:
    """Check that a repository path points at a file named exactly package.json.

    Search also matches templated variants such as `package.json.hbs`,
    which cannot be parsed and must be left alone.
    """
    return PurePosixPath(path).name == MANIFEST_FILENAME


def classify(manifest: dict[str, Any], dependency_name: str) -> DependencyClassification:
    """Determine whether and how a dependency is declared.

    Lookup is exact and case-sensitive. A dependency listed under both
    `dependencies` and `devDependencies` counts as PROD.
    """
    if dependency_name in _section(manifest, "dependencies"):
        return DependencyClassification.PROD
    if dependency_name in _section(manifest, "devDependencies"):
        return DependencyClassification.DEV
    return DependencyClassification.NONE


def declared_package_manager(manifest: dict[str, Any]) -> PackageManagerKind | None:
    """Read the corepack `packageManager` field, e.g. "pnpm@8.6.0" → pnpm."""
    field = manifest.get("packageManager")
    if not isinstance(field, str):
        return None
    return KNOWN_PACKAGE_MANAGERS.get(field.lower().split("@")[0].strip())


def _section(manifest: dict[str, Any], key: str) -> dict[str, Any]:
    section = manifest.get(key)
    return section if isinstance(section, dict) else {}
