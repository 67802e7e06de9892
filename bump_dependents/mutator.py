"""Apply a dependency version to the manifests of a working clone.

The version is written by the repository's own package manager
(`<pm> add name@version`) rather than by editing JSON, so lockfiles are
updated together with package.json.
"""

from __future__ import annotations

from pathlib import Path

from .errors import InstallError, ParseError, ReadError
from .manifest import classify, is_manifest_path, load_manifest
from .models import (
    DependencyChange,
    DependencyClassification,
    PackageManagerKind,
    aggregate_classification,
)
from .shell import info, run, warn


def install_dependency(
    name: str, version: str, cwd: Path, kind: PackageManagerKind
) -> None:
    """Run the installer for one dependency in `cwd`.

    Raises:
        InstallError: If the installer is missing or exits non-zero.
    """
    try:
        result = run(kind.value, "add", f"{name}@{version}", cwd=cwd, check=False)
    except FileNotFoundError:
        raise InstallError(f"{kind.value} executable not found") from None
    except OSError as exc:
        raise InstallError(f"{kind.value} could not be started: {exc}") from None
    if result.returncode != 0:
        raise InstallError(
            f"{kind.value} add {name}@{version} exited with {result.returncode}"
        )


def installer_for(
    kind: PackageManagerKind, default: PackageManagerKind = PackageManagerKind.NPM
) -> PackageManagerKind:
    """Return the package manager to install with; UNKNOWN becomes `default`."""
    return default if kind is PackageManagerKind.UNKNOWN else kind


def apply_version(
    dependency_name: str,
    version: str,
    manifest_path: Path,
    kind: PackageManagerKind,
    default: PackageManagerKind = PackageManagerKind.NPM,
) -> None:
    """Install `dependency_name@version` next to `manifest_path`.

    An UNKNOWN package manager falls back to `default`.
    """
    installer = installer_for(kind, default)
    install_dependency(dependency_name, version, manifest_path.parent, installer)


def bump_manifests(
    clone_dir: Path,
    manifest_paths: list[str],
    change: DependencyChange,
    kind: PackageManagerKind,
    default: PackageManagerKind = PackageManagerKind.NPM,
) -> DependencyClassification:
    """Bump the dependency in every matched manifest of a repository.

    Each file is handled on its own: a file that cannot be read, does not
    declare the dependency or fails to install is reported and the next one
    is processed.

    Returns:
        The aggregated classification of the manifests that were updated.
        NONE means nothing in the clone changed.
    """
    installer = installer_for(kind, default)
    info(
        f"Installing {change.name} in {len(manifest_paths)} package.json files "
        f"using {installer.value}"
    )

    applied: list[DependencyClassification] = []
    for manifest_path in manifest_paths:
        if not is_manifest_path(manifest_path):
            info(f"Ignoring {manifest_path}: only package.json files are supported")
            continue

        location = clone_dir / manifest_path
        try:
            classification = classify(load_manifest(location), change.name)
        except (ReadError, ParseError) as exc:
            warn(f"Verification of dependency failed: {exc}")
            continue

        if classification is DependencyClassification.NONE:
            # Code search matches substrings, so similarly named packages show up
            info(f"{change.name} is not declared in {manifest_path}, leaving it alone")
            continue

        info(f"Bumping {change.name} ({classification.value}) in {manifest_path}")
        try:
            apply_version(change.name, change.version, location, installer, default)
        except InstallError as exc:
            warn(f"Dependency installation failed for {manifest_path}: {exc}")
            continue
        applied.append(classification)

    return aggregate_classification(applied)
