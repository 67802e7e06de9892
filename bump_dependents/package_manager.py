"""Package-manager detection for a dependent repository.

Detection is an ordered list of probes. Each probe looks at one source of
truth and either names a package manager or passes; the first answer wins:

1. A topic on the repository (pnpm, yarn, bun or npm).
2. The `packageManager` field of the matched manifests, then the root one.

When nothing answers the result is UNKNOWN and the mutator falls back to the
configured default installer.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .errors import ParseError, ReadError
from .manifest import MANIFEST_FILENAME, declared_package_manager, load_manifest
from .models import PackageManagerKind, RepositoryMetadata
from .shell import warn


class ProbeContext(BaseModel):
    """What the probes may look at for one repository.

    Attributes:
        metadata: Repository metadata, including the topic-derived manager.
        clone_dir: Root of the working clone.
        manifest_paths: Matched manifest paths, relative to `clone_dir`.
    """

    model_config = ConfigDict(frozen=True)

    metadata: RepositoryMetadata
    clone_dir: Path
    manifest_paths: list[str] = Field(default_factory=list)


Probe = Callable[[ProbeContext], PackageManagerKind | None]


def probe_repository_topic(context: ProbeContext) -> PackageManagerKind | None:
    return context.metadata.package_manager


def probe_manifest_field(context: ProbeContext) -> PackageManagerKind | None:
    """Return the first recognized `packageManager` among the manifests.

    The root package.json is checked last. Unreadable files are reported and
    skipped.
    """
    for manifest_path in [*context.manifest_paths, MANIFEST_FILENAME]:
        try:
            manifest = load_manifest(context.clone_dir / manifest_path)
        except (ReadError, ParseError) as exc:
            warn(f"Could not read {manifest_path} to determine package manager: {exc}")
            continue
        kind = declared_package_manager(manifest)
        if kind is not None:
            return kind
    return None


PROBES: tuple[Probe, ...] = (probe_repository_topic, probe_manifest_field)


def resolve(context: ProbeContext, probes: Sequence[Probe] = PROBES) -> PackageManagerKind:
    """Run the probes in priority order and return the first answer."""
    for probe in probes:
        kind = probe(context)
        if kind is not None:
            return kind
    return PackageManagerKind.UNKNOWN
