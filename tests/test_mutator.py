"""Tests for bump_dependents.mutator."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock, call, patch

import pytest

from bump_dependents.errors import InstallError
from bump_dependents.models import (
    DependencyChange,
    DependencyClassification,
    PackageManagerKind,
)
from bump_dependents.mutator import (
    apply_version,
    bump_manifests,
    install_dependency,
    installer_for,
)


class TestInstallDependency:
    @patch("bump_dependents.mutator.run")
    def test_runs_add_in_directory(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)

        install_dependency("@acme/ui", "2.1.0", tmp_path, PackageManagerKind.PNPM)

        mock_run.assert_called_once_with(
            "pnpm", "add", "@acme/ui@2.1.0", cwd=tmp_path, check=False
        )

    @patch("bump_dependents.mutator.run")
    def test_non_zero_exit_raises(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=1)

        with pytest.raises(InstallError, match="exited with 1"):
            install_dependency("lodash", "4.17.21", tmp_path, PackageManagerKind.NPM)

    @patch("bump_dependents.mutator.run")
    def test_missing_binary_raises(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = FileNotFoundError("bun")

        with pytest.raises(InstallError, match="not found"):
            install_dependency("lodash", "4.17.21", tmp_path, PackageManagerKind.BUN)


class TestInstallerFor:
    def test_unknown_becomes_default(self) -> None:
        assert installer_for(PackageManagerKind.UNKNOWN) is PackageManagerKind.NPM
        assert (
            installer_for(PackageManagerKind.UNKNOWN, PackageManagerKind.BUN)
            is PackageManagerKind.BUN
        )

    def test_known_kind_is_kept(self) -> None:
        assert (
            installer_for(PackageManagerKind.YARN, PackageManagerKind.BUN)
            is PackageManagerKind.YARN
        )


class TestApplyVersion:
    @patch("bump_dependents.mutator.install_dependency")
    def test_unknown_falls_back_to_default(self, mock_install: MagicMock, tmp_path: Path) -> None:
        manifest = tmp_path / "apps" / "web" / "package.json"

        apply_version("lodash", "4.17.21", manifest, PackageManagerKind.UNKNOWN)

        mock_install.assert_called_once_with(
            "lodash", "4.17.21", tmp_path / "apps" / "web", PackageManagerKind.NPM
        )

    @patch("bump_dependents.mutator.install_dependency")
    def test_default_can_be_overridden(self, mock_install: MagicMock, tmp_path: Path) -> None:
        apply_version(
            "lodash",
            "4.17.21",
            tmp_path / "package.json",
            PackageManagerKind.UNKNOWN,
            default=PackageManagerKind.YARN,
        )

        assert mock_install.call_args.args[3] is PackageManagerKind.YARN

    @patch("bump_dependents.mutator.install_dependency")
    def test_known_kind_is_used(self, mock_install: MagicMock, tmp_path: Path) -> None:
        apply_version("lodash", "4.17.21", tmp_path / "package.json", PackageManagerKind.PNPM)

        assert mock_install.call_args.args[3] is PackageManagerKind.PNPM


@patch("bump_dependents.mutator.info")
@patch("bump_dependents.mutator.warn")
class TestBumpManifests:
    @patch("bump_dependents.mutator.classify")
    @patch("bump_dependents.mutator.apply_version")
    def test_non_manifest_paths_are_skipped_before_classification(
        self,
        mock_apply: MagicMock,
        mock_classify: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        """Templated files like package.json.hbs never reach classify or install."""
        write_manifest("templates/package.json.hbs", "{{ name }}")

        result = bump_manifests(
            tmp_path, ["templates/package.json.hbs"], change, PackageManagerKind.NPM
        )

        assert result is DependencyClassification.NONE
        mock_classify.assert_not_called()
        mock_apply.assert_not_called()
        mock_warn.assert_not_called()
        assert any("Ignoring templates/package.json.hbs" in c.args[0] for c in mock_info.call_args_list)

    @patch("bump_dependents.mutator.apply_version")
    def test_none_classification_never_installs(
        self,
        mock_apply: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        write_manifest(content={"dependencies": {"@acme/ui-icons": "1.0.0"}})

        result = bump_manifests(tmp_path, ["package.json"], change, PackageManagerKind.NPM)

        assert result is DependencyClassification.NONE
        mock_apply.assert_not_called()

    @patch("bump_dependents.mutator.apply_version")
    def test_prod_anywhere_makes_repository_prod(
        self,
        mock_apply: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        write_manifest("apps/a/package.json", {"devDependencies": {"@acme/ui": "2.0.0"}})
        write_manifest("apps/b/package.json", {"dependencies": {"@acme/ui": "2.0.0"}})

        result = bump_manifests(
            tmp_path,
            ["apps/a/package.json", "apps/b/package.json"],
            change,
            PackageManagerKind.PNPM,
        )

        assert result is DependencyClassification.PROD
        pnpm, npm = PackageManagerKind.PNPM, PackageManagerKind.NPM
        assert mock_apply.call_args_list == [
            call("@acme/ui", "2.1.0", tmp_path / "apps/a/package.json", pnpm, npm),
            call("@acme/ui", "2.1.0", tmp_path / "apps/b/package.json", pnpm, npm),
        ]

    @patch("bump_dependents.mutator.apply_version")
    def test_install_failure_moves_on_to_next_file(
        self,
        mock_apply: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        """A failed install only loses that file; its classification is dropped."""
        write_manifest("apps/a/package.json", {"dependencies": {"@acme/ui": "2.0.0"}})
        write_manifest("apps/b/package.json", {"devDependencies": {"@acme/ui": "2.0.0"}})
        mock_apply.side_effect = [InstallError("npm add exited with 1"), None]

        result = bump_manifests(
            tmp_path,
            ["apps/a/package.json", "apps/b/package.json"],
            change,
            PackageManagerKind.NPM,
        )

        assert result is DependencyClassification.DEV
        assert mock_apply.call_count == 2
        mock_warn.assert_called_once()

    @patch("bump_dependents.mutator.apply_version")
    def test_unreadable_manifest_is_a_warning(
        self,
        mock_apply: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        write_manifest("apps/a/package.json", "not json")
        write_manifest("apps/b/package.json", {"dependencies": {"@acme/ui": "2.0.0"}})

        result = bump_manifests(
            tmp_path,
            ["apps/a/package.json", "apps/missing/package.json", "apps/b/package.json"],
            change,
            PackageManagerKind.NPM,
        )

        assert result is DependencyClassification.PROD
        assert mock_warn.call_count == 2
        mock_apply.assert_called_once()

    @patch("bump_dependents.mutator.apply_version")
    def test_unknown_kind_is_resolved_once_for_every_file(
        self,
        mock_apply: MagicMock,
        mock_warn: MagicMock,
        mock_info: MagicMock,
        tmp_path: Path,
        write_manifest: Callable[..., Path],
        change: DependencyChange,
    ) -> None:
        write_manifest(content={"dependencies": {"@acme/ui": "2.0.0"}})

        bump_manifests(
            tmp_path,
            ["package.json"],
            change,
            PackageManagerKind.UNKNOWN,
            PackageManagerKind.YARN,
        )

        assert mock_apply.call_args.args[3] is PackageManagerKind.YARN
        assert "using yarn" in mock_info.call_args_list[0].args[0]
