"""Tests for package manifest probing."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from federated_scaffold.errors import ManifestNotFoundError, ManifestParseError
from federated_scaffold.federation.manifest import has_dependency, read_package_manifest
from federated_scaffold.scaffolder.tree import VirtualTree


pytestmark = pytest.mark.unit


def _manifest(**sections) -> str:
    return json.dumps({"name": "workspace", "version": "0.0.0", **sections}, indent=2)


class TestHasDependency:
    def test_listed_dependency(self):
        text = _manifest(dependencies={"ng-terminal": "^6.1.0", "rxjs": "~7.8.0"})
        assert has_dependency(text, "ng-terminal") is True

    def test_scoped_package(self):
        text = _manifest(dependencies={"@angular-architects/module-federation": "^17.0.0"})
        assert has_dependency(text, "@angular-architects/module-federation") is True

    def test_missing_dependency(self):
        text = _manifest(dependencies={"rxjs": "~7.8.0"})
        assert has_dependency(text, "ng-terminal") is False

    def test_no_dependencies_section(self):
        text = _manifest(devDependencies={"ng-terminal": "^6.1.0"})
        assert has_dependency(text, "ng-terminal") is False

    def test_dev_dependencies_not_considered(self):
        text = _manifest(dependencies={"rxjs": "~7.8.0"}, devDependencies={"ng-terminal": "^6.1.0"})
        assert has_dependency(text, "ng-terminal") is False

    def test_substring_of_longer_name_matches(self):
        text = _manifest(dependencies={"ng-terminal-addons": "^1.0.0"})
        assert has_dependency(text, "ng-terminal") is True

    def test_value_fragment_matches(self):
        text = _manifest(dependencies={"term": "github:someone/ng-terminal#main"})
        assert has_dependency(text, "ng-terminal") is True

    def test_dependencies_not_an_object(self):
        text = _manifest(dependencies=["ng-terminal"])
        assert has_dependency(text, "ng-terminal") is False

    def test_top_level_not_an_object(self):
        assert has_dependency('["ng-terminal"]', "ng-terminal") is False

    def test_invalid_json(self):
        with pytest.raises(ManifestParseError):
            has_dependency("{ not json", "ng-terminal")


class TestReadPackageManifest:
    def test_reads_text(self, tmp_path: Path):
        (tmp_path / "package.json").write_text(_manifest(), encoding="utf-8")
        text = read_package_manifest(VirtualTree(tmp_path))
        assert json.loads(text)["name"] == "workspace"

    def test_leading_slash_path(self, tmp_path: Path):
        (tmp_path / "package.json").write_text(_manifest(), encoding="utf-8")
        assert read_package_manifest(VirtualTree(tmp_path), "/package.json")

    def test_missing_manifest(self, tmp_path: Path):
        with pytest.raises(ManifestNotFoundError) as exc_info:
            read_package_manifest(VirtualTree(tmp_path))
        assert "package.json file not found" in str(exc_info.value)
