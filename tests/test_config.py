"""Unit tests for Config and the generator option models (federated_scaffold.config).

Tests cover:
- Role coercion
- Config defaults, save/load, from_env
- ScaffoldOptions aliasing, coercion and validation errors
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from federated_scaffold.config import Config, FederationConfig, Role, ScaffoldOptions
from federated_scaffold.errors import InvalidOptionsError, UnsupportedRoleError


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


class TestRole:
    @pytest.mark.unit
    def test_coerce_strings(self):
        assert Role.coerce("host") is Role.HOST
        assert Role.coerce("remote") is Role.REMOTE
        assert Role.coerce(Role.HOST) is Role.HOST

    @pytest.mark.unit
    def test_unsupported_role_message(self):
        with pytest.raises(UnsupportedRoleError) as exc_info:
            Role.coerce("dynamic-host")
        assert str(exc_info.value) == "Option dynamic-host is not supported"
        assert exc_info.value.role == "dynamic-host"


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfig:
    @pytest.mark.unit
    def test_defaults(self):
        cfg = Config()
        assert cfg.workspace_root == Path(".")
        assert cfg.runtime_dependency == "ng-terminal"
        assert cfg.federation == FederationConfig()
        assert cfg.federation.package == "@angular-architects/module-federation"
        assert cfg.federation.generator == "ng-add"
        assert cfg.webpack_config_name == "webpack.config.js"
        assert cfg.package_manager == "npm"
        assert cfg.dry_run is False
        assert cfg.skip_install is False

    @pytest.mark.unit
    def test_timeout_lower_bound(self):
        with pytest.raises(ValidationError):
            Config(command_timeout=1)

    @pytest.mark.unit
    def test_save_and_load(self, tmp_path: Path):
        cfg = Config(workspace_root=tmp_path, package_manager="pnpm", skip_install=True)
        path = cfg.save(tmp_path / "nested" / "config.json")
        assert path.exists()
        assert Config.load(path).model_dump() == cfg.model_dump()

    @pytest.mark.unit
    def test_from_env(self, tmp_path: Path):
        env = {
            "MFS_WORKSPACE_ROOT": str(tmp_path),
            "MFS_RUNTIME_DEPENDENCY": "xterm",
            "MFS_PACKAGE_MANAGER": "yarn",
            "MFS_COMMAND_TIMEOUT": "60",
            "MFS_FEDERATION_PACKAGE": "@nx/module-federation",
            "MFS_DRY_RUN": "true",
            "MFS_SKIP_INSTALL": "1",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = Config.from_env()
        assert cfg.workspace_root == tmp_path
        assert cfg.runtime_dependency == "xterm"
        assert cfg.package_manager == "yarn"
        assert cfg.command_timeout == 60
        assert cfg.federation.package == "@nx/module-federation"
        assert cfg.dry_run is True
        assert cfg.skip_install is True

    @pytest.mark.unit
    def test_from_env_defaults(self):
        cleared = {key: value for key, value in os.environ.items() if not key.startswith("MFS_")}
        with patch.dict(os.environ, cleared, clear=True):
            cfg = Config.from_env()
        assert cfg.model_dump() == Config().model_dump()


# ---------------------------------------------------------------------------
# ScaffoldOptions
# ---------------------------------------------------------------------------


class TestScaffoldOptions:
    @pytest.mark.unit
    def test_type_alias(self):
        opts = ScaffoldOptions.from_raw(project="shell", type="host", port="4200", name="term")
        assert opts.role is Role.HOST
        assert opts.port == 4200
        assert opts.spec is True
        assert opts.path == ""

    @pytest.mark.unit
    def test_federation_options(self):
        opts = ScaffoldOptions.from_raw(project="mfe1", role="remote", port=4201, name="term")
        fed = opts.federation_options()
        assert fed.as_generator_options() == {"type": "remote", "project": "mfe1", "port": 4201}

    @pytest.mark.unit
    def test_unsupported_role(self):
        with pytest.raises(UnsupportedRoleError):
            ScaffoldOptions.from_raw(project="shell", role="sidecar", port=1, name="term")

    @pytest.mark.unit
    @pytest.mark.parametrize("port", ["http", "-1", None])
    def test_bad_port(self, port):
        with pytest.raises(InvalidOptionsError):
            ScaffoldOptions.from_raw(project="shell", role="host", port=port, name="term")

    @pytest.mark.unit
    def test_missing_name(self):
        with pytest.raises(InvalidOptionsError):
            ScaffoldOptions.from_raw(project="shell", role="host", port=4200)
