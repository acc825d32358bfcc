"""Tests for the user management command-line utility.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import importlib.util
from pathlib import Path

import pytest

from ijazah_api import auth
from ijazah_api.store import JsonStore

CLI_PATH = Path(__file__).resolve().parent.parent / "admin" / "user_management.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("user_management", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    store = JsonStore(path)
    auth.register(store, "student@example.com", "password-123", full_name="Ahmad Student")
    auth.register(store, "sheikh@example.com", "password-123", full_name="Sheikh Yusuf",
                  roles=["student", "scholar"])
    return path


class TestUserManagementCli:
    """Test the user management commands."""

    def test_validate_config(self, cli, capsys):
        assert cli.main(["validate-config"]) == 0
        assert "10 readings, 20 narrators" in capsys.readouterr().out

    def test_validate_missing_config(self, cli, tmp_path):
        assert cli.main(["validate-config", str(tmp_path / "missing.yml")]) == 1

    def test_list_users(self, cli, data_dir, capsys):
        assert cli.main(["--data-dir", str(data_dir), "list-users", "--role", "scholar"]) == 0

        out = capsys.readouterr().out
        assert "sheikh@example.com" in out
        assert "student@example.com" not in out
        assert "Total users: 1" in out

    def test_show_user(self, cli, data_dir, capsys):
        assert cli.main(["--data-dir", str(data_dir), "show-user", "STUDENT@example.com"]) == 0
        assert "Ahmad Student" in capsys.readouterr().out

    def test_show_unknown_user(self, cli, data_dir):
        assert cli.main(["--data-dir", str(data_dir), "show-user", "ghost@example.com"]) == 1

    def test_grant_and_revoke_role(self, cli, data_dir):
        assert cli.main(["--data-dir", str(data_dir), "grant-role", "student@example.com", "admin"]) == 0

        store = JsonStore(data_dir)
        assert auth.find_profile_by_email(store, "student@example.com")["roles"] == ["student", "admin"]

        assert cli.main(["--data-dir", str(data_dir), "revoke-role", "student@example.com", "admin"]) == 0
        assert auth.find_profile_by_email(store, "student@example.com")["roles"] == ["student"]

    def test_expire_stale_on_empty_store(self, cli, data_dir, capsys):
        assert cli.main(["--data-dir", str(data_dir), "expire-stale"]) == 0
        assert "Expired 0 applications" in capsys.readouterr().out

    def test_no_command(self, cli):
        assert cli.main([]) == 1
