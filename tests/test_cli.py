"""
Tests for the command line interface.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from modkeeper import cli

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def quiet_logger(monkeypatch):
    monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: None)


@pytest.fixture
def config_file(tmp_path):
    registry_path = tmp_path / "mod_registry.json"
    registry_path.write_text(
        json.dumps(
            {
                "mods": {
                    "forge_mod": {
                        "name": "forge_mod",
                        "version": "1.4.2",
                        "checksum": "0123456789abcdef" * 4,
                        "installedPath": "/games/arma3/@forge_mod",
                        "lastUpdated": "2024-05-01 12:00:00 UTC",
                    }
                },
                "lastCheck": "2024-05-01 12:00:00 UTC",
            }
        )
    )
    path = tmp_path / "modkeeper.toml"
    path.write_text(
        "\n".join(
            [
                f'game_directory = "{(tmp_path / "arma3").as_posix()}"',
                f'registry_path = "{registry_path.as_posix()}"',
                "",
                "[catalog]",
                'base_url = "http://127.0.0.1:1"',
                'packages = ["forge_mod"]',
            ]
        )
    )
    return str(path)


class TestCli:
    def test_status(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "status"])

        assert result.exit_code == 0, result.output
        assert "2024-05-01 12:00:00 UTC" in result.output
        assert "forge_mod\t1.4.2" in result.output
        assert "0123456789ab" in result.output

    def test_json_events_keep_stdout_pure_json(self, config_file, tmp_path):
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            filter(None, [str(ROOT), env.get("PYTHONPATH")])
        )
        env.pop("MODKEEPER_DEBUG", None)

        result = subprocess.run(
            [sys.executable, "-m", "modkeeper.cli", "-c", config_file, "--json-events", "check"],
            cwd=str(tmp_path),
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=60,
        )

        assert result.returncode == 0, result.stderr
        lines = result.stdout.splitlines()
        events = [json.loads(line) for line in lines]
        assert events == [
            {
                "event": "mod-notification",
                "payload": {
                    "type": "up-to-date",
                    "title": "All mods are up to date!",
                    "message": "Your mods are current with the latest versions.",
                },
            }
        ]

    def test_json_events_send_logs_to_stderr(self, config_file, monkeypatch):
        calls = []
        monkeypatch.setattr(
            cli, "setup_logger", lambda **kwargs: calls.append(kwargs["sink"] is sys.stderr)
        )

        CliRunner().invoke(cli.main, ["-c", config_file, "--json-events", "status"])
        CliRunner().invoke(cli.main, ["-c", config_file, "status"])

        assert calls == [True, False]

    def test_update_unknown_package_fails(self, config_file):
        result = CliRunner().invoke(cli.main, ["-c", config_file, "update", "nope"])

        assert result.exit_code != 0
        assert "nope" in result.output

    def test_missing_config(self, tmp_path):
        result = CliRunner().invoke(
            cli.main, ["-c", str(tmp_path / "absent.toml"), "status"]
        )

        assert result.exit_code != 0
        assert "absent.toml" in result.output

    def test_unsupported_config_format(self, tmp_path):
        path = tmp_path / "modkeeper.ini"
        path.write_text("[x]")

        result = CliRunner().invoke(cli.main, ["-c", str(path), "status"])

        assert result.exit_code != 0
        assert ".ini" in result.output

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "modkeeper.yaml"
        path.write_text(
            f"game_directory: {tmp_path.as_posix()}/arma3\n"
            f"registry_path: {tmp_path.as_posix()}/reg.json\n"
        )

        result = CliRunner().invoke(cli.main, ["-c", str(path), "status"])

        assert result.exit_code == 0, result.output
        assert "上次检查" in result.output
