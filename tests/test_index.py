"""Tests for the command line entry point and update logging."""

import json
import re
from dataclasses import asdict
from unittest.mock import MagicMock

import pytest

from combi_updates import index
from combi_updates.deployer import Deployer
from combi_updates.utils.index import log_message

from conftest import FakeArchiveFetcher

LINE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - .+$")


@pytest.fixture
def config_file(tmp_path, deploy_config):
    path = tmp_path / "deploy.json"
    path.write_text(json.dumps(asdict(deploy_config)))
    return path


@pytest.fixture
def fetcher(repo_archive):
    return FakeArchiveFetcher(source=repo_archive)


@pytest.fixture
def factory(fetcher, fs, services):
    return MagicMock(side_effect=lambda config: Deployer(config, fetcher=fetcher, fs=fs,
                                                         services=services))


def _log_lines(deploy_config):
    with open(deploy_config.log_file) as f:
        return f.read().splitlines()


class TestArguments:

    def test_no_arguments(self, config_file, deploy_config, factory, capsys):
        status = index.run(["--config", str(config_file)], deployer_factory=factory)

        assert status == 1
        factory.assert_not_called()
        lines = _log_lines(deploy_config)
        assert lines[0].endswith(
            " - Error: You must specify 'update' or 'rollback <software_version>' as an argument.")
        assert all(LINE_PATTERN.match(line) for line in lines)
        assert "You must specify" in capsys.readouterr().out

    def test_rollback_without_version(self, config_file, deploy_config, factory, fetcher, fs,
                                      services):
        status = index.run(["rollback", "--config", str(config_file)], deployer_factory=factory)

        assert status == 1
        assert fetcher.calls == []
        assert fs.mutations == []
        assert services.calls == []
        assert any("You must specify the software version for rollback" in line
                   for line in _log_lines(deploy_config))

    def test_invalid_operation_does_not_contact_network(self, config_file, factory, fetcher,
                                                        deploy_config):
        status = index.run(["upgrade", "--config", str(config_file)], deployer_factory=factory)

        assert status == 1
        factory.assert_not_called()
        assert fetcher.calls == []
        assert any("Invalid operation" in line for line in _log_lines(deploy_config))

    def test_unknown_flag_is_logged_and_exits_1(self, config_file, deploy_config, factory,
                                                capsys):
        with open(deploy_config.log_file, "w") as f:
            f.write("2020-01-01 00:00:00 - previous run\n")

        status = index.run(["update", "--force", "--config", str(config_file)],
                           deployer_factory=factory)

        assert status == 1
        factory.assert_not_called()
        lines = _log_lines(deploy_config)
        assert not any("previous run" in line for line in lines)
        assert "unrecognized arguments: --force" in lines[0]
        assert lines[-1].endswith(" - Usage: combi-update update | rollback <software_version>")
        assert all(LINE_PATTERN.match(line) for line in lines)
        assert "unrecognized arguments" in capsys.readouterr().out

    def test_extra_positional_without_config_uses_default_log_file(self, tmp_path, factory,
                                                                  monkeypatch):
        log_file = tmp_path / "usboven.log"
        monkeypatch.setattr(index, "LOG_FILE", str(log_file))

        status = index.run(["rollback", "1.5.2", "extra"], deployer_factory=factory)

        assert status == 1
        factory.assert_not_called()
        assert "unrecognized arguments: extra" in log_file.read_text()

    def test_bad_config_file_exits_1(self, tmp_path, factory):
        path = tmp_path / "deploy.json"
        path.write_text("{")
        assert index.run(["update", "--config", str(path)], deployer_factory=factory) == 1
        factory.assert_not_called()


class TestRun:

    def test_update_exits_0(self, config_file, factory, services, board_root, capsys):
        status = index.run(["update", "--config", str(config_file)], deployer_factory=factory)

        assert status == 0
        assert services.calls[-1] == ("reboot",)
        assert (board_root / "usr/crank/apps/ProServices/main.gapp").read_text() == "v10.0.1"
        out = capsys.readouterr().out
        assert "Starting the application transfer..." in out
        assert "Rebooting..." in out

    def test_rollback_exits_0(self, config_file, factory, board_root):
        status = index.run(["rollback", "1.5.2", "--config", str(config_file)],
                           deployer_factory=factory)

        assert status == 0
        assert (board_root / "usr/crank/apps/ProServices/main.gapp").read_text() == "v1.5.2"

    def test_failed_deployment_exits_1(self, config_file, fs, services, deploy_config):
        failing = FakeArchiveFetcher(error="connection reset")
        status = index.run(
            ["update", "--config", str(config_file)],
            deployer_factory=lambda config: Deployer(config, fetcher=failing, fs=fs,
                                                     services=services))

        assert status == 1
        assert services.calls == []
        assert _log_lines(deploy_config)[-1].endswith(
            " - Error: Failed to download repository zip file.")

    def test_log_file_is_truncated_each_run(self, config_file, deploy_config, factory):
        with open(deploy_config.log_file, "w") as f:
            f.write("2020-01-01 00:00:00 - previous run\n")

        index.run(["rollback", "1.5.2", "--config", str(config_file)], deployer_factory=factory)

        lines = _log_lines(deploy_config)
        assert not any("previous run" in line for line in lines)
        assert lines[0].endswith(" - Starting the application transfer...")
        assert all(LINE_PATTERN.match(line) for line in lines)


class TestLogging:

    def test_unwritable_log_file_falls_back_to_stdout(self, tmp_path, capsys):
        index.setup_update_logging(str(tmp_path / "missing" / "usboven.log"))
        log_message("still logging")

        out = capsys.readouterr().out
        assert "Cannot write log file" in out
        assert "still logging" in out

    def test_debug_messages_hidden_by_default(self, tmp_path, capsys):
        index.setup_update_logging(str(tmp_path / "usboven.log"))
        log_message("details", "DEBUG")
        log_message("summary")

        out = capsys.readouterr().out
        assert "details" not in out
        assert "summary" in out

    def test_debug_flag_shows_debug_messages(self, tmp_path, capsys):
        index.setup_update_logging(str(tmp_path / "usboven.log"), debug=True)
        log_message("details", "DEBUG")
        assert "details" in capsys.readouterr().out


def test_main_exits_with_run_status(monkeypatch):
    monkeypatch.setattr(index, "run", lambda argv: 1)
    monkeypatch.setattr(index.sys, "argv", ["combi-update"])
    with pytest.raises(SystemExit) as excinfo:
        index.main()
    assert excinfo.value.code == 1
