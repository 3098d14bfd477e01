"""Test the click entry points."""

import json

from click.testing import CliRunner

from firewall_deleter.cli import main
from firewall_deleter.core.errors import ConfigError


def _write(tmp_path, name: str, data: bytes):
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


def _printed(result, topic: str) -> str:
    """Return the payload printed after the topic line."""
    lines = result.output.splitlines()
    return lines[lines.index(topic) + 1]


class TestHandleCommand:
    def test_valid_request_completes(self, tmp_path, valid_wire):
        runner = CliRunner()
        result = runner.invoke(
            main, ["handle", "--dry-run", _write(tmp_path, "req.json", valid_wire)],
        )

        assert result.exit_code == 0, result.output
        assert _printed(result, "firewall.delete.aws.done") == valid_wire.decode()

    def test_invalid_request_exits_nonzero(self, tmp_path, request_bytes):
        runner = CliRunner()
        path = _write(tmp_path, "req.json", request_bytes(security_group_name=""))
        result = runner.invoke(main, ["handle", "--dry-run", path])

        assert result.exit_code == 1
        payload = _printed(result, "firewall.delete.aws.error")
        assert json.loads(payload)["error"] == "Security Group name invalid"

    def test_unsettled_request_reported(self, tmp_path, valid_wire, monkeypatch):
        from firewall_deleter.connector.event import Event

        def broken(self):
            raise RuntimeError("validator crashed")

        monkeypatch.setattr(Event, "validate", broken)
        runner = CliRunner()
        path = _write(tmp_path, "req.json", valid_wire)
        result = runner.invoke(main, ["handle", "--dry-run", path])

        assert result.exit_code == 1
        assert "Request was not settled: validator crashed" in result.output

    def test_payload_from_stdin_echoed_on_decode_failure(self):
        runner = CliRunner()
        result = runner.invoke(main, ["handle", "--dry-run", "-"], input="{oops")

        assert result.exit_code == 1
        assert _printed(result, "firewall.delete.aws.error") == "{oops"

    def test_topics_from_config(self, tmp_path, valid_wire):
        config = tmp_path / "connector.toml"
        config.write_text('[topics]\ndone = "sg.deleted"\n')
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "handle", "--dry-run", "--config", str(config),
                _write(tmp_path, "req.json", valid_wire),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "sg.deleted" in result.output.splitlines()


class TestRunCommand:
    def test_memory_backend_refused(self, tmp_path):
        config = tmp_path / "connector.toml"
        config.write_text('bus_backend = "memory"\n')
        runner = CliRunner()
        result = runner.invoke(main, ["run", "--config", str(config)])

        assert result.exit_code != 0
        assert isinstance(result.exception, ConfigError)
