"""Tests for the vmwake CLI."""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from vmwake.cli import main
from vmwake.core.errors import NoTransportAvailable
from vmwake.core.events import Outcome
from vmwake.core.probe import HostStatus
from vmwake.core.registry import WakeTarget
from vmwake.core.wake import WakeResult
from vmwake.core.wol import BurstResult

MAC = "AA:BB:CC:DD:EE:FF"


# ── Helpers ───────────────────────────────────────────────────────────────────


def _setup(tmp_path: Path) -> Path:
    """Write a registry, a log directory and a config pointing at both."""
    registry = tmp_path / "hosts.conf"
    registry.write_text("vmstation-node1  AA:BB:CC:DD:EE:FF  192.168.1.10\nno-ip  11:22:33:44:55:66\n")
    (tmp_path / "log").mkdir()
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.dump(
            {
                "settings": {
                    "registry": str(registry),
                    "log_dir": str(tmp_path / "log"),
                    "transports": ["socket"],
                    "wait_interval": 1,
                }
            }
        )
    )
    return cfg


_ENV_UNSET = dict.fromkeys(
    ["VMSTATION_CONFIG", "VMSTATION_LOG_DIR", "BROADCAST_ADDR", "WOL_PORT", "PACKET_COUNT"]
)


def _invoke(cfg: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(cfg), *args], env=_ENV_UNSET)


def _log_lines(tmp_path: Path) -> list[str]:
    p = tmp_path / "log" / "wake-events.log"
    return p.read_text().splitlines() if p.exists() else []


# ── config errors ─────────────────────────────────────────────────────────────


class TestConfigErrors:
    def test_missing_config_uses_defaults(self, tmp_path: Path) -> None:
        """No config file is fine; the default registry simply isn't there."""
        result = _invoke(tmp_path / "nope.yaml", "hosts", "-r", str(tmp_path / "none.conf"))
        assert result.exit_code == 2
        assert "Host registry not found" in result.output

    def test_validation_error_exits_2(self, tmp_path: Path) -> None:
        cfg = tmp_path / "bad.yaml"
        cfg.write_text(yaml.dump({"settings": {"port": 0}}))
        result = _invoke(cfg, "hosts")
        assert result.exit_code == 2
        assert "settings.port" in result.output


# ── wake ──────────────────────────────────────────────────────────────────────


class TestWake:
    @patch("vmwake.core.wol.send_magic_packet")
    def test_wake_by_name(self, mock_send: MagicMock, tmp_path: Path) -> None:
        cfg = _setup(tmp_path)

        result = _invoke(cfg, "wake", "vmstation-node1")

        assert result.exit_code == 0
        assert "WOL packet sent to AA:BB:CC:DD:EE:FF (192.168.1.10) via socket" in result.output
        mock_send.assert_called_once_with(MAC, ip_address="255.255.255.255", port=9)
        lines = _log_lines(tmp_path)
        assert len(lines) == 1
        assert " WOL_SENT MAC=AA:BB:CC:DD:EE:FF HOST=192.168.1.10" in lines[0]

    @patch("vmwake.core.wake.wait_for_online", return_value=Outcome.ONLINE)
    @patch("vmwake.core.wol.send_magic_packet")
    def test_wake_and_wait(self, mock_send: MagicMock, mock_wait: MagicMock, tmp_path: Path) -> None:
        cfg = _setup(tmp_path)

        result = _invoke(cfg, "wake", "vmstation-node1", "--wait", "--timeout", "20")

        assert result.exit_code == 0
        assert "✓" in result.output
        mock_wait.assert_called_once_with("192.168.1.10", timeout=20, interval=1, probe_timeout=5)
        assert [line.split()[1] for line in _log_lines(tmp_path)] == ["WOL_SENT", "ONLINE"]

    @patch("vmwake.core.wake.wait_for_online", return_value=Outcome.TIMEOUT)
    @patch("vmwake.core.wol.send_magic_packet")
    def test_wait_timeout_exits_1(
        self, mock_send: MagicMock, mock_wait: MagicMock, tmp_path: Path
    ) -> None:
        result = _invoke(_setup(tmp_path), "wake", "vmstation-node1", "-w")
        assert result.exit_code == 1
        assert [line.split()[1] for line in _log_lines(tmp_path)] == ["WOL_SENT", "TIMEOUT"]

    @patch("vmwake.core.wol.send_magic_packet")
    def test_wait_without_ip_warns(self, mock_send: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "wake", "no-ip", "--wait")
        assert result.exit_code == 0
        assert "No IP address known" in result.output

    @patch("vmwake.core.wol.send_magic_packet")
    def test_unknown_name_exits_2(self, mock_send: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "wake", "ghost-node")

        assert result.exit_code == 2
        assert "ghost-node" in result.output
        mock_send.assert_not_called()
        assert _log_lines(tmp_path) == []

    @patch("vmwake.core.wol.send_magic_packet")
    def test_zero_interval_rejected_before_sending(
        self, mock_send: MagicMock, tmp_path: Path
    ) -> None:
        result = _invoke(_setup(tmp_path), "wake", "vmstation-node1", "--wait", "--interval", "0")

        assert result.exit_code == 2
        assert result.exception is None or isinstance(result.exception, SystemExit)
        mock_send.assert_not_called()
        assert _log_lines(tmp_path) == []

    @patch("vmwake.core.wol.send_magic_packet")
    def test_negative_timeout_rejected(self, mock_send: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "wake", "vmstation-node1", "-w", "--timeout=-5")

        assert result.exit_code == 2
        mock_send.assert_not_called()
        assert _log_lines(tmp_path) == []

    @patch("vmwake.core.wake.run_wake")
    def test_no_transport_exits_2(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = WakeResult(
            target=WakeTarget(MAC, MAC),
            success=False,
            started_at=datetime.now(timezone.utc),
            outcome=Outcome.WOL_FAILED,
            error=str(NoTransportAvailable(["socket"])),
            exit_code=2,
        )
        result = _invoke(_setup(tmp_path), "wake", MAC)
        assert result.exit_code == 2
        assert "No Wake-on-LAN transport available" in result.output

    @patch("vmwake.core.wol.send_magic_packet", side_effect=OSError("Network unreachable"))
    def test_send_failure_exits_1(self, mock_send: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "wake", MAC)
        assert result.exit_code == 1
        assert "Failed to send" in result.output
        assert _log_lines(tmp_path)[0].split()[1] == "WOL_FAILED"


# ── send ──────────────────────────────────────────────────────────────────────


class TestSend:
    @patch("vmwake.core.wol.time.sleep")
    @patch("vmwake.core.wol.send_magic_packet")
    def test_sends_burst(self, mock_send: MagicMock, mock_sleep: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "send", "aa:bb:cc:dd:ee:ff", "-n", "2")

        assert result.exit_code == 0
        assert "Sent 2 magic packet(s) to AA:BB:CC:DD:EE:FF via socket" in result.output
        assert mock_send.call_count == 2
        assert _log_lines(tmp_path) == []

    def test_invalid_mac_exits_2(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "send", "AA-BB-CC-DD-EE-FF")
        assert result.exit_code == 2
        assert "AA-BB-CC-DD-EE-FF" in result.output
        assert "Expected format" in result.output

    @patch("vmwake.core.wol.send_burst")
    def test_all_packets_failed_exits_1(self, mock_burst: MagicMock, tmp_path: Path) -> None:
        mock_burst.return_value = BurstResult(mac=MAC, transport="socket", sent=0, failed=3)
        result = _invoke(_setup(tmp_path), "send", MAC)
        assert result.exit_code == 1

    @patch("vmwake.core.wol.send_burst", side_effect=NoTransportAvailable(["wol"]))
    def test_no_transport_exits_2(self, mock_burst: MagicMock, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "send", MAC)
        assert result.exit_code == 2


# ── analyze ───────────────────────────────────────────────────────────────────


class TestAnalyze:
    def _write_events(self, tmp_path: Path) -> None:
        ts = datetime.now().astimezone().isoformat(timespec="seconds")
        (tmp_path / "log" / "wake-events.log").write_text(
            f"{ts} WOL_SENT MAC={MAC} HOST=192.168.1.10\n"
            f"{ts} ONLINE MAC={MAC} HOST=192.168.1.10\n"
        )

    def test_no_log_is_not_an_error(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "analyze")
        assert result.exit_code == 0
        assert "No wake log found" in result.output

    def test_no_log_json(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "analyze", "--json")
        data = json.loads(result.output)
        assert data["error"] == "No wake log found"
        assert data["log_path"].endswith("wake-events.log")

    def test_text_report(self, tmp_path: Path) -> None:
        cfg = _setup(tmp_path)
        self._write_events(tmp_path)

        result = _invoke(cfg, "analyze", "--days", "1")

        assert result.exit_code == 0
        assert "Sleep/Wake Cycle Analysis" in result.output
        assert "100%" in result.output

    def test_json_report(self, tmp_path: Path) -> None:
        cfg = _setup(tmp_path)
        self._write_events(tmp_path)

        result = _invoke(cfg, "analyze", "--json")

        data = json.loads(result.output)
        assert data["period_days"] == 7
        assert data["summary"]["success_rate"] == 100
        assert data["hosts"][MAC]["events"] == 2

    def test_zero_days_rejected(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "analyze", "--days", "0")
        assert result.exit_code == 2


# ── status ────────────────────────────────────────────────────────────────────


class TestStatus:
    @patch("vmwake.core.probe.check_host")
    def test_all_online(self, mock_check: MagicMock, tmp_path: Path) -> None:
        mock_check.return_value = HostStatus("192.168.1.10", True, 0.4, "open")

        result = _invoke(_setup(tmp_path), "status", "--all")

        assert result.exit_code == 0
        mock_check.assert_called_once_with("192.168.1.10")
        assert "Online: 1  Offline: 0  Total: 1" in result.output

    @patch("vmwake.core.probe.check_host")
    def test_name_resolved_and_offline_exits_1(self, mock_check: MagicMock, tmp_path: Path) -> None:
        mock_check.return_value = HostStatus("192.168.1.10", False)

        result = _invoke(_setup(tmp_path), "status", "vmstation-node1")

        assert result.exit_code == 1
        mock_check.assert_called_once_with("192.168.1.10")

    @patch("vmwake.core.probe.check_host")
    def test_json(self, mock_check: MagicMock, tmp_path: Path) -> None:
        mock_check.return_value = HostStatus("10.0.0.9", True, 1.5, "closed")

        result = _invoke(_setup(tmp_path), "status", "10.0.0.9", "--json")

        data = json.loads(result.output)
        assert data["hosts"]["10.0.0.9"] == {"status": "online", "latency": "1.5 ms", "ssh": "closed"}
        assert data["summary"] == {"online": 1, "offline": 0, "total": 1}

    def test_no_hosts_exits_2(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "status")
        assert result.exit_code == 2


# ── hosts / collect ──────────────────────────────────────────────────────────


class TestHosts:
    def test_lists_registry(self, tmp_path: Path) -> None:
        result = _invoke(_setup(tmp_path), "hosts")
        assert result.exit_code == 0
        assert "vmstation-node1" in result.output
        assert "192.168.1.10" in result.output


class TestCollect:
    def test_collect_writes_directory(self, tmp_path: Path) -> None:
        out = tmp_path / "collected"
        result = _invoke(_setup(tmp_path), "collect", "-o", str(out), "--analyze")

        assert result.exit_code == 0
        assert "Logs saved to:" in result.output
        dirs = list(out.iterdir())
        assert len(dirs) == 1
        assert (dirs[0] / "collection-summary.txt").exists()


# ── serve ─────────────────────────────────────────────────────────────────────


class TestServe:
    @patch("uvicorn.run")
    @patch("vmwake.api.routes.create_app")
    def test_serve_starts_uvicorn(
        self, mock_create: MagicMock, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_create.return_value = MagicMock()

        result = _invoke(_setup(tmp_path), "serve", "--host", "0.0.0.0", "--port", "9000")

        assert result.exit_code == 0
        assert "Starting vmwake API at http://0.0.0.0:9000" in result.output
        mock_run.assert_called_once_with(mock_create.return_value, host="0.0.0.0", port=9000)
