"""Tests for the online-wait poller."""

from unittest.mock import MagicMock, patch

import pytest

from vmwake.core.events import Outcome
from vmwake.core.poller import wait_for_online


class TestWaitForOnline:
    @patch("vmwake.core.poller.time.sleep")
    @patch("vmwake.core.poller.probe.is_reachable", return_value=True)
    def test_online_on_first_probe(self, mock_probe: MagicMock, mock_sleep: MagicMock) -> None:
        assert wait_for_online("192.168.1.10") is Outcome.ONLINE
        mock_probe.assert_called_once_with("192.168.1.10", 5)
        mock_sleep.assert_not_called()

    @patch("vmwake.core.poller.time.sleep")
    @patch("vmwake.core.poller.probe.is_reachable", side_effect=[False, False, True])
    def test_online_after_retries(self, mock_probe: MagicMock, mock_sleep: MagicMock) -> None:
        assert wait_for_online("192.168.1.10", timeout=60, interval=10) is Outcome.ONLINE
        assert mock_probe.call_count == 3
        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(10)

    @patch("vmwake.core.poller.time.sleep")
    @patch("vmwake.core.poller.probe.is_reachable", return_value=False)
    def test_timeout_after_timeout_over_interval_probes(
        self, mock_probe: MagicMock, mock_sleep: MagicMock
    ) -> None:
        """Elapsed time is counted in interval steps: 30 / 10 = 3 probes."""
        assert wait_for_online("192.168.1.10", timeout=30, interval=10) is Outcome.TIMEOUT
        assert mock_probe.call_count == 3
        assert mock_sleep.call_count == 3

    @patch("vmwake.core.poller.time.sleep")
    @patch("vmwake.core.poller.probe.is_reachable", return_value=False)
    def test_interval_longer_than_timeout_probes_once(
        self, mock_probe: MagicMock, mock_sleep: MagicMock
    ) -> None:
        assert wait_for_online("192.168.1.10", timeout=5, interval=10) is Outcome.TIMEOUT
        assert mock_probe.call_count == 1

    @patch("vmwake.core.poller.probe.is_reachable")
    def test_zero_timeout_never_probes(self, mock_probe: MagicMock) -> None:
        assert wait_for_online("192.168.1.10", timeout=0) is Outcome.TIMEOUT
        mock_probe.assert_not_called()

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            wait_for_online("192.168.1.10", interval=0)
