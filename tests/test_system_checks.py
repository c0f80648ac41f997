"""Tests for src/nestbox/system_checks.py."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from conftest import make_settings

from nestbox.config import ContainerConfig
from nestbox.runtime import RuntimeUnavailableError
from nestbox.system_checks import ensure_container_system_running


class TestEnsureContainerSystemRunning:
    @pytest.fixture
    def mock_runtime(self):
        runtime = MagicMock()
        runtime.name = "docker"
        runtime.cleanup_orphans.return_value = 0
        return runtime

    def test_checks_engine_then_cleans_orphans(self, mock_runtime):
        with patch("nestbox.system_checks.get_runtime", return_value=mock_runtime):
            assert ensure_container_system_running() == 0

        mock_runtime.ensure_running.assert_called_once()
        mock_runtime.cleanup_orphans.assert_called_once_with("nestbox-")

    def test_uses_configured_prefix(self, mock_runtime, monkeypatch):
        monkeypatch.setattr(
            "nestbox.config._settings",
            make_settings(container=ContainerConfig(name_prefix="sandbox-")),
        )
        mock_runtime.cleanup_orphans.return_value = 3

        assert ensure_container_system_running(mock_runtime) == 3
        mock_runtime.cleanup_orphans.assert_called_once_with("sandbox-")

    def test_unavailable_engine_propagates(self, mock_runtime):
        mock_runtime.ensure_running.side_effect = RuntimeUnavailableError("start Docker")

        with pytest.raises(RuntimeUnavailableError, match="start Docker"):
            ensure_container_system_running(mock_runtime)

        mock_runtime.cleanup_orphans.assert_not_called()
