"""Tests for the command-line interface."""

from __future__ import annotations

import argparse
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from actionloop.actions.browser import BrowserBackendError
from actionloop.cli import _run_task, build_model_client, main, parse_args
from actionloop.config.settings import Settings
from actionloop.model.anthropic import AnthropicModelClient
from actionloop.model.openai import OpenAIModelClient
from actionloop.model.retry import RetryingModelClient


class TestParseArgs:
    def test_run_command(self) -> None:
        args = parse_args(["-v", "run", "--task", "open example", "--session-id", "s1", "--max-steps", "5"])
        assert args.command == "run"
        assert args.task == "open example"
        assert args.session_id == "s1"
        assert args.max_steps == 5
        assert args.verbose is True

    def test_run_requires_task(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["run"])


class TestBuildModelClient:
    def test_openai_default(self) -> None:
        client = build_model_client(Settings(openai_api_key="sk-test"))
        assert isinstance(client, OpenAIModelClient)
        assert client._api_key == "sk-test"
        assert client._base_url is None

    def test_openrouter_key_sets_base_url(self) -> None:
        client = build_model_client(Settings(openrouter_api_key="or-key"))
        assert client._api_key == "or-key"
        assert client._base_url == "https://openrouter.ai/api/v1"

    def test_anthropic_with_retries(self) -> None:
        settings = Settings(
            anthropic_api_key="sk-ant",
            model={"provider": "anthropic", "model": "claude-test", "max_retries": 2},
        )
        client = build_model_client(settings)
        assert isinstance(client, RetryingModelClient)
        assert isinstance(client.inner, AnthropicModelClient)
        assert client.model == "claude-test"


class TestActionsCommand:
    def test_lists_browser_actions(self, capsys: pytest.CaptureFixture[str], tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with patch("actionloop.utils.logging.setup_logging"):
            main(["actions"])
        out = capsys.readouterr().out
        for name in ("navigate", "click", "type", "screenshot", "wait"):
            assert f"{name}:" in out


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_unhealthy_browser_endpoint_fails_run(self, capsys: pytest.CaptureFixture[str]) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"detail": "down"}))
        args = argparse.Namespace(task="open example", session_id="s1", max_steps=None)

        code = await _run_task(Settings(openai_api_key="sk-test"), args, transport=transport)

        assert code == 1
        out = capsys.readouterr().out
        assert "Run failed: BrowserBackendError" in out
        assert "Failed to connect to browser endpoint" in out

    def test_main_exits_non_zero_when_browser_unreachable(
        self, capsys: pytest.CaptureFixture[str], tmp_path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        connect = AsyncMock(side_effect=BrowserBackendError("Failed to connect to browser endpoint: refused"))
        with patch("actionloop.utils.logging.setup_logging"), patch(
            "actionloop.actions.browser.HttpBrowserBackend.connect", connect
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["run", "--task", "open example"])

        assert exc_info.value.code == 1
        assert "Run failed" in capsys.readouterr().out
