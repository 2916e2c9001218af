"""Unit tests for the application entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chatbot.infrastructure.configuration import Settings, SlackSettings
from chatbot.main import ChatBot, list_configs

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("SLACK_TOKEN", "APP_TOKEN", "PREFIX", "COMMAND_PREFIX"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings():
    """Factory for creating Settings with Slack tokens."""

    def _make(slack_token="xoxb-test", app_token="xapp-test"):
        return Settings(
            slack=SlackSettings(SLACK_TOKEN=slack_token, APP_TOKEN=app_token)
        )

    return _make


class TestPreflight:
    """Test suite for ChatBot.preflight."""

    @pytest.mark.parametrize(
        "tokens, missing",
        [
            ({"slack_token": ""}, "SLACK_TOKEN"),
            ({"app_token": ""}, "APP_TOKEN"),
        ],
    )
    def test_missing_token(self, make_settings, tokens, missing):
        bot = ChatBot(make_settings(**tokens))

        with pytest.raises(RuntimeError, match=missing):
            bot.preflight()

    @patch("chatbot.main.list_configs")
    def test_lists_configuration(self, mock_list_configs, make_settings):
        settings = make_settings()
        bot = ChatBot(settings)

        bot.preflight()

        mock_list_configs.assert_called_once_with(settings)


class TestListConfigs:
    """Test suite for list_configs."""

    @patch("chatbot.main.logger")
    def test_logs_sections_without_values(self, mock_logger, make_settings):
        list_configs(make_settings())

        calls = mock_logger.info.call_args_list
        assert calls[0].args == ("configuration_initialized",)
        assert {"PREFIX": ""} in calls[0].kwargs["base_settings"]
        sections = {c.kwargs["config_setting"]: c.kwargs["keys"] for c in calls[1:]}
        assert set(sections) == {"slack", "commands", "strategies"}
        assert "SLACK_TOKEN" in sections["slack"]
        logged = repr(calls)
        assert "xoxb-test" not in logged


class TestLifecycle:
    """Test suite for ChatBot wiring and shutdown."""

    @pytest.mark.asyncio
    @patch("chatbot.main.SlackTransport")
    @patch("chatbot.main.AsyncApp")
    @patch("chatbot.main.IdentityResolver")
    @patch("chatbot.main.SlackWebClient")
    async def test_initialize_wires_orchestrator(
        self,
        mock_client_class,
        mock_resolver_class,
        mock_app_class,
        mock_transport_class,
        make_settings,
        bot_user,
    ):
        mock_resolver_class.return_value.resolve_bot_user = AsyncMock(
            return_value=bot_user
        )
        transport = mock_transport_class.return_value
        bot = ChatBot(make_settings())

        await bot.initialize()

        mock_client_class.assert_called_once_with(
            "xoxb-test", base_url="https://slack.com/api/"
        )
        mock_transport_class.assert_called_once_with(
            mock_client_class.return_value,
            app=mock_app_class.return_value,
            app_token="xapp-test",
        )
        transport.set_message_handler.assert_called_once_with(
            bot.orchestrator.handle_message
        )
        assert bot.bot_user is bot_user
        assert bot.orchestrator.prefix == "!"
        assert "ping" in bot.orchestrator.registry

    @pytest.mark.asyncio
    async def test_dismiss_stops_transport_then_orchestrator(self, make_settings):
        bot = ChatBot(make_settings())
        order = []
        bot.transport = MagicMock()
        bot.transport.stop = AsyncMock(side_effect=lambda: order.append("transport"))
        bot.orchestrator = MagicMock()
        bot.orchestrator.stop = AsyncMock(
            side_effect=lambda: order.append("orchestrator")
        )

        await bot.dismiss()

        assert order == ["transport", "orchestrator"]

    @pytest.mark.asyncio
    async def test_run_serves_until_stopped(self, make_settings):
        bot = ChatBot(make_settings())
        bot.transport = MagicMock()
        bot.transport.start = AsyncMock()
        bot.transport.stop = AsyncMock()
        bot.orchestrator = MagicMock()
        bot.orchestrator.start = AsyncMock()
        bot.orchestrator.stop = AsyncMock()
        bot.request_stop()

        await bot.run()

        bot.orchestrator.start.assert_awaited_once()
        bot.transport.start.assert_awaited_once()
        bot.transport.stop.assert_awaited_once()
        bot.orchestrator.stop.assert_awaited_once()
