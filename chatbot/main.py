"""Chatbot entry point.

Wires the Slack integration, the command registry and the orchestrator, then
runs until SIGINT or SIGTERM.
"""

import asyncio
import signal
from typing import Optional

from dotenv import load_dotenv
from slack_bolt.async_app import AsyncApp

from chatbot import __version__
from chatbot.infrastructure.configuration import Settings
from chatbot.infrastructure.events import EventDispatcher
from chatbot.infrastructure.identity import BotUser, IdentityResolver
from chatbot.infrastructure.logging import (
    add_app_info,
    configure_logging,
    get_module_logger,
)
from chatbot.infrastructure.orchestration import CommandOrchestrator
from chatbot.infrastructure.services import get_settings
from chatbot.infrastructure.strategies import PolicySet
from chatbot.integrations.slack import SlackTransport, SlackWebClient
from chatbot.modules import build_registry

logger = get_module_logger()


class ChatBot:
    """The bot application.

    Example:
        bot = ChatBot(get_settings())
        bot.preflight()
        await bot.initialize()
        await bot.run()
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.events = EventDispatcher()
        self.client: Optional[SlackWebClient] = None
        self.transport: Optional[SlackTransport] = None
        self.bot_user: Optional[BotUser] = None
        self.orchestrator: Optional[CommandOrchestrator] = None
        self._stop = asyncio.Event()

    def preflight(self) -> None:
        """Validate required configuration and log what was loaded.

        Raises:
            RuntimeError: If a Slack token is missing
        """
        missing = [
            name
            for name, value in (
                ("SLACK_TOKEN", self.settings.slack.SLACK_TOKEN),
                ("APP_TOKEN", self.settings.slack.APP_TOKEN),
            )
            if not value
        ]
        if missing:
            logger.error("configuration_invalid", missing=missing)
            raise RuntimeError(f"Missing required settings: {', '.join(missing)}")
        list_configs(self.settings)

    async def initialize(self) -> None:
        """Build the Slack client, resolve the bot identity and wire the
        transport to the orchestrator."""
        slack = self.settings.slack
        self.client = SlackWebClient(
            slack.SLACK_TOKEN, base_url=slack.SLACK_API_BASE_URL
        )
        identity = IdentityResolver(self.client)
        self.bot_user = await identity.resolve_bot_user()

        app = AsyncApp(client=self.client.sdk_client)
        self.transport = SlackTransport(self.client, app=app, app_token=slack.APP_TOKEN)

        commands = self.settings.commands
        self.orchestrator = CommandOrchestrator(
            registry=build_registry(),
            transport=self.transport,
            identity=identity,
            bot_user=self.bot_user,
            events=self.events,
            policies=PolicySet.from_settings(self.settings.strategies),
            prefix=commands.prefix,
            cancel_words=commands.cancel_words,
            interactive_timeout=commands.interactive_timeout_seconds,
            respond_to_unknown=commands.respond_to_unknown,
        )
        self.transport.set_message_handler(self.orchestrator.handle_message)
        logger.info(
            "chatbot_initialized",
            bot_user_id=self.bot_user.platform_id,
            bot_name=self.bot_user.name,
            commands=[d.name for d in self.orchestrator.registry.list_commands()],
        )

    async def run(self) -> None:
        """Serve until a stop signal arrives, then dismiss."""
        if self.orchestrator is None or self.transport is None:
            await self.initialize()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_stop)

        await self.orchestrator.start()
        await self.transport.start()
        logger.info("chatbot_running", version=__version__)
        try:
            await self._stop.wait()
        finally:
            await self.dismiss()

    def request_stop(self) -> None:
        logger.info("chatbot_stop_requested")
        self._stop.set()

    async def dismiss(self) -> None:
        """Stop receiving messages, then stop the orchestrator."""
        if self.transport is not None:
            await self.transport.stop()
        if self.orchestrator is not None:
            await self.orchestrator.stop()
        self.events.shutdown_executor()
        logger.info("chatbot_dismissed")


def list_configs(settings: Settings) -> None:
    """List all configuration settings keys"""
    base_settings = []
    sections = {}
    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            sections[key] = list(value.keys())
        else:
            base_settings.append({key: value})

    logger.info("configuration_initialized", base_settings=base_settings)
    for key, value in sections.items():
        logger.info("configuration_loaded", config_setting=key, keys=value)


async def main() -> None:
    bot = ChatBot(get_settings())
    bot.preflight()
    await bot.run()


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    configure_logging(extra_processors=[add_app_info("chatbot", __version__)])
    logger.info("application_startup", version=__version__)
    asyncio.run(main())


if __name__ == "__main__":
    run()
