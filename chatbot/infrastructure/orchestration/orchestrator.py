"""Command orchestration.

The orchestrator owns every live command and strategy. Inbound messages are
queued per destination; each is parsed, fed to the pending interactive
command of its destination or matched against the registry, and ready
commands are executed. Strategies run in their own tasks and report back
through an outcome queue consumed by a single loop, which is the only place
that moves an executing command to a terminal state.
"""

import asyncio
import contextlib
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from chatbot.infrastructure.commands import (
    AbstractCommand,
    CommandContext,
    CommandRegistry,
    ConstructionError,
    Destination,
    DestinationRegistry,
    InteractiveCommand,
    TextParser,
    UserDestination,
)
from chatbot.infrastructure.events import EventDispatcher, names
from chatbot.infrastructure.identity import (
    BotUser,
    IdentityResolutionError,
    IdentityResolver,
)
from chatbot.infrastructure.logging import (
    bind_request_context,
    get_module_logger,
    set_correlation_id,
)
from chatbot.infrastructure.orchestration.worker import DestinationWorker, WorkerKey
from chatbot.infrastructure.platforms import Message, Transport
from chatbot.infrastructure.strategies import (
    PolicySet,
    Sleep,
    Strategy,
    StrategyState,
)

logger = get_module_logger()

DEFAULT_CANCEL_WORDS = ("cancel", "nevermind")


@dataclass
class StrategyOutcome:
    """Report of a strategy task to the outcome loop."""

    command: AbstractCommand
    strategy: Strategy
    state: StrategyState
    error: Optional[BaseException] = None


class CommandOrchestrator:
    """Composition point of parsing, commands and strategies.

    Args:
        registry: Commands that can be invoked
        transport: Platform transport
        identity: Resolver for message authors
        bot_user: Identity of the bot itself
        events: Dispatcher for lifecycle events
        policies: Wait policies handed to strategies
        prefix: Command prefix
        cancel_words: Words abandoning a pending interactive command
        interactive_timeout: Seconds of silence after which a pending
            interactive command is abandoned
        respond_to_unknown: Reply with a hint when addressed without a match
        sleep: Coroutine strategies wait with between re-polls
        clock: Monotonic clock used for interactive timeouts
        sweep_interval: Seconds between checks for expired pending commands

    Example:
        orchestrator = CommandOrchestrator(registry, transport, resolver, bot)
        transport.set_message_handler(orchestrator.handle_message)
        await orchestrator.start()
    """

    def __init__(
        self,
        registry: CommandRegistry,
        transport: Transport,
        identity: IdentityResolver,
        bot_user: BotUser,
        events: Optional[EventDispatcher] = None,
        policies: Optional[PolicySet] = None,
        prefix: str = "!",
        cancel_words: Iterable[str] = DEFAULT_CANCEL_WORDS,
        interactive_timeout: float = 300.0,
        respond_to_unknown: bool = True,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 30.0,
    ):
        self.registry = registry
        self.transport = transport
        self.identity = identity
        self.bot_user = bot_user
        self.events = events if events is not None else EventDispatcher()
        self.policies = policies or PolicySet()
        self.prefix = prefix
        self.cancel_words = tuple(w.lower() for w in cancel_words)
        self.interactive_timeout = interactive_timeout
        self.respond_to_unknown = respond_to_unknown
        self.destinations = DestinationRegistry()
        self._sleep = sleep
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._workers: Dict[WorkerKey, DestinationWorker] = {}
        self._pending: Dict[WorkerKey, InteractiveCommand] = {}
        self._last_activity: Dict[str, float] = {}
        self._live: Dict[str, AbstractCommand] = {}
        self._strategies: Dict[str, Tuple[Strategy, asyncio.Task]] = {}
        self._outcomes: asyncio.Queue = asyncio.Queue()
        self._outcome_task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def live_commands(self) -> Tuple[AbstractCommand, ...]:
        return tuple(self._live.values())

    @property
    def running(self) -> bool:
        return self._outcome_task is not None and not self._outcome_task.done()

    def pending_command(
        self, destination: UserDestination
    ) -> Optional[InteractiveCommand]:
        return self._pending.get(destination.key)

    async def start(self) -> None:
        """Start the outcome and expiry loops and announce readiness."""
        if self.running:
            return
        self._outcome_task = asyncio.create_task(
            self._consume_outcomes(), name="strategy-outcomes"
        )
        self._sweep_task = asyncio.create_task(
            self._sweep_expired(), name="pending-expiry"
        )
        logger.info("orchestrator_started", commands=len(self.registry))
        self.events.publish(names.CHATBOT_READY, commands=len(self.registry))

    async def stop(self) -> None:
        """Abandon live commands and stop every task."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

        for command in list(self._live.values()):
            self.abandon(command, "shutting down")

        for worker in list(self._workers.values()):
            await worker.stop()
        self._workers.clear()

        tasks = [task for _, task in self._strategies.values()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._strategies.clear()

        if self._outcome_task is not None:
            self._outcome_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._outcome_task
            self._outcome_task = None

        logger.info("orchestrator_stopped")
        self.events.publish(names.CHATBOT_STOPPED)

    async def drain(self) -> None:
        """Wait until queued messages, strategies and outcomes are settled."""
        while True:
            for worker in list(self._workers.values()):
                await worker.join()
            tasks = [t for _, t in self._strategies.values() if not t.done()]
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)
            if self.running:
                await self._outcomes.join()
            busy = [t for _, t in self._strategies.values() if not t.done()]
            if all(w.idle for w in self._workers.values()) and not busy:
                return

    async def handle_message(self, message: Message) -> None:
        """Accept one inbound message from the transport.

        Self-authored, bot and empty messages are dropped. Everything else is
        queued on the worker of its (user, channel) destination. A worker
        lives until its destination has nothing queued or live.
        """
        if not message.user_id or not (message.text or "").strip():
            return
        if self.bot_user.is_self(message.user_id, message.bot_id or ""):
            logger.debug("self_message_ignored", channel_id=message.channel_id)
            return
        if message.is_bot_message:
            logger.debug("bot_message_ignored", bot_id=message.bot_id)
            return

        key = (message.user_id, message.channel_id)
        worker = self._workers.get(key)
        if worker is None:
            worker = DestinationWorker(
                key, self._process_message, on_idle=self._release_destination
            )
            self._workers[key] = worker
        worker.submit(message)

    async def _process_message(self, message: Message) -> None:
        try:
            user = await self.identity.resolve_user(message.user_id)
        except IdentityResolutionError as exc:
            logger.warning(
                "message_author_unresolved",
                user_id=message.user_id,
                channel_id=message.channel_id,
                error=str(exc),
            )
            return
        user_destination = self.destinations.get_or_create(
            user, Destination.for_channel(message.channel_id)
        )
        await self.process(user_destination, message)

    async def process(
        self, user_destination: UserDestination, message: Message
    ) -> None:
        """Handle one message of ``user_destination``.

        Must only be called from the destination's worker, which guarantees
        arrival order. Logs are correlated with the pending command the
        message feeds, with the command it starts, or else with the message.
        """
        parser = TextParser(message, bot_user=self.bot_user, prefix=self.prefix)
        pending = self._pending.get(user_destination.key)
        with bind_request_context(
            correlation_id=pending.correlation_id if pending is not None else None,
            user_id=user_destination.user.platform_id,
            channel_id=user_destination.destination.id,
        ):
            if pending is not None:
                if await self._continue_pending(pending, user_destination, parser):
                    return
                set_correlation_id(str(uuid.uuid4()))
            await self._dispatch_new(user_destination, parser)

    async def _continue_pending(
        self,
        pending: InteractiveCommand,
        user_destination: UserDestination,
        parser: TextParser,
    ) -> bool:
        """Feed ``parser`` to the pending command.

        Returns:
            False when the message should be matched as a new command
        """
        if parser.is_cancel(self.cancel_words):
            self.abandon(pending, "cancelled")
            await self._reply(user_destination, "Cancelled.")
            return True

        last_activity = self._last_activity.get(pending.correlation_id, self._clock())
        if self._clock() - last_activity > self.interactive_timeout:
            self.abandon(pending, "timed out")
            return False

        if parser.explicit and parser.selector in self.registry:
            self.abandon(pending, "superseded")
            return False

        result = pending.ingest_message(parser)
        if not result.matched:
            if result.error or parser.addressed:
                reason = f"{result.error.rstrip('.')}. " if result.error else ""
                await self._reply(
                    user_destination, f"{reason}{pending.next_prompt()}"
                )
            return True

        self._last_activity[pending.correlation_id] = self._clock()
        if pending.is_ready():
            self._pending.pop(user_destination.key, None)
            await self._execute(pending, user_destination)
        else:
            await self._reply(user_destination, pending.next_prompt())
        return True

    async def _dispatch_new(
        self, user_destination: UserDestination, parser: TextParser
    ) -> None:
        if not parser.addressed or not parser.tokens:
            return

        rejection = None
        for definition in self.registry.list_commands():
            try:
                command = definition.create(user_destination)
            except ConstructionError as exc:
                logger.error(
                    "command_construction_failed",
                    command=definition.name,
                    error=str(exc),
                )
                continue

            result = command.ingest_message(parser)
            if not result.matched:
                if (
                    result.error
                    and rejection is None
                    and command.matches_selector(parser.selector)
                ):
                    rejection = (definition, result.error)
                continue

            set_correlation_id(command.correlation_id)
            if command.is_ready():
                await self._execute(command, user_destination)
            else:
                self._pending[user_destination.key] = command
                self._live[command.correlation_id] = command
                self._last_activity[command.correlation_id] = self._clock()
                logger.info(
                    "command_pending",
                    command=command.command,
                    correlation_id=command.correlation_id,
                    missing=[arg.name for arg in command.missing_arguments()],
                )
                await self._reply(user_destination, command.next_prompt())
            return

        if rejection is not None:
            definition, error = rejection
            await self._reply(
                user_destination,
                f"{error.rstrip('.')}. Usage: `{definition.usage(self.prefix)}`",
            )
        elif self.respond_to_unknown:
            await self._reply(
                user_destination,
                f"I don't know how to `{parser.selector}`. "
                f"Try `{self.prefix}help` to see what I can do.",
            )

    async def _execute(
        self, command: AbstractCommand, user_destination: UserDestination
    ) -> None:
        self._live[command.correlation_id] = command
        log = logger.bind(
            command=command.command, correlation_id=command.correlation_id
        )
        log.info("command_ready", arguments=command.arguments)
        self._publish(names.COMMAND_READY, command)

        if command.definition is None:
            self._fail(command, "command has no handler")
            await self._notify_failure(command, user_destination)
            return

        ctx = CommandContext(
            transport=self.transport,
            destination=user_destination,
            bot_user=self.bot_user,
            policies=self.policies,
            correlation_id=command.correlation_id,
            registry=self.registry,
            metadata={"prefix": self.prefix},
        )
        try:
            strategy = await command.definition.handler(command, ctx)
        except Exception as exc:
            log.exception("command_handler_failed", error=str(exc))
            self._fail(command, str(exc))
            await self._notify_failure(command, user_destination)
            return

        if command.is_retired:
            return

        if strategy is None:
            command.mark_completed()
            log.info("command_completed")
            self._publish(names.COMMAND_COMPLETED, command)
            self._retire(command)
            return

        strategy.bind(
            events=self.events,
            sleep=self._sleep,
            correlation_id=command.correlation_id,
            policies=self.policies,
        )
        command.mark_executing()
        log.info(
            "command_executing", strategy=strategy.name, phases=strategy.phase_names
        )
        self._publish(names.COMMAND_EXECUTING, command, strategy=strategy.name)
        task = asyncio.create_task(
            self._run_strategy(command, strategy),
            name=f"strategy:{strategy.name}:{command.correlation_id}",
        )
        self._strategies[command.correlation_id] = (strategy, task)

    async def _run_strategy(self, command: AbstractCommand, strategy: Strategy) -> None:
        error: Optional[BaseException] = None
        destination = command.get_user_destination()
        with bind_request_context(
            correlation_id=command.correlation_id,
            user_id=destination.user.platform_id if destination else None,
        ):
            try:
                state = await strategy.run()
                error = strategy.error
            except Exception as exc:
                logger.exception(
                    "strategy_crashed", strategy=strategy.name, error=str(exc)
                )
                state = StrategyState.ABORTED
                error = exc
        await self._outcomes.put(StrategyOutcome(command, strategy, state, error))

    async def _consume_outcomes(self) -> None:
        while True:
            outcome = await self._outcomes.get()
            try:
                await self._apply_outcome(outcome)
            except Exception as exc:
                logger.exception("strategy_outcome_failed", error=str(exc))
            finally:
                self._outcomes.task_done()

    async def _apply_outcome(self, outcome: StrategyOutcome) -> None:
        command = outcome.command
        self._strategies.pop(command.correlation_id, None)
        log = logger.bind(
            command=command.command,
            correlation_id=command.correlation_id,
            strategy=outcome.strategy.name,
        )

        if command.is_retired:
            log.info("strategy_outcome_discarded", state=outcome.state.value)
            return

        destination = command.get_user_destination()
        if outcome.state == StrategyState.COMPLETED:
            command.mark_completed()
            log.info("command_completed")
            self._publish(names.COMMAND_COMPLETED, command)
        elif outcome.state == StrategyState.CANCELLED:
            self.abandon(command, "strategy cancelled")
            return
        else:
            self._fail(command, str(outcome.error or "strategy aborted"))
            if destination is not None:
                await self._notify_failure(command, destination)
        self._retire(command)

    def abandon(self, command: AbstractCommand, reason: str = "abandoned") -> None:
        """Abandon ``command``. A running strategy is cancelled: its in-flight
        phase may finish but the result is discarded."""
        if command.is_retired:
            return
        entry = self._strategies.get(command.correlation_id)
        if entry is not None:
            entry[0].cancel()
        command.abandon(reason)
        logger.info(
            "command_abandoned",
            command=command.command,
            correlation_id=command.correlation_id,
            reason=reason,
        )
        self._publish(names.COMMAND_ABANDONED, command, reason=reason)
        self._retire(command)

    def _fail(self, command: AbstractCommand, error: str) -> None:
        command.mark_failed(error)
        logger.warning(
            "command_failed",
            command=command.command,
            correlation_id=command.correlation_id,
            error=error,
        )
        self._publish(names.COMMAND_FAILED, command, error=error)
        self._retire(command)

    def _retire(self, command: AbstractCommand) -> None:
        self._live.pop(command.correlation_id, None)
        self._last_activity.pop(command.correlation_id, None)
        destination = command.get_user_destination()
        if destination is None:
            return
        if self._pending.get(destination.key) is command:
            del self._pending[destination.key]
        worker = self._workers.get(destination.key)
        if worker is not None and not worker.idle:
            return
        if self._release_destination(destination.key) and worker is not None:
            worker.close()

    def _release_destination(self, key: WorkerKey) -> bool:
        """Drop the worker and registry entry of ``key`` unless a pending or
        live command still refers to it.

        Returns:
            True when the destination was released
        """
        if key in self._pending:
            return False
        for command in self._live.values():
            destination = command.get_user_destination()
            if destination is not None and destination.key == key:
                return False
        self._workers.pop(key, None)
        self.destinations.remove(key)
        return True

    def expire_pending(self) -> int:
        """Abandon pending interactive commands silent for longer than the
        interactive timeout.

        Destinations with a message being processed are skipped; that
        message settles the timeout itself.

        Returns:
            Number of commands abandoned
        """
        now = self._clock()
        expired = []
        for key, command in list(self._pending.items()):
            worker = self._workers.get(key)
            if worker is not None and not worker.idle:
                continue
            last_activity = self._last_activity.get(command.correlation_id, now)
            if now - last_activity > self.interactive_timeout:
                expired.append(command)
        for command in expired:
            self.abandon(command, "timed out")
        return len(expired)

    async def _sweep_expired(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.expire_pending()
            except Exception as exc:
                logger.exception("pending_expiry_failed", error=str(exc))

    async def _notify_failure(
        self, command: AbstractCommand, destination: UserDestination
    ) -> None:
        await self._reply(
            destination,
            f"Sorry, I couldn't complete `{command.command}`: {command.error}",
        )

    async def _reply(self, destination: UserDestination, text: Optional[str]) -> None:
        if not text:
            return
        try:
            result = await self.transport.send_message(destination.destination.id, text)
        except Exception as exc:
            logger.exception(
                "reply_failed", channel_id=destination.destination.id, error=str(exc)
            )
            return
        if not result.is_success:
            logger.warning(
                "reply_failed",
                channel_id=destination.destination.id,
                error=result.message,
                error_code=result.error_code,
            )

    def _publish(
        self, event_type: str, command: AbstractCommand, **metadata: Any
    ) -> None:
        destination = command.get_user_destination()
        self.events.publish(
            event_type,
            correlation_id=command.correlation_id,
            user_id=destination.user.platform_id if destination else "",
            command=command.command,
            **metadata,
        )
