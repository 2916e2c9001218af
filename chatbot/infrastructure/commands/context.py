"""Command execution context handed to command handlers."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from chatbot.infrastructure.commands.destination import UserDestination
from chatbot.infrastructure.identity.models import BotUser
from chatbot.infrastructure.logging import get_module_logger
from chatbot.infrastructure.operations import OperationResult
from chatbot.infrastructure.platforms.transport import Transport

if TYPE_CHECKING:
    from chatbot.infrastructure.commands.registry import CommandRegistry
    from chatbot.infrastructure.strategies.policy import PolicySet, WaitPolicy

logger = get_module_logger()


@dataclass
class CommandContext:
    """Everything a handler needs to act on a command.

    Attributes:
        transport: Transport used to reach the platform
        destination: UserDestination the command was issued from
        bot_user: Identity of the bot
        policies: Wait policies for strategies the handler builds
        correlation_id: Correlation id of the command
        registry: Registry of all commands (for help)
        metadata: Free-form extras (e.g. the command prefix)

    Example:
        async def ping(command, ctx: CommandContext):
            return SendChannelStrategy(
                ctx.transport, ctx.destination, ctx.channel_id, "pong",
                policies=ctx.policies,
            )
    """

    transport: Transport
    destination: UserDestination
    bot_user: Optional[BotUser] = None
    policies: Optional["PolicySet"] = None
    correlation_id: Optional[str] = None
    registry: Optional["CommandRegistry"] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def channel_id(self) -> str:
        return self.destination.destination.id

    @property
    def user_id(self) -> str:
        return self.destination.user.platform_id

    async def respond(self, text: str, **options: Any) -> OperationResult:
        """Post ``text`` into the destination the command came from.

        Failures are logged and returned, never raised.
        """
        result = await self.transport.send_message(self.channel_id, text, **options)
        if not result.is_success:
            logger.warning(
                "command_response_failed",
                channel_id=self.channel_id,
                correlation_id=self.correlation_id,
                error=result.message,
                error_code=result.error_code,
            )
        return result

    def policy_for(self, phase: str) -> Optional["WaitPolicy"]:
        if self.policies is None:
            return None
        return self.policies.for_phase(phase)
