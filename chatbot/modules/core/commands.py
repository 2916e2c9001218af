"""Core commands.

Usage:
    !ping
    !help [command]
    !tell @someone the build is green
    !whoami
"""

from typing import List, Optional

from chatbot.infrastructure.commands import (
    AbstractCommand,
    Argument,
    ArgumentType,
    CommandContext,
    CommandDefinition,
    CommandRegistry,
)
from chatbot.infrastructure.logging import get_module_logger
from chatbot.integrations.slack.strategies import SendChannelStrategy
from chatbot.modules.core.strategies import TellStrategy

logger = get_module_logger()

registry = CommandRegistry("core")


# ============================================================
# HELPERS
# ============================================================


def format_command_list(definitions: List[CommandDefinition], prefix: str) -> str:
    if not definitions:
        return "No commands are registered."
    lines = ["*Available commands:*"]
    for definition in definitions:
        line = f"• `{definition.usage(prefix)}`"
        if definition.description:
            line += f": {definition.description}"
        lines.append(line)
    lines.append(f"Use `{prefix}help <command>` for details.")
    return "\n".join(lines)


def format_command_help(definition: CommandDefinition, prefix: str) -> str:
    """Usage, description, arguments, aliases and examples of one command."""
    lines = [f"*Usage:* `{definition.usage(prefix)}`"]
    if definition.description:
        lines.append(definition.description)
    described = [arg for arg in definition.args if arg.description]
    if described:
        lines.append("*Arguments:*")
        lines.extend(f"• `{arg.key}`: {arg.description}" for arg in described)
    if definition.aliases:
        aliases = ", ".join(f"`{prefix}{alias}`" for alias in definition.aliases)
        lines.append(f"*Aliases:* {aliases}")
    if definition.examples:
        lines.append("*Examples:*")
        lines.extend(f"• `{prefix}{example}`" for example in definition.examples)
    return "\n".join(lines)


# ============================================================
# COMMANDS
# ============================================================


@registry.command(name="ping", description="Check that the bot is alive")
async def ping(command: AbstractCommand, ctx: CommandContext):
    return SendChannelStrategy(ctx.transport, ctx.destination, ctx.channel_id, "pong")


@registry.command(
    name="help",
    description="List commands or show how to use one",
    args=[
        Argument(
            "command",
            required=False,
            description="the command to describe",
        )
    ],
    examples=["help", "help tell"],
)
async def help_command(command: AbstractCommand, ctx: CommandContext) -> None:
    prefix = ctx.metadata.get("prefix", "")
    commands = ctx.registry if ctx.registry is not None else registry
    name: Optional[str] = command.arguments.get("command")

    if not name:
        await ctx.respond(format_command_list(commands.list_commands(), prefix))
        return None

    definition = commands.get_command(name.lstrip(prefix) if prefix else name)
    if definition is None:
        await ctx.respond(f"I don't know `{name}`. Try `{prefix}help`.")
        return None
    await ctx.respond(format_command_help(definition, prefix))
    return None


@registry.command(
    name="tell",
    description="Send a direct message to someone on your behalf",
    args=[
        Argument("user", type=ArgumentType.USER, description="who to tell"),
        Argument("message", greedy=True, description="what to tell them"),
    ],
    aliases=["dm"],
    examples=["tell @someone the deploy is done"],
)
async def tell(command: AbstractCommand, ctx: CommandContext) -> TellStrategy:
    """Relay the message by DM, then confirm in the originating conversation."""
    target = command.arguments["user"]
    message = command.arguments["message"]
    logger.info(
        "tell_requested",
        correlation_id=ctx.correlation_id,
        requester=ctx.user_id,
        target=target,
    )
    return TellStrategy(
        ctx.transport,
        ctx.destination,
        user_id=target,
        text=f"<@{ctx.user_id}> asked me to tell you: {message}",
        reply_channel_id=ctx.channel_id,
        confirmation=f"Done, I told <@{target}>.",
    )


@registry.command(name="whoami", description="Show who the bot thinks you are")
async def whoami(command: AbstractCommand, ctx: CommandContext) -> None:
    user = ctx.destination.user
    lines = [f"You are *{user.name}* (<@{user.platform_id}>)."]
    if user.real_name and user.real_name != user.name:
        lines.append(f"Real name: {user.real_name}")
    if user.email:
        lines.append(f"Email: {user.email}")
    if user.team_id:
        lines.append(f"Team: {user.team_id}")
    await ctx.respond("\n".join(lines))
