"""Message analysis for command recognition.

A TextParser wraps one inbound Message. It normalizes the text once, then
answers ``analyze_for(command)`` for any number of candidate commands
without retaining anything between calls.
"""

import re
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
)

from chatbot.infrastructure.commands.exceptions import CommandParseError
from chatbot.infrastructure.commands.models import (
    Argument,
    ArgumentType,
    MatchResult,
    ParseResult,
)
from chatbot.infrastructure.identity.models import BotUser
from chatbot.infrastructure.logging import get_module_logger
from chatbot.infrastructure.platforms.models import Message

if TYPE_CHECKING:
    from chatbot.infrastructure.commands.command import AbstractCommand

logger = get_module_logger()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAILTO_RE = re.compile(r"^<mailto:([^|>]+)(?:\|[^>]*)?>$")
USER_MENTION_RE = re.compile(r"^<@([UW][A-Z0-9]+)(?:\|[^>]*)?>$")
USER_ID_RE = re.compile(r"^[UW][A-Z0-9]{2,}$")
CHANNEL_MENTION_RE = re.compile(r"^<#([CG][A-Z0-9]+)(?:\|[^>]*)?>$")
CHANNEL_ID_RE = re.compile(r"^[CG][A-Z0-9]{2,}$")
WORD_RE = re.compile(r"\S+")

QUOTES = ('"', "'")

TRUE_WORDS = ("true", "1", "yes", "on", "y")
FALSE_WORDS = ("false", "0", "no", "off", "n")


def unescape(text: str) -> str:
    """Undo Slack's control character escaping."""
    return text.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")


class Token(NamedTuple):
    """One token of a message body with its span in that body.

    ``unclosed`` holds the quote character of a word that opens a quote
    nobody closes (``'twas``); such a word is kept literally.
    """

    text: str
    start: int
    end: int
    unclosed: Optional[str] = None


class TextParser:
    """Analyze one message against candidate commands.

    At construction the text is normalized: a leading mention of the bot and
    the command prefix are stripped and the remainder is tokenized (quoted
    strings stay together, ``--key=value`` flags are recognized).

    Attributes:
        message: The wrapped Message
        body: Normalized text with mention and prefix removed
        tokens: Tokens of ``body``
        mentioned: The message started with a mention of the bot
        prefixed: The message started with the command prefix
        addressed: The message was meant for the bot (mention, prefix or a
            direct conversation)

    Example:
        parser = TextParser(message, bot_user=bot, prefix="!")
        result = parser.analyze_for(command)
        if result.matched:
            ...
    """

    def __init__(
        self, message: Message, bot_user: Optional[BotUser] = None, prefix: str = "!"
    ):
        self.message = message
        self.bot_user = bot_user
        self.prefix = prefix
        self.mentioned = False
        self.prefixed = False

        self.body = self._normalize(unescape(message.text or ""))
        self._spans = self._tokenize(self.body)
        self.tokens = [token.text for token in self._spans]
        first_word = WORD_RE.search(self.body)
        self._selector = first_word.group() if first_word else ""
        self._arguments_start = first_word.end() if first_word else 0

    @property
    def explicit(self) -> bool:
        """The bot was named explicitly (mention or prefix)."""
        return self.mentioned or self.prefixed

    @property
    def addressed(self) -> bool:
        return self.explicit or self.message.is_direct

    @property
    def selector(self) -> str:
        """First word as typed, lower-cased; the command name when one is
        present. Quotes play no part in it."""
        return self._selector.lower()

    def is_cancel(self, words: Iterable[str]) -> bool:
        normalized = self.body.strip().lower().rstrip(".!")
        return bool(normalized) and normalized in {w.lower() for w in words}

    def analyze_for(self, command: "AbstractCommand") -> ParseResult:
        """Determine what this message contributes to ``command``.

        The first fragment of a command must name it (selector or alias);
        the rest of its tokens are arguments. Later fragments are answers:
        all their tokens bind to the arguments still missing. A greedy
        argument takes the remaining text exactly as typed.

        This reads the command but never changes it.

        Args:
            command: Candidate command

        Returns:
            ParseResult with MATCH, PARTIAL or NO_MATCH
        """
        first = not command.parsed
        if first:
            if not self._selector or not command.matches_selector(self._selector):
                return ParseResult.no_match()
            tokens = self._tokenize(self.body, self._arguments_start)
        else:
            tokens = list(self._spans)
            if not tokens:
                return ParseResult.no_match()

        try:
            bound = self._bind(command, tokens, include_optional=first)
        except CommandParseError as e:
            logger.debug(
                "command_parse_error",
                command=command.command,
                text=self.body,
                error=str(e),
            )
            return ParseResult.no_match(str(e))

        if not first and not bound:
            return ParseResult.no_match()

        provided = set(command.bound_arguments) | set(bound)
        still_missing = [
            arg for arg in command.args if arg.required and arg.key not in provided
        ]
        status = MatchResult.PARTIAL if still_missing else MatchResult.MATCH
        return ParseResult(status=status, arguments=bound)

    def _bind(
        self,
        command: "AbstractCommand",
        tokens: List[Token],
        include_optional: bool,
    ) -> Dict[str, Any]:
        positional, flags = self._split_flags(tokens)
        bound: Dict[str, Any] = {}

        targets = [
            arg
            for arg in command.args
            if not arg.flag
            and arg.key not in command.bound_arguments
            and (arg.required or include_optional)
        ]
        index = 0
        for arg in targets:
            if index >= len(positional):
                break
            token = positional[index]
            if arg.greedy:
                end = positional[-1].end
                if index == len(positional) - 1 and not token.unclosed:
                    value = token.text
                else:
                    value = self.body[token.start : end]
                # Flag-like words inside the text belong to it.
                flags = [f for f in flags if not token.start < f[0].start < end]
                index = len(positional)
            else:
                self._check_closed(token)
                value = token.text
                index += 1
            bound[arg.key] = self._coerce(value, arg)

        if index < len(positional):
            extra = positional[index:]
            for token in extra:
                self._check_closed(token)
            raise CommandParseError(
                f"Extra arguments: {' '.join(t.text for t in extra)}"
            )

        known_flags = {arg.key: arg for arg in command.args if arg.flag}
        for _, key, value in flags:
            arg = known_flags.get(key)
            if arg is None:
                raise CommandParseError(f"Unknown flag: --{key}")
            bound[arg.key] = self._coerce(value, arg)

        return bound

    def _normalize(self, text: str) -> str:
        body = text.strip()
        if self.bot_user is not None:
            mention = re.match(
                rf"^<@{re.escape(self.bot_user.platform_id)}(?:\|[^>]*)?>[:,]?\s*",
                body,
            )
            if mention:
                self.mentioned = True
                body = body[mention.end() :]
        if self.prefix and body.startswith(self.prefix):
            self.prefixed = True
            body = body[len(self.prefix) :].lstrip()
        return body

    @staticmethod
    def _tokenize(body: str, start: int = 0) -> List[Token]:
        """Split ``body`` from ``start`` on whitespace, keeping quoted strings
        together. A word opening a quote that is never closed stays a
        literal word marked ``unclosed``."""
        words = list(WORD_RE.finditer(body, start))
        tokens: List[Token] = []
        i = 0
        while i < len(words):
            word = words[i]
            text = word.group()
            quote_char = text[0]
            if quote_char not in QUOTES:
                tokens.append(Token(text, word.start(), word.end()))
            elif len(text) > 1 and text.endswith(quote_char):
                tokens.append(Token(text[1:-1], word.start(), word.end()))
            else:
                close = next(
                    (
                        j
                        for j in range(i + 1, len(words))
                        if words[j].group().endswith(quote_char)
                    ),
                    None,
                )
                if close is None:
                    tokens.append(
                        Token(text, word.start(), word.end(), unclosed=quote_char)
                    )
                else:
                    begin, end = word.start(), words[close].end()
                    tokens.append(Token(body[begin + 1 : end - 1], begin, end))
                    i = close
            i += 1
        return tokens

    @staticmethod
    def _check_closed(token: Token) -> None:
        """Raises CommandParseError for a word whose quote is never closed."""
        if token.unclosed:
            raise CommandParseError(f"Unclosed quote: {token.unclosed}")

    @staticmethod
    def _split_flags(
        tokens: List[Token],
    ) -> Tuple[List[Token], List[Tuple[Token, str, str]]]:
        positional: List[Token] = []
        flags: List[Tuple[Token, str, str]] = []
        for token in tokens:
            if token.text.startswith("--") and len(token.text) > 2:
                key, sep, value = token.text[2:].partition("=")
                flags.append((token, key, value if sep else "true"))
            else:
                positional.append(token)
        return positional, flags

    @staticmethod
    def _coerce(value: str, arg: Argument) -> Any:
        """Coerce a token to the argument's type.

        Raises:
            CommandParseError: If coercion or choice validation fails
        """
        name = arg.key
        try:
            if arg.type == ArgumentType.INTEGER:
                result: Any = int(value)
            elif arg.type == ArgumentType.FLOAT:
                result = float(value)
            elif arg.type == ArgumentType.BOOLEAN:
                lowered = value.lower()
                if lowered in TRUE_WORDS:
                    result = True
                elif lowered in FALSE_WORDS:
                    result = False
                else:
                    raise CommandParseError(
                        f"Invalid boolean for {name}: {value}. Use true/false."
                    )
            elif arg.type == ArgumentType.EMAIL:
                mailto = MAILTO_RE.match(value)
                result = mailto.group(1) if mailto else value
                if not EMAIL_RE.match(result):
                    raise CommandParseError(f"Invalid email for {name}: {value}")
            elif arg.type == ArgumentType.USER:
                mention = USER_MENTION_RE.match(value)
                if mention:
                    result = mention.group(1)
                elif USER_ID_RE.match(value):
                    result = value
                else:
                    raise CommandParseError(
                        f"Invalid user for {name}: {value}. Mention them like @someone."
                    )
            elif arg.type == ArgumentType.CHANNEL:
                mention = CHANNEL_MENTION_RE.match(value)
                if mention:
                    result = mention.group(1)
                elif CHANNEL_ID_RE.match(value):
                    result = value
                else:
                    raise CommandParseError(f"Invalid channel for {name}: {value}")
            else:
                result = value
        except (ValueError, TypeError) as e:
            raise CommandParseError(
                f"Cannot convert {name}={value} to {arg.type.value}: {str(e)}"
            ) from e

        if arg.choices and result not in arg.choices:
            choices_str = ", ".join(str(c) for c in arg.choices)
            raise CommandParseError(
                f"Invalid value for {name}: {result}. Choose from: {choices_str}"
            )
        return result
