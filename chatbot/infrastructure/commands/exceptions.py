"""Command framework exceptions."""


class CommandError(Exception):
    """Base class for command lifecycle errors."""


class ConstructionError(CommandError):
    """A command was built without the context it requires."""


class InvalidStateTransition(CommandError):
    """A command or strategy was asked to make an illegal state change."""

    def __init__(self, subject: str, current, target):
        self.subject = subject
        self.current = current
        self.target = target
        super().__init__(
            f"{subject}: illegal transition {_label(current)} -> {_label(target)}"
        )


class CommandParseError(Exception):
    """Error during argument parsing or coercion."""


def _label(state) -> str:
    return getattr(state, "name", str(state))
