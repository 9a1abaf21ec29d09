"""Operator prompts for the credential views.

Views never call ``click`` directly; they ask questions through a
:class:`PromptGateway` carried by the context. The interactive implementation
wraps ``click.prompt``/``click.confirm`` and turns an aborted prompt (Ctrl-C,
Ctrl-D) into :class:`CancelledByOperatorError` so the view runner stops
cleanly.
"""

from collections.abc import Callable, Sequence
from typing import Protocol

import click

from build_credentials.exceptions import CancelledByOperatorError

# Returns an error message for invalid input, None when the answer is accepted.
Validator = Callable[[str], str | None]


def non_empty(label: str) -> Validator:
    """Validator rejecting blank answers."""

    def validate(value: str) -> str | None:
        return None if value.strip() else f"{label} can't be empty"

    return validate


class PromptGateway(Protocol):
    """Question/answer channel between the views and the operator."""

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        """Show a line of text to the operator."""
        ...

    def warn(self, message: str) -> None:
        """Show a warning line."""
        ...

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question.

        Raises:
            CancelledByOperatorError: If the operator aborts the prompt
        """
        ...

    def text(self, message: str, validate: Validator | None = None, hide_input: bool = False) -> str:
        """Ask for a free-text answer, re-asking until ``validate`` accepts it.

        Raises:
            CancelledByOperatorError: If the operator aborts the prompt
        """
        ...

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str:
        """Ask the operator to pick one of ``(value, label)`` choices; returns the value.

        Raises:
            CancelledByOperatorError: If the operator aborts the prompt
        """
        ...


class ClickPromptGateway:
    """Interactive prompts on the controlling terminal."""

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        click.echo(click.style(message, fg=fg, bold=bold) if (fg or bold) else message)

    def warn(self, message: str) -> None:
        click.echo(click.style(message, fg="yellow"))

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return click.confirm(message, default=default)
        except (click.Abort, EOFError, KeyboardInterrupt) as e:
            raise CancelledByOperatorError() from e

    def text(self, message: str, validate: Validator | None = None, hide_input: bool = False) -> str:
        def value_proc(value: str) -> str:
            error = validate(value) if validate else None
            if error:
                raise click.BadParameter(error)
            return value

        try:
            return click.prompt(message, hide_input=hide_input, value_proc=value_proc)
        except (click.Abort, EOFError, KeyboardInterrupt) as e:
            raise CancelledByOperatorError() from e

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str:
        click.echo(click.style(message, bold=True))
        for index, (_, label) in enumerate(choices, start=1):
            click.echo(f"  {index}. {label}")
        try:
            picked = click.prompt("Choice", type=click.IntRange(1, len(choices)), default=1)
        except (click.Abort, EOFError, KeyboardInterrupt) as e:
            raise CancelledByOperatorError() from e
        return choices[picked - 1][0]
