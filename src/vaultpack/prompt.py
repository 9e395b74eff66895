"""Line-oriented yes/no style prompt and terminal detection."""

import sys
from collections.abc import Callable, Sequence

import typer

ReadLine = Callable[[str], str]

Prompter = Callable[[str, Sequence[str], int, bool], str]


def _typer_read_line(message: str) -> str:
    return typer.prompt(message, default="", show_default=False, prompt_suffix="")


def ask(
    message: str,
    choices: Sequence[str],
    default_index: int = -1,
    case_insensitive: bool = True,
    *,
    read_line: ReadLine | None = None,
) -> str:
    """Ask until the user picks one of choices.

    Args:
        message: Question shown on each attempt, e.g. "Save it? [y/N] "
        choices: Accepted answers
        default_index: Index into choices returned on empty input; a
            negative value means empty input is just invalid
        case_insensitive: Compare answers lower-cased
        read_line: Line reader, defaults to typer.prompt on the terminal

    Returns:
        The selected choice (lower-cased when case_insensitive)
    """
    if read_line is None:
        read_line = _typer_read_line

    accepted = {c.lower() if case_insensitive else c for c in choices}
    while True:
        line = read_line(message).strip()
        if line == "" and default_index >= 0:
            return choices[default_index]
        if case_insensitive:
            line = line.lower()
        if line in accepted:
            return line
        typer.echo("invalid choice")


def is_interactive() -> bool:
    """Whether both stdin and stdout are attached to a terminal."""
    return sys.stdin.isatty() and sys.stdout.isatty()
