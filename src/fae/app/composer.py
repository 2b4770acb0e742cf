"""Turns resolved interpreter/shell/output settings into a concrete command."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from fae.domain.languages import InterpreterTemplate
from fae.domain.manifest import OutputPolicy
from fae.domain.shells import Quoting, ShellSpec

TIME_TOKENS = ("@fae.time", "@time")
TIMESTAMP_FORMAT = "%Y-%m-%d@%Hh%Mm%Ss"
OVERWRITE = ">"
APPEND = ">>"


@dataclass(frozen=True)
class ResolvedCommand:
    """Shell invocation ready for the dispatcher."""

    shell: ShellSpec
    tokens: Tuple[str, ...]

    @property
    def command_line(self) -> str:
        return " ".join(self.tokens)

    @property
    def executable(self) -> str:
        return self.shell.executable

    @property
    def argv(self) -> List[str]:
        return self.shell.argv(self.command_line)

    def popen_args(self) -> Union[List[str], str]:
        # cmd.exe parses its own command line, so it receives one string.
        if self.shell.quoting is Quoting.CMD:
            return " ".join([self.shell.executable, *self.shell.prefix, self.command_line])
        return self.argv


def stamp_destination(destination: str, now: datetime) -> str:
    stamp = now.strftime(TIMESTAMP_FORMAT)
    for token in TIME_TOKENS:
        destination = destination.replace(token, stamp)
    return destination


class CommandComposer:
    def __init__(self, root: Path, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._root = root
        self._clock = clock

    def compose(
        self,
        interpreter: InterpreterTemplate,
        entry: str,
        shell: ShellSpec,
        output: Optional[OutputPolicy] = None,
        extra_args: Sequence[str] = (),
    ) -> ResolvedCommand:
        entry_path = str(self._root / Path(entry))
        executable, *arguments, quoted_entry = interpreter.render(shell.quote(entry_path))
        tokens = [self._word(shell, executable), *(self._word(shell, arg) for arg in arguments), quoted_entry]
        tokens.extend(shell.quote(arg) for arg in extra_args)
        if output is not None:
            tokens.extend(self.redirection(shell, output))
        return ResolvedCommand(shell=shell, tokens=tuple(tokens))

    def redirection(self, shell: ShellSpec, output: OutputPolicy) -> List[str]:
        destination = self._root / Path(stamp_destination(output.destination, self._clock()))
        operator = APPEND if output.append else OVERWRITE
        return [operator, shell.quote(str(destination))]

    def compose_line(self, shell: ShellSpec, tokens: Sequence[str]) -> ResolvedCommand:
        """Wrap already-formed shell words (install commands, scripts)."""
        if not tokens:
            raise ValueError("Cannot compose an empty command")
        return ResolvedCommand(shell=shell, tokens=tuple(tokens))

    @staticmethod
    def _word(shell: ShellSpec, value: str) -> str:
        if not value or any(char.isspace() for char in value):
            return shell.quote(value)
        return value


__all__ = [
    "APPEND",
    "CommandComposer",
    "OVERWRITE",
    "ResolvedCommand",
    "TIMESTAMP_FORMAT",
    "stamp_destination",
]
