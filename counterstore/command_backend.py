from __future__ import annotations

import logging
import re
from typing import Callable

from .interfaces import BackendError, CommandResult, CounterBackend

logger = logging.getLogger(__name__)

# Host hook: runs one slash-command (without the slash) and returns its status message.
# Rejected commands raise.
CommandRunner = Callable[[str], str]

_SCORE_RE = re.compile(r"Score (-?\d+)\b")


def _bound(value: int | None) -> str:
    return "*" if value is None else str(int(value))


class CommandCounterBackend(CounterBackend):
    """
    Drives a host that only understands textual `scoreboard` commands.

    Tables are scoreboard objectives, entries are fake players.
    """

    def __init__(self, run_command: CommandRunner, *, debug_log_commands: bool = False) -> None:
        self._run_command = run_command
        self._debug_log_commands = debug_log_commands

    def _run(self, command: str) -> CommandResult:
        if self._debug_log_commands:
            logger.debug("SCOREBOARD COMMAND: %s", command)
        try:
            message = self._run_command(command)
        except Exception as e:  # host errors are untyped
            logger.warning("SCOREBOARD COMMAND failed: %s: %r", command, e)
            return CommandResult.failure(str(e))
        return CommandResult.success(message or "")

    def create_table(self, name: str) -> CommandResult:
        return self._run(f"scoreboard objectives add {name} dummy")

    def drop_table(self, name: str) -> CommandResult:
        return self._run(f"scoreboard objectives remove {name}")

    def set_counter(self, table: str, entry_name: str, value: int) -> CommandResult:
        return self._run(f'scoreboard players set "{entry_name}" {table} {int(value)}')

    def list_all_counters(self) -> str:
        result = self._run("scoreboard players list")
        if not result.ok:
            raise BackendError(result.message)
        return result.message

    def test_counter(
        self,
        table: str,
        entry_name: str,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> int | None:
        command = f'scoreboard players test "{entry_name}" "{table}" {_bound(minimum)} {_bound(maximum)}'
        if self._debug_log_commands:
            logger.debug("SCOREBOARD COMMAND: %s", command)
        try:
            message = self._run_command(command)
        except Exception as e:  # out of range / missing entry is reported by raising
            logger.debug("SCOREBOARD TEST miss: %s: %r", command, e)
            return None
        m = _SCORE_RE.search(message or "")
        return int(m.group(1)) if m else None
