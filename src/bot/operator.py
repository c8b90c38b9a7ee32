"""
Operator - the human in the loop

Implementations:
- ConsoleOperator: stdin/stdout prompts (advisory mode)
- AutoOperator: never pauses and confirms everything (automated mode)
"""

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import TextIO

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 60


class OperatorCommand(str, Enum):
    """What the operator wants the hand loop to do next"""

    CONTINUE = "continue"
    PAUSE = "pause"
    RESUME = "resume"
    QUIT = "quit"


class Operator(ABC):
    """Abstract human-in-the-loop interface"""

    @abstractmethod
    async def present(self, text: str) -> None:
        """Show advice or status text"""
        pass

    @abstractmethod
    async def relay(self, prompt: str) -> str:
        """Hand a prompt to the human and return the pasted reply"""
        pass

    @abstractmethod
    async def next_command(self, paused: bool) -> OperatorCommand:
        """
        Ask what to do next

        Args:
            paused: Loop is paused (only resume/quit make sense)
        """
        pass

    @abstractmethod
    async def confirm(self, message: str) -> bool:
        pass


# Menu key -> command (unpaused); executed/different/skip all keep monitoring
_ACTIVE_CHOICES = {
    "": OperatorCommand.CONTINUE,
    "e": OperatorCommand.CONTINUE,
    "d": OperatorCommand.CONTINUE,
    "s": OperatorCommand.CONTINUE,
    "p": OperatorCommand.PAUSE,
    "q": OperatorCommand.QUIT,
}
_PAUSED_CHOICES = {
    "r": OperatorCommand.RESUME,
    "q": OperatorCommand.QUIT,
}


class ConsoleOperator(Operator):
    """
    Console operator

    Blocking input() runs in a worker thread so the event loop stays free.
    """

    def __init__(self, input_fn: Callable[[str], str] = input, output: TextIO | None = None):
        """
        Args:
            input_fn: Line reader (injected in tests)
            output: Stream for advice text (default stdout)
        """
        self._input = input_fn
        self._output = output

    @property
    def output(self) -> TextIO:
        return self._output or sys.stdout

    async def _ask(self, prompt: str, on_eof: str = "q") -> str:
        try:
            line = await asyncio.to_thread(self._input, prompt)
        except EOFError:
            logger.info(f"Input closed, answering {on_eof!r}")
            return on_eof
        return line.strip()

    async def present(self, text: str) -> None:
        print(text, file=self.output, flush=True)

    async def relay(self, prompt: str) -> str:
        print(f"\n{SEPARATOR}", file=self.output)
        print("Paste this into the chat model:", file=self.output)
        print(SEPARATOR, file=self.output)
        print(prompt, file=self.output)
        print(SEPARATOR, file=self.output, flush=True)

        lines = []
        line = await self._ask("Paste the reply (finish with an empty line): ", on_eof="")
        while line:
            lines.append(line)
            line = await self._ask("", on_eof="")
        return "\n".join(lines)

    async def next_command(self, paused: bool) -> OperatorCommand:
        if paused:
            choices = _PAUSED_CHOICES
            prompt = "Advisor paused. [r]esume or [q]uit: "
        else:
            choices = _ACTIVE_CHOICES
            prompt = "[Enter/e] executed, [d]ifferent action, [s]kip, [p]ause, [q]uit: "

        while True:
            answer = (await self._ask(prompt)).lower()[:1]
            if answer in choices:
                command = choices[answer]
                logger.debug(f"Operator command: {command.value}")
                return command
            print(f"Unrecognized choice: {answer!r}", file=self.output, flush=True)

    async def confirm(self, message: str) -> bool:
        answer = await self._ask(f"{message} [y/N]: ")
        return answer.lower() in ("y", "yes")


class AutoOperator(Operator):
    """Operator for unattended runs: logs advice, never pauses"""

    async def present(self, text: str) -> None:
        logger.info(text)

    async def relay(self, prompt: str) -> str:
        raise RuntimeError("AutoOperator cannot relay prompts; use the api oracle")

    async def next_command(self, paused: bool) -> OperatorCommand:
        return OperatorCommand.RESUME if paused else OperatorCommand.CONTINUE

    async def confirm(self, message: str) -> bool:
        return True
