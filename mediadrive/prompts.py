# mediadrive/prompts.py - Swappable sources of interactive answers
"""
Every interactive prompt site reads its answer from a PromptSource.

- ConsolePromptSource: real terminal (input()); EOF means cancel
- QueuedPromptSource: pre-seeded answers for tests and automation; when the
  queue runs dry it returns a fallback answer (default: cancel/abort)
- NonInteractivePromptSource: any prompt fails immediately with
  NonInteractiveInputError instead of blocking

Components check ``prompts.non_interactive`` to fail fast where a prompt
would otherwise be needed (e.g. duplicate confirmation).
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional

from mediadrive.constants import UserInputs
from mediadrive.errors import NonInteractiveInputError
from mediadrive.logs import get_logger

_prompt_logger = get_logger("prompts")


class PromptSource(ABC):
    """Line-based prompt/response collaborator."""

    non_interactive = False

    @abstractmethod
    def ask(self, prompt: str) -> str:
        """Return one answer line (stripped) for the prompt."""

    def ask_yes_no(self, prompt: str, default: bool = False) -> bool:
        """
        Ask a yes/no question.

        Blank answers return ``default``; anything other than y/yes is "no".
        """
        answer = self.ask(prompt).strip().upper()
        if not answer:
            return default
        return answer in UserInputs.YES_WORDS


class ConsolePromptSource(PromptSource):
    """Reads answers from the terminal."""

    def __init__(self, input_func=input):
        self._input = input_func

    def ask(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            _prompt_logger.info("EOF on stdin, treating as cancel")
            return UserInputs.CANCEL


class QueuedPromptSource(PromptSource):
    """
    Serves pre-seeded answers in order.

    Args:
        answers: Answers to hand out, one per prompt
        fallback: Answer returned once the queue is exhausted (default: cancel)
        echo: Optional callable receiving "prompt + answer" for transcripts
        non_interactive: Fail fast instead of confirming duplicates, and
            raise NonInteractiveInputError instead of using the fallback
    """

    def __init__(
        self,
        answers: Iterable[str],
        fallback: str = UserInputs.CANCEL,
        echo=None,
        non_interactive: bool = False,
    ):
        self._answers = deque(str(a) for a in answers)
        self.fallback = fallback
        self.echo = echo
        self.non_interactive = non_interactive
        self.asked = []

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def ask(self, prompt: str) -> str:
        self.asked.append(prompt)
        if self._answers:
            answer = self._answers.popleft().strip()
        elif self.non_interactive:
            raise NonInteractiveInputError(prompt)
        else:
            _prompt_logger.warning(f"Answer queue exhausted at prompt '{prompt.strip()}', using '{self.fallback}'")
            answer = self.fallback
        if self.echo is not None:
            self.echo(f"{prompt}{answer}")
        return answer


class NonInteractivePromptSource(PromptSource):
    """Turns every would-be prompt into an immediate failure."""

    non_interactive = True

    def ask(self, prompt: str) -> str:
        _prompt_logger.error(f"Prompt reached in non-interactive mode: {prompt.strip()}")
        raise NonInteractiveInputError(prompt)


def parse_answer_list(raw: Optional[str]) -> list:
    """Split a ';'-separated answer script (e.g. from --answers) into answers."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(";")]
