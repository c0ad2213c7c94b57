"""Operator interaction handlers."""

from __future__ import annotations

import getpass
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.text import Text

logger = logging.getLogger(__name__)


class InputType(str, Enum):
    """Type of operator input expected."""
    TEXT = "text"           # 自由文本输入
    CONFIRM = "confirm"     # 是/否确认
    SECRET = "secret"       # 敏感信息（密码等）


@dataclass
class InteractionRequest:
    """A single question put to the operator."""

    question: str
    input_type: InputType = InputType.TEXT
    default: Optional[str] = None           # CONFIRM: "y" or "n"

    def format_prompt(self) -> str:
        """Format the request as a one-line prompt."""
        if self.input_type == InputType.CONFIRM:
            hint = "[Y/n]" if (self.default or "n").lower().startswith("y") else "[y/N]"
            return f"{self.question} {hint} "
        if self.input_type == InputType.TEXT and self.default:
            return f"{self.question} [{self.default}]: "
        return f"{self.question}: "


@dataclass
class InteractionResponse:
    """Operator's answer to an interaction request."""

    value: str
    cancelled: bool = False

    @property
    def confirmed(self) -> bool:
        return self.value.strip().lower() in ("y", "yes")

    @classmethod
    def cancelled_response(cls) -> "InteractionResponse":
        return cls(value="", cancelled=True)


class UserInteractionHandler(ABC):
    """Abstract base class for talking to the operator."""

    @abstractmethod
    def ask(self, request: InteractionRequest) -> InteractionResponse:
        """
        Present a request to the operator and get their response.

        Args:
            request: The interaction request to present

        Returns:
            The operator's response
        """

    @abstractmethod
    def notify(self, message: str, level: str = "info") -> None:
        """
        Show a message to the operator (no response needed).

        Args:
            message: The message to display
            level: Severity level (info, warning, error, success)
        """


class CLIInteractionHandler(UserInteractionHandler):
    """Command-line interaction handler built on rich prompts."""

    def __init__(
        self,
        console: Optional[Console] = None,
        secret_func: Callable[[str], str] = getpass.getpass,
    ) -> None:
        self.console = console or Console()
        self._secret = secret_func

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        try:
            if request.input_type == InputType.CONFIRM:
                return self._handle_confirm(request)
            if request.input_type == InputType.SECRET:
                return InteractionResponse(value=self._secret(request.format_prompt()))
            return self._handle_text(request)
        except KeyboardInterrupt:
            self.console.print("\n   (cancelled)")
            return InteractionResponse.cancelled_response()
        except EOFError:
            return InteractionResponse.cancelled_response()

    def _handle_confirm(self, request: InteractionRequest) -> InteractionResponse:
        default = (request.default or "n").lower().startswith("y")
        # Confirm 自带重试：只接受 y / n
        confirmed = Confirm.ask(Text(request.question), default=default, console=self.console)
        return InteractionResponse(value="yes" if confirmed else "no")

    def _handle_text(self, request: InteractionRequest) -> InteractionResponse:
        if request.default:
            user_input = Prompt.ask(
                Text(request.question), default=request.default, console=self.console
            )
        else:
            user_input = Prompt.ask(Text(request.question), console=self.console)
        return InteractionResponse(value=user_input.strip())

    def notify(self, message: str, level: str = "info") -> None:
        icons = {
            "info": "ℹ️",
            "warning": "⚠️",
            "error": "❌",
            "success": "✅",
        }
        icon = icons.get(level, "•")
        self.console.print(f"{icon} {message}", markup=False, emoji=False, highlight=False)


class CallbackInteractionHandler(UserInteractionHandler):
    """
    Interaction handler that delegates to callbacks.
    Useful when the workflow is embedded in another tool.
    """

    def __init__(
        self,
        ask_callback: Callable[[InteractionRequest], InteractionResponse],
        notify_callback: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        self.ask_callback = ask_callback
        self.notify_callback = notify_callback or (lambda msg, lvl: print(f"[{lvl}] {msg}"))

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        return self.ask_callback(request)

    def notify(self, message: str, level: str = "info") -> None:
        self.notify_callback(message, level)


class ScriptedInteractionHandler(UserInteractionHandler):
    """
    Replays a fixed list of answers, for tests and non-interactive runs.
    Once the answers run out every question is treated as cancelled.
    """

    def __init__(self, answers: Iterable[str] = ()) -> None:
        self._answers: List[str] = list(answers)
        self.questions: List[InteractionRequest] = []
        self.notifications: List[Tuple[str, str]] = []

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        self.questions.append(request)
        if not self._answers:
            logger.debug("No scripted answer left for: %s", request.question)
            return InteractionResponse.cancelled_response()
        value = self._answers.pop(0)
        if request.input_type == InputType.CONFIRM and not value and request.default:
            value = request.default
        return InteractionResponse(value=value)

    def notify(self, message: str, level: str = "info") -> None:
        self.notifications.append((level, message))
        logger.info("[%s] %s", level, message)

    @property
    def messages(self) -> List[str]:
        return [message for _, message in self.notifications]
