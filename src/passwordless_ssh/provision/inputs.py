"""Operator input collection and validation."""

from __future__ import annotations

from ..errors import ValidationError
from ..interaction import InputType, InteractionRequest, UserInteractionHandler
from ..utils.logging import get_logger
from .models import ALIAS_PATTERN, Alias, AliasValidation, CollectedInput, Target

logger = get_logger(__name__)

ALIAS_REQUIRED = "Alias is required."
ALIAS_CHARSET = "Use only letters, numbers, dots, hyphens, and underscores."


def validate_alias(raw: str) -> AliasValidation:
    """Check a candidate alias without side effects.

    Spaces are removed before checking; whatever remains must be non-empty
    and drawn from ``[A-Za-z0-9._-]``.
    """
    candidate = raw.replace(" ", "")
    if not candidate:
        return AliasValidation(ok=False, reason=ALIAS_REQUIRED)
    if not ALIAS_PATTERN.fullmatch(candidate):
        return AliasValidation(ok=False, reason=ALIAS_CHARSET)
    return AliasValidation(ok=True, alias=Alias(name=candidate))


class InputCollector:
    """Asks for the target account and, optionally, a connection alias."""

    def __init__(
        self,
        interaction_handler: UserInteractionHandler,
        *,
        with_alias: bool = False,
        port: int = 22,
        max_alias_attempts: int = 5,
    ) -> None:
        if max_alias_attempts < 1:
            raise ValueError("max_alias_attempts must be at least 1")
        self.interaction = interaction_handler
        self.with_alias = with_alias
        self.port = port
        self.max_alias_attempts = max_alias_attempts

    def collect(self) -> CollectedInput:
        remote_user = self._required("Remote user", "User is required.")
        remote_host = self._required("Host (IP or domain)", "Host is required.")
        target = Target(remote_user=remote_user, remote_host=remote_host, port=self.port)

        alias = self.collect_alias() if self.with_alias else None

        if alias:
            self.interaction.notify(f"Target: {target.address}  →  alias: {alias.name}")
        else:
            self.interaction.notify(f"Target: {target.address}")
        return CollectedInput(target=target, alias=alias)

    def collect_alias(self) -> Alias:
        for attempt in range(1, self.max_alias_attempts + 1):
            response = self.interaction.ask(
                InteractionRequest(
                    question="Alias for this connection (e.g. myserver, vps-prod)",
                    input_type=InputType.TEXT,
                )
            )
            if response.cancelled:
                raise ValidationError("Input cancelled.")
            result = validate_alias(response.value)
            if result.ok:
                assert result.alias is not None
                return result.alias
            logger.debug("Alias attempt %d rejected: %r", attempt, response.value)
            self.interaction.notify(result.reason or ALIAS_CHARSET, "warning")

        raise ValidationError(
            f"No valid alias after {self.max_alias_attempts} attempts.",
            remediation=ALIAS_CHARSET,
        )

    def _required(self, question: str, missing_message: str) -> str:
        response = self.interaction.ask(
            InteractionRequest(question=question, input_type=InputType.TEXT)
        )
        if response.cancelled:
            raise ValidationError("Input cancelled.")
        value = response.value.strip()
        if not value:
            raise ValidationError(missing_message)
        return value
