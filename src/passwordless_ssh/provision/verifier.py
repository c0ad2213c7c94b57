"""Post-install connectivity check."""

from __future__ import annotations

from typing import Callable, Optional

from ..errors import VerificationError
from ..interaction import UserInteractionHandler
from ..ssh import SSHConnectionError, SSHCredentials, SSHSession
from ..utils.logging import get_logger
from .models import KeyPair, Target

logger = get_logger(__name__)

SessionFactory = Callable[[SSHCredentials], SSHSession]

PROBE_COMMAND = "echo OK"
PROBE_EXPECTED = "OK"


class ConnectivityVerifier:
    """One key-only login attempt, never prompting and never retried."""

    def __init__(
        self,
        interaction_handler: UserInteractionHandler,
        *,
        connect_timeout: int = 10,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.interaction = interaction_handler
        self.connect_timeout = connect_timeout
        self._session_factory = session_factory or SSHSession

    def verify(self, target: Target, key_pair: KeyPair) -> None:
        self.interaction.notify("Testing passwordless connection...")
        credentials = SSHCredentials(
            host=target.remote_host,
            username=target.remote_user,
            port=target.port,
            auth_method="key",
            key_path=str(key_pair.private_path),
            timeout=self.connect_timeout,
        )
        remediation = f"Check that the key was added and try: ssh {target.address}"
        session = self._session_factory(credentials)
        try:
            session.connect()
            result = session.run(PROBE_COMMAND, timeout=self.connect_timeout)
        except SSHConnectionError as exc:
            if exc.auth_failed:
                raise VerificationError(
                    f"Connection test failed: {target.address} did not accept the key.",
                    reason=VerificationError.REJECTED,
                    remediation=remediation,
                ) from exc
            raise VerificationError(
                f"Connection test could not reach {target.address} ({exc}); "
                "the key may still have been installed.",
                reason=VerificationError.UNREACHABLE,
                remediation=remediation,
            ) from exc
        finally:
            session.close()

        if not result.ok or result.stdout != PROBE_EXPECTED:
            logger.debug("Probe returned %d: %r / %r", result.exit_status, result.stdout, result.stderr)
            raise VerificationError(
                f"Connection test failed: unexpected reply from {target.address}.",
                reason=VerificationError.UNEXPECTED_OUTPUT,
                remediation=remediation,
            )
        logger.info("Key login to %s verified", target.address)
