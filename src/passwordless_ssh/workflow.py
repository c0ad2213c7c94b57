"""High-level provisioning workflow.

The stages run in a fixed order and each one yields a ``StageResult``. The
first failed result ends the run; nothing already done is undone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from .config import AppConfig
from .errors import ProvisioningError
from .interaction import CLIInteractionHandler, UserInteractionHandler
from .provision import (
    Alias,
    CollectedInput,
    ConfigEntry,
    ConfigWriter,
    ConnectivityVerifier,
    InputCollector,
    KeyManager,
    KeyPair,
    RemoteInstaller,
    Target,
    select_installer,
)
from .utils.logging import get_logger

logger = get_logger(__name__)


class OutcomeStatus(str, Enum):
    """Terminal status of one run."""
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    KEY_ABSENT_DECLINED = "key_absent_declined"
    KEY_GENERATION_ERROR = "key_generation_error"
    REMOTE_INSTALL_ERROR = "remote_install_error"
    VERIFICATION_ERROR = "verification_error"
    CONFIG_WRITE_ERROR = "config_write_error"


@dataclass
class StageResult:
    """Tagged result of one stage: a value on success, an error otherwise."""

    stage: str
    ok: bool
    value: Any = None
    error: Optional[ProvisioningError] = None


@dataclass
class RunOutcome:
    status: OutcomeStatus
    stages: List[StageResult] = field(default_factory=list)
    target: Optional[Target] = None
    key_pair: Optional[KeyPair] = None
    alias: Optional[Alias] = None
    error: Optional[ProvisioningError] = None
    failed_stage: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def completed_stages(self) -> List[str]:
        return [result.stage for result in self.stages if result.ok]


class ProvisioningWorkflow:
    """Runs input collection, key setup, install, verification and alias registration."""

    def __init__(
        self,
        config: AppConfig,
        interaction_handler: Optional[UserInteractionHandler] = None,
        *,
        input_collector: Optional[InputCollector] = None,
        key_manager: Optional[KeyManager] = None,
        remote_installer: Optional[RemoteInstaller] = None,
        verifier: Optional[ConnectivityVerifier] = None,
        config_writer: Optional[ConfigWriter] = None,
    ) -> None:
        self.config = config
        # 操作员交互处理器 - 默认使用 CLI
        self.interaction_handler = interaction_handler or CLIInteractionHandler()
        self.input_collector = input_collector or InputCollector(
            self.interaction_handler,
            with_alias=config.with_alias,
            port=config.ssh.port,
            max_alias_attempts=config.interaction.max_alias_attempts,
        )
        self.key_manager = key_manager or KeyManager(
            self.interaction_handler,
            ssh_dir=config.ssh_directory(),
            key_type=config.keys.key_type,
            comment=config.keys.comment,
            keygen_binary=config.install.keygen_binary,
        )
        self.remote_installer = remote_installer or RemoteInstaller(
            select_installer(config, self.interaction_handler),
            self.interaction_handler,
        )
        self.verifier = verifier or ConnectivityVerifier(
            self.interaction_handler,
            connect_timeout=config.ssh.connect_timeout,
        )
        self.config_writer = config_writer or ConfigWriter(config.ssh_config_file())

    def run(self) -> RunOutcome:
        outcome = RunOutcome(status=OutcomeStatus.SUCCESS)

        for name, step in self._stages():
            result = self._run_stage(name, step, outcome)
            outcome.stages.append(result)
            if not result.ok:
                assert result.error is not None
                outcome.status = OutcomeStatus(result.error.kind)
                outcome.error = result.error
                outcome.failed_stage = name
                self._report_failure(result.error)
                return outcome

        self._report_success(outcome)
        return outcome

    def _stages(self) -> List[Tuple[str, Callable[[RunOutcome], Any]]]:
        stages: List[Tuple[str, Callable[[RunOutcome], Any]]] = [
            ("collect_input", self._collect_input),
            ("ensure_key", self._ensure_key),
            ("install_key", self._install_key),
            ("verify_login", self._verify_login),
        ]
        if self.config.with_alias:
            stages.append(("register_alias", self._register_alias))
        return stages

    def _run_stage(
        self,
        name: str,
        step: Callable[[RunOutcome], Any],
        outcome: RunOutcome,
    ) -> StageResult:
        logger.debug("Stage %s started", name)
        try:
            value = step(outcome)
        except ProvisioningError as exc:
            logger.debug("Stage %s failed: %s", name, exc)
            return StageResult(stage=name, ok=False, error=exc)
        logger.debug("Stage %s finished", name)
        return StageResult(stage=name, ok=True, value=value)

    def _collect_input(self, outcome: RunOutcome) -> CollectedInput:
        collected = self.input_collector.collect()
        outcome.target = collected.target
        outcome.alias = collected.alias
        return collected

    def _ensure_key(self, outcome: RunOutcome) -> KeyPair:
        key_pair = self.key_manager.ensure(self.config.private_key_path())
        outcome.key_pair = key_pair
        return key_pair

    def _install_key(self, outcome: RunOutcome):
        assert outcome.target is not None and outcome.key_pair is not None
        return self.remote_installer.install(outcome.target, outcome.key_pair)

    def _verify_login(self, outcome: RunOutcome) -> None:
        assert outcome.target is not None and outcome.key_pair is not None
        self.verifier.verify(outcome.target, outcome.key_pair)

    def _register_alias(self, outcome: RunOutcome):
        assert outcome.target is not None and outcome.key_pair is not None
        assert outcome.alias is not None
        entry = ConfigEntry(
            alias=outcome.alias.name,
            host_name=outcome.target.remote_host,
            user=outcome.target.remote_user,
            identity_file=str(outcome.key_pair.private_path),
            port=outcome.target.port,
        )
        result = self.config_writer.register(entry)
        if not result.written:
            self.interaction_handler.notify(f"Alias {entry.alias} was already registered.")
        return result

    def _report_failure(self, error: ProvisioningError) -> None:
        self.interaction_handler.notify(error.message, "error")
        if error.remediation:
            self.interaction_handler.notify(error.remediation, "warning")

    def _report_success(self, outcome: RunOutcome) -> None:
        assert outcome.target is not None and outcome.key_pair is not None
        notify = self.interaction_handler.notify
        if outcome.alias:
            notify("Success. Passwordless login and alias are set up.", "success")
            notify(f"Connect with:  ssh {outcome.alias.name}")
            return
        notify("Success. You can now connect without a password:", "success")
        notify(f"  ssh -i {outcome.key_pair.private_path} {outcome.target.address}")
        notify(f"  or (if this is your default key): ssh {outcome.target.address}")

