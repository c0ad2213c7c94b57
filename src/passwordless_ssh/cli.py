"""Command-line interface for passwordless-ssh."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Optional

from .config import AppConfig, load_config
from .interaction import UserInteractionHandler
from .utils.logging import get_logger, set_verbose
from .workflow import ProvisioningWorkflow

logger = get_logger(__name__)

_DESCRIPTION = (
    "Sets up passwordless SSH login to a remote server.\n"
    "You will be prompted for: remote user, host (IP or domain), and password."
)
_ALIAS_DESCRIPTION = (
    "Sets up passwordless SSH login and adds a Host alias to SSH config.\n"
    "You will be prompted for: remote user, host (IP or domain), alias, and password."
)


_UNRECOGNIZED = "unrecognized arguments: "


class _HelpOnErrorParser(argparse.ArgumentParser):
    """Unknown options print the usage and leave through the help path.

    A bad value for a known option is a failure and exits 1.
    """

    def error(self, message: str) -> NoReturn:  # type: ignore[override]
        if message.startswith(_UNRECOGNIZED):
            print(f"Unknown option: {message[len(_UNRECOGNIZED):]}", file=sys.stderr)
            self.print_help()
            self.exit(0)
        print(f"❌ {message}", file=sys.stderr)
        self.print_usage(sys.stderr)
        self.exit(1)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535, got {port}")
    return port


def build_parser(with_alias: bool = False) -> argparse.ArgumentParser:
    parser = _HelpOnErrorParser(
        prog="passwordless-ssh-alias" if with_alias else "passwordless-ssh",
        description=_ALIAS_DESCRIPTION if with_alias else _DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-k", "--key",
        metavar="PATH",
        default=None,
        help="Use this key (default: $SSH_KEY or $HOME/.ssh/id_ed25519)",
    )
    parser.add_argument(
        "-p", "--port",
        type=_port,
        default=None,
        help="Remote SSH port (default: 22)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    return parser


def _build_config(args: argparse.Namespace, with_alias: bool) -> AppConfig:
    config = load_config(args.config)
    if args.key:
        config.ssh.key_path = args.key
    if args.port is not None:
        config.ssh.port = args.port
    config.with_alias = with_alias or config.with_alias
    return config


def run_cli(
    argv: Optional[list[str]] = None,
    *,
    with_alias: bool = False,
    interaction_handler: Optional[UserInteractionHandler] = None,
) -> int:
    parser = build_parser(with_alias)
    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    try:
        config = _build_config(args, with_alias)
    except (FileNotFoundError, TypeError, ValueError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    title = "Passwordless SSH setup (with alias)" if config.with_alias else "Passwordless SSH setup"
    print(f"=== {title} ===")
    print()

    workflow = ProvisioningWorkflow(config, interaction_handler)
    outcome = workflow.run()
    if not outcome.ok:
        logger.debug("Run failed in stage %s (%s)", outcome.failed_stage, outcome.status.value)
    return outcome.exit_code
