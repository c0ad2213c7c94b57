import os
import unittest
from unittest import mock

from passwordless_ssh import cli
from passwordless_ssh.interaction import ScriptedInteractionHandler
from passwordless_ssh.workflow import OutcomeStatus, RunOutcome


class FakeWorkflow:
    instances = []

    def __init__(self, config, interaction_handler=None) -> None:
        self.config = config
        self.interaction_handler = interaction_handler
        FakeWorkflow.instances.append(self)

    def run(self) -> RunOutcome:
        return RunOutcome(status=OutcomeStatus.SUCCESS)


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        FakeWorkflow.instances = []
        env = {k: v for k, v in os.environ.items() if k not in ("SSH_KEY", "SSH_CONFIG")}
        patcher = mock.patch.dict(os.environ, env, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_help_exits_zero(self) -> None:
        with mock.patch("sys.stdout"), self.assertRaises(SystemExit) as ctx:
            cli.run_cli(["--help"])
        self.assertEqual(ctx.exception.code, 0)

    def test_unknown_option_prints_usage_and_exits_zero(self) -> None:
        with mock.patch("sys.stdout") as stdout, mock.patch("sys.stderr") as stderr:
            with self.assertRaises(SystemExit) as ctx:
                cli.run_cli(["--bogus"])
        self.assertEqual(ctx.exception.code, 0)
        written_err = "".join(call.args[0] for call in stderr.write.call_args_list)
        written_out = "".join(call.args[0] for call in stdout.write.call_args_list)
        self.assertEqual(written_err.strip(), "Unknown option: --bogus")
        self.assertIn("--key", written_out)

    def test_bad_option_value_exits_one_without_unknown_option(self) -> None:
        for argv in (["-p", "abc"], ["-p", "0"], ["-p", "65536"], ["-k"]):
            with self.subTest(argv=argv), mock.patch("sys.stdout"), \
                    mock.patch("sys.stderr") as stderr, self.assertRaises(SystemExit) as ctx:
                cli.run_cli(argv)
            self.assertEqual(ctx.exception.code, 1)
            written_err = "".join(call.args[0] for call in stderr.write.call_args_list)
            self.assertNotIn("Unknown option", written_err)

    def test_port_range_message(self) -> None:
        with mock.patch("sys.stderr") as stderr, self.assertRaises(SystemExit):
            cli.run_cli(["-p", "0"])
        written_err = "".join(call.args[0] for call in stderr.write.call_args_list)
        self.assertIn("port must be between 1 and 65535", written_err)

    def test_key_and_port_options_reach_config(self) -> None:
        with mock.patch.object(cli, "ProvisioningWorkflow", FakeWorkflow), mock.patch("sys.stdout"):
            code = cli.run_cli(["-k", "/keys/id_work", "-p", "2200"])
        self.assertEqual(code, 0)
        config = FakeWorkflow.instances[0].config
        self.assertEqual(config.ssh.key_path, "/keys/id_work")
        self.assertEqual(config.ssh.port, 2200)
        self.assertFalse(config.with_alias)

    def test_ssh_key_env_is_used_without_option(self) -> None:
        with mock.patch.dict(os.environ, {"SSH_KEY": "/env/key"}), \
                mock.patch.object(cli, "ProvisioningWorkflow", FakeWorkflow), \
                mock.patch("sys.stdout"):
            cli.run_cli([])
        self.assertEqual(FakeWorkflow.instances[0].config.ssh.key_path, "/env/key")

    def test_alias_variant_sets_flag(self) -> None:
        with mock.patch.object(cli, "ProvisioningWorkflow", FakeWorkflow), mock.patch("sys.stdout"):
            cli.run_cli([], with_alias=True)
        self.assertTrue(FakeWorkflow.instances[0].config.with_alias)

    def test_missing_config_file_exits_one(self) -> None:
        with mock.patch("sys.stderr"):
            self.assertEqual(cli.run_cli(["--config", "/nonexistent.json"]), 1)

    def test_validation_failure_exits_one(self) -> None:
        handler = ScriptedInteractionHandler(["", ""])
        with mock.patch("sys.stdout"):
            code = cli.run_cli([], interaction_handler=handler)
        self.assertEqual(code, 1)
        self.assertIn(("error", "User is required."), handler.notifications)


if __name__ == "__main__":
    unittest.main()
