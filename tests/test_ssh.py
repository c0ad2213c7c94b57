import unittest

import paramiko

from fakes import FakeRemoteHost, make_public_key_line
from passwordless_ssh.ssh import PublicKey, SSHConnectionError, SSHCredentials, SSHSession


class SSHSessionTests(unittest.TestCase):
    def test_run_command_uses_client_factory(self) -> None:
        host = FakeRemoteHost()
        credentials = SSHCredentials(
            host="example.com",
            username="root",
            password="secret",
        )
        session = SSHSession(  # type: ignore[arg-type]
            credentials, client_factory=host
        )
        with session:
            result = session.run("echo OK")
        self.assertTrue(result.ok)
        self.assertEqual(result.stdout, "OK")
        self.assertEqual(host.connect_kwargs[0]["password"], "secret")
        self.assertFalse(host.connect_kwargs[0]["look_for_keys"])
        self.assertEqual(host.closed, 1)

    def test_input_data_is_written_to_stdin(self) -> None:
        host = FakeRemoteHost(authorized_keys="ssh-rsa AAAA old\n")
        session = SSHSession(
            SSHCredentials(host="example.com", username="root", password="pw"),
            client_factory=host,
        )
        session.run("cat >> ~/.ssh/authorized_keys", input_data="ssh-ed25519 BBBB new\n")
        self.assertEqual(host.authorized_keys, "ssh-rsa AAAA old\nssh-ed25519 BBBB new\n")

    def test_key_auth_passes_only_the_identity_file(self) -> None:
        host = FakeRemoteHost()
        credentials = SSHCredentials(
            host="example.com",
            username="deploy",
            auth_method="key",
            key_path="/home/u/.ssh/id_ed25519",
        )
        SSHSession(credentials, client_factory=host).connect()
        kwargs = host.connect_kwargs[0]
        self.assertEqual(kwargs["key_filename"], "/home/u/.ssh/id_ed25519")
        self.assertFalse(kwargs["allow_agent"])
        self.assertNotIn("password", kwargs)

    def test_agent_auth_enables_agent_and_default_keys(self) -> None:
        host = FakeRemoteHost()
        credentials = SSHCredentials(host="example.com", username="deploy", auth_method="agent")
        SSHSession(credentials, client_factory=host).connect()
        self.assertTrue(host.connect_kwargs[0]["allow_agent"])
        self.assertTrue(host.connect_kwargs[0]["look_for_keys"])

    def test_authentication_failure_is_flagged(self) -> None:
        host = FakeRemoteHost()
        host.connect_error = paramiko.AuthenticationException("denied")
        session = SSHSession(
            SSHCredentials(host="example.com", username="root", password="bad"),
            client_factory=host,
        )
        with self.assertRaises(SSHConnectionError) as ctx:
            session.connect()
        self.assertTrue(ctx.exception.auth_failed)
        self.assertEqual(host.closed, 1)

    def test_network_failure_is_not_an_auth_failure(self) -> None:
        host = FakeRemoteHost()
        host.connect_error = OSError("No route to host")
        session = SSHSession(
            SSHCredentials(host="example.com", username="root", password="pw"),
            client_factory=host,
        )
        with self.assertRaises(SSHConnectionError) as ctx:
            session.connect()
        self.assertFalse(ctx.exception.auth_failed)


class SSHCredentialsTests(unittest.TestCase):
    def test_password_required_for_password_auth(self) -> None:
        with self.assertRaises(ValueError):
            SSHCredentials(host="h", username="u").validate()

    def test_key_path_required_for_key_auth(self) -> None:
        with self.assertRaises(ValueError):
            SSHCredentials(host="h", username="u", auth_method="key").validate()

    def test_address(self) -> None:
        self.assertEqual(SSHCredentials(host="h", username="u").address, "u@h")


class PublicKeyTests(unittest.TestCase):
    def test_parses_type_blob_and_comment(self) -> None:
        key = PublicKey.from_line(make_public_key_line(comment="me@laptop"))
        self.assertEqual(key.key_type, "ssh-ed25519")
        self.assertEqual(key.comment, "me@laptop")
        self.assertTrue(key.fingerprint.startswith("SHA256:"))
        self.assertFalse(key.fingerprint.endswith("="))

    def test_rejects_garbage(self) -> None:
        with self.assertRaises(ValueError):
            PublicKey.from_line("not-a-key")

    def test_finds_key_behind_options(self) -> None:
        line = make_public_key_line(seed=7)
        key = PublicKey.from_line(line)
        authorized = (
            "# managed by hand\n"
            f"{make_public_key_line(seed=1)}\n"
            f'from="10.0.0.0/8",no-pty {line}\n'
        )
        self.assertTrue(key.is_listed_in(authorized))

    def test_different_key_is_not_listed(self) -> None:
        key = PublicKey.from_line(make_public_key_line(seed=7))
        self.assertFalse(key.is_listed_in(make_public_key_line(seed=8) + "\n"))

    def test_commented_out_key_does_not_count(self) -> None:
        line = make_public_key_line(seed=3)
        key = PublicKey.from_line(line)
        self.assertFalse(key.is_listed_in(f"# {line}\n"))

    def test_to_line_round_trips_the_text(self) -> None:
        line = make_public_key_line(seed=4, comment="ci")
        self.assertEqual(PublicKey.from_line(line).to_line(), line)


if __name__ == "__main__":
    unittest.main()
