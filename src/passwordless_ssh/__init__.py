"""Passwordless SSH provisioning: key pair, remote install, login check, Host alias."""
