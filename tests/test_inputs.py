"""Tests for operator input collection."""

import pytest

from passwordless_ssh.errors import ValidationError
from passwordless_ssh.interaction import ScriptedInteractionHandler
from passwordless_ssh.provision import InputCollector, validate_alias
from passwordless_ssh.provision.inputs import ALIAS_CHARSET, ALIAS_REQUIRED


class TestValidateAlias:
    @pytest.mark.parametrize("raw", ["vps1", "vps-prod", "my_server", "db.internal", "A9"])
    def test_accepts_allowed_characters(self, raw):
        result = validate_alias(raw)
        assert result.ok
        assert result.alias.name == raw

    def test_spaces_are_removed(self):
        result = validate_alias("  my server ")
        assert result.ok
        assert result.alias.name == "myserver"

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_is_required_error(self, raw):
        result = validate_alias(raw)
        assert not result.ok
        assert result.reason == ALIAS_REQUIRED

    @pytest.mark.parametrize("raw", ["vps/1", "root@vps", "vps!", "a\tb", "*", "vps,1", "ünïcode", "vps1\n", "\nvps1"])
    def test_rejects_other_characters(self, raw):
        result = validate_alias(raw)
        assert not result.ok
        assert result.alias is None
        assert result.reason == ALIAS_CHARSET


class TestInputCollector:
    def test_collects_target(self):
        handler = ScriptedInteractionHandler(["root", "203.0.113.10"])
        collected = InputCollector(handler).collect()
        assert collected.target.address == "root@203.0.113.10"
        assert collected.target.port == 22
        assert collected.alias is None
        assert handler.messages == ["Target: root@203.0.113.10"]

    def test_trims_user_and_host(self):
        handler = ScriptedInteractionHandler(["  deploy ", " example.com  "])
        collected = InputCollector(handler, port=2222).collect()
        assert collected.target.remote_user == "deploy"
        assert collected.target.remote_host == "example.com"
        assert collected.target.port == 2222

    @pytest.mark.parametrize(
        "answers, message",
        [
            (["", "example.com"], "User is required."),
            (["root", ""], "Host is required."),
            (["   "], "User is required."),
        ],
    )
    def test_empty_required_field_is_fatal(self, answers, message):
        handler = ScriptedInteractionHandler(answers)
        with pytest.raises(ValidationError) as excinfo:
            InputCollector(handler).collect()
        assert excinfo.value.message == message

    def test_alias_reprompts_until_valid(self):
        handler = ScriptedInteractionHandler(["root", "example.com", "", "bad/alias", "vps1"])
        collected = InputCollector(handler, with_alias=True).collect()
        assert collected.alias.name == "vps1"
        assert ALIAS_REQUIRED in handler.messages
        assert ALIAS_CHARSET in handler.messages
        assert handler.messages[-1] == "Target: root@example.com  →  alias: vps1"

    def test_alias_attempts_are_bounded(self):
        handler = ScriptedInteractionHandler(["root", "example.com", "a/b", "c@d", "e f!"])
        collector = InputCollector(handler, with_alias=True, max_alias_attempts=3)
        with pytest.raises(ValidationError):
            collector.collect()
        assert len(handler.questions) == 5

    def test_cancelled_prompt_is_validation_error(self):
        handler = ScriptedInteractionHandler(["root"])
        with pytest.raises(ValidationError):
            InputCollector(handler).collect()

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            InputCollector(ScriptedInteractionHandler(), max_alias_attempts=0)
