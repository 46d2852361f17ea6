"""Tests for token state decisions and the auth-provider token source."""

import json

import pytest
from conftest import FakeCommandRunner

from kubecreds.any.exceptions import KubeCredsAuthCommandError, KubeCredsConfigurationError
from kubecreds.config.query import JsonPathQuery
from kubecreds.credentials.token import (
    AuthProviderTokenSource,
    classify_token_state,
    decide_token_action,
    parse_expiry,
    read_token_file,
)
from kubecreds.types.tokens import TokenAction, TokenState


def gcp_user(**config) -> dict:
    base = {
        "cmd-path": "/usr/bin/gcloud",
        "cmd-args": "config config-helper --format=json",
        "token-key": "{.credential.access_token}",
        "expiry-key": "{.credential.token_expiry}",
    }
    base.update(config)
    return {"auth-provider": {"name": "gcp", "config": {k: v for k, v in base.items() if v is not None}}}


class TestDecideTokenAction:
    """Test the pure refresh decision."""

    def test_no_token_refreshes(self):
        """Test that a missing token forces a refresh."""
        assert decide_token_action(100, None, None) is TokenAction.REFRESH
        assert decide_token_action(100, "", None) is TokenAction.REFRESH

    def test_token_without_expiry_is_cached(self):
        """Test that a token with no expiry stays fresh forever."""
        assert decide_token_action(10**12, "t", None) is TokenAction.RETURN_CACHED

    def test_token_before_expiry_is_cached(self):
        """Test that a token before its expiry is returned."""
        assert decide_token_action(99, "t", 100) is TokenAction.RETURN_CACHED

    @pytest.mark.parametrize("now", [100, 101])
    def test_token_at_or_past_expiry_refreshes(self, now):
        """Test that a token at or past its expiry is refreshed."""
        assert decide_token_action(now, "t", 100) is TokenAction.REFRESH


class TestClassifyTokenState:
    """Test mapping onto the token state machine."""

    def test_states(self):
        """Test every state of the machine."""
        assert classify_token_state(False, None, None, 0) is TokenState.NO_TOKEN
        assert classify_token_state(False, "t", None, 0) is TokenState.STATIC_TOKEN
        assert classify_token_state(True, None, None, 0) is TokenState.DYNAMIC_EXPIRED
        assert classify_token_state(True, "t", 50, 100) is TokenState.DYNAMIC_EXPIRED
        assert classify_token_state(True, "t", 150, 100) is TokenState.DYNAMIC_FRESH
        assert classify_token_state(True, "t", None, 100) is TokenState.DYNAMIC_FRESH

    def test_is_dynamic(self):
        """Test the is_dynamic helper."""
        assert TokenState.DYNAMIC_FRESH.is_dynamic
        assert not TokenState.STATIC_TOKEN.is_dynamic


class TestParseExpiry:
    """Test expiry conversion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            ("", None),
            (1735689600, 1735689600),
            (1735689600.9, 1735689600),
            ("1735689600", 1735689600),
            ("2025-01-01T00:00:00Z", 1735689600),
            ("2025-01-01T00:00:00+00:00", 1735689600),
            ("2025-01-01T01:00:00+01:00", 1735689600),
            ("2025-01-01 00:00:00", 1735689600),
            ("2025-01-01T00:00:00+0000", 1735689600),
            ("2025-01-01T00:00:00.123456789Z", 1735689600),
            ("Wed, 01 May 2024 10:00:00 GMT", 1714557600),
        ],
    )
    def test_converts(self, value, expected):
        """Test supported expiry formats."""
        assert parse_expiry(value) == expected

    @pytest.mark.parametrize("value", ["soon", "   ", True, {"at": 1}])
    def test_rejects(self, value):
        """Test that unreadable expiries raise ValueError."""
        with pytest.raises(ValueError):
            parse_expiry(value)


class TestReadTokenFile:
    """Test tokenFile reading."""

    def test_reads_and_strips(self, tmp_path):
        """Test that surrounding whitespace is removed."""
        path = tmp_path / "token"
        path.write_text("  abc\n")

        assert read_token_file(path) == "abc"

    def test_missing_file(self, tmp_path):
        """Test that an unreadable tokenFile is a configuration error."""
        with pytest.raises(KubeCredsConfigurationError):
            read_token_file(tmp_path / "missing")


class TestAuthProviderTokenSource:
    """Test AuthProviderTokenSource with a stub command runner."""

    def test_build_command_splits_string_args(self):
        """Test that cmd-path and cmd-args become an argument vector."""
        source = AuthProviderTokenSource(JsonPathQuery(), FakeCommandRunner())

        argv = source.build_command(gcp_user(**{"cmd-args": "config config-helper --format='json'"}))

        assert argv == ["/usr/bin/gcloud", "config", "config-helper", "--format=json"]

    def test_build_command_accepts_list_args(self):
        """Test that a YAML list of args is used as-is."""
        source = AuthProviderTokenSource(JsonPathQuery(), FakeCommandRunner())

        argv = source.build_command(gcp_user(**{"cmd-args": ["get-token", "--server id"]}))

        assert argv == ["/usr/bin/gcloud", "get-token", "--server id"]

    def test_build_command_without_args(self):
        """Test a command with no cmd-args."""
        source = AuthProviderTokenSource(JsonPathQuery(), FakeCommandRunner())

        assert source.build_command(gcp_user(**{"cmd-args": None})) == ["/usr/bin/gcloud"]

    def test_build_command_requires_cmd_path(self):
        """Test that a missing cmd-path is an AuthCommandError."""
        source = AuthProviderTokenSource(JsonPathQuery(), FakeCommandRunner())

        with pytest.raises(KubeCredsAuthCommandError) as exc_info:
            source.build_command({"auth-provider": {"name": "gcp", "config": {}}})

        assert "cmd-path" in str(exc_info.value)

    def test_fetch_extracts_token_and_expiry(self, command_runner):
        """Test that token-key and expiry-key are read from the command output."""
        source = AuthProviderTokenSource(JsonPathQuery(), command_runner, timeout=5)

        refresh = source.fetch(gcp_user())

        assert refresh.token == "gke-token-1"
        assert refresh.expiry == 4070908800
        assert command_runner.calls == [["/usr/bin/gcloud", "config", "config-helper", "--format=json"]]

    def test_fetch_passes_timeout(self):
        """Test that the configured timeout reaches the runner."""
        seen = {}

        class TimeoutRecorder(FakeCommandRunner):
            def run(self, argv, timeout=None):
                seen["timeout"] = timeout
                return super().run(argv, timeout)

        runner = TimeoutRecorder()
        runner.respond({"credential": {"access_token": "t"}})

        AuthProviderTokenSource(JsonPathQuery(), runner, timeout=7.5).fetch(gcp_user())

        assert seen["timeout"] == 7.5

    def test_fetch_integer_expiry(self):
        """Test that integer expiries are epoch seconds."""
        runner = FakeCommandRunner()
        runner.respond({"status": {"token": "k8s-token", "expirationTimestamp": 1735689600}})
        user = gcp_user(**{"token-key": "{.status.token}", "expiry-key": "{.status.expirationTimestamp}"})

        refresh = AuthProviderTokenSource(JsonPathQuery(), runner).fetch(user)

        assert refresh == ("k8s-token", 1735689600)

    def test_fetch_without_keys_leaves_fields_unset(self):
        """Test that unconfigured or absent keys yield None."""
        runner = FakeCommandRunner()
        runner.respond({"credential": {}})

        refresh = AuthProviderTokenSource(JsonPathQuery(), runner).fetch(gcp_user(**{"expiry-key": None}))

        assert refresh.token is None
        assert refresh.expiry is None

    def test_fetch_nonzero_exit(self):
        """Test that a failing command raises with command line and output."""
        runner = FakeCommandRunner(stdout="", exit_code=1, stderr="ERROR: not logged in")

        with pytest.raises(KubeCredsAuthCommandError) as exc_info:
            AuthProviderTokenSource(JsonPathQuery(), runner).fetch(gcp_user())

        error = exc_info.value
        assert error.exit_code == 1
        assert error.command == "/usr/bin/gcloud config config-helper --format=json"
        assert "not logged in" in error.output
        assert "error executing access token command" in str(error)

    @pytest.mark.parametrize("stdout", ["not json", '"just a string"', "42", "null", ""])
    def test_fetch_invalid_output(self, stdout):
        """Test that non-object/array output is rejected."""
        runner = FakeCommandRunner(stdout=stdout)

        with pytest.raises(KubeCredsAuthCommandError) as exc_info:
            AuthProviderTokenSource(JsonPathQuery(), runner).fetch(gcp_user())

        assert "failed to return valid data" in str(exc_info.value)

    def test_fetch_array_output(self):
        """Test that a JSON array is valid output."""
        runner = FakeCommandRunner(stdout=json.dumps([{"token": "from-array"}]))
        user = gcp_user(**{"token-key": "{[0].token}", "expiry-key": None})

        assert AuthProviderTokenSource(JsonPathQuery(), runner).fetch(user).token == "from-array"

    def test_fetch_unreadable_expiry(self):
        """Test that a garbage expiry is an AuthCommandError."""
        runner = FakeCommandRunner()
        runner.respond({"credential": {"access_token": "t", "token_expiry": "soon"}})

        with pytest.raises(KubeCredsAuthCommandError) as exc_info:
            AuthProviderTokenSource(JsonPathQuery(), runner).fetch(gcp_user())

        assert "unreadable expiry" in str(exc_info.value)
