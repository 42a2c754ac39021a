"""Tests for the script context."""

import logging

import pytest

from fakes import ManualHost
from wblocks.host.primitives import ShellResult
from wblocks.runtime.context import SCRIPT_LOGGER_NAME, SCRIPT_MODULE_NAME, ScriptContext
from wblocks.runtime.quoting import quote_arg


class TestInstalledApi:
    """Tests for the globals installed into the namespace."""

    @pytest.mark.parametrize("name", [
        "set_interval",
        "clear_interval",
        "set_timeout",
        "clear_timeout",
        "quote",
        "ps",
        "ps_async",
        "ps_fetch",
        "ps_fetch_async",
        "shell",
        "timers",
        "log",
        "context",
        "config",
    ])
    def test_name_installed(self, context: ScriptContext, name: str) -> None:
        """Test that each runtime helper is available to scripts."""
        assert name in context

    def test_module_name(self, context: ScriptContext) -> None:
        """Test scripts see their own module name."""
        assert context.namespace["__name__"] == SCRIPT_MODULE_NAME

    def test_quote_is_quote_arg(self, context: ScriptContext) -> None:
        """Test that quote is the argument quoting function."""
        assert context.namespace["quote"] is quote_arg

    def test_log_is_script_logger(self, context: ScriptContext) -> None:
        """Test that scripts log through the scripts logger."""
        assert context.namespace["log"] is logging.getLogger(SCRIPT_LOGGER_NAME)

    def test_config_exposes_settings(self, context: ScriptContext) -> None:
        """Test that script settings are exposed as config."""
        assert context.namespace["config"] == {"city": "Oslo"}
        assert context.settings is context.namespace["config"]

    def test_context_refers_to_itself(self, context: ScriptContext) -> None:
        """Test that scripts can reach the context object."""
        assert context.namespace["context"] is context


class TestSharedState:
    """Tests for publish and lookup."""

    def test_publish_and_lookup(self, context: ScriptContext) -> None:
        """Test publishing a value for other scripts."""
        context.publish("battery", 87)

        assert context.lookup("battery") == 87
        assert context.namespace["battery"] == 87

    def test_lookup_default(self, context: ScriptContext) -> None:
        """Test lookup of a name nobody defined."""
        assert context.lookup("missing") is None
        assert context.lookup("missing", 0) == 0

    def test_iteration(self, context: ScriptContext) -> None:
        """Test iterating over namespace names."""
        context.publish("extra", True)

        assert "extra" in list(context)

    def test_exec_against_namespace(self, context: ScriptContext) -> None:
        """Test that code run in the namespace sees installed helpers."""
        exec("quoted = quote('a b')", context.namespace)

        assert context.lookup("quoted") == '"a b"'


class TestShellHelpers:
    """Tests for ps and ps_async."""

    def test_ps_returns_output(self, context: ScriptContext, host: ManualHost) -> None:
        """Test that ps returns only the output text."""
        host.default_spawn_result = ShellResult(output="12:00\n", exit_code=0)

        assert context.ps("Get-Date -Format t") == "12:00\n"
        assert host.spawned == ['powershell -Command "Get-Date -Format t"']

    @pytest.mark.asyncio
    async def test_ps_async(self, context: ScriptContext, host: ManualHost) -> None:
        """Test that ps_async returns the output text."""
        host.default_spawn_result = ShellResult(output="ok", exit_code=0)

        assert await context.ps_async("Get-Date") == "ok"
