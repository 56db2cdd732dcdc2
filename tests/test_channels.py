"""Channel implementation tests with mocked HTTP and subprocesses."""

import asyncio
import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from brb.notifications.channels.custom import CustomChannel
from brb.notifications.channels.desktop import (
    DesktopChannel,
    notification_text,
    notifier_argv,
)
from brb.notifications.channels.webhook import WebhookChannel
from brb.notifications.errors import DeliveryError, DeliveryErrorKind


def _fake_proc(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(b"", stderr))
    return proc


def _python(script: str) -> list[str]:
    """A custom notifier implemented as an inline Python script."""
    return ["-c", script]


# ---------------------------------------------------------------------------
# Desktop channel
# ---------------------------------------------------------------------------


class TestDesktopChannel:
    def test_notification_text_failure(self, sample_event):
        title, body = notification_text(sample_event)
        assert title == "brb: failed (exit 2)"
        assert body == "make test (4.25s)"

    def test_notifier_argv_linux(self):
        assert notifier_argv("linux", "t", "b") == ["notify-send", "t", "b"]

    def test_notifier_argv_macos_escapes_quotes(self):
        argv = notifier_argv("darwin", 'say "hi"', "b")
        assert argv[:2] == ["osascript", "-e"]
        assert 'with title "say \\"hi\\""' in argv[2]

    def test_notifier_argv_unsupported(self):
        assert notifier_argv("win32", "t", "b") is None

    @pytest.mark.asyncio
    async def test_unsupported_platform(self, sample_event):
        ch = DesktopChannel(platform="win32")
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.UNSUPPORTED

    @pytest.mark.asyncio
    async def test_runs_notify_send(self, sample_event):
        ch = DesktopChannel(platform="linux")
        spawn = AsyncMock(return_value=_fake_proc())

        with patch("brb.notifications.channels.desktop.asyncio.create_subprocess_exec", spawn):
            await ch.deliver(sample_event)

        argv = spawn.call_args[0]
        assert argv == ("notify-send", "brb: failed (exit 2)", "make test (4.25s)")

    @pytest.mark.asyncio
    async def test_missing_notifier_is_unsupported(self, sample_event):
        ch = DesktopChannel(platform="linux")
        spawn = AsyncMock(side_effect=FileNotFoundError("notify-send"))

        with patch("brb.notifications.channels.desktop.asyncio.create_subprocess_exec", spawn):
            with pytest.raises(DeliveryError) as excinfo:
                await ch.deliver(sample_event)

        assert excinfo.value.kind is DeliveryErrorKind.UNSUPPORTED

    @pytest.mark.asyncio
    async def test_notifier_failure_is_backend_error(self, sample_event):
        ch = DesktopChannel(platform="linux")
        spawn = AsyncMock(return_value=_fake_proc(returncode=1, stderr=b"no dbus"))

        with patch("brb.notifications.channels.desktop.asyncio.create_subprocess_exec", spawn):
            with pytest.raises(DeliveryError) as excinfo:
                await ch.deliver(sample_event)

        assert excinfo.value.kind is DeliveryErrorKind.BACKEND
        assert excinfo.value.stderr == "no dbus"


# ---------------------------------------------------------------------------
# Webhook channel
# ---------------------------------------------------------------------------


class TestWebhookChannel:
    @pytest.mark.asyncio
    async def test_send_posts_json(self, sample_event):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        ch = WebhookChannel(
            "https://example.com/hook",
            headers={"Authorization": "Bearer abc123"},
            transport=httpx.MockTransport(handler),
        )
        await ch.deliver(sample_event)

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://example.com/hook"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Authorization"] == "Bearer abc123"
        body = json.loads(request.content)
        assert body["tool"] == "brb"
        assert body["exit_code"] == 2
        assert body["command"] == ["make", "test"]

    @pytest.mark.asyncio
    async def test_custom_method(self, sample_event):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.method)
            return httpx.Response(200)

        ch = WebhookChannel(
            "https://example.com/hook", method="put", transport=httpx.MockTransport(handler)
        )
        await ch.deliver(sample_event)
        assert seen == ["PUT"]

    @pytest.mark.asyncio
    async def test_http_500_is_http_error(self, sample_event):
        ch = WebhookChannel(
            "https://example.com/hook",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.HTTP
        assert excinfo.value.status == 500

    @pytest.mark.asyncio
    async def test_redirect_is_not_success(self, sample_event):
        ch = WebhookChannel(
            "https://example.com/hook",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(302, headers={"Location": "/elsewhere"})
            ),
        )
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.status == 302

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self, sample_event):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        ch = WebhookChannel("https://example.com/hook", transport=httpx.MockTransport(handler))
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, sample_event):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        ch = WebhookChannel(
            "https://example.com/hook", timeout=1.5, transport=httpx.MockTransport(handler)
        )
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.TRANSPORT
        assert "1.5s" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_invalid_method_fails_fast(self, sample_event):
        handler = MagicMock()
        ch = WebhookChannel(
            "https://example.com/hook", method="NOT A METHOD", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(DeliveryError, match="invalid HTTP method"):
            await ch.deliver(sample_event)
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_header_name(self, sample_event):
        ch = WebhookChannel("https://example.com/hook", headers={"Bad Header": "x"})
        with pytest.raises(DeliveryError, match="invalid webhook header name"):
            await ch.deliver(sample_event)

    @pytest.mark.asyncio
    async def test_configured_content_type_replaces_default(self, sample_event):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        ch = WebhookChannel(
            "https://example.com/hook",
            headers={"content-type": "application/cloudevents+json"},
            transport=httpx.MockTransport(handler),
        )
        await ch.deliver(sample_event)

        assert seen[0].headers.get_list("Content-Type") == ["application/cloudevents+json"]

    @pytest.mark.asyncio
    async def test_non_ascii_header_value_is_transport_error(self, sample_event):
        handler = MagicMock()
        ch = WebhookChannel(
            "https://example.com/hook",
            headers={"X-Team": "café"},
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.TRANSPORT
        assert "X-Team" in str(excinfo.value)
        handler.assert_not_called()


# ---------------------------------------------------------------------------
# Custom channel
# ---------------------------------------------------------------------------


class TestCustomChannel:
    @pytest.mark.asyncio
    async def test_success_receives_event_on_stdin(self, sample_event, temp_dir):
        out = temp_dir / "payload.json"
        script = (
            "import os, sys\n"
            "data = sys.stdin.read()\n"
            "open(os.environ['BRB_OUT'], 'w').write(data)\n"
            "print('stdout is discarded')\n"
        )
        ch = CustomChannel(sys.executable, args=_python(script), env={"BRB_OUT": str(out)})
        await ch.deliver(sample_event)

        payload = json.loads(out.read_text())
        assert payload["status"] == "failure"
        assert payload["host"] == "devbox"

    @pytest.mark.asyncio
    async def test_inherits_and_overrides_environment(self, sample_event, temp_dir, monkeypatch):
        monkeypatch.setenv("BRB_INHERITED", "parent")
        monkeypatch.setenv("BRB_OVERRIDDEN", "parent")
        out = temp_dir / "env.json"
        script = (
            "import json, os, sys\n"
            "sys.stdin.read()\n"
            "keys = ['BRB_INHERITED', 'BRB_OVERRIDDEN']\n"
            "json.dump({k: os.environ[k] for k in keys}, open(sys.argv[1], 'w'))\n"
        )
        ch = CustomChannel(
            sys.executable, args=[*_python(script), str(out)], env={"BRB_OVERRIDDEN": "child"}
        )
        await ch.deliver(sample_event)

        assert json.loads(out.read_text()) == {"BRB_INHERITED": "parent", "BRB_OVERRIDDEN": "child"}

    @pytest.mark.asyncio
    async def test_nonzero_exit_captures_stderr(self, sample_event):
        script = "import sys\nsys.stdin.read()\nsys.stderr.write('boom token=abc123')\nsys.exit(3)\n"
        ch = CustomChannel(sys.executable, args=_python(script))

        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)

        err = excinfo.value
        assert err.kind is DeliveryErrorKind.EXIT_STATUS
        assert err.code == 3
        assert err.stderr == "boom token=abc123"
        assert "custom notifier failed" in str(err)

    @pytest.mark.asyncio
    async def test_long_stderr_is_truncated(self, sample_event):
        script = "import sys\nsys.stderr.write('x' * 500)\nsys.exit(1)\n"
        ch = CustomChannel(sys.executable, args=_python(script))

        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)

        assert excinfo.value.stderr == "x" * 200 + "..."

    @pytest.mark.asyncio
    async def test_child_ignoring_stdin(self, sample_event):
        ch = CustomChannel(sys.executable, args=_python("pass"))
        await ch.deliver(sample_event)

    @pytest.mark.asyncio
    async def test_missing_executable_is_spawn_error(self, sample_event):
        ch = CustomChannel("brb-test-no-such-notifier-12345")
        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)
        assert excinfo.value.kind is DeliveryErrorKind.SPAWN

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self, sample_event):
        script = "import time\ntime.sleep(30)\n"
        ch = CustomChannel(sys.executable, args=_python(script), timeout=0.5)

        with pytest.raises(DeliveryError) as excinfo:
            await ch.deliver(sample_event)

        assert excinfo.value.kind is DeliveryErrorKind.EXIT_STATUS
        assert "timed out" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_timeout_when_child_already_exited(self, sample_event):
        async def never_finishes(input=None):
            await asyncio.sleep(10)

        proc = _fake_proc(returncode=0)
        proc.communicate = never_finishes
        proc.kill = MagicMock(side_effect=ProcessLookupError)
        proc.wait = AsyncMock(return_value=0)

        ch = CustomChannel("notifier", timeout=0.05)
        with patch(
            "brb.notifications.channels.custom.asyncio.create_subprocess_exec",
            AsyncMock(return_value=proc),
        ):
            with pytest.raises(DeliveryError) as excinfo:
                await ch.deliver(sample_event)

        assert excinfo.value.kind is DeliveryErrorKind.EXIT_STATUS
        assert "timed out" in str(excinfo.value)
        proc.kill.assert_called_once()
