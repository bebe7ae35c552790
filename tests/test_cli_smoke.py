# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Subprocess-based CLI smoke tests.

These invoke ``python -m pwopen`` as a real process against a local HTTP
server, so exit codes, stdout/stderr separation and signal teardown are
exercised end to end. Tests that need Chromium are skipped when it is not
installed.
"""

from __future__ import annotations

import functools
import http.server
import os
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path

import pytest

PYTHON = sys.executable
CLI = [PYTHON, "-m", "pwopen"]

LOCAL_TIMEOUT = 10
BROWSER_TIMEOUT = 60

# Chromium refuses its sandbox when run as root, as in most CI containers
BROWSER_FLAGS = ("--no-sandbox",)

_PAGE = b"""<!doctype html>
<html><head><title>pwopen smoke</title></head>
<body><h1>pwopen</h1><p>Hello from the smoke test server.</p></body></html>
"""


def _chromium_available() -> bool:
    try:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            return Path(p.chromium.executable_path).exists()
    except Exception:
        return False


needs_chromium = pytest.mark.skipif(not _chromium_available(), reason="Chromium not installed")


class _Handler(http.server.BaseHTTPRequestHandler):
    def do_GET(self):  # noqa: N802
        if self.path.startswith("/slow"):
            time.sleep(30)
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(_PAGE)))
        self.end_headers()
        self.wfile.write(_PAGE)

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture(scope="module")
def local_server():
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def _env(**overrides: str) -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if not k.startswith("PWOPEN_")}
    env.update(
        PWOPEN_TIMEOUT_MS="5000",
        PWOPEN_NAVIGATION_RETRIES="0",
        PWOPEN_RENDER_WAIT_MS="0",
    )
    env.update(overrides)
    return env


@pytest.mark.smoke
@pytest.mark.timeout(120)
class TestCLISmoke:
    """Subprocess-based CLI smoke tests."""

    @staticmethod
    def _run(*args: str, stdin: str = "", timeout: int = LOCAL_TIMEOUT, **env: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [*CLI, *args],
            input=stdin,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=timeout,
            env=_env(**env),
        )

    # ── Local tests (no browser) ─────────────────────────────────

    def test_no_urls_exits_zero(self):
        r = self._run()
        assert r.returncode == 0, f"stderr: {r.stderr}"
        assert "[WARN] No valid URLs provided." in r.stderr
        assert r.stdout == ""

    def test_help(self):
        r = self._run("--help")
        assert r.returncode == 0
        assert "--screenshot" in r.stdout
        assert "--no-sandbox" in r.stdout

    def test_invalid_config_exits_one(self):
        r = self._run("https://example.com", PWOPEN_VIEWPORT_WIDTH="wide")
        assert r.returncode == 1
        assert "[ERROR] Invalid configuration:" in r.stderr
        assert "PWOPEN_VIEWPORT_WIDTH" in r.stderr
        assert "Traceback" not in r.stderr

    # ── Browser tests ────────────────────────────────────────────

    @needs_chromium
    def test_open_local_page(self, local_server):
        r = self._run(*BROWSER_FLAGS, f"{local_server}/", timeout=BROWSER_TIMEOUT)
        assert r.returncode == 0, f"stderr: {r.stderr}"
        assert "[ERROR]" not in r.stderr
        assert "[WARN]" not in r.stderr

    @needs_chromium
    def test_invalid_url_skipped(self, local_server):
        r = self._run(*BROWSER_FLAGS, "ftp://files.example", f"{local_server}/", timeout=BROWSER_TIMEOUT)
        assert r.returncode == 0, f"stderr: {r.stderr}"
        assert "[WARN] Invalid URL skipped: ftp://files.example" in r.stderr
        assert "[ERROR]" not in r.stderr

    @needs_chromium
    def test_stdin_urls(self, local_server):
        r = self._run(*BROWSER_FLAGS, stdin=f"first {local_server}/a, then {local_server}/b.\n", timeout=BROWSER_TIMEOUT)
        assert r.returncode == 0, f"stderr: {r.stderr}"
        assert "[WARN]" not in r.stderr

    @needs_chromium
    def test_unreachable_url_is_warning(self):
        r = self._run(*BROWSER_FLAGS, "http://127.0.0.1:9/", timeout=BROWSER_TIMEOUT)
        assert r.returncode == 0
        assert "[WARN] Failed to open http://127.0.0.1:9/" in r.stderr

    @needs_chromium
    def test_screenshot_writes_sixel(self, local_server):
        r = self._run(*BROWSER_FLAGS, "--screenshot", f"{local_server}/", timeout=BROWSER_TIMEOUT)
        assert r.returncode == 0, f"stderr: {r.stderr}"
        assert r.stdout.startswith("\x1bPq")
        assert r.stdout.rstrip("\n").endswith("\x1b\\")

    @needs_chromium
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_sigterm_during_navigation(self, local_server):
        proc = subprocess.Popen(
            [*CLI, *BROWSER_FLAGS, f"{local_server}/slow"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=_env(PWOPEN_TIMEOUT_MS="60000"),
        )
        try:
            time.sleep(3)
            proc.send_signal(signal.SIGTERM)
            _out, err = proc.communicate(timeout=BROWSER_TIMEOUT)
        finally:
            if proc.poll() is None:
                proc.kill()
        assert proc.returncode == 143, f"stderr: {err}"
        assert "[WARN] Received SIGTERM, closing browser..." in err
        assert "Traceback" not in err
