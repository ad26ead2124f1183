"""Tests for server startup scenarios.

Covers:
- Wrong-type and unknown config values (env vars and wowdev.yaml)
- A normal stdio start that answers initialize while upstream sources are down
"""

from __future__ import annotations

import json
import subprocess
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def _run_and_wait(
    env: dict[str, str], cwd: Path | None = None, timeout: int = 10
) -> subprocess.CompletedProcess[str]:
    """Start the server with stdin closed and wait for it to exit.

    Suitable for crash scenarios where the server exits before reading any input.
    """
    return subprocess.run(
        [sys.executable, "-m", "wowdev.server"],
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
        cwd=cwd,
    )


class TestBadConfig:
    """Invalid config crashes the server before any transport starts."""

    def test_stdio_crashes_on_wrong_type(self, subprocess_env: dict[str, str]) -> None:
        env = {**subprocess_env, "WOWDEV__SERVER__PORT": "not-a-number"}
        result = _run_and_wait(env)
        assert result.returncode != 0

    def test_http_crashes_on_wrong_type(self, subprocess_env: dict[str, str]) -> None:
        env = {
            **subprocess_env,
            "WOWDEV__SERVER__TRANSPORT": "http",
            "WOWDEV__SERVER__PORT": "not-a-number",
        }
        result = _run_and_wait(env)
        assert result.returncode != 0

    def test_unknown_transport_crashes(self, subprocess_env: dict[str, str]) -> None:
        env = {**subprocess_env, "WOWDEV__SERVER__TRANSPORT": "websocket"}
        result = _run_and_wait(env)
        assert result.returncode != 0

    def test_yaml_typo_crashes(self, tmp_path: Path, subprocess_env: dict[str, str]) -> None:
        """wowdev.yaml in the working directory is read; a misspelt key is fatal."""
        (tmp_path / "wowdev.yaml").write_text("wiki:\n  cache_capacty: 10\n", encoding="utf-8")
        result = _run_and_wait(subprocess_env, cwd=tmp_path)
        assert result.returncode != 0
        assert "cache_capacty" in result.stderr


class TestStartup:
    def test_initialize_succeeds_while_sources_are_down(
        self, subprocess_env: dict[str, str]
    ) -> None:
        """Dataset refresh runs in the background; the server still answers."""
        proc = subprocess.Popen(
            [sys.executable, "-m", "wowdev.server"],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=subprocess_env,
        )
        assert proc.stdin is not None
        assert proc.stdout is not None
        assert proc.stderr is not None

        proc.stdin.write(
            json.dumps(
                {
                    "jsonrpc": "2.0",
                    "id": 1,
                    "method": "initialize",
                    "params": {
                        "protocolVersion": "2025-06-18",
                        "capabilities": {},
                        "clientInfo": {"name": "test", "version": "0"},
                    },
                }
            )
            + "\n"
        )
        proc.stdin.flush()

        line = proc.stdout.readline()
        response = json.loads(line.strip())

        proc.stdin.close()
        proc.stderr.read()
        proc.wait(timeout=10)
        proc.stdout.close()
        proc.stderr.close()

        assert response.get("id") == 1
        assert response["result"]["serverInfo"]["name"] == "wow-dev-mcp"
