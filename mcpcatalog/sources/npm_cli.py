"""Thin async wrapper around the npm command line."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


class NpmCommandError(RuntimeError):
    """Raised when an npm invocation fails, times out, or prints invalid JSON."""


class NpmCli:
    """Runs npm subcommands that print JSON.

    Args:
        command: npm executable name or path.
    """

    def __init__(self, command: str = "npm") -> None:
        self.command = command

    async def run_json(self, *args: str, timeout: float) -> Any:
        """Run ``npm <args>`` and decode its stdout as JSON.

        npm exits non-zero for some warnings (e.g. extraneous global packages)
        while still printing a complete listing, so non-empty stdout is parsed
        regardless of the exit code.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                self.command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise NpmCommandError(f"{self.command} is not installed") from None
        except OSError as exc:
            raise NpmCommandError(f"Failed to start {self.command}: {exc}") from None

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise NpmCommandError(
                f"{self.command} {' '.join(args)} timed out after {timeout:g}s"
            ) from None

        output = stdout.decode(errors="replace").strip()
        if not output:
            raise NpmCommandError(
                f"{self.command} {' '.join(args)} failed (exit code {proc.returncode}): "
                f"{stderr.decode(errors='replace')[:200]}"
            )
        if proc.returncode != 0:
            logger.debug("%s %s exited with %s", self.command, " ".join(args), proc.returncode)
        try:
            return json.loads(output)
        except ValueError as exc:
            raise NpmCommandError(f"Invalid JSON from {self.command}: {exc}") from None
