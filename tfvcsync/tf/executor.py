"""Async subprocess execution of the tf command-line tool."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

from ..errors import CommandError

logger = logging.getLogger(__name__)

# Substrings (lowercase) that mark a failure as an authentication problem.
AUTH_FAILURE_MARKERS = (
    "authentication",
    "authorized",
    "tf31002",  # unable to connect / no workspace found
    "tf30063",  # not authorized to access the server
)

# Variables the Visual Studio developer prompt sets up for integrated credentials.
VS_CREDENTIAL_VARS = ("VSINSTALLDIR", "VSSDK140Install")
COLLECTION_URL_VAR = "TF_COLLECTION_URL"

READ_CHUNK_SIZE = 4096


@dataclass
class CommandResult:
    """Captured output of one tf invocation."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def _detect_auth_failure(output: str) -> bool:
    normalized = output.lower()
    return any(marker in normalized for marker in AUTH_FAILURE_MARKERS)


def build_tf_environment(
    use_vs_credentials: bool,
    collection_url: str | None = None,
    base_env: dict[str, str] | None = None,
) -> dict[str, str]:
    """Copy the process environment and add the variables tf needs."""
    env = dict(os.environ if base_env is None else base_env)
    if use_vs_credentials:
        for name in VS_CREDENTIAL_VARS:
            env[name] = env.get(name, "")
        logger.debug(
            "VS credential environment (has_vs_credentials=%s)",
            bool(env.get("VSINSTALLDIR")),
        )
    if collection_url:
        env[COLLECTION_URL_VAR] = collection_url
        logger.debug("Using collection URL %s", collection_url)
    return env


class TfCommandExecutor:
    """Runs tf in the workspace root and turns the outcome into a result or an error.

    Each call spawns its own process. Nothing serializes calls unless
    ``serialize`` is set, in which case every invocation waits for the
    previous one against the same workspace to finish.
    """

    def __init__(
        self,
        workspace_root: Path,
        tf_path: str = "tf",
        use_vs_credentials: bool = True,
        serialize: bool = False,
    ):
        self.workspace_root = workspace_root
        self.tf_path = tf_path
        self.use_vs_credentials = use_vs_credentials
        self.collection_url: str | None = None
        self.serialize = serialize
        self._lock: asyncio.Lock | None = None

    def environment(self) -> dict[str, str]:
        return build_tf_environment(self.use_vs_credentials, self.collection_url)

    async def execute(self, args: list[str], suppress_errors: bool = False) -> CommandResult:
        """Run ``tf <args>``.

        With ``suppress_errors`` the call never raises: a non-zero exit is
        returned as-is and a spawn failure comes back as exit code -1 with
        empty output. Probes for tool presence rely on that.
        """
        if not self.serialize:
            return await self._run(args, suppress_errors)
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            return await self._run(args, suppress_errors)

    async def _run(self, args: list[str], suppress_errors: bool) -> CommandResult:
        command_text = " ".join(args)
        logger.debug(
            "Executing TFVC command: %s (cwd=%s, use_vs_credentials=%s)",
            command_text,
            self.workspace_root,
            self.use_vs_credentials,
        )
        start = time.monotonic()

        try:
            proc = await asyncio.create_subprocess_exec(
                self.tf_path,
                *args,
                cwd=self.workspace_root,
                env=self.environment(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            duration_ms = int((time.monotonic() - start) * 1000)
            if suppress_errors:
                logger.debug("TFVC command could not start (suppressed): %s: %s", command_text, exc)
                return CommandResult(stdout="", stderr="", exit_code=-1)
            logger.error(
                "Failed to execute TFVC command: %s (duration=%dms, tf_path=%s, error=%s)",
                command_text,
                duration_ms,
                self.tf_path,
                exc,
            )
            raise CommandError.from_command_failure(command_text, args, -1, str(exc)) from exc

        stdout, stderr = await asyncio.gather(
            self._drain(proc.stdout, "output"),
            self._drain(proc.stderr, "error"),
        )
        exit_code = await proc.wait()
        duration_ms = int((time.monotonic() - start) * 1000)

        if exit_code == 0 or suppress_errors:
            logger.debug(
                "TFVC command completed: %s (duration=%dms, exit_code=%s)",
                command_text,
                duration_ms,
                exit_code,
            )
            return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)

        output = stderr or stdout
        auth_failure = _detect_auth_failure(output)
        if auth_failure:
            logger.error(
                "TFVC authentication error: %s (duration=%dms, exit_code=%s, use_vs_credentials=%s, "
                "vs_install_dir_set=%s, collection_url=%s, error=%s)",
                command_text,
                duration_ms,
                exit_code,
                self.use_vs_credentials,
                bool(os.environ.get("VSINSTALLDIR")),
                self.collection_url,
                output.strip(),
            )
        else:
            logger.error(
                "TFVC command failed: %s (duration=%dms, exit_code=%s, error=%s)",
                command_text,
                duration_ms,
                exit_code,
                output.strip(),
            )
        raise CommandError.from_command_failure(
            command_text, args, exit_code, output, auth_failure=auth_failure
        )

    @staticmethod
    async def _drain(stream: asyncio.StreamReader | None, label: str) -> str:
        if stream is None:
            return ""
        chunks: list[bytes] = []
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                break
            chunks.append(data)
            logger.debug("TFVC command %s: %s", label, data.decode("utf-8", errors="replace"))
        # Decode once so multi-byte characters split across reads survive.
        return b"".join(chunks).decode("utf-8", errors="replace")
