"""Subprocess-based backend running an external schema compiler."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import IO, TextIO

from schema_codegen.build.models import InvocationResult
from schema_codegen.errors import InvocationError
from schema_codegen.generator.base import GeneratorRequest

logger = logging.getLogger(__name__)

DEFAULT_GENERATOR_COMMAND = "xjc"
OUTPUT_ENCODING = "utf-8"


class CliGeneratorBackend:
    """Runs ``<command> <args...>`` and streams the tool's output as it is produced.

    Output is read as bytes and decoded line by line; undecodable bytes
    become replacement characters.
    """

    def __init__(
        self,
        command: str = DEFAULT_GENERATOR_COMMAND,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.command = _split_command(command)
        self._stdout = stdout
        self._stderr = stderr

    def run(self, request: GeneratorRequest) -> InvocationResult:
        argv = [*self.command, *request.args]
        env = os.environ.copy()
        if request.classpath:
            env["CLASSPATH"] = _join_classpath(request.classpath, env.get("CLASSPATH"))

        logger.debug("Running generator: %s", shlex.join(argv))
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as error:
            raise InvocationError(f"Generator command not found: {self.command[0]}") from error
        except OSError as error:
            raise InvocationError(f"Generator failed to start: {error}") from error

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        pumps = [
            _start_pump(process.stdout, self._stdout or sys.stdout, stdout_lines),
            _start_pump(process.stderr, self._stderr or sys.stderr, stderr_lines),
        ]
        exit_code = process.wait()
        for pump in pumps:
            pump.join()
        return InvocationResult(
            exit_code=exit_code,
            stdout="".join(stdout_lines),
            stderr="".join(stderr_lines),
        )


def _start_pump(
    pipe: IO[bytes] | None,
    target: TextIO,
    collected: list[str],
) -> threading.Thread:
    def _pump() -> None:
        if pipe is None:
            return
        with pipe:
            for raw in iter(pipe.readline, b""):
                line = raw.decode(OUTPUT_ENCODING, errors="replace")
                collected.append(line)
                target.write(line)
                target.flush()

    thread = threading.Thread(target=_pump, name="generator-output", daemon=True)
    thread.start()
    return thread


def _split_command(command: str) -> list[str]:
    argv = shlex.split(command.strip())
    if not argv:
        raise ValueError("Generator command is empty.")
    return argv


def _join_classpath(entries: Sequence[Path], existing: str | None) -> str:
    parts = [str(entry.absolute()) for entry in entries]
    if existing:
        parts.append(existing)
    return os.pathsep.join(parts)
