# /*
# Copyright 2026 The Kubernetes Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Shell-style process pipelines.

``pipeline`` strings external commands together the way ``a | b | c`` does in
a shell: each command's stdout feeds the next command's stdin. The output of
the final command is returned together with the standard error of *every*
command, and the first failure (in pipeline order) is raised.

Uses subprocess instead of sh because the pipeline needs direct control over
how each child's stdin, stdout and stderr file descriptors are wired.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Union

from sc_installer import logger

Argv = Sequence[Union[str, "os.PathLike[str]"]]


@dataclass(frozen=True)
class PipelineResult:
    """Output of a completed pipeline.

    Attributes:
        output: Standard output of the last command.
        stderr: Standard error collected from all commands.
    """

    output: bytes
    stderr: bytes

    @property
    def text(self) -> str:
        """Last command's output decoded as UTF-8."""
        return self.output.decode("utf-8", errors="replace")


class PipelineError(RuntimeError):
    """Raised for the first command in a pipeline that failed.

    Attributes:
        argv: Arguments of the failing command.
        returncode: Exit status, or None if the command never started.
        output: Output of the last command collected so far.
        stderr: Standard error collected from all commands.
    """

    def __init__(
        self,
        argv: list[str],
        returncode: int | None,
        output: bytes,
        stderr: bytes,
        reason: str | None = None,
    ) -> None:
        self.argv = argv
        self.returncode = returncode
        self.output = output
        self.stderr = stderr
        if reason is None:
            reason = f"exit status {returncode}"
        super().__init__(f"command '{shlex.join(argv)}' failed: {reason}")


def _read_all(buf: IO[bytes]) -> bytes:
    buf.flush()
    buf.seek(0)
    return buf.read()


def _abort(procs: list[subprocess.Popen]) -> None:
    """Kill and reap processes that were started before a failure."""
    for proc in procs:
        if proc.stdout:
            proc.stdout.close()
        proc.kill()
        proc.wait()


def pipeline(
    *commands: Argv,
    input: bytes | None = None,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> PipelineResult:
    """Run *commands* as a pipeline and collect their output.

    All commands are started before any of them is waited on. Every command is
    reaped even when an earlier one fails.

    Args:
        *commands: Argument vectors, one per pipeline stage.
        input: Bytes fed to the first command's stdin, or None for no input.
        cwd: Working directory for every command.
        env: Environment for every command, or None to inherit.

    Returns:
        The last command's output and the collected standard error.

    Raises:
        PipelineError: For the first command that could not be started or
            exited with a non-zero status.
    """
    if not commands:
        return PipelineResult(output=b"", stderr=b"")

    argvs = [[os.fspath(arg) for arg in cmd] for cmd in commands]
    logger.debug("running pipeline: %s", " | ".join(shlex.join(a) for a in argvs))

    with tempfile.TemporaryFile() as errbuf, tempfile.TemporaryFile() as inbuf:
        if input is not None:
            inbuf.write(input)
            inbuf.seek(0)
            stdin: IO[bytes] | int = inbuf
        else:
            stdin = subprocess.DEVNULL

        procs: list[subprocess.Popen] = []
        for argv in argvs:
            try:
                proc = subprocess.Popen(
                    argv,
                    stdin=stdin,
                    stdout=subprocess.PIPE,
                    stderr=errbuf,
                    cwd=cwd,
                    env=env,
                )
            except OSError as err:
                _abort(procs)
                raise PipelineError(argv, None, b"", _read_all(errbuf), reason=str(err)) from err
            if procs:
                # The new process holds the read end now.
                procs[-1].stdout.close()
            procs.append(proc)
            stdin = proc.stdout

        output, _ = procs[-1].communicate()

        failed: tuple[list[str], int] | None = None
        for argv, proc in zip(argvs, procs):
            returncode = proc.wait()
            if returncode != 0 and failed is None:
                failed = (argv, returncode)

        stderr = _read_all(errbuf)

    if failed is not None:
        argv, returncode = failed
        raise PipelineError(argv, returncode, output, stderr)
    return PipelineResult(output=output, stderr=stderr)
