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

"""Utility functions for dependency checks, kubectl, and file encoding."""

from __future__ import annotations

import base64
import subprocess
from collections.abc import Iterable
from pathlib import Path

import sh

from sc_installer import logger
from sc_installer.constants import KUBECTL_BINARY, REQUIRED_BINARIES


class MissingDependenciesError(RuntimeError):
    """Raised when required binaries are not on PATH."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"{','.join(missing)} commands not found in the PATH")


def command_exists(cmd: str) -> bool:
    """Return True if *cmd* resolves to an executable on PATH."""
    try:
        sh.Command(cmd)
    except sh.CommandNotFound:
        return False
    return True


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    if not command_exists(cmd):
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.")


def find_missing_commands(cmds: Iterable[str]) -> list[str]:
    """Return the commands in *cmds* that are not on PATH, in input order."""
    missing = [cmd for cmd in cmds if not command_exists(cmd)]
    for cmd in missing:
        logger.debug("command %s not found in PATH", cmd)
    return missing


def check_dependencies(cmds: Iterable[str] = REQUIRED_BINARIES) -> None:
    """Look up the binaries the installer depends on.

    Args:
        cmds: Command names to look up.

    Raises:
        MissingDependenciesError: If one or more commands are missing.
    """
    missing = find_missing_commands(cmds)
    if missing:
        raise MissingDependenciesError(missing)


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            [KUBECTL_BINARY, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def check_cluster_access() -> None:
    """Verify kubectl can reach the configured cluster.

    Raises:
        RuntimeError: If ``kubectl cluster-info`` fails.
    """
    ok, _, stderr = run_kubectl(["cluster-info"])
    if not ok:
        raise RuntimeError(f"Unable to reach the Kubernetes cluster: {stderr.strip()}")


def base64_file_content(path: Path) -> str:
    """Return the standard base64 encoding of a file's bytes."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")
