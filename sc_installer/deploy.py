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

"""kubectl create/delete of rendered manifests and rollout checks."""

from __future__ import annotations

from pathlib import Path

import sh
from rich.panel import Panel
from tenacity import RetryError, retry, stop_after_attempt, wait_fixed

from sc_installer import console, logger
from sc_installer.config import InstallConfig
from sc_installer.constants import (
    API_SERVICE_NAME,
    APISERVER_DEPLOYMENT,
    APISERVICE_READY_MAX_RETRIES,
    APISERVICE_READY_POLL_INTERVAL_SECONDS,
    CONTROLLER_MANAGER_DEPLOYMENT,
    DEPLOY_ORDER,
    UNDEPLOY_ORDER,
)
from sc_installer.utils import run_kubectl


class DeployError(RuntimeError):
    """Raised when a manifest cannot be created in the cluster."""


def _command_output(err: sh.ErrorReturnCode) -> str:
    """Combine stdout and stderr of a failed sh command."""
    out = (err.stdout or b"") + (err.stderr or b"")
    return out.decode("utf-8", errors="replace").strip()


def deploy(work_dir: Path) -> None:
    """Create every manifest in *work_dir* in deploy order.

    Stops at the first manifest kubectl rejects.

    Args:
        work_dir: Directory holding the rendered manifests.

    Raises:
        DeployError: If ``kubectl create`` fails for any manifest.
    """
    console.print(Panel.fit("Deploying Service Catalog", style="bold blue"))
    for name in DEPLOY_ORDER:
        path = work_dir / name
        try:
            sh.kubectl("create", "-f", str(path))
        except sh.ErrorReturnCode as err:
            raise DeployError(f"deploy of {name} failed with output: {_command_output(err)}") from err
        console.print(f"[green]  \u2713 {name}[/green]")


def undeploy(work_dir: Path) -> list[str]:
    """Delete every manifest in *work_dir* in teardown order.

    Failures are reported and skipped so that as much as possible is removed.

    Args:
        work_dir: Directory holding the rendered manifests.

    Returns:
        Names of the manifests that could not be deleted.
    """
    console.print(Panel.fit("Deleting Service Catalog", style="bold blue"))
    failed: list[str] = []
    for name in UNDEPLOY_ORDER:
        path = work_dir / name
        try:
            sh.kubectl("delete", "-f", str(path))
        except sh.ErrorReturnCode as err:
            logger.warning("error deleting resources in file %s: %s", name, _command_output(err))
            console.print(f"[yellow]\u26a0\ufe0f  {name} could not be deleted, continuing[/yellow]")
            failed.append(name)
            continue
        console.print(f"[green]  \u2713 {name}[/green]")
    return failed


@retry(
    stop=stop_after_attempt(APISERVICE_READY_MAX_RETRIES),
    wait=wait_fixed(APISERVICE_READY_POLL_INTERVAL_SECONDS),
    reraise=True,
)
def _check_apiservice_available() -> None:
    """Check the Service Catalog APIService reports Available=True.

    Raises:
        RuntimeError: If the APIService is missing or not yet available.
    """
    ok, stdout, stderr = run_kubectl([
        "get", "apiservice", API_SERVICE_NAME,
        "-o", 'jsonpath={.status.conditions[?(@.type=="Available")].status}',
    ])
    if not ok:
        raise RuntimeError(f"APIService {API_SERVICE_NAME} not found: {stderr.strip()}")
    if stdout.strip() != "True":
        raise RuntimeError(f"APIService {API_SERVICE_NAME} not available")


def wait_for_rollout(config: InstallConfig) -> None:
    """Wait for the Service Catalog deployments and APIService to be ready.

    Args:
        config: Install configuration with namespace and rollout timeout.

    Raises:
        RuntimeError: If a rollout fails or the APIService never becomes available.
    """
    console.print("[yellow]\u2139\ufe0f  Waiting for Service Catalog rollout...[/yellow]")
    for deployment in (APISERVER_DEPLOYMENT, CONTROLLER_MANAGER_DEPLOYMENT):
        try:
            sh.kubectl(
                "rollout", "status", f"deployment/{deployment}",
                "-n", config.namespace,
                f"--timeout={config.rollout_timeout}",
            )
        except sh.ErrorReturnCode as err:
            raise RuntimeError(
                f"deployment {deployment} did not roll out: {_command_output(err)}") from err
    try:
        _check_apiservice_available()
    except (RuntimeError, RetryError) as err:
        raise RuntimeError(f"Timed out waiting for APIService {API_SERVICE_NAME}") from err
    console.print("[green]\u2705 Service Catalog API is available[/green]")
