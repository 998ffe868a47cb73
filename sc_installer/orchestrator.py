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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

from rich.panel import Panel

from sc_installer import console, logger
from sc_installer.certs import generate_ssl_artifacts
from sc_installer.config import InstallConfig
from sc_installer.constants import KUBECTL_BINARY, WORK_DIR_PREFIX
from sc_installer.deploy import deploy, undeploy, wait_for_rollout
from sc_installer.manifests import describe_manifest, generate_deployment_configs
from sc_installer.utils import check_dependencies, require_command


def _prepare_work_dir(config: InstallConfig) -> tuple[Path, bool]:
    """Create the working directory for certificates and manifests.

    Args:
        config: Install configuration with an explicit work dir or a parent
            for a fresh temporary directory.

    Returns:
        Tuple of (work_dir, created). ``created`` is True only for a fresh
        temporary directory, which is the only kind cleanup may remove.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    try:
        if config.work_dir is not None:
            config.work_dir.mkdir(parents=True, exist_ok=True)
            return config.work_dir, False
        config.work_dir_parent.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX, dir=config.work_dir_parent)), True
    except OSError as err:
        raise RuntimeError(f"error creating temporary dir: {err}") from err


def _print_dry_run_summary(manifests: list[Path]) -> None:
    console.print(Panel.fit("Dry run: manifests not applied", style="bold blue"))
    for path in manifests:
        for kind, name in describe_manifest(path):
            console.print(f"  {path.name:<38} {kind}/{name}")


def install_service_catalog(config: InstallConfig) -> Path:
    """Install Service Catalog into the cluster kubectl is configured for.

    Checks dependencies, generates the CA and API server certificate, renders
    the manifests and creates them in the cluster. With ``dry_run`` set, stops
    after rendering and always keeps the generated files.

    Args:
        config: Resolved install configuration.

    Returns:
        The working directory holding the generated files. Pass it to
        :func:`uninstall_service_catalog` to remove the installation. When a
        temporary directory was cleaned up after success it no longer exists.
        A directory given as ``work_dir`` is never removed.

    Raises:
        RuntimeError: If any step fails.
    """
    check_dependencies()

    work_dir, created = _prepare_work_dir(config)
    logger.info("using working directory %s", work_dir)

    try:
        ssl_artifacts = generate_ssl_artifacts(work_dir, config)
    except RuntimeError as err:
        raise RuntimeError(f"error generating SSL artifacts: {err}") from err

    try:
        manifests = generate_deployment_configs(work_dir, ssl_artifacts, config)
    except RuntimeError as err:
        raise RuntimeError(f"error generating YAML files: {err}") from err

    if config.dry_run:
        if config.cleanup_temp_dir_on_success:
            logger.warning("cleanup is ignored for a dry run, generated files are kept")
        _print_dry_run_summary(manifests)
        console.print(f"[green]\u2705 Manifests written to {work_dir}[/green]")
        return work_dir

    try:
        deploy(work_dir)
    except RuntimeError as err:
        raise RuntimeError(f"error deploying YAML files: {err}") from err

    if config.wait:
        try:
            wait_for_rollout(config)
        except RuntimeError as err:
            raise RuntimeError(f"error waiting for rollout: {err}") from err

    console.print("[green]\u2705 Service Catalog installed successfully[/green]")

    if config.cleanup_temp_dir_on_success and created:
        shutil.rmtree(work_dir, ignore_errors=True)
        logger.info("removed working directory %s", work_dir)
    else:
        if config.cleanup_temp_dir_on_success:
            logger.warning("not removing user supplied working directory %s", work_dir)
        console.print(f"[yellow]   Generated files kept in {work_dir} (needed for uninstall)[/yellow]")
    return work_dir


def uninstall_service_catalog(work_dir: Path) -> list[str]:
    """Remove a Service Catalog installation.

    Args:
        work_dir: Directory holding the manifests rendered at install time.

    Returns:
        Names of the manifests that could not be deleted.

    Raises:
        RuntimeError: If kubectl is missing or *work_dir* is not a directory.
    """
    require_command(KUBECTL_BINARY)
    if not work_dir.is_dir():
        raise RuntimeError(f"manifest directory {work_dir} does not exist")

    failed = undeploy(work_dir)
    if failed:
        console.print(f"[yellow]\u26a0\ufe0f  {len(failed)} manifests could not be deleted: {', '.join(failed)}[/yellow]")
    else:
        console.print("[green]\u2705 Service Catalog uninstalled successfully[/green]")
    return failed
