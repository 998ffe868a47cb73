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

"""
cli.py - Service Catalog installer.

Subcommands:
    check                      Check that cfssl, cfssljson, gcloud and kubectl are on PATH
    install-service-catalog    Generate certificates and manifests, then create them
    uninstall-service-catalog  Delete the manifests rendered by a previous install

Environment Variables:
    Install options can be overridden via SC_* environment variables:
    - SC_NAMESPACE (default: service-catalog)
    - SC_APISERVER_SERVICE_NAME (default: service-catalog-api)
    - SC_WORK_DIR_PARENT (default: /tmp)
    - SC_APISERVER_IMAGE, SC_CONTROLLER_MANAGER_IMAGE, SC_ETCD_IMAGE

Examples:
    # Verify the required tools are installed
    sc check

    # Install into the cluster kubectl points at
    sc install-service-catalog

    # Only render certificates and manifests
    sc install-service-catalog --dry-run --work-dir ./sc-out

    # Remove an installation
    sc uninstall-service-catalog /tmp/service-catalog1a2b3c
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.markup import escape

from sc_installer import console, logger
from sc_installer.config import InstallConfig, display_config
from sc_installer.orchestrator import install_service_catalog, uninstall_service_catalog
from sc_installer.utils import check_cluster_access, check_dependencies

app = typer.Typer(
    help="Installs Service Catalog into a Kubernetes cluster.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    if debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")


def _fail(err: Exception) -> NoReturn:
    console.print(f"[red]\u274c {escape(str(err))}[/red]")
    logger.debug("command failed", exc_info=err)
    raise typer.Exit(code=1)


@app.command()
def check(
    cluster: bool = typer.Option(
        False, "--cluster", help="Also verify kubectl can reach the cluster"),
) -> None:
    """Performs a dependency check.

    This utility requires cfssl, cfssljson, gcloud and kubectl binaries to be
    present in PATH.
    """
    try:
        check_dependencies()
        if cluster:
            check_cluster_access()
    except RuntimeError as err:
        console.print("[red]Dependency check failed[/red]")
        _fail(err)
    console.print("[green]Dependency check passed. You are good to go.[/green]")


@app.command("install-service-catalog")
def install(
    namespace: str | None = typer.Option(
        None, "--namespace", help="Namespace for Service Catalog (overrides SC_NAMESPACE)"),
    apiserver_service_name: str | None = typer.Option(
        None, "--apiserver-service-name", help="Service name of the Service Catalog API server"),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Directory for generated files (default: new temp dir)"),
    cleanup: bool | None = typer.Option(
        None, "--cleanup/--no-cleanup", help="Delete generated files after a successful install"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Generate certificates and manifests, do not deploy them"),
    wait: bool = typer.Option(
        False, "--wait", help="Wait for the deployments and APIService to become ready"),
) -> None:
    """Installs Service Catalog in Kubernetes cluster.

    Assumes kubectl is configured to connect to the Kubernetes cluster.
    """
    try:
        config = InstallConfig()
        overrides: dict = {}
        if namespace is not None:
            overrides["namespace"] = namespace
        if apiserver_service_name is not None:
            overrides["apiserver_service_name"] = apiserver_service_name
        if work_dir is not None:
            overrides["work_dir"] = work_dir
        if cleanup is not None:
            overrides["cleanup_temp_dir_on_success"] = cleanup
        if dry_run:
            overrides["dry_run"] = True
        if wait:
            overrides["wait"] = True
        if overrides:
            config = InstallConfig.model_validate({**config.model_dump(), **overrides})

        display_config(config)
        install_service_catalog(config)
    except Exception as err:
        console.print("[red]Service Catalog could not be installed[/red]")
        _fail(err)


@app.command("uninstall-service-catalog")
def uninstall(
    directory: Path = typer.Argument(
        ..., help="Directory holding the manifests generated by install-service-catalog"),
) -> None:
    """Uninstalls Service Catalog in Kubernetes cluster.

    Assumes kubectl is configured to connect to the Kubernetes cluster.
    """
    try:
        uninstall_service_catalog(directory)
    except Exception as err:
        console.print("[red]Service Catalog could not be uninstalled[/red]")
        _fail(err)


if __name__ == "__main__":
    app()
