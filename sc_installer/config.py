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

"""Install configuration, SSL artifact paths, and config display."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from sc_installer import console
from sc_installer.constants import (
    APISERVER_CERT_BASENAME,
    CA_BASENAME,
    DEFAULT_APISERVER_SERVICE_NAME,
    DEFAULT_NAMESPACE,
    DEFAULT_ROLLOUT_TIMEOUT,
    DEFAULT_WORK_DIR_PARENT,
    dep_image,
)

DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


# ============================================================================
# Configuration classes
# ============================================================================

class InstallConfig(BaseSettings):
    """Service Catalog install configuration, auto-loaded from SC_* env vars.

    Attributes:
        namespace: Namespace the Service Catalog components run in.
        apiserver_service_name: Service name of the Service Catalog API server.
        work_dir_parent: Parent directory for the temporary working directory.
        work_dir: Explicit working directory, or None for a fresh temp dir.
        cleanup_temp_dir_on_success: Whether to delete the working directory
            after a successful install.
        dry_run: Generate certificates and manifests only, do not deploy.
        wait: Wait for the deployments and the APIService to become ready.
        rollout_timeout: Timeout passed to ``kubectl rollout status``.
        apiserver_image: Image for the API server deployment.
        controller_manager_image: Image for the controller manager deployment.
        etcd_image: Image for the etcd backing store.
    """

    model_config = SettingsConfigDict(env_prefix="SC_", extra="ignore")

    namespace: str = Field(default=DEFAULT_NAMESPACE, max_length=63, pattern=DNS_LABEL_PATTERN)
    apiserver_service_name: str = Field(
        default=DEFAULT_APISERVER_SERVICE_NAME, max_length=63, pattern=DNS_LABEL_PATTERN)
    work_dir_parent: Path = Path(DEFAULT_WORK_DIR_PARENT)
    work_dir: Path | None = None
    cleanup_temp_dir_on_success: bool = False
    dry_run: bool = False
    wait: bool = False
    rollout_timeout: str = Field(default=DEFAULT_ROLLOUT_TIMEOUT, pattern=r"^\d+[smh]$")
    apiserver_image: str = dep_image("service_catalog")
    controller_manager_image: str = dep_image("service_catalog")
    etcd_image: str = dep_image("etcd")

    @property
    def apiserver_host(self) -> str:
        """In-cluster DNS name of the API server service (``<svc>.<ns>``)."""
        return f"{self.apiserver_service_name}.{self.namespace}"

    def template_context(self) -> dict[str, str]:
        """Values available to every manifest template."""
        return {
            "namespace": self.namespace,
            "apiserver_service_name": self.apiserver_service_name,
            "apiserver_image": self.apiserver_image,
            "controller_manager_image": self.controller_manager_image,
            "etcd_image": self.etcd_image,
        }


# ============================================================================
# SSL artifacts
# ============================================================================

@dataclass(frozen=True)
class SSLArtifacts:
    """Paths of the certificate files produced by cfssljson.

    Attributes:
        ca_file: CA certificate (``ca.pem``).
        ca_private_key_file: CA private key (``ca-key.pem``).
        apiserver_cert_file: API server certificate (``apiserver.pem``).
        apiserver_private_key_file: API server private key (``apiserver-key.pem``).
    """

    ca_file: Path
    ca_private_key_file: Path
    apiserver_cert_file: Path
    apiserver_private_key_file: Path

    @classmethod
    def in_dir(cls, work_dir: Path) -> SSLArtifacts:
        """Build the artifact paths cfssljson ``-bare`` writes into *work_dir*."""
        return cls(
            ca_file=work_dir / f"{CA_BASENAME}.pem",
            ca_private_key_file=work_dir / f"{CA_BASENAME}-key.pem",
            apiserver_cert_file=work_dir / f"{APISERVER_CERT_BASENAME}.pem",
            apiserver_private_key_file=work_dir / f"{APISERVER_CERT_BASENAME}-key.pem",
        )

    def missing(self) -> list[Path]:
        """Return the artifact paths that do not exist on disk."""
        paths = (
            self.ca_file,
            self.ca_private_key_file,
            self.apiserver_cert_file,
            self.apiserver_private_key_file,
        )
        return [p for p in paths if not p.is_file()]


# ============================================================================
# Display
# ============================================================================

def display_config(config: InstallConfig) -> None:
    """Print the effective install configuration.

    Args:
        config: Resolved install configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  namespace               : {config.namespace}")
    console.print(f"  apiserver_service_name  : {config.apiserver_service_name}")
    console.print(f"  work_dir                : {config.work_dir or f'(temp dir under {config.work_dir_parent})'}")
    console.print(f"  cleanup_on_success      : {config.cleanup_temp_dir_on_success}")
    console.print(f"  dry_run                 : {config.dry_run}")
    console.print(f"  apiserver_image         : {config.apiserver_image}")
    console.print(f"  controller_manager_image: {config.controller_manager_image}")
    console.print(f"  etcd_image              : {config.etcd_image}")
