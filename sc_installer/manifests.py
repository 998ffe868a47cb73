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

"""Rendering of the Service Catalog manifests."""

from __future__ import annotations

from pathlib import Path

import yaml
from rich.panel import Panel

from sc_installer import console
from sc_installer.config import InstallConfig, SSLArtifacts
from sc_installer.constants import CERT_MANIFESTS, PLAIN_MANIFESTS
from sc_installer.templating import TEMPLATE_SUFFIX, RenderError, generate_file_from_template
from sc_installer.utils import base64_file_content


class ManifestError(RuntimeError):
    """Raised when a manifest cannot be rendered or is not valid YAML."""


def cert_template_values(ssl_artifacts: SSLArtifacts) -> dict[str, str]:
    """Base64 encode the certificate material substituted into manifests.

    Args:
        ssl_artifacts: Paths of the generated certificate files.

    Returns:
        Mapping with ``ca_public_key``, ``svc_public_key`` and ``svc_private_key``.
    """
    try:
        return {
            "ca_public_key": base64_file_content(ssl_artifacts.ca_file),
            "svc_public_key": base64_file_content(ssl_artifacts.apiserver_cert_file),
            "svc_private_key": base64_file_content(ssl_artifacts.apiserver_private_key_file),
        }
    except OSError as err:
        raise ManifestError(f"error reading certificate file: {err}") from err


def _validate_yaml(path: Path) -> None:
    try:
        list(yaml.safe_load_all(path.read_text()))
    except yaml.YAMLError as err:
        raise ManifestError(f"rendered manifest {path.name} is not valid YAML: {err}") from err


def _render(work_dir: Path, name: str, context: dict[str, str]) -> Path:
    try:
        path = generate_file_from_template(work_dir / name, name + TEMPLATE_SUFFIX, context)
    except RenderError as err:
        raise ManifestError(str(err)) from err
    _validate_yaml(path)
    return path


def generate_deployment_configs(
    work_dir: Path,
    ssl_artifacts: SSLArtifacts,
    config: InstallConfig,
) -> list[Path]:
    """Render every Service Catalog manifest into *work_dir*.

    Args:
        work_dir: Directory the manifests are written to.
        ssl_artifacts: Certificate files embedded into the cert manifests.
        config: Install configuration supplying namespace, names and images.

    Returns:
        Paths of the rendered manifests, cert manifests first.

    Raises:
        ManifestError: If a template fails to render or yields invalid YAML.
    """
    console.print(Panel.fit("Rendering manifests", style="bold blue"))
    base = config.template_context()
    cert_context = {**base, **cert_template_values(ssl_artifacts)}

    rendered = [_render(work_dir, name, cert_context) for name in CERT_MANIFESTS]
    rendered += [_render(work_dir, name, base) for name in PLAIN_MANIFESTS]

    console.print(f"[green]\u2705 Rendered {len(rendered)} manifests into {work_dir}[/green]")
    return rendered


def describe_manifest(path: Path) -> list[tuple[str, str]]:
    """List the (kind, name) of every resource in a manifest file."""
    resources = []
    for doc in yaml.safe_load_all(path.read_text()):
        if not isinstance(doc, dict):
            continue
        metadata = doc.get("metadata") or {}
        resources.append((doc.get("kind", "?"), metadata.get("name", "?")))
    return resources
