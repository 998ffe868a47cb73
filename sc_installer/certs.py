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

"""Self-signed CA and API server certificate generation via cfssl."""

from __future__ import annotations

from pathlib import Path

from rich.panel import Panel

from sc_installer import console, logger
from sc_installer.config import InstallConfig, SSLArtifacts
from sc_installer.constants import (
    APISERVER_CERT_BASENAME,
    CA_BASENAME,
    CA_CONFIG_FILE,
    CA_CSR_FILE,
    CA_CSR_TEMPLATE,
    CFSSL_BINARY,
    CFSSLJSON_BINARY,
    GENCERT_CONFIG_FILE,
    GENCERT_CONFIG_TEMPLATE,
)
from sc_installer.pipeline import PipelineError, pipeline
from sc_installer.templating import RenderError, copy_static_file, generate_file_from_template


class CertificateError(RuntimeError):
    """Raised when the CA or API server certificate cannot be generated."""


def generate_cert_config(work_dir: Path, config: InstallConfig) -> tuple[Path, Path]:
    """Render the cfssl CSR inputs for the CA and the API server certificate.

    Args:
        work_dir: Directory the JSON files are written to.
        config: Install configuration providing namespace and service name.

    Returns:
        Tuple of (ca_csr_path, gencert_config_path).
    """
    host1 = config.apiserver_host
    data = {
        "host1": host1,
        "host2": f"{host1}.svc",
        "api_service_name": config.apiserver_service_name,
    }
    ca_csr_path = generate_file_from_template(work_dir / CA_CSR_FILE, CA_CSR_TEMPLATE, data)
    gencert_config_path = generate_file_from_template(
        work_dir / GENCERT_CONFIG_FILE, GENCERT_CONFIG_TEMPLATE, data)
    return ca_csr_path, gencert_config_path


def _describe(err: PipelineError) -> str:
    stdout = err.output.decode("utf-8", errors="replace").strip()
    stderr = err.stderr.decode("utf-8", errors="replace").strip()
    return f"stdout: {stdout} stderr: {stderr} err: {err}"


def generate_ssl_artifacts(work_dir: Path, config: InstallConfig) -> SSLArtifacts:
    """Generate a CA and sign an API server certificate with it.

    Runs ``cfssl genkey -initca | cfssljson -bare ca`` followed by
    ``cfssl gencert ... | cfssljson -bare apiserver`` in *work_dir*.

    Args:
        work_dir: Directory for cfssl inputs and the generated PEM files.
        config: Install configuration providing namespace and service name.

    Returns:
        Paths of the generated certificate and key files.

    Raises:
        CertificateError: If a config file cannot be written, either cfssl
            pipeline fails, or an expected PEM file is missing afterwards.
    """
    console.print(Panel.fit("Generating SSL artifacts", style="bold blue"))
    try:
        ca_csr_path, gencert_config_path = generate_cert_config(work_dir, config)
    except RenderError as err:
        raise CertificateError(f"error generating cert config: {err}") from err
    try:
        ca_config_path = copy_static_file(work_dir / CA_CONFIG_FILE, CA_CONFIG_FILE)
    except RenderError as err:
        raise CertificateError(f"error generating ca config: {err}") from err

    artifacts = SSLArtifacts.in_dir(work_dir)
    ca_prefix = work_dir / CA_BASENAME
    apiserver_prefix = work_dir / APISERVER_CERT_BASENAME

    console.print("[yellow]\u2139\ufe0f  Generating certificate authority...[/yellow]")
    try:
        result = pipeline(
            [CFSSL_BINARY, "genkey", "-initca", ca_csr_path],
            [CFSSLJSON_BINARY, "-bare", ca_prefix],
        )
    except PipelineError as err:
        raise CertificateError(f"error generating ca: {_describe(err)}") from err
    logger.debug("cfssl genkey stderr: %s", result.stderr.decode("utf-8", errors="replace"))

    console.print("[yellow]\u2139\ufe0f  Signing API server certificate...[/yellow]")
    try:
        result = pipeline(
            [
                CFSSL_BINARY, "gencert",
                "-ca", artifacts.ca_file,
                "-ca-key", artifacts.ca_private_key_file,
                "-config", ca_config_path,
                gencert_config_path,
            ],
            [CFSSLJSON_BINARY, "-bare", apiserver_prefix],
        )
    except PipelineError as err:
        raise CertificateError(f"error signing api server cert: {_describe(err)}") from err
    logger.debug("cfssl gencert stderr: %s", result.stderr.decode("utf-8", errors="replace"))

    missing = artifacts.missing()
    if missing:
        names = ", ".join(p.name for p in missing)
        raise CertificateError(f"cfssljson did not produce expected files: {names}")

    console.print("[green]\u2705 SSL artifacts generated[/green]")
    logger.info("generated ssl artifacts: %s", artifacts)
    return artifacts
