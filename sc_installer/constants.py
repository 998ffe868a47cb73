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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# -- Resolved paths --
PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"


def load_dependencies() -> dict:
    """Load image names and versions from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = PACKAGE_DIR / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


def dep_image(name: str) -> str:
    """Return ``image:version`` for a dependencies.yaml entry.

    Args:
        name: Top-level key in dependencies.yaml (e.g. ``etcd``).

    Returns:
        Fully tagged image reference.

    Raises:
        KeyError: If the entry has no image.
    """
    image = dep_value(name, "image")
    if not image:
        raise KeyError(f"No image configured for '{name}' in dependencies.yaml")
    version = dep_value(name, "version", default="latest")
    return f"{image}:{version}"


# -- Binaries --
GCLOUD_BINARY = "gcloud"
KUBECTL_BINARY = "kubectl"
CFSSL_BINARY = "cfssl"
CFSSLJSON_BINARY = "cfssljson"
REQUIRED_BINARIES = (GCLOUD_BINARY, KUBECTL_BINARY, CFSSL_BINARY, CFSSLJSON_BINARY)

# -- Install defaults --
DEFAULT_NAMESPACE = "service-catalog"
DEFAULT_APISERVER_SERVICE_NAME = "service-catalog-api"
DEFAULT_WORK_DIR_PARENT = "/tmp"
WORK_DIR_PREFIX = "service-catalog"
DEFAULT_ROLLOUT_TIMEOUT = "5m"

# -- Resource names --
APISERVER_DEPLOYMENT = "apiserver"
CONTROLLER_MANAGER_DEPLOYMENT = "controller-manager"
API_SERVICE_NAME = "v1beta1.servicecatalog.k8s.io"

APISERVICE_READY_MAX_RETRIES = 60
APISERVICE_READY_POLL_INTERVAL_SECONDS = 5

# -- Certificate generation --
CA_CSR_TEMPLATE = "ca_csr.json.j2"
GENCERT_CONFIG_TEMPLATE = "gencert_config.json.j2"
CA_CONFIG_FILE = "ca_config.json"
CA_CSR_FILE = "ca_csr.json"
GENCERT_CONFIG_FILE = "gencert_config.json"
CA_BASENAME = "ca"
APISERVER_CERT_BASENAME = "apiserver"

# -- Manifests --
# Rendered with base64 encoded certificate material.
CERT_MANIFESTS = (
    "api-registration.yaml",
    "tls-cert-secret.yaml",
)

# Rendered with configuration values only.
PLAIN_MANIFESTS = (
    "namespace.yaml",
    "service-accounts.yaml",
    "rbac.yaml",
    "service.yaml",
    "etcd.yaml",
    "etcd-svc.yaml",
    "apiserver-deployment.yaml",
    "controller-manager-deployment.yaml",
)

DEPLOY_ORDER = (
    "namespace.yaml",
    "service-accounts.yaml",
    "rbac.yaml",
    "service.yaml",
    "api-registration.yaml",
    "etcd.yaml",
    "etcd-svc.yaml",
    "tls-cert-secret.yaml",
    "apiserver-deployment.yaml",
    "controller-manager-deployment.yaml",
)

UNDEPLOY_ORDER = (
    "apiserver-deployment.yaml",
    "controller-manager-deployment.yaml",
    "tls-cert-secret.yaml",
    "etcd-svc.yaml",
    "etcd.yaml",
    "api-registration.yaml",
    "service.yaml",
    "rbac.yaml",
    "service-accounts.yaml",
    "namespace.yaml",
)

MANIFEST_FILE_MODE = 0o644
