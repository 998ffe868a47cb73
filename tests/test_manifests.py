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

from __future__ import annotations

import base64
import stat

import pytest
import yaml

from sc_installer.constants import CERT_MANIFESTS, DEPLOY_ORDER, PLAIN_MANIFESTS, UNDEPLOY_ORDER
from sc_installer.manifests import (
    ManifestError,
    cert_template_values,
    describe_manifest,
    generate_deployment_configs,
)
from sc_installer.templating import RenderError, copy_static_file, render_template


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _load(path):
    return [doc for doc in yaml.safe_load_all(path.read_text()) if doc]


def test_every_manifest_is_deployed_and_deleted():
    rendered = set(CERT_MANIFESTS) | set(PLAIN_MANIFESTS)
    assert set(DEPLOY_ORDER) == rendered
    assert set(UNDEPLOY_ORDER) == rendered
    assert len(DEPLOY_ORDER) == len(rendered)


def test_namespace_is_created_first_and_deleted_last():
    assert DEPLOY_ORDER[0] == "namespace.yaml"
    assert UNDEPLOY_ORDER[-1] == "namespace.yaml"


def test_cert_template_values(ssl_artifacts):
    values = cert_template_values(ssl_artifacts)
    assert values == {
        "ca_public_key": _b64(b"ca-cert"),
        "svc_public_key": _b64(b"apiserver-cert"),
        "svc_private_key": _b64(b"apiserver-key"),
    }


def test_cert_template_values_missing_file(ssl_artifacts):
    ssl_artifacts.apiserver_private_key_file.unlink()
    with pytest.raises(ManifestError, match="error reading certificate file"):
        cert_template_values(ssl_artifacts)


def test_generate_deployment_configs_writes_all_files(work_dir, ssl_artifacts, install_config):
    paths = generate_deployment_configs(work_dir, ssl_artifacts, install_config)

    assert [p.name for p in paths] == list(CERT_MANIFESTS) + list(PLAIN_MANIFESTS)
    for path in paths:
        assert path.parent == work_dir
        assert stat.S_IMODE(path.stat().st_mode) == 0o644
        assert _load(path)


def test_tls_secret_carries_apiserver_cert(work_dir, ssl_artifacts, install_config):
    generate_deployment_configs(work_dir, ssl_artifacts, install_config)
    (secret,) = _load(work_dir / "tls-cert-secret.yaml")
    assert secret["kind"] == "Secret"
    assert secret["metadata"]["namespace"] == "service-catalog"
    assert secret["data"]["tls.crt"] == _b64(b"apiserver-cert")
    assert secret["data"]["tls.key"] == _b64(b"apiserver-key")


def test_api_registration_carries_ca_bundle(work_dir, ssl_artifacts, install_config):
    generate_deployment_configs(work_dir, ssl_artifacts, install_config)
    (api_service,) = _load(work_dir / "api-registration.yaml")
    assert api_service["kind"] == "APIService"
    assert api_service["spec"]["caBundle"] == _b64(b"ca-cert")
    assert api_service["spec"]["service"] == {
        "name": "service-catalog-api",
        "namespace": "service-catalog",
    }


def test_configured_values_are_substituted(work_dir, ssl_artifacts, install_config):
    config = install_config.model_copy(update={
        "namespace": "catalog",
        "apiserver_service_name": "catalog-api",
        "etcd_image": "registry.local/etcd:v3",
    })
    generate_deployment_configs(work_dir, ssl_artifacts, config)

    (namespace,) = _load(work_dir / "namespace.yaml")
    assert namespace["metadata"]["name"] == "catalog"

    (service,) = _load(work_dir / "service.yaml")
    assert service["metadata"]["name"] == "catalog-api"

    (etcd,) = _load(work_dir / "etcd.yaml")
    assert etcd["spec"]["template"]["spec"]["containers"][0]["image"] == "registry.local/etcd:v3"

    (apiserver,) = _load(work_dir / "apiserver-deployment.yaml")
    args = apiserver["spec"]["template"]["spec"]["containers"][0]["args"]
    assert "http://etcd-svc.catalog.svc.cluster.local:2379" in args

    for path in work_dir.glob("*.yaml"):
        for doc in _load(path):
            ns = doc["metadata"].get("namespace")
            assert ns in (None, "catalog", "kube-system"), path.name


def test_describe_manifest(work_dir, ssl_artifacts, install_config):
    generate_deployment_configs(work_dir, ssl_artifacts, install_config)
    assert describe_manifest(work_dir / "service-accounts.yaml") == [
        ("ServiceAccount", "service-catalog-apiserver"),
        ("ServiceAccount", "service-catalog-controller"),
    ]


def test_strict_rendering_rejects_missing_values():
    with pytest.raises(RenderError, match="Missing value"):
        render_template("tls-cert-secret.yaml.j2", {"namespace": "x"})


def test_unknown_template():
    with pytest.raises(RenderError, match="not found"):
        render_template("nope.yaml.j2", {})


def test_invalid_yaml_is_rejected(work_dir, ssl_artifacts, install_config, monkeypatch):
    def write_broken(dst, name, context):
        dst.write_text("key: [unclosed\n")
        return dst

    monkeypatch.setattr("sc_installer.manifests.generate_file_from_template", write_broken)
    with pytest.raises(ManifestError, match="not valid YAML"):
        generate_deployment_configs(work_dir, ssl_artifacts, install_config)


def test_copy_static_file(work_dir):
    dst = copy_static_file(work_dir / "ca_config.json", "ca_config.json")
    assert '"signing"' in dst.read_text()
