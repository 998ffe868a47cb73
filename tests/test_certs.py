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

import json

import pytest

from sc_installer.certs import CertificateError, generate_cert_config, generate_ssl_artifacts


def test_cert_config_hosts(work_dir, install_config):
    ca_csr, gencert = generate_cert_config(work_dir, install_config)

    ca = json.loads(ca_csr.read_text())
    assert ca["CN"] == "service-catalog-api"
    assert ca["hosts"] == [
        "service-catalog-api.service-catalog",
        "service-catalog-api.service-catalog.svc",
    ]

    server = json.loads(gencert.read_text())
    assert server["hosts"] == ca["hosts"]
    assert server["key"] == {"algo": "rsa", "size": 2048}


def test_cert_config_uses_configured_names(work_dir, install_config):
    config = install_config.model_copy(update={"namespace": "catalog", "apiserver_service_name": "api"})
    ca_csr, _ = generate_cert_config(work_dir, config)
    assert json.loads(ca_csr.read_text())["hosts"] == ["api.catalog", "api.catalog.svc"]


def test_generate_ssl_artifacts(fake_bin, fake_log, work_dir, install_config):
    artifacts = generate_ssl_artifacts(work_dir, install_config)

    assert artifacts.missing() == []
    assert artifacts.ca_file.read_text() == f"cert for {work_dir / 'ca'}"
    assert artifacts.apiserver_private_key_file.read_text() == f"key for {work_dir / 'apiserver'}"
    assert json.loads((work_dir / "ca_config.json").read_text())["signing"]["default"]

    calls = fake_log.read_text().splitlines()
    assert len(calls) == 4
    # Commands within one pipeline run concurrently, so only compare per pipeline.
    assert sorted(calls[:2]) == [
        f"cfssl genkey -initca {work_dir / 'ca_csr.json'}",
        f"cfssljson -bare {work_dir / 'ca'}",
    ]
    assert sorted(calls[2:]) == [
        f"cfssl gencert -ca {work_dir / 'ca.pem'} -ca-key {work_dir / 'ca-key.pem'} "
        f"-config {work_dir / 'ca_config.json'} {work_dir / 'gencert_config.json'}",
        f"cfssljson -bare {work_dir / 'apiserver'}",
    ]


def test_ca_generation_failure_includes_stderr(fake_bin, monkeypatch, work_dir, install_config):
    monkeypatch.setenv("FAKE_CFSSL_FAIL", "bad csr")
    with pytest.raises(CertificateError, match="error generating ca") as excinfo:
        generate_ssl_artifacts(work_dir, install_config)
    assert "bad csr" in str(excinfo.value)


def test_missing_key_file_is_an_error(fake_bin, monkeypatch, work_dir, install_config):
    monkeypatch.setenv("FAKE_CFSSLJSON_SKIP_KEY", "1")
    with pytest.raises(CertificateError, match="ca-key.pem"):
        generate_ssl_artifacts(work_dir, install_config)


def test_cfssl_not_installed(empty_path, fake_log, work_dir, install_config):
    with pytest.raises(CertificateError, match="error generating ca"):
        generate_ssl_artifacts(work_dir, install_config)
