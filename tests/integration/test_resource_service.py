# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Integration tests generating manifests from a project directory.
"""
import pytest
import yaml
from jkube.BUILDERS.config_helper import init_image_configuration
from jkube.ENRICHERS.base_enricher import PlatformMode
from jkube.MANAGERS.resource_service import ResourceService
from jkube.PARSERS.project_config_parser import ProjectConfigParser
from jkube.UTILS.last_modified import read_last_modified

DESCRIPTOR = """
project:
  groupId: org.acme
  artifactId: shop
  version: 1.2.0
images:
  - name: acme/shop:%v
    alias: web
    build:
      ports: ["8080"]
resources:
  namespace: prod
  labels:
    all:
      team: checkout
  controller:
    replicas: 2
    env:
      JAVA_OPTIONS: -Xmx512m
  serviceAccounts:
    - name: shop-runner
      deploymentRef: shop
"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "jkube.yml").write_text(DESCRIPTOR)
    fragments = tmp_path / "src" / "main" / "jkube"
    fragments.mkdir(parents=True)
    (fragments / "settings-cm.yml").write_text("data:\n  a: '1'\n")
    (fragments / "z-cm.yml").write_text("metadata:\n  name: settings\ndata:\n  b: '2'\n")
    (fragments / "shop-svc.yml").write_text("spec:\n  type: NodePort\n")
    return tmp_path


def service(project_dir):
    config = ProjectConfigParser().parse(str(project_dir / "jkube.yml"))
    images = init_image_configuration(config.project, config.images)
    return ResourceService(config, images)


class TestResourceService:
    """Tests for ResourceService."""

    def test_generate(self, project):
        """Test fragments and defaults are enriched together."""
        resources = service(project).generate().build()
        kinds = [(item.kind, item.name) for item in resources]
        assert kinds == [
            ("ConfigMap", "settings"),
            ("Service", "shop"),
            ("ConfigMap", "settings"),
            ("Deployment", "shop"),
            ("ServiceAccount", "shop-runner"),
        ]
        fragment_service = resources[1]
        assert fragment_service.spec.type == "NodePort"
        assert fragment_service.spec.ports[0].port == 8080
        deployment = resources[3]
        assert deployment.spec.replicas == 2
        assert deployment.template.spec.service_account_name == "shop-runner"
        [container] = deployment.template.spec.containers
        assert container.image == "acme/shop:1.2.0"
        assert [(e.name, e.value) for e in container.env] == [("JAVA_OPTIONS", "-Xmx512m")]
        assert all(item.metadata.namespace == "prod" for item in resources)
        assert all(item.metadata.labels["team"] == "checkout" for item in resources)
        assert all(item.metadata.labels["app"] == "shop" for item in resources)

    def test_write_resources(self, project, tmp_path):
        """Test one file per object, the manifest and the marker are written."""
        out = tmp_path / "out"
        result = service(project).write_resources(PlatformMode.KUBERNETES, str(out))
        assert [p.rsplit("/", 1)[-1] for p in result.resource_files] == [
            "settings-configmap.yml", "shop-service.yml", "shop-deployment.yml", "shop-runner-serviceaccount.yml",
        ]
        settings = yaml.safe_load((out / "kubernetes" / "settings-configmap.yml").read_text())
        assert settings["data"] == {"a": "1", "b": "2"}
        manifest = yaml.safe_load((out / "kubernetes.yml").read_text())
        assert len(manifest["items"]) == 5
        assert read_last_modified(str(out)) is not None

    def test_default_output_directory(self, project):
        """Test the output goes below the project by default."""
        result = service(project).write_resources(PlatformMode.OPENSHIFT)
        expected = project / "target" / "classes" / "META-INF" / "jkube"
        assert result.manifest == str(expected / "openshift.yml")
        assert (expected / "openshift" / "shop-deploymentconfig.yml").is_file()
