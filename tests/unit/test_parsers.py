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
Unit tests for the descriptor and fragment parsers.
"""
import json

import pytest
from jkube.errors import ConfigurationError
from jkube.MODELS.kubernetes_resources import ConfigMap, Deployment, GenericResource, Secret, Service
from jkube.PARSERS.project_config_parser import ProjectConfigParser, load_properties
from jkube.PARSERS.resource_fragment_parser import (
    list_fragment_files,
    name_with_suffix,
    read_resource_fragment,
    read_resource_fragments,
)

DESCRIPTOR = """
project:
  groupId: org.acme
  artifactId: shop
  version: ${revision}
  properties:
    revision: 2.0.0
    registry: quay.io
images:
  - name: ${registry}/acme/shop:${revision}
    alias: web
    build:
      ports: ["8080"]
    run:
      dependsOn: [db]
  - name: postgres:15
    alias: db
resources:
  namespace: ${namespace:-default}
enricher:
  excludes: [jkube-namespace]
"""


class TestProjectConfigParser:
    """Tests for ProjectConfigParser."""

    def test_parse_from_string(self):
        """Test a descriptor with interpolated values."""
        config = ProjectConfigParser().parse_from_string(DESCRIPTOR)
        assert config.project.artifact_id == "shop"
        assert config.project.version == "2.0.0"
        assert config.project.properties == {"revision": "2.0.0", "registry": "quay.io"}
        assert [i.name for i in config.images] == ["quay.io/acme/shop:2.0.0", "postgres:15"]
        assert config.images[0].run.depends_on == ["db"]
        assert config.resources.namespace == "default"
        assert config.enricher.excludes == ["jkube-namespace"]
        assert config.resource_dir == "src/main/jkube"

    def test_property_overrides(self):
        """Test given properties win over declared ones."""
        config = ProjectConfigParser({"revision": "3.0.0"}).parse_from_string(DESCRIPTOR)
        assert config.project.version == "3.0.0"
        assert config.project.properties["revision"] == "3.0.0"

    def test_unknown_expressions_are_kept(self):
        """Test unresolved expressions stay in the values."""
        config = ProjectConfigParser().parse_from_string("images:\n  - name: ${undefined_image_property}/app\n")
        assert config.images[0].name == "${undefined_image_property}/app"

    def test_empty_descriptor(self):
        """Test an empty descriptor yields defaults."""
        config = ProjectConfigParser().parse_from_string("")
        assert config.images == []
        assert config.project.artifact_id == "app"

    @pytest.mark.parametrize("content", ["   \n\t  \n", "\t", "\n\n"])
    def test_blank_descriptor(self, content):
        """Test a descriptor of only whitespace, tabs included, yields defaults."""
        assert ProjectConfigParser().parse_from_string(content).images == []

    @pytest.mark.parametrize("content", [
        "project: [",
        "- a\n- b\n",
        "images: not-a-list\n",
        "project: shop\n",
    ])
    def test_invalid_descriptors(self, content):
        """Test malformed descriptors are configuration errors."""
        with pytest.raises(ConfigurationError):
            ProjectConfigParser().parse_from_string(content)

    def test_parse_file_resolves_base_dir(self, tmp_path):
        """Test the base directory is relative to the descriptor."""
        descriptor = tmp_path / "jkube.yml"
        descriptor.write_text("project:\n  baseDir: module\n")
        config = ProjectConfigParser().parse(str(descriptor))
        assert config.project.base_dir == str(tmp_path / "module")

    def test_missing_file(self, tmp_path):
        """Test a missing descriptor."""
        with pytest.raises(ConfigurationError, match="Cannot read project descriptor"):
            ProjectConfigParser().parse(str(tmp_path / "missing.yml"))


def test_load_properties(tmp_path):
    path = tmp_path / "build.properties"
    path.write_text("# comment\nrevision=4.0.0\nEMPTY=\nQUOTED=\"a b\"\n")
    assert load_properties(str(path)) == {"revision": "4.0.0", "EMPTY": "", "QUOTED": "a b"}
    with pytest.raises(ConfigurationError):
        load_properties(str(tmp_path / "missing.properties"))


class TestResourceFragments:
    """Tests for reading resource fragments."""

    def test_kind_and_name_from_file_name(self, tmp_path):
        """Test <name>-<type>.yml."""
        path = tmp_path / "my-app-svc.yml"
        path.write_text("spec:\n  ports:\n  - port: 80\n")
        service = read_resource_fragment(str(path))
        assert isinstance(service, Service)
        assert service.name == "my-app"
        assert service.api_version == "v1"
        assert service.spec.ports[0].port == 80

    def test_kind_only_file_name(self, tmp_path):
        """Test a file named after the kind leaves the name open."""
        path = tmp_path / "deployment.yml"
        path.write_text("spec:\n  replicas: 2\n")
        deployment = read_resource_fragment(str(path))
        assert isinstance(deployment, Deployment)
        assert deployment.name is None
        assert deployment.api_version == "apps/v1"

    def test_json_fragment(self, tmp_path):
        """Test JSON fragments."""
        path = tmp_path / "db-secret.json"
        path.write_text(json.dumps({"stringData": {"user": "admin"}}))
        secret = read_resource_fragment(str(path))
        assert isinstance(secret, Secret)
        assert secret.name == "db"
        assert secret.string_data == {"user": "admin"}

    def test_explicit_values_win(self, tmp_path):
        """Test kind and name of the fragment have precedence."""
        path = tmp_path / "x-svc.yml"
        path.write_text("kind: ConfigMap\nmetadata:\n  name: settings\n")
        config_map = read_resource_fragment(str(path))
        assert isinstance(config_map, ConfigMap)
        assert config_map.name == "settings"

    def test_unknown_kind_keeps_fields(self, tmp_path):
        """Test fragments of kinds without model."""
        path = tmp_path / "route.yml"
        path.write_text("apiVersion: route.openshift.io/v1\nkind: Route\nmetadata:\n  name: web\nspec:\n  to: {}\n")
        route = read_resource_fragment(str(path))
        assert isinstance(route, GenericResource)
        assert route.kind == "Route"

    def test_no_kind(self, tmp_path):
        """Test fragments without any kind information."""
        path = tmp_path / "app.yml"
        path.write_text("spec: {}\n")
        with pytest.raises(ConfigurationError, match="No type given as part of the file name"):
            read_resource_fragment(str(path))

    @pytest.mark.parametrize("content", [
        "kind: Deployment\n",
        "apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: shop\n",
    ])
    def test_unknown_type(self, tmp_path, content):
        """Test a type in the file name must be known, even for complete fragments."""
        path = tmp_path / "my-app.yml"
        path.write_text(content)
        with pytest.raises(ConfigurationError, match="Unknown type 'app' for file my-app.yml. Must be one of: cm, "):
            read_resource_fragment(str(path))

    def test_kind_file_name_with_kind(self, tmp_path):
        """Test a file named after a kind gives no name, even with an explicit kind."""
        path = tmp_path / "deployment.yml"
        path.write_text("kind: Deployment\n")
        assert read_resource_fragment(str(path)).name is None

    def test_invalid_content(self, tmp_path):
        """Test fragments not holding a single object."""
        path = tmp_path / "app-svc.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="single object"):
            read_resource_fragment(str(path))
        path.write_text("spec: [\n")
        with pytest.raises(ConfigurationError, match="invalid syntax"):
            read_resource_fragment(str(path))

    def test_directory(self, tmp_path):
        """Test only fragment files are read, in name order."""
        (tmp_path / "b-svc.yml").write_text("{}")
        (tmp_path / "a-cm.yaml").write_text("data:\n  k: v\n")
        (tmp_path / "chart.helm.yaml").write_text("kind: Whatever\n")
        (tmp_path / "README.md").write_text("docs")
        assert [p.rsplit("/", 1)[-1] for p in list_fragment_files(str(tmp_path))] == ["a-cm.yaml", "b-svc.yml"]
        builder = read_resource_fragments(str(tmp_path))
        assert [(item.kind, item.name) for item in builder] == [("ConfigMap", "a"), ("Service", "b")]

    def test_missing_directory(self, tmp_path):
        """Test a missing directory has no fragments."""
        assert len(read_resource_fragments(str(tmp_path / "missing"))) == 0


def test_name_with_suffix():
    assert name_with_suffix("my-app", "Service") == "my-app-service"
    assert name_with_suffix("db", "ConfigMap") == "db-configmap"
    assert name_with_suffix("web", "Route") == "web-route"
