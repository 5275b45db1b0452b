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
Unit tests for image resolution, filtering and validation.
"""
import logging
from datetime import datetime

import pytest
from jkube.BUILDERS.config_helper import (
    init_and_validate,
    init_image_configuration,
    matches_configured_images,
    resolve_images,
    validate_external_property_activation,
)
from jkube.errors import ConfigurationError
from jkube.MODELS.image_configuration import (
    BuildConfiguration,
    ExternalConfig,
    HealthCheckConfiguration,
    ImageConfiguration,
    NetworkConfig,
    RunConfiguration,
)
from jkube.MODELS.project import JavaProject


def identity(image):
    return [image]


class TestResolveImages:
    """Tests for resolve_images."""

    def test_filter_by_name(self):
        """Test a filter keeps the named images."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        assert [i.name for i in resolve_images(images, identity, "a")] == ["a"]

    def test_filter_by_alias(self):
        """Test a filter matches aliases too."""
        images = [ImageConfiguration(name="a", alias="x"), ImageConfiguration(name="b"),
                  ImageConfiguration(name="c")]
        assert [i.name for i in resolve_images(images, identity, "x , b")] == ["a", "b"]

    def test_filter_matching_nothing_warns(self, caplog):
        """Test an empty result is a warning, not an error."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        with caplog.at_level(logging.WARNING):
            assert resolve_images(images, identity, "z") == []
        assert "None of the resolved images [a,b] match the configured filter 'z'" in caplog.text

    def test_no_filter_keeps_all(self):
        """Test None keeps every image."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        assert len(resolve_images(images, identity)) == 2

    def test_resolver_expands(self):
        """Test a resolver producing several images per input."""
        def expand(image):
            return [image, image.copy_with(name=image.name + "-2")]

        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        assert [i.name for i in resolve_images(images, expand)] == ["a", "a-2", "b", "b-2"]

    def test_resolved_image_without_name(self):
        """Test images must have a name after resolution."""
        with pytest.raises(ConfigurationError, match="must have a non-null <name>"):
            resolve_images([ImageConfiguration(alias="x")], identity)

    def test_customizer(self):
        """Test the customizer rewrites the list before filtering."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        result = resolve_images(images, identity, None, lambda resolved: list(reversed(resolved)))
        assert [i.name for i in result] == ["b", "a"]

    def test_none_images(self):
        """Test no configured images."""
        assert resolve_images(None, identity) == []


def test_matches_configured_images():
    assert matches_configured_images(None, ImageConfiguration(name="a"))
    assert matches_configured_images("a,b", ImageConfiguration(name="b"))
    assert not matches_configured_images("a,b", ImageConfiguration(name="c", alias="d"))


class TestInitAndValidate:
    """Tests for init_and_validate."""

    def test_names_are_formatted(self):
        """Test the formatter is applied to all names."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        init_and_validate(images, None, lambda name: name.upper())
        assert [i.name for i in images] == ["A", "B"]

    def test_no_requirements(self):
        """Test the given version is kept."""
        assert init_and_validate([ImageConfiguration(name="a")], "1.18", lambda n: n) == "1.18"
        assert init_and_validate([ImageConfiguration(name="a")], None, lambda n: n) is None

    def test_highest_required_version(self):
        """Test the highest version of all images is returned."""
        images = [
            ImageConfiguration(name="a", build=BuildConfiguration(args={"A": "1"})),
            ImageConfiguration(name="b", build=BuildConfiguration(health_check=HealthCheckConfiguration())),
            ImageConfiguration(name="c", run=RunConfiguration(network=NetworkConfig(mode="custom", name="n"))),
        ]
        assert init_and_validate(images, "1.9", lambda n: n) == "1.24"

    def test_version_order_is_numeric(self):
        """Test 1.100 is higher than 1.24."""
        images = [ImageConfiguration(name="a", build=BuildConfiguration(health_check=HealthCheckConfiguration()))]
        assert init_and_validate(images, "1.100", lambda n: n) == "1.100"

    def test_invalid_build(self):
        """Test validation errors propagate."""
        images = [ImageConfiguration(name="a", build=BuildConfiguration(docker_file="Dockerfile",
                                                                        docker_archive="image.tar"))]
        with pytest.raises(ConfigurationError):
            init_and_validate(images, None, lambda n: n)

    def test_invalid_auto_pull(self):
        """Test an unknown autoPull mode is rejected."""
        images = [ImageConfiguration(name="a", run=RunConfiguration(auto_pull="sometimes"))]
        with pytest.raises(ConfigurationError, match="Valid values are"):
            init_and_validate(images, None, lambda n: n)


class TestExternalPropertyActivation:
    """Tests for validate_external_property_activation."""

    def project(self):
        return JavaProject(properties={"docker.imagePropertyConfiguration": "override"})

    def test_multiple_images_rejected(self):
        """Test ambiguous activation fails."""
        images = [ImageConfiguration(name="a"), ImageConfiguration(name="b")]
        with pytest.raises(ConfigurationError, match="docker.imagePropertyConfiguration"):
            validate_external_property_activation(self.project(), images)

    def test_single_image(self):
        """Test one image may pick up the properties."""
        validate_external_property_activation(self.project(), [ImageConfiguration(name="a")])

    def test_explicit_prefixes_coexist(self):
        """Test images with own prefixes do not conflict."""
        images = [
            ImageConfiguration(name="a", external=ExternalConfig(prefix="first")),
            ImageConfiguration(name="b", external=ExternalConfig(prefix="second")),
            ImageConfiguration(name="c"),
        ]
        validate_external_property_activation(self.project(), images)

    def test_not_activated(self):
        """Test nothing is checked without the property."""
        validate_external_property_activation(JavaProject(), [ImageConfiguration(name="a"),
                                                              ImageConfiguration(name="b")])

    def test_skip_disables_activation(self):
        """Test the value skip turns activation off."""
        project = JavaProject(properties={"docker.imagePropertyConfiguration": "skip"})
        validate_external_property_activation(project, [ImageConfiguration(name="a"), ImageConfiguration(name="b")])


def test_init_image_configuration(caplog):
    project = JavaProject(
        group_id="org.acme", artifact_id="shop", version="2.0.0",
        properties={"jkube.container-image.name": "%g/%a:%v"},
    )
    images = [
        ImageConfiguration(name="ignored", external=ExternalConfig(type="properties", mode="override"),
                           build=BuildConfiguration(docker_file="src/main/docker/Dockerfile")),
    ]
    with caplog.at_level(logging.INFO):
        resolved = init_image_configuration(project, images, build_timestamp=datetime(2024, 5, 1))
    assert [i.name for i in resolved] == ["acme/shop:2.0.0"]
    assert "Using Dockerfile:" in caplog.text
