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
Resolution of image configurations from project properties.

An image with ``external: {type: properties}`` takes its settings from
properties like ``jkube.container-image.name`` or
``jkube.container-image.env.JAVA_OPTIONS``. Indexed properties like
``jkube.container-image.1.name`` define one image per index.
"""
import re
from enum import Enum
from typing import Dict, List, Mapping, Optional

from ..errors import ConfigurationError
from ..MODELS.image_configuration import (
    BuildConfiguration,
    ExternalConfig,
    ImageConfiguration,
    RunConfiguration,
)
from ..MODELS.project import JavaProject

TYPE_NAME = "properties"
DEFAULT_PREFIX = "jkube.container-image"
EXTERNALCONFIG_ACTIVATION_PROPERTY = "docker.imagePropertyConfiguration"


class PropertyMode(str, Enum):
    """
    How property values combine with values configured in the descriptor.
    """
    ONLY = "only"
    OVERRIDE = "override"
    FALLBACK = "fallback"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PropertyMode":
        if value is None:
            return cls.ONLY
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(f"Invalid property mode '{value}'. Valid values are: {valid}") from None


class ValueProvider:
    """
    Reads the values of one image from properties below a prefix.
    """

    def __init__(self, prefix: str, properties: Mapping[str, str], mode: PropertyMode):
        self.prefix = prefix
        self.properties = properties
        self.mode = mode

    def get_string(self, key: str, configured: Optional[str]) -> Optional[str]:
        value = self.properties.get(f"{self.prefix}.{key}")
        if self.mode == PropertyMode.FALLBACK:
            return configured if configured is not None else value
        if self.mode == PropertyMode.ONLY:
            return value
        return value if value is not None else configured

    def get_list(self, key: str, configured: List[str]) -> List[str]:
        raw = self.properties.get(f"{self.prefix}.{key}")
        value = [item.strip() for item in raw.split(",") if item.strip()] if raw is not None else None
        if self.mode == PropertyMode.FALLBACK:
            return configured if configured else (value or [])
        if self.mode == PropertyMode.ONLY:
            return value or []
        return value if value is not None else configured

    def get_map(self, key: str, configured: Dict[str, str]) -> Dict[str, str]:
        key_prefix = f"{self.prefix}.{key}."
        value = {k[len(key_prefix):]: v for k, v in self.properties.items() if k.startswith(key_prefix)}
        if self.mode == PropertyMode.ONLY:
            return value
        if self.mode == PropertyMode.FALLBACK:
            merged = dict(value)
            merged.update(configured)
            return merged
        merged = dict(configured)
        merged.update(value)
        return merged


class PropertyConfigResolver:
    """
    Resolves image configurations backed by project properties.
    """

    def resolve(self, image: ImageConfiguration, project: JavaProject) -> List[ImageConfiguration]:
        """
        Resolves one image configuration.

        :param image: The configured image.
        :param project: The project providing the properties.
        :return: The resolved images; the image itself if it is not property based.
        """
        external = self._effective_external(image, project)
        if external is None or external.type != TYPE_NAME:
            return [image]
        mode = PropertyMode.parse(external.mode)
        if mode == PropertyMode.SKIP:
            return [image]
        prefix = external.prefix or DEFAULT_PREFIX
        properties = project.properties

        indexes = self._indexes(prefix, properties)
        if not indexes:
            return [self._resolve_single(image, ValueProvider(prefix, properties, mode))]
        return [
            self._resolve_single(image, ValueProvider(f"{prefix}.{index}", properties, mode))
            for index in indexes
        ]

    __call__ = resolve

    @staticmethod
    def _effective_external(image: ImageConfiguration, project: JavaProject) -> Optional[ExternalConfig]:
        if image.external is not None:
            return image.external
        activation = get_external_config_activation_property(project)
        if activation is None:
            return None
        return ExternalConfig(type=TYPE_NAME, mode=activation)

    @staticmethod
    def _indexes(prefix: str, properties: Mapping[str, str]) -> List[int]:
        pattern = re.compile(re.escape(prefix) + r"\.(\d+)\.")
        found = set()
        for key in properties:
            match = pattern.match(key)
            if match:
                found.add(int(match.group(1)))
        return sorted(found)

    @staticmethod
    def _resolve_single(image: ImageConfiguration, values: ValueProvider) -> ImageConfiguration:
        build = image.build or BuildConfiguration()
        run = image.run or RunConfiguration()
        name = values.get_string("name", image.name)
        if name is None:
            name = image.name
        if name is None:
            raise ConfigurationError(f"Mandatory property [{values.prefix}.name] is not defined")

        new_build = build.model_copy(update={
            "from_image": values.get_string("from", build.from_image),
            "docker_file": values.get_string("dockerFile", build.docker_file),
            "ports": values.get_list("ports", build.ports),
            "tags": values.get_list("tags", build.tags),
            "env": values.get_map("env", build.env),
            "labels": values.get_map("labels", build.labels),
            "args": values.get_map("args", build.args),
        }, deep=True)
        new_run = run.model_copy(update={
            "container_name_pattern": values.get_string("containerNamePattern", run.container_name_pattern),
            "links": values.get_list("links", run.links),
            "volumes_from": values.get_list("volumesFrom", run.volumes_from),
            "depends_on": values.get_list("dependsOn", run.depends_on),
        }, deep=True)
        return image.copy_with(
            name=name,
            alias=values.get_string("alias", image.alias) or image.alias,
            registry=values.get_string("registry", image.registry) or image.registry,
            build=new_build,
            run=new_run,
        )


def can_coexist_with_other_property_configured_images(external: Optional[ExternalConfig]) -> bool:
    """
    Whether an image stays unaffected by globally activated property configuration.
    """
    if external is None:
        return False
    if external.type != TYPE_NAME:
        return True
    # an explicit prefix keeps images apart, even if several use the default one
    return external.prefix is not None


def get_external_config_activation_property(project: JavaProject) -> Optional[str]:
    """
    The mode to apply property configuration with to images without explicit
    external configuration, None if not activated or explicitly skipped.
    """
    value = project.get_property(EXTERNALCONFIG_ACTIVATION_PROPERTY)
    if value is not None and value.strip().lower() == PropertyMode.SKIP.value:
        return None
    return value
