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
Models for image configurations, including their build and run parts.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import ConfigurationError
from ..UTILS.version_util import extract_larger_version
from .pull_mode import AutoPullMode


class ConfigModel(BaseModel):
    """
    Base for configuration models read from camelCase descriptors.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthCheckConfiguration(ConfigModel):
    """
    Health check baked into the image.
    """
    mode: str = "cmd"
    cmd: List[str] = []
    interval: Optional[str] = None
    timeout: Optional[str] = None
    start_period: Optional[str] = None
    retries: Optional[int] = None


class BuildConfiguration(ConfigModel):
    """
    How an image is built.
    """
    from_image: Optional[str] = Field(default=None, alias="from")
    docker_file: Optional[str] = None
    docker_archive: Optional[str] = None
    context_dir: Optional[str] = None
    filter: Optional[str] = None
    ports: List[str] = []
    env: Dict[str, str] = {}
    labels: Dict[str, str] = {}
    args: Dict[str, str] = {}
    tags: List[str] = []
    cmd: List[str] = []
    entrypoint: List[str] = []
    health_check: Optional[HealthCheckConfiguration] = None

    def init_and_validate(self) -> Optional[str]:
        """
        Validates the build configuration.

        :return: The minimal API version this configuration requires, or None.
        :raises ConfigurationError: If both a Dockerfile and an archive are given.
        """
        if self.docker_file and self.docker_archive:
            raise ConfigurationError("Both <dockerFile> and <dockerArchive> are set. Only one of them can be specified.")
        if self.health_check is not None:
            return "1.24"
        if self.args:
            return "1.21"
        return None


class NetworkConfig(ConfigModel):
    """
    Network of a container: bridge, host, none, container:<name> or a custom network.
    """
    mode: Optional[str] = None
    name: Optional[str] = None
    aliases: List[str] = []

    @property
    def is_custom(self) -> bool:
        return self.mode == "custom" or (self.mode is None and bool(self.name) and ":" not in self.name)

    @property
    def container_alias(self) -> Optional[str]:
        """The container whose network is shared, for ``container:<name>`` networks."""
        for candidate in (self.mode, self.name):
            if candidate and candidate.startswith("container:"):
                return candidate[len("container:"):]
        if self.mode == "container":
            return self.name
        return None


class RunConfiguration(ConfigModel):
    """
    How a container is started from the image.
    """
    container_name_pattern: Optional[str] = None
    env: Dict[str, str] = {}
    ports: List[str] = []
    links: List[str] = []
    volumes_from: List[str] = []
    depends_on: List[str] = []
    network: Optional[NetworkConfig] = None
    cmd: List[str] = []
    auto_pull: Optional[str] = None

    @property
    def auto_pull_mode(self) -> Optional[AutoPullMode]:
        if self.auto_pull is None:
            return None
        return AutoPullMode.from_string(self.auto_pull)

    def init_and_validate(self) -> Optional[str]:
        """
        Validates the run configuration.

        :return: The minimal API version this configuration requires, or None.
        :raises ConfigurationError: If ``autoPull`` is not a valid mode.
        """
        if self.auto_pull is not None:
            AutoPullMode.from_string(self.auto_pull)
        if self.network is not None and self.network.is_custom:
            return "1.21"
        return None

    def dependencies(self) -> List[str]:
        """
        Names or aliases of the images this container depends on, without duplicates.
        """
        ret: List[str] = []

        def add(name: Optional[str]):
            if name and name not in ret:
                ret.append(name)

        for volume in self.volumes_from:
            add(volume)
        for link in self.links:
            # link is <container>[:<alias>]
            add(link.split(":", 1)[0].strip())
        for name in self.depends_on:
            add(name)
        if self.network is not None:
            add(self.network.container_alias)
        return ret


class ExternalConfig(ConfigModel):
    """
    Points an image at configuration held outside the descriptor.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: str = "properties"
    prefix: Optional[str] = None
    mode: Optional[str] = None


class ImageConfiguration(ConfigModel):
    """
    An image to build and/or run. Identified by its name and optional alias.
    """
    name: Optional[str] = None
    alias: Optional[str] = None
    registry: Optional[str] = None
    build: Optional[BuildConfiguration] = None
    run: Optional[RunConfiguration] = None
    external: Optional[ExternalConfig] = None

    @property
    def description(self) -> str:
        """Readable identifier used in log and error messages."""
        if self.alias:
            return f"[{self.name}] \"{self.alias}\""
        return f"[{self.name}]"

    @property
    def dependencies(self) -> List[str]:
        if self.run is None:
            return []
        return self.run.dependencies()

    def init_and_validate(self) -> Optional[str]:
        """
        Validates the build and run parts.

        :return: The highest minimal API version they require, or None.
        """
        version = None
        if self.build is not None:
            version = extract_larger_version(version, self.build.init_and_validate())
        if self.run is not None:
            version = extract_larger_version(version, self.run.init_and_validate())
        return version

    def copy_with(self, **changes: Any) -> "ImageConfiguration":
        """
        Returns a deep copy with the given fields replaced.
        """
        return self.model_copy(update=changes, deep=True)
