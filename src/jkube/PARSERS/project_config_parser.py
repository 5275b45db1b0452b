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
Parser for jkube.yml project descriptors.
"""
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..MODELS.project_config import ProjectConfig
from ..UTILS.string_interpolation import PropertyInterpolator

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTOR = "jkube.yml"

# Only ${...} expressions are replaced in descriptors, '@' is too common in YAML values
DESCRIPTOR_DELIMITERS = (("${", "}"),)


def load_properties(path: str) -> Dict[str, str]:
    """
    Reads a properties file in ``KEY=VALUE`` format.

    :param path: Path to the file.
    :return: The properties; keys without value map to an empty string.
    :raises ConfigurationError: If the file does not exist.
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"Properties file {path} does not exist")
    return {k: v if v is not None else "" for k, v in dotenv_values(path).items()}


class ProjectConfigParser:
    """
    Parser for project descriptors.

    The descriptor text is interpolated before it is parsed, using the
    properties declared under ``project.properties``, the given property
    overrides and the environment.
    """
    def __init__(self, properties: Optional[Mapping[str, str]] = None):
        """
        :param properties: Properties overriding those of the descriptor.
        """
        self.properties = dict(properties or {})

    def parse(self, descriptor_path: str) -> ProjectConfig:
        """
        Parses a descriptor file. A relative ``project.baseDir`` is resolved
        against the directory of the descriptor.

        :param descriptor_path: Path to the descriptor.
        :return: Parsed configuration.
        """
        try:
            with open(descriptor_path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read project descriptor {descriptor_path}: {e}") from e
        config = self.parse_from_string(content)
        base_dir = os.path.dirname(os.path.abspath(descriptor_path))
        config.project.base_dir = os.path.normpath(os.path.join(base_dir, config.project.base_dir))
        return config

    def parse_from_string(self, content: str) -> ProjectConfig:
        """
        Parses a descriptor from a string.

        :param content: YAML content of the descriptor.
        :return: Parsed configuration.
        :raises ConfigurationError: On invalid YAML or invalid configuration values.
        """
        properties = self._properties(self._load(content))
        content = PropertyInterpolator.interpolate(content, properties, delimiters=DESCRIPTOR_DELIMITERS)
        data = self._load(content)
        if data.get("project") is None:
            data["project"] = {}
        if not isinstance(data["project"], dict):
            raise ConfigurationError("'project' must be a mapping")
        data["project"]["properties"] = properties
        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid project descriptor: {e}") from e

    def _properties(self, data: Dict[str, Any]) -> Dict[str, str]:
        project = data.get("project")
        declared = (project.get("properties") if isinstance(project, dict) else None) or {}
        if not isinstance(declared, dict):
            raise ConfigurationError("'project.properties' must be a mapping")
        properties = {str(k): "" if v is None else str(v) for k, v in declared.items()}
        properties.update(self.properties)
        logger.debug("Project properties: %s", ", ".join(sorted(properties)))
        return properties

    @staticmethod
    def _load(content: str) -> Dict[str, Any]:
        if not content.strip():
            return {}
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigurationError(f"Invalid project descriptor: {e}") from e
        if not data:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Project descriptor must be a mapping")
        return data
