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
Base class of all enrichers.

An enricher contributes to the generated manifests in two phases: ``create``
adds objects that are missing, ``enrich`` completes objects that exist. All
enrichers share the same list of objects; later enrichers see everything
earlier ones added.
"""
import logging
import re
from enum import Enum
from typing import Dict, List, Optional

from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.kubernetes_list import KubernetesListBuilder
from ..MODELS.kubernetes_resources import Deployment, DeploymentConfig
from ..MODELS.resource_config import ControllerResourceConfig, ResourceConfig
from .enricher_context import EnricherContext

ENRICHER_PROPERTY_PREFIX = "jkube.enricher"
JKUBE_DEFAULT_IMAGE_PULL_POLICY = "IfNotPresent"
JKUBE_ENFORCED_IMAGE_PULL_POLICY = "jkube.imagePullPolicy"
JKUBE_ENFORCED_REPLICAS = "jkube.replicas"

_INVALID_RESOURCE_NAME_CHARS = re.compile(r"[^a-z0-9-]+")
MAX_RESOURCE_NAME_LENGTH = 63


class PlatformMode(str, Enum):
    """
    Flavor of the generated manifests.
    """
    KUBERNETES = "kubernetes"
    OPENSHIFT = "openshift"


class BaseEnricher:
    """
    Base for enrichers, providing access to configuration and project data.

    Subclasses set ``NAME`` and declare their configuration keys with default
    values in ``DEFAULTS``. A key is looked up in the enricher configuration
    first, then in the project property ``jkube.enricher.<name>.<key>``.
    """
    NAME = ""
    DEFAULTS: Dict[str, Optional[str]] = {}

    def __init__(self, context: EnricherContext, name: Optional[str] = None):
        self.context = context
        self.name = name or self.NAME
        self.log = logging.getLogger(f"jkube.ENRICHERS.{self.name}")

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        """Adds missing objects. Does nothing by default."""

    def enrich(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        """Completes existing objects. Does nothing by default."""

    # Configuration

    def get_config(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Looks up a configuration value of this enricher.

        :param key: Configuration key.
        :param default: Used if the key is configured nowhere, overrides ``DEFAULTS``.
        :return: The value as string, or None.
        """
        value = self.context.processor_config.get_config(self.name, key)
        if value is not None:
            return str(value)
        value = self.context.get_property(f"{ENRICHER_PROPERTY_PREFIX}.{self.name}.{key}")
        if value is not None:
            return value
        return default if default is not None else self.DEFAULTS.get(key)

    def get_config_bool(self, key: str, default: bool = False) -> bool:
        value = self.get_config(key)
        if value is None or not value.strip():
            return default
        return value.strip().lower() == "true"

    def get_config_with_fallback(self, key: str, fallback_property: str, default: Optional[str] = None) -> Optional[str]:
        """Like get_config, with a project property consulted before the default."""
        value = self.get_config(key, self.context.get_property(fallback_property))
        return value if value is not None else default

    # Project data

    @property
    def images(self) -> List[ImageConfiguration]:
        return self.context.images or []

    def has_image_configuration(self) -> bool:
        return bool(self.images)

    @property
    def resource_config(self) -> ResourceConfig:
        return self.context.resources

    @property
    def controller_config(self) -> ControllerResourceConfig:
        return self.context.resources.controller

    def get_controller_name(self, default: str) -> str:
        configured = self.controller_config.controller_name
        return configured if configured and configured.strip() else default

    def get_image_pull_policy(self, config_key: Optional[str] = None) -> str:
        """
        The pull policy for containers: the enforcing property wins over the
        controller configuration, which wins over the enricher configuration.
        """
        enforced = self.context.get_property(JKUBE_ENFORCED_IMAGE_PULL_POLICY)
        if enforced and enforced.strip():
            return enforced
        if self.controller_config.image_pull_policy and self.controller_config.image_pull_policy.strip():
            return self.controller_config.image_pull_policy
        configured = self.get_config(config_key) if config_key else None
        if configured and configured.strip():
            return configured
        return JKUBE_DEFAULT_IMAGE_PULL_POLICY

    def get_replica_count(self, builder: Optional[KubernetesListBuilder], default: int) -> int:
        enforced = self.context.get_property(JKUBE_ENFORCED_REPLICAS)
        if enforced and enforced.strip():
            return int(enforced)
        for item in builder or []:
            if isinstance(item, (Deployment, DeploymentConfig)) and item.spec is not None \
                    and item.spec.replicas is not None:
                return item.spec.replicas
        if self.controller_config.replicas is not None:
            return self.controller_config.replicas
        return default

    def default_resource_name(self) -> str:
        return create_default_resource_name(self.context.project.artifact_id)


def create_default_resource_name(*names: str) -> str:
    """
    Builds a valid object name (DNS label) out of the given parts.
    """
    name = "-".join(n for n in names if n).lower()
    name = _INVALID_RESOURCE_NAME_CHARS.sub("-", name).strip("-")
    return name[:MAX_RESOURCE_NAME_LENGTH].rstrip("-")
