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
Merges the image configurations into the containers of all pod templates.
"""
from typing import Dict, List, Optional

from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import Controller, EnvVar, KubernetesContainer, PodTemplateSpec
from ..MODELS.project import JavaProject
from ..REGISTRY.image_name import ImageName
from ..BUILDERS.image_name_formatter import sanitize_name
from .base_enricher import BaseEnricher, PlatformMode, create_default_resource_name

# variables whose values add up instead of being replaced
ACCUMULATING_ENV_VARS = ("JAVA_OPTIONS", "JAVA_OPTS")


def container_image_name(image: ImageConfiguration) -> str:
    """The image name, prefixed with the image registry if one is configured."""
    if image.registry and image.registry.strip():
        return f"{image.registry}/{image.name}"
    return image.name


def extract_container_name(project: JavaProject, image: ImageConfiguration) -> str:
    """
    The alias of the image, or ``<image user>-<artifact id>`` if it has none.
    """
    if image.alias:
        return create_default_resource_name(image.alias)
    try:
        user = ImageName.parse(image.name).user
    except ValueError:
        user = None
    if not user:
        group_id = project.group_id.rstrip(".")
        user = sanitize_name(group_id[group_id.rfind(".") + 1:])
    return create_default_resource_name(user, project.artifact_id)


def default_pull_policy(image: ImageConfiguration, configured: Optional[str]) -> str:
    if configured:
        return configured
    mode = image.run.auto_pull_mode if image.run is not None else None
    if mode is not None and mode.always_pull:
        return "Always"
    if image.name and image.name.endswith(":latest"):
        return "Always"
    return "IfNotPresent"


class ImageEnricher(BaseEnricher):
    """
    Makes sure every controller has a pod template with one container per
    image and completes name, image, pull policy and environment of these
    containers. Values already set on a container are kept.
    """
    NAME = "jkube-image"
    DEFAULTS = {"pullPolicy": None}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        if not self.has_image_configuration():
            self.log.debug("No images resolved. Skipping ...")
            return
        builder.accept(ResourceKind.CONTROLLER, self._ensure_template)
        builder.accept(ResourceKind.POD_TEMPLATE_SPEC, self._update_containers)

    @staticmethod
    def _ensure_template(controller: Controller):
        controller.ensure_template()

    def _update_containers(self, template: PodTemplateSpec):
        containers = template.spec.containers
        for idx, image in enumerate(self.images):
            if idx < len(containers):
                container = containers[idx]
            else:
                container = KubernetesContainer()
                containers.append(container)
            self._merge_image_pull_policy(image, container)
            self._merge_image(image, container)
            self._merge_container_name(image, container)
            self._merge_env_variables(container)

    def _merge_container_name(self, image: ImageConfiguration, container: KubernetesContainer):
        if not (container.name and container.name.strip()):
            container.name = extract_container_name(self.context.project, image)
            self.log.debug("Setting container name %s", container.name)

    def _merge_image(self, image: ImageConfiguration, container: KubernetesContainer):
        if not (container.image and container.image.strip()):
            container.image = container_image_name(image)
            self.log.debug("Setting image %s", container.image)

    def _merge_image_pull_policy(self, image: ImageConfiguration, container: KubernetesContainer):
        if not (container.image_pull_policy and container.image_pull_policy.strip()):
            container.image_pull_policy = default_pull_policy(image, self.get_config("pullPolicy"))

    def _merge_env_variables(self, container: KubernetesContainer):
        merge_env_variables(container, self.controller_config.env, self.log)


def merge_env_variables(container: KubernetesContainer, env: Dict[str, str], log) -> List[EnvVar]:
    """
    Adds environment variables to a container.

    Variables missing on the container are added. For ``JAVA_OPTIONS`` and
    ``JAVA_OPTS`` the new value is prepended to the existing one. Any other
    existing variable keeps its value; a conflicting new value is reported.
    Variables already holding the new value stay as they are.

    :return: The environment of the container.
    """
    for name, value in (env or {}).items():
        old = container.get_env(name)
        if old is None:
            container.env.append(EnvVar(name=name, value=value))
        elif value == old.value:
            continue
        elif name in ACCUMULATING_ENV_VARS:
            if old.value is None or not old.value.strip():
                old.value = value
            else:
                old.value = f"{value} {old.value}"
        else:
            log.warning(
                "Environment variable %s will not be overridden: trying to set the value %s, but its actual value is %s",
                name, value, old.value,
            )
    return container.env
