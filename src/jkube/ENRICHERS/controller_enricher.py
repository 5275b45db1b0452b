"""
Adds a default controller running the configured images.
"""
import re
from typing import List, Optional

from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.kubernetes_list import KubernetesListBuilder
from ..MODELS.kubernetes_resources import (
    CONTROLLER_KINDS,
    ContainerPort,
    Controller,
    DaemonSet,
    Deployment,
    DeploymentConfig,
    EnvVar,
    Job,
    KubernetesContainer,
    MapSelectorWorkloadSpec,
    ObjectMeta,
    PodSpec,
    PodTemplateSpec,
    ReplicaSet,
    ReplicationController,
    StatefulSet,
    StatefulSetSpec,
    WorkloadSpec,
)
from .base_enricher import BaseEnricher, PlatformMode
from .image_enricher import container_image_name, default_pull_policy, extract_container_name

SWITCH_TO_DEPLOYMENT = "jkube.build.switchToDeployment"

_PORT_PATTERN = re.compile(r"^(\d+)(?:/(tcp|udp))?$", re.IGNORECASE)


class ControllerEnricher(BaseEnricher):
    """
    Creates a controller of the configured ``type`` if the images are not
    run by any controller yet. On OpenShift a DeploymentConfig replaces
    the Deployment, unless ``jkube.build.switchToDeployment`` is set.
    """
    NAME = "jkube-controller"
    DEFAULTS = {"name": None, "pullPolicy": "IfNotPresent", "type": "deployment", "replicaCount": "1"}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        if builder.has_kind(*CONTROLLER_KINDS) or not self.images:
            return
        name = self.get_controller_name(self.get_config("name") or self.default_resource_name())
        controller_type = (self.get_config("type") or "deployment").lower()
        controller = self._create_controller(platform_mode, controller_type, name, builder)
        if controller is None:
            self.log.warning("Unknown controller type '%s', no default controller added", controller_type)
            return
        self.log.info("Adding a default %s", controller.kind)
        builder.add_to_items(controller)

    def _create_controller(self, platform_mode: PlatformMode, controller_type: str, name: str,
                           builder: KubernetesListBuilder) -> Optional[Controller]:
        metadata = ObjectMeta(name=name)
        template = PodTemplateSpec(spec=PodSpec(containers=self._containers()))
        replicas = self.get_replica_count(builder, int(self.get_config("replicaCount")))
        if controller_type in ("deployment", "deploymentconfig"):
            if platform_mode == PlatformMode.OPENSHIFT and not self._use_deployment_for_openshift():
                return DeploymentConfig(metadata=metadata,
                                        spec=MapSelectorWorkloadSpec(replicas=replicas, template=template))
            return Deployment(metadata=metadata, spec=WorkloadSpec(replicas=replicas, template=template))
        if controller_type == "statefulset":
            return StatefulSet(metadata=metadata,
                               spec=StatefulSetSpec(replicas=replicas, service_name=name, template=template))
        if controller_type == "daemonset":
            return DaemonSet(metadata=metadata, spec=WorkloadSpec(template=template))
        if controller_type == "replicaset":
            return ReplicaSet(metadata=metadata, spec=WorkloadSpec(replicas=replicas, template=template))
        if controller_type == "replicationcontroller":
            return ReplicationController(metadata=metadata,
                                         spec=MapSelectorWorkloadSpec(replicas=replicas, template=template))
        if controller_type == "job":
            template = PodTemplateSpec(spec=PodSpec(containers=template.spec.containers, restartPolicy="OnFailure"))
            return Job(metadata=metadata, spec=WorkloadSpec(template=template))
        return None

    def _use_deployment_for_openshift(self) -> bool:
        value = self.context.get_property(SWITCH_TO_DEPLOYMENT)
        return value is not None and value.strip().lower() == "true"

    def _containers(self) -> List[KubernetesContainer]:
        pull_policy = self.get_image_pull_policy("pullPolicy")
        return [self._container(image, pull_policy) for image in self.images]

    def _container(self, image: ImageConfiguration, pull_policy: str) -> KubernetesContainer:
        configured_policy = None if pull_policy == "IfNotPresent" else pull_policy
        return KubernetesContainer(
            name=extract_container_name(self.context.project, image),
            image=container_image_name(image),
            image_pull_policy=default_pull_policy(image, configured_policy),
            env=[EnvVar(name=k, value=v) for k, v in self.controller_config.env.items()],
            ports=self._ports(image),
        )

    @staticmethod
    def _ports(image: ImageConfiguration) -> List[ContainerPort]:
        ret = []
        for spec in image.build.ports if image.build is not None else []:
            match = _PORT_PATTERN.match(spec.strip())
            if match:
                ret.append(ContainerPort(container_port=int(match.group(1)),
                                         protocol=(match.group(2) or "tcp").upper()))
        return ret
