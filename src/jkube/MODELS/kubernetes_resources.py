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
Typed models of the Kubernetes and OpenShift objects assembled into manifests.

Only the fields read or written while generating manifests are modelled;
everything else is kept as extra data and written back unchanged.
"""
from typing import Any, ClassVar, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KubernetesModel(BaseModel):
    """
    Base for all object models, using the camelCase names of the Kubernetes API.
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class ObjectMeta(KubernetesModel):
    name: Optional[str] = None
    namespace: Optional[str] = None
    labels: Dict[str, str] = {}
    annotations: Dict[str, str] = {}


class LabelSelector(KubernetesModel):
    match_labels: Dict[str, str] = {}
    match_expressions: List[Dict[str, Any]] = []


class EnvVar(KubernetesModel):
    name: str
    value: Optional[str] = None
    value_from: Optional[Dict[str, Any]] = None


class ContainerPort(KubernetesModel):
    container_port: int
    name: Optional[str] = None
    protocol: Optional[str] = None
    host_port: Optional[int] = None


class KubernetesContainer(KubernetesModel):
    """
    A container inside a pod template.
    """
    name: Optional[str] = None
    image: Optional[str] = None
    image_pull_policy: Optional[str] = None
    env: List[EnvVar] = []
    ports: List[ContainerPort] = []

    def get_env(self, name: str) -> Optional[EnvVar]:
        for env_var in self.env:
            if env_var.name == name:
                return env_var
        return None


class PodSpec(KubernetesModel):
    containers: List[KubernetesContainer] = []
    service_account_name: Optional[str] = None
    service_account: Optional[str] = None


class PodTemplateSpec(KubernetesModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)


class ServicePort(KubernetesModel):
    port: int
    name: Optional[str] = None
    protocol: Optional[str] = None
    target_port: Optional[Union[int, str]] = None
    node_port: Optional[int] = None


class ServiceSpec(KubernetesModel):
    type: Optional[str] = None
    cluster_ip: Optional[str] = Field(default=None, alias="clusterIP")
    ports: List[ServicePort] = []
    selector: Dict[str, str] = {}


class WorkloadSpec(KubernetesModel):
    """
    Spec shared by Deployment, StatefulSet, DaemonSet, ReplicaSet and Job.
    """
    replicas: Optional[int] = None
    selector: Optional[LabelSelector] = None
    template: Optional[PodTemplateSpec] = None


class StatefulSetSpec(WorkloadSpec):
    service_name: Optional[str] = None


class MapSelectorWorkloadSpec(KubernetesModel):
    """
    Spec of ReplicationController and DeploymentConfig, which select pods by a plain map.
    """
    replicas: Optional[int] = None
    selector: Dict[str, str] = {}
    template: Optional[PodTemplateSpec] = None


class KubernetesResource(KubernetesModel):
    """
    A top level object of a manifest.
    """
    KIND: ClassVar[str] = ""
    API_VERSION: ClassVar[str] = "v1"

    api_version: Optional[str] = None
    kind: Optional[str] = None
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    def model_post_init(self, __context: Any) -> None:
        if self.kind is None and self.KIND:
            self.kind = self.KIND
        if self.api_version is None and self.KIND:
            self.api_version = self.API_VERSION

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name

    def to_dict(self) -> Dict[str, Any]:
        """
        Converts the object to its manifest form, leaving out unset and empty fields.
        """
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return _prune(data)


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        ret = {}
        for k, v in value.items():
            v = _prune(v)
            if v in ({}, []):
                continue
            ret[k] = v
        return ret
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


class GenericResource(KubernetesResource):
    """
    Any object of a kind without a dedicated model.
    """


class Service(KubernetesResource):
    KIND: ClassVar[str] = "Service"
    spec: Optional[ServiceSpec] = None


class Controller(KubernetesResource):
    """
    Base for all objects managing pods through a pod template.
    """
    spec: Optional[Any] = None

    def ensure_template(self) -> PodTemplateSpec:
        """Returns the pod template, creating the spec and template if missing."""
        if self.spec is None:
            self.spec = self._spec_type()()
        if self.spec.template is None:
            self.spec.template = PodTemplateSpec()
        return self.spec.template

    @property
    def template(self) -> Optional[PodTemplateSpec]:
        if self.spec is None:
            return None
        return self.spec.template

    @classmethod
    def _spec_type(cls) -> Type[KubernetesModel]:
        return WorkloadSpec


class Deployment(Controller):
    KIND: ClassVar[str] = "Deployment"
    API_VERSION: ClassVar[str] = "apps/v1"
    spec: Optional[WorkloadSpec] = None


class StatefulSet(Controller):
    KIND: ClassVar[str] = "StatefulSet"
    API_VERSION: ClassVar[str] = "apps/v1"
    spec: Optional[StatefulSetSpec] = None

    @classmethod
    def _spec_type(cls) -> Type[KubernetesModel]:
        return StatefulSetSpec


class DaemonSet(Controller):
    KIND: ClassVar[str] = "DaemonSet"
    API_VERSION: ClassVar[str] = "apps/v1"
    spec: Optional[WorkloadSpec] = None


class ReplicaSet(Controller):
    KIND: ClassVar[str] = "ReplicaSet"
    API_VERSION: ClassVar[str] = "apps/v1"
    spec: Optional[WorkloadSpec] = None


class Job(Controller):
    KIND: ClassVar[str] = "Job"
    API_VERSION: ClassVar[str] = "batch/v1"
    spec: Optional[WorkloadSpec] = None


class ReplicationController(Controller):
    KIND: ClassVar[str] = "ReplicationController"
    spec: Optional[MapSelectorWorkloadSpec] = None

    @classmethod
    def _spec_type(cls) -> Type[KubernetesModel]:
        return MapSelectorWorkloadSpec


class DeploymentConfig(Controller):
    KIND: ClassVar[str] = "DeploymentConfig"
    API_VERSION: ClassVar[str] = "apps.openshift.io/v1"
    spec: Optional[MapSelectorWorkloadSpec] = None

    @classmethod
    def _spec_type(cls) -> Type[KubernetesModel]:
        return MapSelectorWorkloadSpec


class ConfigMap(KubernetesResource):
    KIND: ClassVar[str] = "ConfigMap"
    data: Dict[str, str] = {}
    binary_data: Dict[str, str] = {}


class Secret(KubernetesResource):
    KIND: ClassVar[str] = "Secret"
    type: Optional[str] = None
    data: Dict[str, str] = {}
    string_data: Dict[str, str] = {}


class ServiceAccount(KubernetesResource):
    KIND: ClassVar[str] = "ServiceAccount"


class Ingress(KubernetesResource):
    KIND: ClassVar[str] = "Ingress"
    API_VERSION: ClassVar[str] = "networking.k8s.io/v1"
    spec: Dict[str, Any] = {}


class PersistentVolumeClaim(KubernetesResource):
    KIND: ClassVar[str] = "PersistentVolumeClaim"
    spec: Dict[str, Any] = {}


class Namespace(KubernetesResource):
    KIND: ClassVar[str] = "Namespace"


class Project(KubernetesResource):
    KIND: ClassVar[str] = "Project"
    API_VERSION: ClassVar[str] = "project.openshift.io/v1"


RESOURCE_TYPES: Dict[str, Type[KubernetesResource]] = {
    cls.KIND: cls
    for cls in (
        Service, Deployment, StatefulSet, DaemonSet, ReplicaSet, ReplicationController, Job,
        DeploymentConfig, ConfigMap, Secret, ServiceAccount, Ingress, PersistentVolumeClaim,
        Namespace, Project,
    )
}

CONTROLLER_KINDS = tuple(kind for kind, cls in RESOURCE_TYPES.items() if issubclass(cls, Controller))


def resource_from_dict(data: Dict[str, Any]) -> KubernetesResource:
    """
    Creates the typed model for a manifest object, based on its ``kind``.

    :param data: The object as read from YAML or JSON.
    :return: The matching model, or a GenericResource for unknown kinds.
    """
    cls = RESOURCE_TYPES.get(data.get("kind"), GenericResource)
    return cls.model_validate(data)
