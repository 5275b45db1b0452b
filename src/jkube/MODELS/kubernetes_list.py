"""
The shared, ordered collection of objects enrichers work on.
"""
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Type

from .kubernetes_resources import (
    CONTROLLER_KINDS,
    Controller,
    KubernetesContainer,
    KubernetesResource,
    ObjectMeta,
)


class ResourceKind(str, Enum):
    """
    What a visitor is interested in. Besides the top level kinds there are
    kinds for nested parts found in many objects.
    """
    SERVICE = "Service"
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    DAEMON_SET = "DaemonSet"
    REPLICA_SET = "ReplicaSet"
    REPLICATION_CONTROLLER = "ReplicationController"
    JOB = "Job"
    DEPLOYMENT_CONFIG = "DeploymentConfig"
    CONFIG_MAP = "ConfigMap"
    SECRET = "Secret"
    SERVICE_ACCOUNT = "ServiceAccount"
    INGRESS = "Ingress"
    PERSISTENT_VOLUME_CLAIM = "PersistentVolumeClaim"
    NAMESPACE = "Namespace"
    PROJECT = "Project"
    # nested parts
    OBJECT_META = "ObjectMeta"
    POD_TEMPLATE_SPEC = "PodTemplateSpec"
    CONTAINER = "Container"
    CONTROLLER = "Controller"


Visitor = Callable[[Any], None]


class KubernetesListBuilder:
    """
    Ordered, growable list of manifest objects.

    Visiting is snapshot based: objects added while an ``accept`` call runs
    are not visited by that call. Not thread safe.
    """

    def __init__(self, items: Optional[Iterable[KubernetesResource]] = None):
        self.items: List[KubernetesResource] = list(items or [])

    def add_to_items(self, *items: KubernetesResource) -> "KubernetesListBuilder":
        self.items.extend(items)
        return self

    def has_items(self) -> bool:
        return bool(self.items)

    def has_kind(self, *kinds: str) -> bool:
        """Whether at least one object has one of the given kinds."""
        return any(item.kind in kinds for item in self.items)

    def find(self, kind: str, name: Optional[str] = None) -> Optional[KubernetesResource]:
        """
        Returns the first object of the given kind, optionally with the given name.
        """
        for item in self.items:
            if item.kind == kind and (name is None or item.metadata.name == name):
                return item
        return None

    def of_type(self, cls: Type[KubernetesResource]) -> List[KubernetesResource]:
        return [item for item in self.items if isinstance(item, cls)]

    def accept(self, kind: ResourceKind, visitor: Visitor) -> None:
        """
        Calls the visitor for every part of the given kind.

        :param kind: Kind of object or nested part to visit.
        :param visitor: Called once per match, may mutate it in place.
        """
        for item in list(self.items):
            for target in _targets(item, kind):
                visitor(target)

    def visit(self, visitors: Dict[ResourceKind, Visitor]) -> None:
        """
        Dispatches every object to the visitors registered for its parts,
        in the order of the dispatch table.
        """
        for kind, visitor in visitors.items():
            self.accept(kind, visitor)

    def build(self) -> List[KubernetesResource]:
        return list(self.items)

    def __iter__(self) -> Iterator[KubernetesResource]:
        return iter(list(self.items))

    def __len__(self) -> int:
        return len(self.items)


def _targets(item: KubernetesResource, kind: ResourceKind) -> List[Any]:
    if kind == ResourceKind.OBJECT_META:
        metas: List[ObjectMeta] = [item.metadata]
        if isinstance(item, Controller) and item.template is not None:
            metas.append(item.template.metadata)
        return metas
    if kind == ResourceKind.CONTROLLER:
        return [item] if item.kind in CONTROLLER_KINDS else []
    if kind == ResourceKind.POD_TEMPLATE_SPEC:
        if isinstance(item, Controller) and item.template is not None:
            return [item.template]
        return []
    if kind == ResourceKind.CONTAINER:
        if isinstance(item, Controller) and item.template is not None:
            containers: List[KubernetesContainer] = item.template.spec.containers
            return list(containers)
        return []
    return [item] if item.kind == kind.value else []

