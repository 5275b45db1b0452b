"""
Namespace handling for generated objects.
"""
from typing import Optional

from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import KubernetesResource, Namespace, ObjectMeta, Project
from .base_enricher import BaseEnricher, PlatformMode

NAMESPACE_KINDS = ("Project", "Namespace")


class NamespaceEnricher(BaseEnricher):
    """
    Creates the configured Namespace (or Project on OpenShift) and moves
    all objects into the configured namespace.

    Only the enricher's own ``namespace`` option creates a Namespace object.
    ``resources.namespace`` targets a namespace managed elsewhere: it takes
    precedence when moving objects, but nothing is created for it.
    """
    NAME = "jkube-namespace"
    DEFAULTS = {"namespace": None, "force": "false", "type": "namespace"}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        namespace = self.get_config("namespace")
        if not namespace:
            return
        if builder.has_kind(*NAMESPACE_KINDS):
            return
        item = self._namespace_or_project(platform_mode, self.get_config("type"), namespace)
        if item is not None:
            builder.add_to_items(item)

    def enrich(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        namespace = self._target_namespace()
        force = self.get_config_bool("force")
        if namespace:
            def set_namespace(meta: ObjectMeta):
                if not (meta.namespace and meta.namespace.strip()) or force:
                    meta.namespace = namespace

            for item in builder:
                set_namespace(item.metadata)

        def clear_namespace(item: KubernetesResource):
            item.metadata.namespace = None

        builder.accept(ResourceKind.NAMESPACE, clear_namespace)
        builder.accept(ResourceKind.PROJECT, clear_namespace)

    def _target_namespace(self) -> Optional[str]:
        return self.resource_config.namespace or self.get_config("namespace")

    def _namespace_or_project(self, platform_mode: PlatformMode, type: Optional[str], name: str):
        if (type or "").lower() not in ("project", "namespace"):
            self.log.warning("Unknown namespace type '%s', not creating namespace %s", type, name)
            return None
        if platform_mode == PlatformMode.KUBERNETES:
            self.log.info("Adding a default Namespace: %s", name)
            return Namespace(metadata=ObjectMeta(name=name))
        self.log.info("Adding a default Project %s", name)
        return Project(metadata=ObjectMeta(name=name))
