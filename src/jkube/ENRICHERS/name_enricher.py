"""
Gives every object without a name the default name.
"""
from ..MODELS.kubernetes_list import KubernetesListBuilder
from .base_enricher import BaseEnricher, PlatformMode, create_default_resource_name


class NameEnricher(BaseEnricher):
    """
    Sets ``metadata.name`` on all objects lacking one. The default is derived
    from the artifact id and can be changed with the ``name`` option.
    """
    NAME = "jkube-name"
    DEFAULTS = {"name": None}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        configured = self.get_config("name")
        default_name = create_default_resource_name(configured) if configured else self.default_resource_name()
        for item in builder:
            if not item.metadata.name:
                self.log.debug("Setting name %s on %s", default_name, item.kind)
                item.metadata.name = default_name
