"""
Runs the configured enrichers over a list of manifest objects.
"""
import logging
from typing import Dict, List, Optional, Type

from ..MODELS.kubernetes_list import KubernetesListBuilder
from .base_enricher import BaseEnricher, PlatformMode
from .configmap_enricher import ConfigMapEnricher
from .controller_enricher import ControllerEnricher
from .enricher_context import EnricherContext
from .image_enricher import ImageEnricher
from .name_enricher import NameEnricher
from .namespace_enricher import NamespaceEnricher
from .project_label_enricher import ProjectLabelEnricher
from .secret_enricher import SecretEnricher
from .service_account_enricher import ServiceAccountEnricher
from .service_enricher import ServiceEnricher

logger = logging.getLogger(__name__)

# Default order in which enrichers run
DEFAULT_ENRICHERS: List[Type[BaseEnricher]] = [
    NameEnricher,
    ConfigMapEnricher,
    SecretEnricher,
    NamespaceEnricher,
    ControllerEnricher,
    ServiceEnricher,
    ImageEnricher,
    ServiceAccountEnricher,
    ProjectLabelEnricher,
]

ENRICHER_REGISTRY: Dict[str, Type[BaseEnricher]] = {cls.NAME: cls for cls in DEFAULT_ENRICHERS}


class EnricherManager:
    """
    Instantiates the enrichers selected by the processor configuration and
    applies them: first ``create`` of every enricher, then ``enrich`` of
    every enricher, both in the configured order.
    """

    def __init__(self, context: EnricherContext,
                 registry: Optional[Dict[str, Type[BaseEnricher]]] = None):
        self.context = context
        available = [cls(context) for cls in (registry or ENRICHER_REGISTRY).values()]
        self.enrichers = context.processor_config.prepare_processors(available, "enricher")
        logger.debug("Using enrichers: %s", ", ".join(e.name for e in self.enrichers))

    def create_default_resources(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        for enricher in self.enrichers:
            logger.debug("%s: create", enricher.name)
            enricher.create(platform_mode, builder)

    def enrich(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        for enricher in self.enrichers:
            logger.debug("%s: enrich", enricher.name)
            enricher.enrich(platform_mode, builder)

    def run(self, platform_mode: PlatformMode, builder: KubernetesListBuilder) -> KubernetesListBuilder:
        """
        Applies both phases to the builder.

        :param platform_mode: Flavor of manifests to generate.
        :param builder: Objects to work on, modified in place.
        :return: The same builder.
        """
        self.create_default_resources(platform_mode, builder)
        self.enrich(platform_mode, builder)
        return builder
