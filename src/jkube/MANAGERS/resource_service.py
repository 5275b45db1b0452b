"""
Generates the manifests of a project: fragments in, enriched resource files out.
"""
import logging
import os
import tempfile
import time
from typing import List, Optional

import yaml
from pydantic import BaseModel

from ..ENRICHERS.base_enricher import PlatformMode
from ..ENRICHERS.enricher_context import EnricherContext
from ..ENRICHERS.enricher_manager import EnricherManager
from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.kubernetes_list import KubernetesListBuilder
from ..MODELS.kubernetes_resources import KubernetesResource
from ..MODELS.project_config import ProjectConfig
from ..PARSERS.resource_fragment_parser import name_with_suffix, read_resource_fragments
from ..UTILS.last_modified import write_last_modified
from .resource_file_processing import ErrorStrategy, ProcessingOptions, ResourceFileProcessing, read_source

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "target/classes/META-INF/jkube"


class ResourceResult(BaseModel):
    """
    Files written by one generation run.
    """
    manifest: str
    resource_files: List[str] = []
    resources: List[KubernetesResource] = []


class ResourceService:
    """
    Reads the resource fragments of a project, runs the enrichers over them
    and writes the result: one file per object in ``<out>/<mode>/`` and the
    complete list as ``<out>/<mode>.yml``.
    """
    def __init__(self, config: ProjectConfig, images: Optional[List[ImageConfiguration]] = None):
        """
        :param config: The parsed project descriptor.
        :param images: Resolved images, defaults to the configured ones.
        """
        self.config = config
        self.images = images if images is not None else config.images

    def generate(self, platform_mode: PlatformMode = PlatformMode.KUBERNETES) -> KubernetesListBuilder:
        """
        Creates the enriched objects without writing anything.
        """
        resource_dir = self.config.project.resolve_path(self.config.resource_dir)
        builder = read_resource_fragments(resource_dir)
        logger.info("Read %d resource fragment(s) from %s", len(builder), resource_dir)
        context = EnricherContext(
            project=self.config.project,
            images=self.images,
            resources=self.config.resources,
            processor_config=self.config.enricher,
        )
        return EnricherManager(context).run(platform_mode, builder)

    def write_resources(self, platform_mode: PlatformMode = PlatformMode.KUBERNETES,
                        output_dir: Optional[str] = None) -> ResourceResult:
        """
        Generates the objects and writes them.

        :param platform_mode: Flavor of manifests.
        :param output_dir: Target directory, defaults to ``target/classes/META-INF/jkube``
            below the project.
        :return: The written files.
        """
        output_dir = output_dir or self.config.project.resolve_path(DEFAULT_OUTPUT_DIR)
        resources = self.generate(platform_mode).build()
        mode_dir = os.path.join(output_dir, platform_mode.value)

        with tempfile.TemporaryDirectory(prefix="jkube-") as staging:
            staged = [self._stage(staging, index, resource) for index, resource in enumerate(resources)]
            options = ProcessingOptions(
                error_strategy=ErrorStrategy.FAIL_FAST,
                naming_strategy=_strip_index,
            )
            result = (ResourceFileProcessing()
                      .with_files(*staged)
                      .with_output_directory(mode_dir)
                      .with_options(options)
                      .add_processor(read_source)
                      .process())

        manifest = os.path.join(output_dir, f"{platform_mode.value}.yml")
        _write_yaml(manifest, {
            "apiVersion": "v1",
            "kind": "List",
            "items": [resource.to_dict() for resource in resources],
        })
        write_last_modified(output_dir, int(time.time() * 1000))
        logger.info("Wrote %s with %d object(s)", manifest, len(resources))
        return ResourceResult(manifest=manifest, resource_files=result.processed_files, resources=resources)

    @staticmethod
    def _stage(staging: str, index: int, resource: KubernetesResource) -> str:
        # unique staging names, the index prefix is dropped when naming the target
        file_name = f"{index:04d}_{name_with_suffix(resource.name or 'unnamed', resource.kind or 'object')}.yml"
        path = os.path.join(staging, file_name)
        _write_yaml(path, resource.to_dict())
        return path


def _strip_index(source_file: str, output_directory: str) -> str:
    return os.path.join(output_directory, os.path.basename(source_file).split("_", 1)[1])


def _write_yaml(path: str, data) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
