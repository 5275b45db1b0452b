"""
The complete content of a project descriptor.
"""
from typing import List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .image_configuration import ImageConfiguration
from .project import JavaProject
from .resource_config import ProcessorConfig, ResourceConfig

DEFAULT_RESOURCE_DIR = "src/main/jkube"


class ProjectConfig(BaseModel):
    """
    Project, images, resource and enricher configuration of one descriptor.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project: JavaProject = Field(default_factory=JavaProject)
    images: List[ImageConfiguration] = []
    resources: ResourceConfig = Field(default_factory=ResourceConfig)
    enricher: ProcessorConfig = Field(default_factory=ProcessorConfig)
    resource_dir: str = DEFAULT_RESOURCE_DIR
