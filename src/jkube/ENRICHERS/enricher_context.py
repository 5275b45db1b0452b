"""
Everything enrichers get to know about the project being processed.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.project import JavaProject
from ..MODELS.resource_config import ProcessorConfig, ResourceConfig


class EnricherContext(BaseModel):
    """
    Shared, read-only input of all enrichers of one run.
    """
    project: JavaProject = Field(default_factory=JavaProject)
    images: List[ImageConfiguration] = []
    resources: ResourceConfig = Field(default_factory=ResourceConfig)
    processor_config: ProcessorConfig = Field(default_factory=ProcessorConfig)

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.project.get_property(key, default)

    def resolve_path(self, path: str) -> str:
        return self.project.resolve_path(path)
