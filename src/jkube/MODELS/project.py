"""
Build metadata of the project images and manifests are derived from.
"""
import os
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class JavaProject(BaseModel):
    """
    Coordinates and properties of the project being built.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    group_id: str = "org.example"
    artifact_id: str = "app"
    version: str = "1.0.0"
    description: Optional[str] = None
    base_dir: str = "."
    build_directory: str = "target"
    properties: Dict[str, str] = {}
    build_timestamp: Optional[int] = Field(default=None, description="Epoch millis of the build")

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Looks up a project property, falling back to the environment.

        :param key: Property name.
        :param default: Value returned if the property is not set anywhere.
        """
        value = self.properties.get(key)
        if value is None:
            value = os.environ.get(key)
        return default if value is None else value

    def resolve_path(self, path: str) -> str:
        """Resolves a path against the project base directory."""
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(self.base_dir, path))
