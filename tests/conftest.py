import pytest
from jkube.ENRICHERS.enricher_context import EnricherContext
from jkube.MODELS.image_configuration import BuildConfiguration, ImageConfiguration
from jkube.MODELS.project import JavaProject
from jkube.MODELS.resource_config import ProcessorConfig, ResourceConfig


@pytest.fixture
def make_context():
    """Factory for enricher contexts of a project ``org.acme:shop:1.2.0``."""
    def factory(images=None, resources=None, config=None, properties=None, base_dir="."):
        project = JavaProject(group_id="org.acme", artifact_id="shop", version="1.2.0",
                              base_dir=base_dir, properties=properties or {})
        return EnricherContext(
            project=project,
            images=images if images is not None else [],
            resources=ResourceConfig.model_validate(resources or {}),
            processor_config=ProcessorConfig(config=config or {}),
        )
    return factory


@pytest.fixture
def web_image():
    return ImageConfiguration(name="acme/shop-web:1.2.0", alias="web", build=BuildConfiguration(ports=["8080"]))
