import time
from datetime import datetime

from jkube.MODELS.container import Container
from jkube.MODELS.image_configuration import ImageConfiguration, RunConfiguration
from jkube.PARSERS.project_config_parser import ProjectConfigParser
from jkube.RUNNERS.container_naming import format_container_name, get_containers_to_stop
from jkube.RUNNERS.start_order_resolver import StartOrderResolver


def test_stress_start_order():
    """
    Stress test ordering 500 images forming a single dependency chain.
    """
    images = [ImageConfiguration(name="image_0")]
    for i in range(1, 500):
        images.append(ImageConfiguration(name=f"image_{i}", run=RunConfiguration(depends_on=[f"image_{i - 1}"])))

    start_time = time.time()
    ordered = StartOrderResolver().resolve(images)
    end_time = time.time()

    print(f"Ordered 500 images in {end_time - start_time:.2f}s")
    assert [i.name for i in ordered] == [f"image_{i}" for i in range(500)]


def test_container_naming_with_many_existing():
    image = ImageConfiguration(name="acme/shop:1.0")
    existing = [Container(name=f"shop-{i}", id=str(i)) for i in range(1, 1001)]

    start_time = time.time()
    name = format_container_name(image, None, datetime(2024, 1, 1), existing)
    to_stop = get_containers_to_stop(image, None, datetime(2024, 1, 1), existing)
    end_time = time.time()

    assert name == "shop-1001"
    assert [c.name for c in to_stop] == ["shop-1000"]
    assert end_time - start_time < 2.0


def test_large_descriptor_parsing():
    content = "project:\n  artifactId: big\n  properties:\n    image.tag: '1.0'\nimages:\n"
    for i in range(1000):
        content += f"  - name: acme/image_{i}:${{image.tag}}\n"
        content += f"    alias: image_{i}\n"
        content += "    build:\n"
        content += f"      ports: ['{8000 + i}']\n"

    start_time = time.time()
    config = ProjectConfigParser().parse_from_string(content)
    end_time = time.time()

    assert len(config.images) == 1000
    assert config.images[999].name == "acme/image_999:1.0"
    assert end_time - start_time < 5.0  # 1000 images well below five seconds
