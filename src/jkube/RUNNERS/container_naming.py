# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Naming of containers started from image configurations.

Container name patterns support %n (image name), %a (alias), %t (build
timestamp) and %i, an index making the name unique among existing containers.
"""
import re
import sys
from datetime import datetime
from typing import Iterable, List, Optional

from ..errors import ConfigurationError
from ..MODELS.container import Container
from ..MODELS.image_configuration import ImageConfiguration
from ..REGISTRY.image_name import ImageName
from ..UTILS.format_parameter_replacer import FormatParameterReplacer

INDEX_PLACEHOLDER = "%i"
DEFAULT_CONTAINER_NAME_PATTERN = "%n-%i"
# upper bound of the index search, never reached for a finite set of containers
MAX_INDEX = sys.maxsize

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_.-]+")


def format_container_name(
    image: ImageConfiguration,
    default_pattern: Optional[str],
    build_timestamp: Optional[datetime],
    existing_containers: Iterable[Container],
) -> str:
    """
    Computes the name of a new container for an image.

    :param image: The image the container is created from.
    :param default_pattern: Pattern used if the image configures none.
    :param build_timestamp: Time of the build, substituted for %t.
    :param existing_containers: Containers whose names must not be reused.
    :return: The container name.
    :raises ConfigurationError: If no free index could be found.
    """
    existing_names = {container.name for container in existing_containers}
    partially_applied = _replace_placeholders(_pattern_for(image, default_pattern), image, build_timestamp)
    if INDEX_PLACEHOLDER not in partially_applied:
        return partially_applied
    for i in range(1, MAX_INDEX):
        candidate = partially_applied.replace(INDEX_PLACEHOLDER, str(i))
        if candidate not in existing_names:
            return candidate
    raise ConfigurationError(f"Could not find any free container name for pattern {partially_applied}")


def get_containers_to_stop(
    image: ImageConfiguration,
    default_pattern: Optional[str],
    build_timestamp: Optional[datetime],
    containers: Iterable[Container],
) -> List[Container]:
    """
    Filters the containers to stop for an image.

    With an indexed naming pattern only the container with the highest
    consecutive index is kept out of the indexed ones; containers not
    matching the pattern are kept as they are.

    :return: The containers to stop.
    """
    containers = list(containers)
    pattern = _pattern_for(image, default_pattern)
    if INDEX_PLACEHOLDER not in pattern:
        return containers
    partially_applied = _replace_placeholders(pattern, image, build_timestamp)
    return _keep_only_last_indexed_container(containers, partially_applied)


def _keep_only_last_indexed_container(containers: List[Container], partially_applied: str) -> List[Container]:
    result = list(containers)
    if INDEX_PLACEHOLDER not in partially_applied:
        return result
    by_name = {container.name: container for container in containers}
    last = None
    for i in range(1, MAX_INDEX):
        mapped = by_name.get(partially_applied.replace(INDEX_PLACEHOLDER, str(i)))
        if mapped is None:
            if last is not None:
                result.append(last)
            return result
        result.remove(mapped)
        last = mapped
    raise ConfigurationError(f"Cannot find a free container index slot in {[c.name for c in containers]}")


def _pattern_for(image: ImageConfiguration, default_pattern: Optional[str]) -> str:
    if image.run is not None and image.run.container_name_pattern is not None:
        return image.run.container_name_pattern
    return default_pattern if default_pattern is not None else DEFAULT_CONTAINER_NAME_PATTERN


def _replace_placeholders(pattern: str, image: ImageConfiguration, build_timestamp: Optional[datetime]) -> str:
    timestamp = build_timestamp or datetime.now()
    lookups = {
        "a": lambda: image.alias,
        "n": lambda: clean_image_name(image.name),
        "t": lambda: str(int(timestamp.timestamp() * 1000)),
        # kept as marker, resolved by the index search
        "i": lambda: INDEX_PLACEHOLDER,
    }
    return FormatParameterReplacer(lookups).replace(pattern)


def clean_image_name(image_name: str) -> str:
    """
    The simple name of an image with characters invalid in container names replaced by '_'.

    :raises ConfigurationError: If the image name is invalid.
    """
    try:
        simple_name = ImageName.parse(image_name).simple_name
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    return _INVALID_NAME_CHARS.sub("_", simple_name)
