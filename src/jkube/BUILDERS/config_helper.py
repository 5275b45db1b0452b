"""
Resolution, filtering and validation of the configured images.
"""
import logging
import re
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ..errors import ConfigurationError
from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.project import JavaProject
from ..UTILS.version_util import extract_larger_version
from .image_name_formatter import ImageNameFormatter
from .property_config_resolver import (
    EXTERNALCONFIG_ACTIVATION_PROPERTY,
    PropertyConfigResolver,
    can_coexist_with_other_property_configured_images,
    get_external_config_activation_property,
)

logger = logging.getLogger(__name__)

Resolver = Callable[[ImageConfiguration], List[ImageConfiguration]]
Customizer = Callable[[List[ImageConfiguration]], List[ImageConfiguration]]
NameFormatter = Callable[[Optional[str]], Optional[str]]

_FILTER_SEPARATOR = re.compile(r"\s*,\s*")


def resolve_images(
    images: Optional[Sequence[ImageConfiguration]],
    resolver: Resolver,
    name_filter: Optional[str] = None,
    customizer: Optional[Customizer] = None,
) -> List[ImageConfiguration]:
    """
    Resolves the configured images.

    Every image is passed to the resolver, which may turn it into any number
    of images. The customizer may then rewrite the whole list before it gets
    filtered by name.

    :param images: The configured images.
    :param resolver: Expands one image into its resolved images.
    :param name_filter: Comma separated names or aliases of the images to keep, None keeps all.
    :param customizer: Hook rewriting the resolved images.
    :return: The resolved images.
    :raises ConfigurationError: If a resolved image has no name.
    """
    ret: List[ImageConfiguration] = []
    for image in images or []:
        ret.extend(resolver(image))
    verify_image_names(ret)
    if customizer is not None:
        ret = customizer(ret)
    filtered = [image for image in ret if matches_configured_images(name_filter, image)]
    if ret and not filtered and name_filter is not None:
        logger.warning(
            "None of the resolved images [%s] match the configured filter '%s'",
            ",".join(str(image.name) for image in ret), name_filter,
        )
    return filtered


def verify_image_names(images: Sequence[ImageConfiguration]):
    for image in images:
        if image.name is None:
            raise ConfigurationError("Configuration error: <image> must have a non-null <name>")


def matches_configured_images(image_list: Optional[str], image: ImageConfiguration) -> bool:
    """
    Whether the image's name or alias is part of a comma separated list. A None list matches all.
    """
    if image_list is None:
        return True
    allowed = set(_FILTER_SEPARATOR.split(image_list.strip()))
    return image.name in allowed or (image.alias is not None and image.alias in allowed)


def validate_external_property_activation(project: JavaProject, images: Sequence[ImageConfiguration]):
    """
    Rejects globally activated property configuration if it would apply to more than one image.

    :raises ConfigurationError: If several images would pick up the same properties.
    """
    if get_external_config_activation_property(project) is None:
        return
    if len(images) == 1:
        return
    affected = [image for image in images if not can_coexist_with_other_property_configured_images(image.external)]
    if len(affected) > 1:
        raise ConfigurationError(
            f"Configuration error: Cannot use property {EXTERNALCONFIG_ACTIVATION_PROPERTY} on projects "
            "with multiple images without explicit image external configuration."
        )


def init_and_validate(
    images: Sequence[ImageConfiguration],
    api_version: Optional[str],
    name_formatter: NameFormatter,
) -> Optional[str]:
    """
    Formats the image names and validates the images.

    :param images: The resolved images, names are replaced in place.
    :param api_version: The API version configured by the user.
    :param name_formatter: Replaces placeholders in image names.
    :return: The highest of the given API version and the versions the images require.
    """
    version = api_version
    for image in images:
        image.name = name_formatter(image.name)
        version = extract_larger_version(version, image.init_and_validate())
    return version


def init_image_configuration(
    project: JavaProject,
    images: Sequence[ImageConfiguration],
    name_filter: Optional[str] = None,
    customizer: Optional[Customizer] = None,
    build_timestamp: Optional[datetime] = None,
) -> List[ImageConfiguration]:
    """
    Runs the complete image configuration pipeline with property based resolution.

    :return: The resolved, named and validated images.
    """
    validate_external_property_activation(project, images)
    property_resolver = PropertyConfigResolver()
    resolved = resolve_images(
        images,
        lambda image: property_resolver.resolve(image, project),
        name_filter,
        customizer,
    )
    init_and_validate(resolved, None, ImageNameFormatter(project, build_timestamp))
    for image in resolved:
        if image.build is not None and image.build.docker_file:
            logger.info("Using Dockerfile: %s", project.resolve_path(image.build.docker_file))
    return resolved
