"""
Resolution of the order in which containers for images have to be started.
"""
import logging
from typing import Callable, List, Optional, Sequence, Set

from ..errors import StartOrderError
from ..MODELS.image_configuration import ImageConfiguration

logger = logging.getLogger(__name__)

MAX_RESOLVE_RETRIES = 10

ContainerQuery = Callable[[str], bool]


class StartOrderResolver:
    """
    Orders images so that every image comes after the images it depends on
    through links, volumes or explicit dependencies.

    A dependency is also satisfied if a container of that name already
    exists, which allows depending on containers started elsewhere.
    """

    def __init__(self, has_container: Optional[ContainerQuery] = None):
        """
        :param has_container: Tells whether a container with the given name exists.
        """
        self.has_container = has_container or (lambda name: False)

    def resolve(self, images: Sequence[ImageConfiguration]) -> List[ImageConfiguration]:
        """
        Determines the start order.

        Images without dependencies come first, in their original order,
        followed by the others in the order their dependencies got satisfied.

        :param images: The images to order.
        :return: The images in start order.
        :raises StartOrderError: If the dependencies cannot be satisfied, e.g. because of a cycle.
        """
        resolved: List[ImageConfiguration] = []
        processed: Set[str] = set()
        remaining: List[ImageConfiguration] = []

        for image in images:
            if image.dependencies:
                remaining.append(image)
            else:
                self._mark_processed(image, processed)
                resolved.append(image)

        passes = 0
        while remaining:
            if passes == MAX_RESOLVE_RETRIES:
                raise StartOrderError(
                    f"Cannot resolve image dependencies after {MAX_RESOLVE_RETRIES} passes\n"
                    + self._describe(remaining)
                )
            passes += 1
            progressed = False
            for image in list(remaining):
                if self._has_required_dependencies(image, processed, remaining):
                    self._mark_processed(image, processed)
                    resolved.append(image)
                    remaining.remove(image)
                    progressed = True
            if not progressed:
                raise StartOrderError(
                    "Cannot resolve image dependencies for start order\n" + self._describe(remaining)
                )
            logger.debug("Start order pass %d resolved %d images, %d remaining",
                         passes, len(resolved), len(remaining))
        return resolved

    def _has_required_dependencies(self, image: ImageConfiguration, processed: Set[str],
                                   remaining: List[ImageConfiguration]) -> bool:
        for dependency in image.dependencies:
            if dependency in processed:
                continue
            try:
                exists = self.has_container(dependency)
            except OSError as e:
                raise StartOrderError(
                    "Cannot resolve image dependencies for start order\n" + self._describe(remaining)
                ) from e
            if not exists:
                return False
        return True

    @staticmethod
    def _mark_processed(image: ImageConfiguration, processed: Set[str]):
        processed.add(image.name)
        if image.alias is not None:
            processed.add(image.alias)

    @staticmethod
    def _describe(remaining: List[ImageConfiguration]) -> str:
        lines = ["Unresolved images:"]
        for image in remaining:
            label = image.alias if image.alias is not None else image.name
            lines.append(f"* {label} depends on {','.join(image.dependencies)}")
        return "\n".join(lines) + "\n"
