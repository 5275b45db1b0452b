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
Image name parsing.
Parses image names like 'jolokia/jolokia_demo:0.9.6' or 'test.org:8000/org/app@sha256:...'.
"""

import re
from typing import Optional
from dataclasses import dataclass

# Repository path component, tag and digest grammar of Docker distribution references
NAME_COMPONENT_REGEXP = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
TAG_REGEXP = re.compile(r"^[\w][\w.-]{0,127}$")
DIGEST_REGEXP = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$")
REGISTRY_REGEXP = re.compile(r"^(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
                             r"(?:\.(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9]))*(?::[0-9]+)?$")

MAX_REPOSITORY_LENGTH = 255


@dataclass(frozen=True)
class ImageName:
    """
    Parsed image name.

    Examples:
        - jolokia_demo -> repository 'jolokia_demo', tag 'latest'
        - jolokia/jolokia_demo:0.9.6 -> user 'jolokia', simple name 'jolokia_demo'
        - test.org:8000/org/app:8.0 -> registry 'test.org:8000', repository 'org/app'
    """

    repository: str
    registry: Optional[str] = None
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, name: str, default_tag: Optional[str] = None) -> "ImageName":
        """
        Parse an image name.

        Args:
            name: Image name like 'user/repo:tag'.
            default_tag: Tag used when the name has neither tag nor digest,
                'latest' if not given.

        Returns:
            Parsed ImageName object.

        Raises:
            ValueError: If the name is empty or not a valid image name.
        """
        if not name:
            raise ValueError("Image name must not be null or empty")

        remainder = name
        digest = None
        if "@" in remainder:
            remainder, digest = remainder.split("@", 1)

        tag = None
        last_colon = remainder.rfind(":")
        if last_colon != -1 and "/" not in remainder[last_colon + 1:]:
            tag = remainder[last_colon + 1:]
            remainder = remainder[:last_colon]

        registry = None
        parts = remainder.split("/")
        if len(parts) > 1 and cls._is_registry(parts[0]):
            registry = parts[0]
            parts = parts[1:]
        repository = "/".join(parts)

        if not tag and not digest:
            tag = default_tag or cls.DEFAULT_TAG

        image_name = cls(repository=repository, registry=registry, tag=tag, digest=digest)
        image_name.validate(name)
        return image_name

    @staticmethod
    def _is_registry(part: str) -> bool:
        return "." in part or ":" in part or part == "localhost"

    def validate(self, original: str):
        """
        Checks all parts of the name against the image name grammar.

        :param original: The unparsed name, used in error messages.
        :raises ValueError: Listing all invalid parts.
        """
        errors = []
        if len(self.repository) > MAX_REPOSITORY_LENGTH:
            errors.append(f"Repository name must not be more than {MAX_REPOSITORY_LENGTH} characters")
        for component in self.repository.split("/"):
            if not NAME_COMPONENT_REGEXP.match(component):
                errors.append(f"repository component '{component}' is invalid")
        if self.registry is not None and not REGISTRY_REGEXP.match(self.registry):
            errors.append(f"registry '{self.registry}' is invalid")
        if self.tag is not None and not TAG_REGEXP.match(self.tag):
            errors.append(f"tag '{self.tag}' is invalid")
        if self.digest is not None and not DIGEST_REGEXP.match(self.digest):
            errors.append(f"digest '{self.digest}' is invalid")
        if errors:
            raise ValueError(f"Given image name '{original}' is invalid: {', '.join(errors)}")

    @property
    def user(self) -> Optional[str]:
        """The first repository component if the repository has more than one."""
        parts = self.repository.split("/", 1)
        return parts[0] if len(parts) > 1 else None

    @property
    def simple_name(self) -> str:
        """The repository without the user part."""
        parts = self.repository.split("/", 1)
        return parts[1] if len(parts) > 1 else parts[0]

    def name_without_tag(self, registry: Optional[str] = None) -> str:
        """
        Repository prefixed with the registry.

        :param registry: Registry used when the name itself has none.
        """
        effective = self.registry or registry
        if effective:
            return f"{effective}/{self.repository}"
        return self.repository

    def full_name(self, registry: Optional[str] = None) -> str:
        """Get the full name including registry, tag and digest."""
        name = self.name_without_tag(registry)
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    @property
    def name_with_optional_registry(self) -> str:
        return self.full_name()

    def __str__(self) -> str:
        return self.full_name()
