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
Formatting of image names containing placeholders like %g/%a:%l.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from ..MODELS.project import JavaProject
from ..UTILS.format_parameter_replacer import FormatParameterReplacer, Lookup
from ..UTILS.string_interpolation import DEFAULT_FILTER, PropertyInterpolator

DOCKER_IMAGE_USER = "jkube.image.user"
DOCKER_IMAGE_TAG = "jkube.image.tag"
SEMVER_PLUS_SUBSTITUTION = "jkube.image.tag.semver_plus_substitution"
DEFAULT_SEMVER_PLUS_SUBSTITUTE = "-"
SNAPSHOT_SUFFIX = "-SNAPSHOT"
MAX_TAG_LENGTH = 128


class TagMode(Enum):
    PLAIN = "v"
    SNAPSHOT_WITH_TIMESTAMP = "t"
    SNAPSHOT_LATEST = "l"


class ImageNameFormatter:
    """
    Replaces the placeholders of an image name with values derived from the project.

    - ``%g``: last part of the group id, or the ``jkube.image.user`` property
    - ``%a``: artifact id
    - ``%v``: version
    - ``%t``: version, with snapshots tagged ``snapshot-<timestamp>``
    - ``%l``: version, with snapshots tagged ``latest``

    Property expressions (``${...}``) are resolved before the placeholders.
    """

    def __init__(self, project: JavaProject, now: Optional[datetime] = None):
        self.project = project
        self.now = now or datetime.now()
        self.replacer = FormatParameterReplacer(self._init_lookups())

    def format(self, name: Optional[str]) -> Optional[str]:
        """
        Formats an image name.

        :param name: Name possibly containing placeholders.
        :return: The formatted name, None if the name is None.
        """
        if name is None:
            return None
        name = PropertyInterpolator.interpolate(name, self.project.properties, DEFAULT_FILTER)
        return self.replacer.replace(name)

    __call__ = format

    def _init_lookups(self) -> Dict[str, Lookup]:
        return {
            "g": self._user,
            "a": lambda: sanitize_name(self.project.artifact_id),
            "v": lambda: self._tag(TagMode.PLAIN),
            "t": lambda: self._tag(TagMode.SNAPSHOT_WITH_TIMESTAMP),
            "l": lambda: self._tag(TagMode.SNAPSHOT_LATEST),
        }

    def _property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.project.properties.get(key, default)

    def _user(self) -> str:
        user = self._property(DOCKER_IMAGE_USER)
        if user is not None:
            return user
        group_id = self.project.group_id.rstrip(".")
        return sanitize_name(group_id[group_id.rfind(".") + 1:])

    def _tag(self, mode: TagMode) -> str:
        user_provided = self._property(DOCKER_IMAGE_TAG)
        if user_provided and user_provided.strip():
            return user_provided
        plus_substitute = self._property(SEMVER_PLUS_SUBSTITUTION, DEFAULT_SEMVER_PLUS_SUBSTITUTE).strip()
        if plus_substitute == "+":
            # '+' is not allowed in a tag
            plus_substitute = DEFAULT_SEMVER_PLUS_SUBSTITUTE
        return sanitize_tag(self._generate_tag(mode, plus_substitute), plus_substitute)

    def _generate_tag(self, mode: TagMode, plus_substitute: str) -> str:
        version = self.project.version
        if mode == TagMode.PLAIN:
            return version
        prerelease, plus, metadata = version.partition("+")
        build_metadata = plus_substitute + metadata if plus else ""
        if not prerelease.endswith(SNAPSHOT_SUFFIX):
            return version
        if mode == TagMode.SNAPSHOT_WITH_TIMESTAMP:
            return "snapshot-" + format_snapshot_timestamp(self.now) + build_metadata
        return "latest" + build_metadata


def format_snapshot_timestamp(now: datetime) -> str:
    """Formats as yyMMdd-HHmmss-SSSS, milliseconds padded to four digits."""
    return now.strftime("%y%m%d-%H%M%S-") + f"{now.microsecond // 1000:04d}"


def sanitize_name(name: str) -> str:
    """
    Makes a string usable as image name component: at most two underscores
    and one dot in a row, letters, digits and dashes kept, everything else
    dropped, lowercased.
    """
    ret = []
    underscores = 0
    last_was_a_dot = False
    for c in name:
        if c == "_":
            underscores += 1
            if underscores <= 2:
                ret.append(c)
        elif c == ".":
            if not last_was_a_dot:
                ret.append(c)
            last_was_a_dot = True
        else:
            underscores = 0
            last_was_a_dot = False
            if c.isalpha() or c.isdigit() or c == "-":
                ret.append(c)
    return "".join(ret).lower()


def sanitize_tag(tag: str, plus_substitute: str = DEFAULT_SEMVER_PLUS_SUBSTITUTE) -> str:
    """
    Makes a string usable as tag: ``+`` becomes the substitute, other
    characters than letters, digits, ``_``, ``.`` and ``-`` become ``-``.
    """
    ret = []
    for c in tag:
        if c.isalnum() or c in "_.-":
            ret.append(c)
        elif c == "+":
            ret.append(plus_substitute)
        else:
            ret.append("-")
    return "".join(ret)[:MAX_TAG_LENGTH]
