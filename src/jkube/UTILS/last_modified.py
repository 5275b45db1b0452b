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
Persistence of the last modified marker of a build artifact.

The marker is a plain file holding epoch milliseconds as a bare decimal
number, read by staleness checks of later builds.
"""
import os
from typing import Optional

LAST_MODIFIED_FILE = ".jkube-last-modified"


def marker_path(directory: str) -> str:
    return os.path.join(directory, LAST_MODIFIED_FILE)


def read_last_modified(directory: str) -> Optional[int]:
    """
    Reads the stored last modified time.

    :param directory: Directory holding the marker file.
    :return: The epoch milliseconds, or None if there is no marker.
    :raises ValueError: If the marker does not contain a number.
    """
    path = marker_path(directory)
    if not os.path.isfile(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read().strip()
    if not content:
        return None
    return int(content)


def write_last_modified(directory: str, millis: int) -> str:
    """
    Stores the last modified time, creating the directory if needed.

    :param directory: Directory to write the marker file to.
    :param millis: Epoch milliseconds.
    :return: Path of the marker file.
    """
    os.makedirs(directory, exist_ok=True)
    path = marker_path(directory)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(str(int(millis)))
    return path
