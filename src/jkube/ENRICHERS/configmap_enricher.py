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
ConfigMaps with content read from files.
"""
import base64
import os
from typing import Dict, Optional, Tuple

from ..errors import ConfigurationError
from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import ConfigMap, ObjectMeta
from ..MODELS.resource_config import ConfigMapConfig
from .base_enricher import BaseEnricher, PlatformMode

PREFIX_ANNOTATION = "jkube.eclipse.org/cm/"
LEGACY_PREFIX_ANNOTATION = "maven.jkube.io/cm/"
DEFAULT_CONFIG_MAP_NAME = "xmlconfig"


def read_file_bytes(path: str) -> bytes:
    """
    Reads a file referenced by configuration.

    :raises ConfigurationError: Wrapping the I/O error if the file cannot be read.
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read file {path}: {e}") from e


def decode_file_content(content: bytes) -> Tuple[Optional[str], Optional[str]]:
    """
    :return: ``(text, None)`` for UTF-8 content, ``(None, base64)`` for anything else.
    """
    try:
        return content.decode("utf-8"), None
    except UnicodeDecodeError:
        return None, base64.b64encode(content).decode("ascii")


def pop_file_annotations(annotations: Dict[str, str], *prefixes: str) -> Dict[str, str]:
    """
    Removes all annotations starting with one of the prefixes.

    :return: The removed annotations, keyed by the part after the prefix.
    """
    ret = {}
    for key in list(annotations):
        for prefix in prefixes:
            if key.startswith(prefix):
                ret[key[len(prefix):]] = annotations.pop(key)
                break
    return ret


class ConfigMapEnricher(BaseEnricher):
    """
    Fills ConfigMaps from files.

    Annotations like ``jkube.eclipse.org/cm/application.properties: src/app.properties``
    on a ConfigMap add the file content under the key ``application.properties``.
    Text files go to ``data``, binary files base64 encoded to ``binaryData``.
    A ConfigMap can also be configured with ``resources.configMap``.
    """
    NAME = "jkube-configmap-file"

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        builder.accept(ResourceKind.CONFIG_MAP, self._add_from_annotations)
        self._add_from_configuration(builder)

    def _add_from_annotations(self, config_map: ConfigMap):
        files = pop_file_annotations(config_map.metadata.annotations, PREFIX_ANNOTATION, LEGACY_PREFIX_ANNOTATION)
        for key, path in files.items():
            self._add_entry_from_file(config_map, key, path)

    def _add_entry_from_file(self, config_map: ConfigMap, key: str, path: str):
        text, binary = decode_file_content(read_file_bytes(self.context.resolve_path(path)))
        if text is not None:
            config_map.data[key] = text
        else:
            config_map.binary_data[key] = binary

    def _add_from_configuration(self, builder: KubernetesListBuilder):
        config: Optional[ConfigMapConfig] = self.resource_config.config_map
        if config is None:
            return
        name = config.name.strip() if config.name and config.name.strip() else DEFAULT_CONFIG_MAP_NAME
        if builder.find("ConfigMap", name) is not None:
            return
        config_map = ConfigMap(metadata=ObjectMeta(name=name))
        for entry in config.entries:
            if entry.name is not None and entry.value is not None:
                config_map.data[entry.name] = entry.value
            elif entry.file is not None:
                self._add_entry_from_file(config_map, entry.name or os.path.basename(entry.file), entry.file)
        if config_map.data or config_map.binary_data:
            self.log.info("Adding ConfigMap %s", name)
            builder.add_to_items(config_map)
