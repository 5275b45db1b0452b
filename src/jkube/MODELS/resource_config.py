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
Models for resource and enricher configuration.
"""
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import ConfigurationError


class ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MetaDataConfig(ConfigModel):
    """
    Labels or annotations to add, grouped by the kind of object they target.
    """
    all: Dict[str, str] = {}
    service: Dict[str, str] = {}
    deployment: Dict[str, str] = {}
    pod: Dict[str, str] = {}
    replica_set: Dict[str, str] = {}
    service_account: Dict[str, str] = {}
    ingress: Dict[str, str] = {}


class ControllerResourceConfig(ConfigModel):
    """
    Settings for the default controller.
    """
    controller_name: Optional[str] = None
    replicas: Optional[int] = None
    image_pull_policy: Optional[str] = None
    env: Dict[str, str] = {}


class ConfigMapEntry(ConfigModel):
    name: Optional[str] = None
    value: Optional[str] = None
    file: Optional[str] = None


class ConfigMapConfig(ConfigModel):
    """
    A ConfigMap assembled from literal values and files.
    """
    name: Optional[str] = None
    entries: List[ConfigMapEntry] = []


class ServiceAccountConfig(ConfigModel):
    """
    A ServiceAccount to create, optionally bound to a deployment.
    """
    name: Optional[str] = None
    deployment_ref: Optional[str] = None
    generate: Optional[bool] = None


class SecretConfig(ConfigModel):
    """
    A Secret assembled from literal values and files.
    """
    name: Optional[str] = None
    namespace: Optional[str] = None
    type: str = "Opaque"
    data: Dict[str, str] = {}
    files: Dict[str, str] = {}


class ResourceConfig(ConfigModel):
    """
    User configuration of the generated resources.
    """
    namespace: Optional[str] = None
    labels: MetaDataConfig = Field(default_factory=MetaDataConfig)
    annotations: MetaDataConfig = Field(default_factory=MetaDataConfig)
    controller: ControllerResourceConfig = Field(default_factory=ControllerResourceConfig)
    config_map: Optional[ConfigMapConfig] = None
    secrets: List[SecretConfig] = []
    service_account: Optional[str] = None
    service_accounts: List[ServiceAccountConfig] = []


Named = TypeVar("Named")


class ProcessorConfig(ConfigModel):
    """
    Selects and configures named processors such as enrichers.

    ``includes`` lists processors in the order they run; when it is empty the
    default order is used. ``excludes`` removes processors from either list.
    ``config`` holds per processor settings, keyed by processor name.
    """
    includes: List[str] = []
    excludes: List[str] = []
    config: Dict[str, Dict[str, Any]] = {}

    def use(self, name: str) -> bool:
        if name in self.excludes:
            return False
        return not self.includes or name in self.includes

    def prepare_processors(self, named_list: Sequence[Named], type: str) -> List[Named]:
        """
        Picks the processors to run, in order.

        :param named_list: Available processors, in default order; each has a ``name``.
        :param type: Processor kind used in error messages.
        :return: The processors to run.
        :raises ConfigurationError: If an included processor does not exist.
        """
        if not self.includes:
            return [named for named in named_list if self.use(named.name)]
        lookup = {named.name: named for named in named_list}
        ret = []
        for inc in self.includes:
            if not self.use(inc):
                continue
            named = lookup.get(inc)
            if named is None:
                raise ConfigurationError(
                    f"No {type} with name '{inc}' found to include. "
                    f"Included {type}s: {', '.join(sorted(lookup))}"
                )
            ret.append(named)
        return ret

    def get_config(self, processor: str, key: str) -> Optional[Any]:
        return self.config.get(processor, {}).get(key)
