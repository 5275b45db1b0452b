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
Labels every object with the project coordinates and makes selectors match them.

Labels and annotations of the resource configuration are added as well.
"""
from typing import Dict

from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import (
    Controller,
    Deployment,
    DeploymentConfig,
    Ingress,
    LabelSelector,
    ReplicaSet,
    ReplicationController,
    Service,
    ServiceAccount,
    ServiceSpec,
)
from ..MODELS.resource_config import MetaDataConfig
from ..UTILS.map_util import merge_if_absent
from .base_enricher import BaseEnricher, PlatformMode

LABEL_APP = "app"
LABEL_PROJECT = "project"
LABEL_GROUP = "group"
LABEL_PROVIDER = "provider"
LABEL_VERSION = "version"
PROVIDER = "jkube"

# metadata groups of the resource configuration, per kind; "pod" applies to templates
_CONFIG_METADATA_GROUPS = {
    Service.KIND: ["service"],
    Deployment.KIND: ["deployment"],
    DeploymentConfig.KIND: ["deployment"],
    ReplicaSet.KIND: ["replica_set"],
    ReplicationController.KIND: ["replica_set"],
    ServiceAccount.KIND: ["service_account"],
    Ingress.KIND: ["ingress"],
    "pod": ["pod"],
}


class ProjectLabelEnricher(BaseEnricher):
    """
    Adds the labels ``app`` (or ``project`` with ``useProjectLabel``),
    ``group``, ``provider`` and ``version`` to all objects and pod templates,
    together with the labels and annotations from the resource configuration.

    Selectors of services and controllers get the same labels without
    ``version``, so that they keep matching pods across upgrades. Existing
    labels and selector entries are never overwritten.
    """
    NAME = "jkube-project-label"
    DEFAULTS = {"useProjectLabel": "false"}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        builder.visit({
            ResourceKind.SERVICE: self._select_service,
            ResourceKind.DEPLOYMENT: self._select_match_labels,
            ResourceKind.STATEFUL_SET: self._select_match_labels,
            ResourceKind.DAEMON_SET: self._select_match_labels,
            ResourceKind.REPLICA_SET: self._select_match_labels,
            ResourceKind.DEPLOYMENT_CONFIG: self._select_map,
            ResourceKind.REPLICATION_CONTROLLER: self._select_map,
        })

    def enrich(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        labels_config = self.resource_config.labels
        annotations_config = self.resource_config.annotations
        for item in builder:
            merge_if_absent(item.metadata.labels, _configured(labels_config, item.kind))
            merge_if_absent(item.metadata.annotations, _configured(annotations_config, item.kind))
            if isinstance(item, Controller) and item.template is not None:
                merge_if_absent(item.template.metadata.labels, _configured(labels_config, "pod"))
                merge_if_absent(item.template.metadata.annotations, _configured(annotations_config, "pod"))
        labels = self.create_labels()
        builder.accept(ResourceKind.OBJECT_META, lambda meta: merge_if_absent(meta.labels, labels))

    def create_labels(self, without_version: bool = False) -> Dict[str, str]:
        project = self.context.project
        ret = {}
        if self.get_config_bool("useProjectLabel"):
            ret[LABEL_PROJECT] = project.artifact_id
        else:
            ret[LABEL_APP] = project.artifact_id
        ret[LABEL_GROUP] = project.group_id
        ret[LABEL_PROVIDER] = PROVIDER
        if not without_version:
            ret[LABEL_VERSION] = project.version
        return ret

    def _select_service(self, service: Service):
        if service.spec is None:
            service.spec = ServiceSpec()
        merge_if_absent(service.spec.selector, self.create_labels(without_version=True))

    def _select_match_labels(self, controller: Controller):
        controller.ensure_template()
        if controller.spec.selector is None:
            controller.spec.selector = LabelSelector()
        merge_if_absent(controller.spec.selector.match_labels, self.create_labels(without_version=True))

    def _select_map(self, controller: Controller):
        controller.ensure_template()
        merge_if_absent(controller.spec.selector, self.create_labels(without_version=True))


def _configured(config: MetaDataConfig, kind: str) -> Dict[str, str]:
    ret = dict(config.all)
    for group in _CONFIG_METADATA_GROUPS.get(kind, []):
        ret.update(getattr(config, group))
    return ret
