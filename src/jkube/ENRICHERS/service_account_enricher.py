"""
Creates the ServiceAccounts the generated controllers run with.
"""
from typing import Dict, List, Optional

from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import Deployment, ObjectMeta, ServiceAccount
from .base_enricher import BaseEnricher, PlatformMode


class ServiceAccountEnricher(BaseEnricher):
    """
    Adds a ServiceAccount for every configured ``serviceAccounts`` entry and
    for every account a Deployment refers to but which is not part of the
    manifests. Deployments named by a ``deploymentRef`` get the account
    assigned when they have none.

    ``skipCreate`` only stops creation; assignment still happens.
    """
    NAME = "jkube-serviceaccount"
    DEFAULTS = {"skipCreate": "false"}

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        deployment_to_account = self._deployment_to_account()
        builder.add_to_items(*self._accounts_from_config(builder))
        builder.add_to_items(*self._accounts_referenced_in_deployments(builder, deployment_to_account))

    def _deployment_to_account(self) -> Dict[str, str]:
        ret = {}
        for account in self.resource_config.service_accounts:
            if account.deployment_ref is not None and account.name:
                ret[account.deployment_ref] = account.name
        service_account = self.resource_config.service_account
        if service_account and service_account.strip():
            ret[self.default_resource_name()] = service_account
        return ret

    def _accounts_from_config(self, builder: KubernetesListBuilder) -> List[ServiceAccount]:
        if self.get_config_bool("skipCreate"):
            return []
        ret = []
        for account in self.resource_config.service_accounts:
            # an unset generate flag means create
            if not account.name or account.generate is False:
                continue
            if builder.find(ServiceAccount.KIND, account.name) is None \
                    and all(sa.name != account.name for sa in ret):
                ret.append(_service_account(account.name))
        return ret

    def _accounts_referenced_in_deployments(self, builder: KubernetesListBuilder,
                                            deployment_to_account: Dict[str, str]) -> List[ServiceAccount]:
        skip_create = self.get_config_bool("skipCreate")
        ret: List[ServiceAccount] = []

        def visit(deployment: Deployment):
            pod_spec = deployment.ensure_template().spec
            referenced = _referenced_account(deployment)
            if referenced and not skip_create and builder.find(ServiceAccount.KIND, referenced) is None \
                    and all(sa.name != referenced for sa in ret):
                self.log.debug("Adding ServiceAccount %s used by Deployment %s", referenced, deployment.name)
                ret.append(_service_account(referenced))
            account = deployment_to_account.get(deployment.name)
            if account and not (pod_spec.service_account or "").strip() \
                    and not (pod_spec.service_account_name or "").strip():
                pod_spec.service_account_name = account

        builder.accept(ResourceKind.DEPLOYMENT, visit)
        return ret


def _referenced_account(deployment: Deployment) -> Optional[str]:
    template = deployment.template
    if template is None:
        return None
    return template.spec.service_account_name or template.spec.service_account


def _service_account(name: str) -> ServiceAccount:
    return ServiceAccount(metadata=ObjectMeta(name=name))
