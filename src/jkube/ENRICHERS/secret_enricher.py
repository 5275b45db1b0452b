"""
Secrets with content read from files.
"""
import base64

from ..MODELS.kubernetes_list import KubernetesListBuilder, ResourceKind
from ..MODELS.kubernetes_resources import ObjectMeta, Secret
from .base_enricher import BaseEnricher, PlatformMode
from .configmap_enricher import pop_file_annotations, read_file_bytes

PREFIX_ANNOTATION = "jkube.eclipse.org/secret/"
LEGACY_PREFIX_ANNOTATION = "maven.jkube.io/secret/"


def encode(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


class SecretEnricher(BaseEnricher):
    """
    Fills Secrets from files referenced by ``jkube.eclipse.org/secret/<key>``
    annotations and creates the Secrets listed in ``resources.secrets``.
    """
    NAME = "jkube-secret-file"

    def create(self, platform_mode: PlatformMode, builder: KubernetesListBuilder):
        builder.accept(ResourceKind.SECRET, self._add_from_annotations)
        self._add_from_configuration(builder)

    def _add_from_annotations(self, secret: Secret):
        files = pop_file_annotations(secret.metadata.annotations, PREFIX_ANNOTATION, LEGACY_PREFIX_ANNOTATION)
        for key, path in files.items():
            secret.data[key] = encode(read_file_bytes(self.context.resolve_path(path)))

    def _add_from_configuration(self, builder: KubernetesListBuilder):
        for config in self.resource_config.secrets:
            if not config.name or not config.name.strip():
                self.log.warning("Secret name is empty. You should provide a proper name for the secret")
                continue
            if builder.find("Secret", config.name) is not None:
                continue
            data = {key: encode(value.encode("utf-8")) for key, value in config.data.items()}
            for key, path in config.files.items():
                data[key] = encode(read_file_bytes(self.context.resolve_path(path)))
            if not data:
                self.log.warning("No data can be found for secret %s", config.name)
                continue
            builder.add_to_items(Secret(
                metadata=ObjectMeta(name=config.name, namespace=config.namespace),
                type=config.type,
                data=data,
            ))
