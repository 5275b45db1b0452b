"""
Reads resource fragments: partial manifests the user keeps in the resource directory.

A fragment file is named ``[<name>-]<type>.yml`` (or ``.yaml``, ``.json``).
A type in the file name must be a known one. Whatever the fragment leaves
out of ``kind``, ``apiVersion`` and ``metadata.name`` is inferred from the
file name.
"""
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..MODELS.kubernetes_list import KubernetesListBuilder
from ..MODELS.kubernetes_resources import RESOURCE_TYPES, KubernetesResource, resource_from_dict

logger = logging.getLogger(__name__)

FILENAME_PATTERN = re.compile(r"^(?P<name>.*?)(-(?P<type>[^-]+))?\.(?P<ext>yaml|yml|json)$", re.IGNORECASE)
EXCLUDED_SUFFIXES = (".helm.yaml", ".helm.yml")

# Kind to the file name types denoting it; the last one is used when writing files
KIND_FILENAME_TYPES: Dict[str, List[str]] = {
    "ConfigMap": ["cm", "configmap"],
    "DaemonSet": ["ds", "daemonset"],
    "Deployment": ["deployment"],
    "DeploymentConfig": ["dc", "deploymentconfig"],
    "Ingress": ["ingress"],
    "Job": ["job"],
    "Namespace": ["ns", "namespace"],
    "PersistentVolumeClaim": ["pvc", "persistentvolumeclaim"],
    "Project": ["project"],
    "ReplicaSet": ["rs", "replicaset"],
    "ReplicationController": ["rc", "replicationcontroller"],
    "Secret": ["secret"],
    "Service": ["svc", "service"],
    "ServiceAccount": ["sa", "serviceaccount"],
    "StatefulSet": ["statefulset"],
}

FILENAME_TYPE_TO_KIND: Dict[str, str] = {
    file_type: kind for kind, file_types in KIND_FILENAME_TYPES.items() for file_type in file_types
}


def name_with_suffix(name: str, kind: str) -> str:
    """
    Builds the base file name for an object, e.g. ``my-app-service``.
    """
    suffixes = KIND_FILENAME_TYPES.get(kind)
    suffix = suffixes[-1] if suffixes else kind.lower()
    return f"{name}-{suffix}"


def list_fragment_files(resource_dir: str) -> List[str]:
    """
    Lists the fragment files of a directory in name order.

    :param resource_dir: Directory to scan; a missing directory has no fragments.
    """
    if not os.path.isdir(resource_dir):
        return []
    ret = []
    for file_name in sorted(os.listdir(resource_dir)):
        path = os.path.join(resource_dir, file_name)
        if not os.path.isfile(path) or not FILENAME_PATTERN.match(file_name):
            continue
        if file_name.lower().endswith(EXCLUDED_SUFFIXES):
            continue
        ret.append(path)
    return ret


def read_resource_fragments(resource_dir: str) -> KubernetesListBuilder:
    """
    Reads all fragments of a directory into a list builder.

    :raises ConfigurationError: If a fragment cannot be read or its kind cannot be determined.
    """
    builder = KubernetesListBuilder()
    for path in list_fragment_files(resource_dir):
        logger.debug("Reading resource fragment %s", path)
        builder.add_to_items(read_resource_fragment(path))
    return builder


def read_resource_fragment(path: str) -> KubernetesResource:
    """
    Reads one fragment, filling in what its file name tells about it.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read resource fragment {path}: {e}") from e
    try:
        fragment = json.loads(content) if path.lower().endswith(".json") else yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Resource fragment {path} has an invalid syntax ({e})") from e
    fragment = fragment or {}
    if not isinstance(fragment, dict):
        raise ConfigurationError(f"Resource fragment {path} must contain a single object")
    metadata = fragment.get("metadata")
    if metadata is None:
        fragment["metadata"] = metadata = {}
    elif not isinstance(metadata, dict):
        raise ConfigurationError(f"Metadata of resource fragment {path} is expected to be a mapping")
    _complete_fragment(fragment, os.path.basename(path))
    try:
        return resource_from_dict(fragment)
    except ValidationError as e:
        raise ConfigurationError(f"Resource fragment {path} has an invalid syntax ({e})") from e


def _complete_fragment(fragment: Dict[str, Any], file_name: str):
    name_from_file, type_from_file = _split_file_name(file_name)
    kind_from_type = _kind_from_type(type_from_file, file_name) if type_from_file else None
    kind_from_name = FILENAME_TYPE_TO_KIND.get(name_from_file.lower())

    # a file named after a kind only, like deployment.yml, carries no name
    name_is_kind = kind_from_type is None and kind_from_name is not None
    if not fragment.get("kind"):
        if kind_from_type is None and kind_from_name is None:
            raise ConfigurationError(
                f"No type given as part of the file name (e.g. 'app-rc.yml') and no 'kind' defined "
                f"in resource descriptor {file_name}. Must be one of: {', '.join(sorted(FILENAME_TYPE_TO_KIND))}"
            )
        fragment["kind"] = kind_from_name if name_is_kind else kind_from_type

    if name_from_file.strip() and not name_is_kind:
        fragment["metadata"].setdefault("name", name_from_file)
        if not fragment["metadata"]["name"]:
            fragment["metadata"]["name"] = name_from_file

    if not fragment.get("apiVersion"):
        cls = RESOURCE_TYPES.get(fragment["kind"])
        fragment["apiVersion"] = cls.API_VERSION if cls is not None else "v1"


def _kind_from_type(type_from_file: str, file_name: str) -> str:
    kind = FILENAME_TYPE_TO_KIND.get(type_from_file.lower())
    if kind is None:
        raise ConfigurationError(
            f"Unknown type '{type_from_file}' for file {file_name}. "
            f"Must be one of: {', '.join(sorted(FILENAME_TYPE_TO_KIND))}"
        )
    return kind


def _split_file_name(file_name: str) -> Tuple[str, Optional[str]]:
    match = FILENAME_PATTERN.match(file_name)
    if not match:
        raise ConfigurationError(
            f"Resource file name '{file_name}' does not match pattern <name>-<type>.(yaml|yml|json)"
        )
    return match.group("name"), match.group("type")
