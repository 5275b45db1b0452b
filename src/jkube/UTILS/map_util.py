"""
Helpers for merging label, selector and manifest maps.
"""
import copy
from typing import Any, Dict, Mapping, Optional


def merge_if_absent(target: Dict[str, Any], source: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Adds every entry of ``source`` whose key is not yet present in ``target``.

    :param target: Map updated in place.
    :param source: Entries to add, may be None.
    :return: The target map.
    """
    if source:
        for key, value in source.items():
            if key not in target:
                target[key] = value
    return target


def merge_maps(*maps: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merges maps into a new one; earlier maps take precedence.
    """
    ret: Dict[str, Any] = {}
    for m in maps:
        merge_if_absent(ret, m)
    return ret


def deep_merge(base: Any, overlay: Any) -> Any:
    """
    Recursively merges ``overlay`` into a copy of ``base``.

    Nested dictionaries are united key by key. For any other value the
    overlay wins, lists included.

    :param base: The earlier document.
    :param overlay: The later document.
    :return: The merged document.
    """
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = copy.deepcopy(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = deep_merge(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    return copy.deepcopy(overlay)
