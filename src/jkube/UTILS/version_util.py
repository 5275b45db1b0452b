"""
Comparison of dotted API versions like 1.21 or 1.24.
"""
from typing import List, Optional


def _segments(version: str) -> List[int]:
    ret = []
    for part in version.split("."):
        digits = "".join(c for c in part if c.isdigit())
        ret.append(int(digits) if digits else 0)
    return ret


def greater_or_equals_version(version_a: str, version_b: str) -> bool:
    """
    Compares two versions segment by segment as numbers, so 1.10 > 1.9.
    Missing segments count as zero.
    """
    a, b = _segments(version_a), _segments(version_b)
    length = max(len(a), len(b))
    a += [0] * (length - len(a))
    b += [0] * (length - len(b))
    return a >= b


def extract_larger_version(version_a: Optional[str], version_b: Optional[str]) -> Optional[str]:
    """
    Returns the higher of two versions, ignoring None.
    """
    if version_a is None:
        return version_b
    if version_b is None:
        return version_a
    return version_a if greater_or_equals_version(version_a, version_b) else version_b
