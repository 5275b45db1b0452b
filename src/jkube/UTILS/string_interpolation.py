"""
Utilities for interpolating property expressions like ${name} or @name@ in strings.
"""
import os
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import ConfigurationError

DEFAULT_FILTER = "${*}"
DEFAULT_DELIMITERS: Tuple[Tuple[str, str], ...] = (("${", "}"), ("@", "@"))

_FILTER_PATTERN = re.compile(r"^(?P<start>[^*]+)\*(?P<end>.*)$")


def extract_delimiters(filter: Optional[str]) -> List[str]:
    """
    Extracts the start and end delimiter from a filter expression.

    :param filter: Filter like ``${*}``, ``@`` or ``false``.
    :return: An empty list if filtering is disabled, ``[start, end]`` for
        a ``start*end`` expression and ``[filter, filter]`` otherwise.
    """
    if filter is None or filter.lower() in ("false", "none"):
        return []
    if "*" in filter:
        match = _FILTER_PATTERN.match(filter)
        if match:
            return [match.group("start"), match.group("end")]
    return [filter, filter]


class PropertyInterpolator:
    """
    Replaces property expressions in strings.

    Supports ``${name}``, ``${name:-default}`` and any custom delimiter pair.
    Expressions naming unknown properties are left untouched. Values are
    looked up in the given properties first, then in the process environment.
    """

    @staticmethod
    def delimiters_for(filter: Optional[str]) -> Sequence[Tuple[str, str]]:
        """
        Turns a filter expression into the delimiter pairs to apply.

        :param filter: The filter, ``None`` selects both default pairs.
        :return: The delimiter pairs, possibly empty.
        """
        if filter is None:
            return DEFAULT_DELIMITERS
        if filter == "":
            return ()
        delimiters = extract_delimiters(filter)
        if not delimiters:
            return ()
        return ((delimiters[0], delimiters[1]),)

    @staticmethod
    def interpolate(
        text: Optional[str],
        properties: Mapping[str, str],
        filter: Optional[str] = DEFAULT_FILTER,
        delimiters: Optional[Sequence[Tuple[str, str]]] = None,
        use_environment: bool = True,
    ) -> Optional[str]:
        """
        Interpolates property expressions in the text.

        :param text: The text to interpolate, ``None`` is passed through.
        :param properties: Properties to resolve expressions with.
        :param filter: Filter selecting the delimiters, ignored when
            ``delimiters`` is given.
        :param delimiters: Explicit (start, end) delimiter pairs.
        :param use_environment: Whether to fall back to ``os.environ``.
        :return: The interpolated text.
        :raises ConfigurationError: If property values reference each other in a cycle.
        """
        if text is None:
            return None
        pairs = delimiters if delimiters is not None else PropertyInterpolator.delimiters_for(filter)
        context: Dict[str, str] = dict(os.environ) if use_environment else {}
        context.update({k: str(v) for k, v in properties.items() if v is not None})
        for start, end in pairs:
            text = _Resolver(start, end, context).resolve(text, [])
        return text


class _Resolver:
    def __init__(self, start: str, end: str, context: Dict[str, str]):
        self.start = start
        self.end = end
        self.context = context
        body = r"([^\s]+?)" if start == end else r"(.+?)"
        self.pattern = re.compile(re.escape(start) + body + re.escape(end))

    def resolve(self, text: str, stack: List[str]) -> str:
        def replace(match):
            expression = match.group(1)
            name, default = expression, None
            if self.start == "${" and ":-" in expression:
                name, default = expression.split(":-", 1)
            if name in stack:
                raise ConfigurationError(
                    f"Expression cycle detected, aborting: {' -> '.join(stack + [name])}"
                )
            value = self.context.get(name)
            if value is None or (value == "" and default is not None):
                if default is not None:
                    return default
                return match.group(0)
            return self.resolve(value, stack + [name])

        return self.pattern.sub(replace, text)
