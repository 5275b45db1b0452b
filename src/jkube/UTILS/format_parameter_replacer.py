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
Replacement of printf style placeholders like ``%a`` or ``%-10n`` in names.
"""
import re
import threading
from typing import Callable, Dict

from ..errors import ConfigurationError

Lookup = Callable[[], str]

# %<options><letter>, options being printf flags, width and precision
FORMAT_IDENTIFIER_PATTERN = re.compile(r"^(.*?)%([^a-zA-Z]*)([a-zA-Z])(.*)$", re.DOTALL)


class FormatParameterReplacer:
    """
    Replaces single letter placeholders in a string with values produced
    by a lookup table.

    Each placeholder has the form ``%<options><letter>``. The options are
    applied to the looked up value exactly like a ``%<options>s`` format
    would, so ``%-8a`` left justifies the value in eight characters.
    Replaced values are never scanned again, which allows a lookup to
    return a placeholder marker (like ``%i``) that is resolved later on.

    An instance can be shared between threads; replacements are serialized.
    """

    def __init__(self, lookups: Dict[str, Lookup]):
        """
        :param lookups: Mapping from placeholder letter to a value producer.
        """
        self.lookups = dict(lookups)
        self._lock = threading.Lock()

    def replace(self, text: str) -> str:
        """
        Replaces all placeholders in the given text.

        :param text: Text possibly containing placeholders.
        :return: The text with all placeholders substituted.
        :raises ConfigurationError: If a placeholder letter has no lookup.
        """
        with self._lock:
            ret = []
            remaining = text
            while True:
                match = FORMAT_IDENTIFIER_PATTERN.match(remaining)
                if not match:
                    ret.append(remaining)
                    return "".join(ret)
                ret.append(match.group(1))
                ret.append(self._format(match.group(2), match.group(3)))
                remaining = match.group(4)

    def _format(self, options: str, what: str) -> str:
        lookup = self.lookups.get(what)
        if lookup is None:
            raise ConfigurationError(f"No parameter replacement for %{what}")
        value = lookup()
        if value is None:
            value = ""
        try:
            return ("%" + options + "s") % (value,)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid format options '{options}' for %{what}: {e}") from e
