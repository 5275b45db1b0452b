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
Timestamps with nanosecond precision as emitted in container log lines.
"""
import re
from datetime import datetime, timedelta, timezone
from functools import total_ordering

TIMESTAMP_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{3,}))?"
    r"(?P<offset>Z|[+-]\d{2}:?\d{2})$"
)


@total_ordering
class Timestamp:
    """
    An instant with nanosecond precision parsed from an extended ISO-8601
    string like ``2014-11-24T22:34:00.761764812Z``.

    Python datetimes only carry microseconds, so the sub second part is kept
    separately as an integer of nanoseconds. Instances are immutable and
    ordered by the instant they denote.
    """

    __slots__ = ("_seconds", "_nanos")

    def __init__(self, epoch_seconds: int, nanos: int = 0):
        if not 0 <= nanos < 1_000_000_000:
            raise ValueError(f"Nanoseconds out of range: {nanos}")
        self._seconds = epoch_seconds
        self._nanos = nanos

    @classmethod
    def parse(cls, text: str) -> "Timestamp":
        """
        Parses a timestamp.

        :param text: Date and time with optional fraction and a ``Z`` or ``+HH:MM`` offset.
        :return: The parsed timestamp.
        :raises ValueError: If the text is not a valid timestamp.
        """
        match = TIMESTAMP_PATTERN.match(text.strip()) if text else None
        if not match:
            raise ValueError(f"Invalid timestamp '{text}'")
        offset = match.group("offset")
        if offset == "Z":
            tz = timezone.utc
        else:
            digits = offset[1:].replace(":", "")
            delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
            tz = timezone(-delta if offset[0] == "-" else delta)
        parsed = datetime.strptime(match.group("date"), "%Y-%m-%dT%H:%M:%S").replace(tzinfo=tz)
        fraction = match.group("fraction") or ""
        # digits beyond nanosecond precision are dropped
        nanos = int(fraction[:9].ljust(9, "0")) if fraction else 0
        return cls(int(parsed.timestamp()), nanos)

    @classmethod
    def now(cls) -> "Timestamp":
        now = datetime.now(timezone.utc)
        return cls(int(now.replace(microsecond=0).timestamp()), now.microsecond * 1000)

    @classmethod
    def from_epoch_millis(cls, millis: int) -> "Timestamp":
        seconds, rest = divmod(millis, 1000)
        return cls(seconds, rest * 1_000_000)

    @property
    def epoch_seconds(self) -> int:
        return self._seconds

    @property
    def nanos(self) -> int:
        return self._nanos

    @property
    def epoch_millis(self) -> int:
        return self._seconds * 1000 + self._nanos // 1_000_000

    def to_datetime(self, tz: timezone = timezone.utc) -> datetime:
        """Converts to an aware datetime, truncating to microseconds."""
        return datetime.fromtimestamp(self._seconds, tz) + timedelta(microseconds=self._nanos // 1000)

    def _key(self):
        return (self._seconds, self._nanos)

    def __eq__(self, other):
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self) -> str:
        base = datetime.fromtimestamp(self._seconds, timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
        return f"{base}.{self._nanos:09d}Z"

    def __repr__(self) -> str:
        return f"Timestamp({self})"
