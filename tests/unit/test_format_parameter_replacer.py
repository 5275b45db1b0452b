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
Unit tests for the placeholder replacer.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from jkube.errors import ConfigurationError
from jkube.UTILS.format_parameter_replacer import FormatParameterReplacer


@pytest.fixture
def replacer():
    return FormatParameterReplacer({
        "a": lambda: "alpha",
        "b": lambda: "beta",
        "n": lambda: None,
        "i": lambda: "%i",
    })


class TestFormatParameterReplacer:
    """Tests for FormatParameterReplacer.replace."""

    def test_text_without_placeholders_is_unchanged(self, replacer):
        """Test plain text passes through."""
        assert replacer.replace("plain-text_1.0") == "plain-text_1.0"
        assert replacer.replace("") == ""

    def test_percent_without_letter_is_kept(self, replacer):
        """Test a trailing percent sign is not a placeholder."""
        assert replacer.replace("100%") == "100%"

    def test_replaces_all_placeholders(self, replacer):
        """Test placeholders are replaced left to right."""
        assert replacer.replace("%a/%b:%a") == "alpha/beta:alpha"

    def test_width_and_justification(self, replacer):
        """Test options are applied like a %s format."""
        assert replacer.replace("[%8a]") == "[   alpha]"
        assert replacer.replace("[%-8a]") == "[alpha   ]"

    def test_precision_truncates(self, replacer):
        """Test precision cuts the value."""
        assert replacer.replace("%.3b") == "bet"

    def test_none_value_is_empty(self, replacer):
        """Test a lookup returning None yields an empty string."""
        assert replacer.replace("x%ny") == "xy"

    def test_replaced_values_are_not_scanned_again(self, replacer):
        """Test a lookup may return a placeholder marker."""
        assert replacer.replace("%a-%i") == "alpha-%i"

    def test_unknown_placeholder(self, replacer):
        """Test an unknown letter fails."""
        with pytest.raises(ConfigurationError, match="No parameter replacement for %z"):
            replacer.replace("%a-%z")

    def test_invalid_options(self, replacer):
        """Test invalid format options fail."""
        with pytest.raises(ConfigurationError):
            replacer.replace("%..a")

    def test_shared_between_threads(self, replacer):
        """Test concurrent use of one instance."""
        texts = [f"%a-{i}-%b" for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(replacer.replace, texts))
        assert results == [f"alpha-{i}-beta" for i in range(200)]
