"""Tests for ResultRenderer"""

import json

import pytest
import yaml

from querywait.infrastructure.output import ResultRenderer

RECORDS = [
    {"host": "web-1", "count": 3},
    {"host": "web-22", "count": 10, "tags": ["a", "b"]},
]


class TestResultRenderer:
    """Tests for output formats"""

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported output format"):
            ResultRenderer("xml")

    def test_format_is_case_insensitive(self):
        assert ResultRenderer("JSON").output_format == "json"

    def test_json(self):
        text = ResultRenderer("json").format(RECORDS)
        assert json.loads(text) == {"records": RECORDS}

    def test_yaml(self):
        text = ResultRenderer("yaml").format(RECORDS)
        assert yaml.safe_load(text) == {"records": RECORDS}

    def test_table(self):
        text = ResultRenderer("table").format(RECORDS)
        lines = text.splitlines()

        assert lines[0].split() == ["HOST", "COUNT", "TAGS"]
        assert lines[1].split() == ["web-1", "3"]
        assert lines[2].split() == ["web-22", "10", '["a","b"]']
        assert lines[1].index("3") == lines[0].index("COUNT")

    def test_csv(self):
        text = ResultRenderer("csv").format(RECORDS)
        assert text.splitlines() == [
            "host,count,tags",
            "web-1,3,",
            'web-22,10,"[""a"",""b""]"',
        ]

    @pytest.mark.parametrize("output_format", ["table", "csv"])
    def test_empty_tabular_output(self, output_format):
        assert ResultRenderer(output_format).format([]) == ""

    def test_render_uses_echo(self):
        lines = []
        ResultRenderer("json", echo=lines.append).render([{"a": 1}])
        assert json.loads(lines[0]) == {"records": [{"a": 1}]}

    def test_render_skips_empty_output(self):
        lines = []
        ResultRenderer("table", echo=lines.append).render([])
        assert lines == []
