"""Tests for query templates"""

import pytest

from querywait.domain.errors import TemplateError
from querywait.infrastructure.template import parse_set_flags, render_template


class TestSetFlags:
    """Tests for --set parsing"""

    def test_parses_pairs(self):
        assert parse_set_flags(["env=prod", "host = web-1 "]) == {"env": "prod", "host": "web-1"}

    def test_value_may_contain_equals(self):
        assert parse_set_flags(["filter=a=b"]) == {"filter": "a=b"}

    def test_later_value_wins(self):
        assert parse_set_flags(["env=dev", "env=prod"]) == {"env": "prod"}

    def test_missing_equals_rejected(self):
        with pytest.raises(TemplateError, match="expected key=value"):
            parse_set_flags(["env"])

    def test_empty_key_rejected(self):
        with pytest.raises(TemplateError, match="empty key"):
            parse_set_flags([" =prod"])


class TestRenderTemplate:
    """Tests for placeholder substitution"""

    def test_substitutes_variable(self):
        query = 'fetch logs | filter host == "{{.host}}"'
        assert render_template(query, {"host": "web-1"}) == 'fetch logs | filter host == "web-1"'

    def test_default_used_when_unset(self):
        query = 'fetch logs, from: now()-{{.window | default "5m"}}'
        assert render_template(query, {}) == "fetch logs, from: now()-5m"

    def test_value_overrides_default(self):
        assert render_template('{{ .window | default "5m" }}', {"window": "1h"}) == "1h"

    def test_missing_variable_renders_empty(self):
        assert render_template("a{{.missing}}b", {}) == "ab"

    def test_text_without_placeholders_unchanged(self):
        assert render_template("fetch logs", {"x": "1"}) == "fetch logs"

    def test_unclosed_action_rejected(self):
        with pytest.raises(TemplateError, match="unclosed"):
            render_template("fetch logs | filter x == {{.x", {"x": "1"})

    def test_unsupported_expression_rejected(self):
        with pytest.raises(TemplateError, match="unsupported"):
            render_template("{{range .items}}", {})
