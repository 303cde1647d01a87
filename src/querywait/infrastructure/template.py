"""Query templates with ``--set key=value`` variables.

Placeholders take the form ``{{.name}}`` or ``{{.name | default "value"}}``.
Unset variables render as an empty string unless a default is given.
"""

import logging
import re
from typing import Dict, Iterable

from querywait.domain.errors import TemplateError

logger = logging.getLogger(__name__)

_ACTION = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_PLACEHOLDER = re.compile(
    r"""\s*\.(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*
        (?:\|\s*default\s+"(?P<default>(?:[^"\\]|\\.)*)"\s*)?""",
    re.VERBOSE,
)


def parse_set_flags(set_flags: Iterable[str]) -> Dict[str, str]:
    """Parse ``key=value`` pairs into a variables dict

    Raises:
        TemplateError: If a pair has no ``=`` or an empty key
    """
    variables = {}
    for flag in set_flags:
        key, sep, value = flag.partition("=")
        if not sep:
            raise TemplateError(f"invalid --set format: {flag!r} (expected key=value)")
        key = key.strip()
        if not key:
            raise TemplateError(f"empty key in --set flag: {flag!r}")
        variables[key] = value.strip()
    return variables


def render_template(text: str, variables: Dict[str, str]) -> str:
    """Substitute placeholders in a query

    Args:
        text: Query text
        variables: Variable values

    Returns:
        Rendered query

    Raises:
        TemplateError: If a placeholder is malformed or unclosed
    """

    def _substitute(match: "re.Match[str]") -> str:
        placeholder = _PLACEHOLDER.fullmatch(match.group(1))
        if placeholder is None:
            raise TemplateError(f"unsupported template expression: {match.group(0)!r}")
        value = variables.get(placeholder.group("name"), "")
        if value == "" and placeholder.group("default") is not None:
            value = re.sub(r"\\(.)", r"\1", placeholder.group("default"))
        return value

    if "{{" in _ACTION.sub("", text):
        raise TemplateError("unclosed template action: missing '}}'")
    rendered = _ACTION.sub(_substitute, text)
    logger.debug(f"Rendered query template with {len(variables)} variable(s)")
    return rendered
