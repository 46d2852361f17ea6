"""
JSON-path queries over kubeconfig data and auth-provider command output.

Auth-provider configs write their keys in kubectl template style, e.g.
``{.credential.access_token}``. normalize_path_expression turns such a key into
a plain JSON-path anchored at the root (``$.credential.access_token``) so both
``token-key`` and ``expiry-key`` go through the same parsing step.
"""

from functools import lru_cache
from typing import Any

from jsonpath_ng import parse as parse_jsonpath
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from kubecreds.any.exceptions import KubeCredsConfigurationError
from kubecreds.any.logger import get_logger

LOGGER = get_logger("kubecreds.config.query")


def normalize_path_expression(expression: str) -> str:
    """
    Convert a template-style key into a root-anchored JSON-path.

    Examples:
    --------
        {.credential.access_token} → $.credential.access_token
        .status.token → $.status.token
        token → $.token
        $.already.anchored → $.already.anchored

    Args:
    ----
        expression: Key as written in the auth-provider config

    Returns:
    -------
        JSON-path expression starting with "$"

    """
    stripped = expression.strip().strip("{}").strip()

    if stripped.startswith("$"):
        return stripped
    if stripped.startswith((".", "[")):
        return f"${stripped}"
    return f"$.{stripped}"


@lru_cache(maxsize=128)
def _compile(expression: str):
    try:
        return parse_jsonpath(expression)
    except (JsonPathLexerError, JsonPathParserError) as e:
        raise KubeCredsConfigurationError(f"Invalid JSON-path expression '{expression}': {e}") from e


class JsonPathQuery:
    """
    Evaluates JSON-path expressions with jsonpath-ng.

    Implements the PathQuery protocol.

    Example:
    -------
        ```python
        query = JsonPathQuery()
        query.query({"a": {"b": 1}}, "$.a.b")  # 1
        query.query({"a": {}}, "$.a.b")  # None
        ```

    """

    def query(self, document: Any, expression: str) -> Any | None:
        """Return the first value matching ``expression``, or None."""
        matches = _compile(expression).find(document)
        if not matches:
            LOGGER.debug(f"No match for JSON-path '{expression}'")
            return None
        return matches[0].value

    def __repr__(self) -> str:
        """String representation."""
        return "JsonPathQuery()"
