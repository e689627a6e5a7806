"""
Render structured label selectors into the string form accepted by list calls
"""

from pdb_reaper.exceptions import SelectorError

OPERATOR_IN = "In"
OPERATOR_NOT_IN = "NotIn"
OPERATOR_EXISTS = "Exists"
OPERATOR_DOES_NOT_EXIST = "DoesNotExist"


def selector_to_string(selector) -> str:
    """Convert a ``V1LabelSelector`` into a label selector string.

    ``None`` and an empty selector both render as ``""``.
    """
    if selector is None:
        return ""

    requirements = []
    for key, value in sorted((selector.match_labels or {}).items()):
        requirements.append((key, f"{key}={value}"))

    for expression in selector.match_expressions or []:
        requirements.append((expression.key, _render_expression(expression)))

    requirements.sort(key=lambda item: item[0])
    return ",".join(rendered for _, rendered in requirements)


def _render_expression(expression) -> str:
    key = expression.key
    operator = expression.operator
    values = list(expression.values or [])

    if not key:
        raise SelectorError(f"label selector requirement has no key: {expression}")

    if operator in (OPERATOR_IN, OPERATOR_NOT_IN):
        if not values:
            raise SelectorError(f"values must be non-empty for operator {operator} on key {key}")
        joined = ",".join(sorted(values))
        keyword = "in" if operator == OPERATOR_IN else "notin"
        return f"{key} {keyword} ({joined})"

    if operator in (OPERATOR_EXISTS, OPERATOR_DOES_NOT_EXIST):
        if values:
            raise SelectorError(f"values must be empty for operator {operator} on key {key}")
        return key if operator == OPERATOR_EXISTS else f"!{key}"

    raise SelectorError(f"{operator!r} is not a valid label selector operator")
