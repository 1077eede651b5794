"""
Label string parsing.

The model supplies labels as a single string, usually either a JSON list
(``'["bug", "ui"]'``) or a comma-separated list (``"bug, ui"``). Parsing is
permissive: malformed input never raises, it degrades to the comma split.
"""

import json


def parse_labels(raw: str | None) -> list[str]:
    """
    Parse a label string into a list of label names.

    A strict JSON list is tried first. Anything else, including JSON that
    parses to a non-list value, falls back to splitting on commas, trimming
    each token and discarding empty ones.
    """
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None

    if isinstance(parsed, list):
        names = (str(item).strip() for item in parsed if item is not None)
        return [name for name in names if name]

    return [token.strip() for token in raw.split(",") if token.strip()]
