"""Named-placeholder checking for SQL templates.

Placeholders look like ``:name``. Quoted literals, quoted identifiers
and ``::`` casts are skipped when scanning. Values are never spliced
into the SQL text; the driver binds them.

Policy:
    - a placeholder with no binding raises ``QueryError`` before execution
    - a binding with no placeholder is dropped with a warning
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from perch.data.errors import QueryError

logger = logging.getLogger("perch.data")

_QUOTED = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")
_PLACEHOLDER = re.compile(r"(?<![:\w]):([A-Za-z_]\w*)")


def placeholders(sql: str) -> tuple[str, ...]:
    """Return the distinct placeholder names in *sql*, in order of appearance."""
    scrubbed = _QUOTED.sub("''", sql)
    seen: dict[str, None] = {}
    for match in _PLACEHOLDER.finditer(scrubbed):
        seen.setdefault(match.group(1), None)
    return tuple(seen)


def bind(sql: str, bindings: Mapping[str, Any] | None) -> dict[str, Any]:
    """Check *bindings* against the placeholders in *sql*.

    Keys may be given with or without the leading colon. Returns the
    parameter dict to hand to the driver.
    """
    values = {key.removeprefix(":"): value for key, value in (bindings or {}).items()}
    names = placeholders(sql)

    missing = [name for name in names if name not in values]
    if missing:
        listed = ", ".join(f":{name}" for name in missing)
        msg = f"Missing binding for {listed} in {sql!r}"
        raise QueryError(msg)

    unused = [key for key in values if key not in names]
    if unused:
        logger.warning("Ignoring unused binding(s) %s for %r", ", ".join(unused), sql)

    return {name: values[name] for name in names}
