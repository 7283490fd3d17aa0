"""
Parameter strings for directive markers

Parses the parameter part of a marker such as

    <!-- card: bg="rgba(0,0,0,0.5)", shadow=lg, glass -->

into a mapping. Grammar per pair:

    key   = [A-Za-z0-9_-]+
    value = "double quoted" | 'single quoted' | unquoted run

Quoted values keep everything up to the matching quote verbatim (no escape
processing). Unquoted values stop at whitespace or the first unescaped
comma; ``\\,`` inside an unquoted value is a literal comma. A key with no
``=`` is a flag and maps to "true". Later keys overwrite earlier ones.

Example:
    >>> params_parse('bg="rgba(0,0,0,0.5)", shadow=lg')
    {'bg': 'rgba(0,0,0,0.5)', 'shadow': 'lg'}
"""

import re
from typing import Dict, Mapping, Optional, Tuple


_PAIR = re.compile(
    r"""(?P<key>[A-Za-z0-9_-]+)
        (?:\s*=\s*
            (?:"(?P<dq>[^"]*)"
              |'(?P<sq>[^']*)'
              |(?P<bare>(?:\\,|[^,\s])*)
            )
        )?""",
    re.VERBOSE,
)
_SEPARATORS = re.compile(r"[\s,]*")
_NEEDS_QUOTES = re.compile(r"[,\s]")


def params_parse(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse a raw parameter string into a key -> value mapping.

    Never raises: text that is not a key is skipped up to the next comma.

    Args:
        raw: Parameter string, possibly empty or None

    Returns:
        Mapping of parameter names to string values ({} for empty input)
    """
    params: Dict[str, str] = {}
    if not raw:
        return params

    pos = 0
    length = len(raw)
    while pos < length:
        pos = _SEPARATORS.match(raw, pos).end()
        if pos >= length:
            break

        match = _PAIR.match(raw, pos)
        if not match:
            # Junk: skip to the next separator comma
            comma = raw.find(",", pos)
            pos = length if comma == -1 else comma + 1
            continue

        key = match.group("key")
        if match.group("dq") is not None:
            value = match.group("dq")
        elif match.group("sq") is not None:
            value = match.group("sq")
        elif match.group("bare") is not None:
            value = match.group("bare").replace("\\,", ",")
        else:
            value = "true"
        params[key] = value
        pos = match.end()

        # Trailing junk glued to a value (e.g. key="a"b) is dropped
        if pos < length and raw[pos] not in ", \t\r\n":
            comma = raw.find(",", pos)
            pos = length if comma == -1 else comma + 1

    return params


def value_quote(value: str) -> str:
    """Render one value so that params_parse reads it back unchanged"""
    if (
        value
        and not _NEEDS_QUOTES.search(value)
        and value[0] not in "\"'"
        and not value.endswith("\\")
    ):
        return value
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    # Both quote kinds present: only an unquoted run can carry it
    return value.replace(",", "\\,")


def params_serialize(params: Mapping[str, str]) -> str:
    """
    Render a mapping back into a parameter string.

    Values are quoted only when they need it, so that
    params_parse(params_serialize(params_parse(s))) == params_parse(s).

    Example:
        >>> params_serialize({"bg": "rgba(0,0,0,0.5)", "shadow": "lg"})
        'bg="rgba(0,0,0,0.5)", shadow=lg'
    """
    return ", ".join(f"{key}={value_quote(str(value))}" for key, value in params.items())


def params_splitHead(raw: Optional[str]) -> Tuple[str, str]:
    """
    Separate a leading positional token from the key=value pairs.

    Directives such as layout and transition take a bare first argument:

        <!-- layout: cols, ratio=1:2 -->      -> ("cols", "ratio=1:2")
        <!-- transition: zoom -->            -> ("zoom", "")
        <!-- video: src=a.mp4 -->            -> ("", "src=a.mp4")

    Args:
        raw: Raw parameter string (a leading ':' is tolerated)

    Returns:
        (head, rest) with head "" when the first token is a key=value pair
    """
    text = (raw or "").lstrip().lstrip(":").strip()
    if not text:
        return "", ""
    first, _, rest = text.partition(",")
    if "=" in first or first.lstrip()[:1] in ("\"", "'"):
        return "", text
    return first.strip(), rest.strip()


def flag_get(params: Mapping[str, str], key: str, default: bool = False) -> bool:
    """Boolean view of a parameter ("false", "0", "no" and "off" are false)"""
    if key not in params:
        return default
    return params[key].strip().lower() not in ("false", "0", "no", "off")


def integer_get(params: Mapping[str, str], key: str, default: Optional[int] = None) -> Optional[int]:
    """Integer view of a parameter, default when missing or not an integer"""
    value = params.get(key)
    if value is None:
        return default
    match = re.match(r"\s*(-?\d+)", value)
    return int(match.group(1)) if match else default
