import re
from urllib.parse import quote

# grammar delimiters which must never survive escaping
DELIMITER_PATTERN = re.compile(r"[()]")


def _escape_char(match: re.Match) -> str:
    return '%' + format(ord(match.group(0)), '02X')


def escape_string(s: str) -> str:
    """
    Percent-encode a field name or string value for embedding in a query expression.

    Same result as URI component encoding: letters, digits and ``-_.~`` are kept,
    every other character becomes ``%XX`` per UTF-8 byte. ``(`` and ``)`` are always
    escaped to ``%28`` / ``%29`` so they cannot be read as grammar delimiters.
    """
    encoded = quote(s, safe='', encoding='utf-8', errors='surrogatepass')
    return DELIMITER_PATTERN.sub(_escape_char, encoded)
