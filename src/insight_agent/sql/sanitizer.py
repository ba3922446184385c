"""Lexical sanitizer for LLM-generated SQL.

Removes string literal contents and comments so that keyword checks only see
real SQL tokens. ``'dataset'`` must not trip the ``SET`` rule and
``/* DROP */`` must not trip the ``DROP`` rule.
"""
from enum import Enum, auto

STRING_PLACEHOLDER = "''"
COMMENT_PLACEHOLDER = " "


class ScanState(Enum):
    NORMAL = auto()
    IN_STRING = auto()
    IN_BLOCK_COMMENT = auto()
    IN_LINE_COMMENT = auto()


def sanitize(raw: str) -> str:
    """Strips comments and single-quoted string contents from a SQL string.

    The scanner walks the input one character at a time:

    * A single-quoted literal (``''`` inside it is an escaped quote) is
      replaced by the two-character placeholder ``''`` so statement structure
      survives.
    * ``/* ... */`` and ``-- ...`` comments are replaced by one space so the
      tokens on either side cannot merge into a new word.
    * An unterminated literal or block comment swallows the rest of the input.

    Args:
        raw (str): The raw SQL text.

    Returns:
        str: The sanitized SQL text.
    """
    out = []
    state = ScanState.NORMAL
    i = 0
    n = len(raw)

    while i < n:
        ch = raw[i]
        nxt = raw[i + 1] if i + 1 < n else ""

        if state is ScanState.NORMAL:
            if ch == "'":
                state = ScanState.IN_STRING
                i += 1
            elif ch == "/" and nxt == "*":
                state = ScanState.IN_BLOCK_COMMENT
                i += 2
            elif ch == "-" and nxt == "-":
                state = ScanState.IN_LINE_COMMENT
                i += 2
            else:
                out.append(ch)
                i += 1

        elif state is ScanState.IN_STRING:
            if ch == "'" and nxt == "'":
                i += 2
            elif ch == "'":
                out.append(STRING_PLACEHOLDER)
                state = ScanState.NORMAL
                i += 1
            else:
                i += 1

        elif state is ScanState.IN_BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                out.append(COMMENT_PLACEHOLDER)
                state = ScanState.NORMAL
                i += 2
            else:
                i += 1

        else:  # IN_LINE_COMMENT
            if ch == "\n":
                out.append(COMMENT_PLACEHOLDER)
                state = ScanState.NORMAL
            i += 1

    # Input ended inside a construct: emit its placeholder as if it had closed.
    if state is ScanState.IN_STRING:
        out.append(STRING_PLACEHOLDER)
    elif state in (ScanState.IN_BLOCK_COMMENT, ScanState.IN_LINE_COMMENT):
        out.append(COMMENT_PLACEHOLDER)

    return "".join(out)
