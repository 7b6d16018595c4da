"""Safe parser for JavaScript object literals embedded in page scripts.

Documentation pages often inline their spec as a script literal::

    const ui = SwaggerUIBundle({ spec: { openapi: '3.0.0', info: {...}, }, ... })
    window.spec = {"swagger": "2.0", ...};

The literal is never executed. :func:`extract_balanced` cuts it out of the
surrounding script with a string- and comment-aware brace matcher, and
:func:`parse_object_literal` rewrites the JSON superset it is written in into
strict JSON before handing it to :func:`json.loads`. The accepted superset:

* unquoted identifier keys (``info:``),
* single-quoted and backtick strings (without ``${...}`` interpolation),
* trailing commas in objects and arrays,
* ``//`` and ``/* */`` comments,
* hex integers, leading ``+``, ``.5`` / ``5.`` style numbers, ``undefined``.

Anything else (identifiers, function expressions, calls) makes the literal
unparseable and raises :class:`~apidocs.exceptions.SpecParseError`.
"""

from __future__ import annotations

import json
import re
from typing import Any

from apidocs.exceptions import SpecParseError

_NUMBER_RE = re.compile(
    r"[-+]?(?:0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
)
_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_OPENERS = {"{": "}", "[": "]", "(": ")"}
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def _skip_comment(text: str, i: int) -> int:
    """Return the index after a comment starting at *i*, or *i* if there is none."""
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end == -1 else end + 1
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        if end == -1:
            raise SpecParseError("Unterminated comment in script literal")
        return end + 2
    return i


def _skip_ws(text: str, i: int) -> int:
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        nxt = _skip_comment(text, i)
        if nxt == i:
            break
        i = nxt
    return i


def _read_string(text: str, i: int) -> tuple[str, int]:
    """Decode the quoted string starting at ``text[i]``; return (value, end index)."""
    quote = text[i]
    i += 1
    n = len(text)
    chars: list[str] = []
    while i < n:
        ch = text[i]
        if ch == quote:
            return "".join(chars), i + 1
        if quote == "`" and text.startswith("${", i):
            raise SpecParseError("Template interpolation in script literal")
        if ch == "\\":
            if i + 1 >= n:
                break
            esc = text[i + 1]
            if esc in _SIMPLE_ESCAPES:
                chars.append(_SIMPLE_ESCAPES[esc])
                i += 2
            elif esc == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", text[i + 2 : i + 6]):
                chars.append(chr(int(text[i + 2 : i + 6], 16)))
                i += 6
            elif esc == "x" and re.fullmatch(r"[0-9a-fA-F]{2}", text[i + 2 : i + 4]):
                chars.append(chr(int(text[i + 2 : i + 4], 16)))
                i += 4
            elif esc == "\n":
                i += 2
            else:
                chars.append(esc)
                i += 2
            continue
        if ch == "\n" and quote != "`":
            raise SpecParseError("Unterminated string in script literal")
        chars.append(ch)
        i += 1
    raise SpecParseError("Unterminated string in script literal")


def extract_balanced(text: str, start: int) -> str:
    """Return the bracketed expression that opens at ``text[start]``.

    Strings and comments are skipped while matching, so braces inside
    ``"a { b"`` or ``// }`` do not count.

    Args:
        text: Script source.
        start: Index of an opening ``{``, ``[`` or ``(``.

    Raises:
        SpecParseError: If ``text[start]`` is not an opener or the brackets
            never balance.
    """
    if start >= len(text) or text[start] not in _OPENERS:
        raise SpecParseError("No object literal at the given position")

    stack: list[str] = []
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "\"'`":
            _, i = _read_string(text, i)
            continue
        nxt = _skip_comment(text, i)
        if nxt != i:
            i = nxt
            continue
        if ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in ")]}":
            if not stack or stack.pop() != ch:
                raise SpecParseError("Mismatched brackets in script literal")
            if not stack:
                return text[start : i + 1]
        i += 1
    raise SpecParseError("Unbalanced brackets in script literal")


def _convert_number(token: str) -> str:
    sign = ""
    if token[0] in "+-":
        sign = "-" if token[0] == "-" else ""
        token = token[1:]
    if token[:2].lower() == "0x":
        return sign + str(int(token, 16))
    if token.startswith("."):
        token = "0" + token
    token = re.sub(r"\.(?=[eE]|$)", ".0", token)
    # JSON forbids leading zeros ("007").
    if len(token) > 1 and token[0] == "0" and token[1].isdigit():
        token = token.lstrip("0") or "0"
    return sign + token


def to_json(source: str) -> str:
    """Rewrite a JavaScript object literal as strict JSON text.

    Raises:
        SpecParseError: On constructs outside the supported superset.
    """
    out: list[str] = []
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch.isspace():
            out.append(ch)
            i += 1
            continue
        nxt = _skip_comment(source, i)
        if nxt != i:
            i = nxt
            continue
        if ch in "\"'`":
            value, i = _read_string(source, i)
            out.append(json.dumps(value))
            continue
        if ch in "{}[]:":
            out.append(ch)
            i += 1
            continue
        if ch == ",":
            j = _skip_ws(source, i + 1)
            if j >= n or source[j] not in "}]":
                out.append(ch)
            i += 1
            continue

        number = _NUMBER_RE.match(source, i)
        if number and (ch.isdigit() or ch in "+-."):
            i = number.end()
            j = _skip_ws(source, i)
            if source[j : j + 1] == ":":
                # Numeric key, e.g. a responses map: {200: {...}}
                out.append(json.dumps(number.group()))
            else:
                out.append(_convert_number(number.group()))
            continue

        ident = _IDENT_RE.match(source, i)
        if ident:
            word = ident.group()
            i = ident.end()
            j = _skip_ws(source, i)
            if source[j : j + 1] == ":":
                out.append(json.dumps(word))
            elif word in ("true", "false", "null"):
                out.append(word)
            elif word == "undefined":
                out.append("null")
            else:
                raise SpecParseError(f"Unsupported expression '{word}' in script literal")
            continue

        raise SpecParseError(f"Unexpected character {ch!r} in script literal")
    return "".join(out)


def parse_object_literal(source: str) -> Any:
    """Parse a JavaScript object/array literal into Python data.

    Args:
        source: The literal text, e.g. from :func:`extract_balanced`.

    Returns:
        The decoded value (usually a dict).

    Raises:
        SpecParseError: If the literal uses unsupported syntax or does not
            decode.

    Example::

        >>> parse_object_literal("{openapi: '3.0.0', paths: {},}")
        {'openapi': '3.0.0', 'paths': {}}
    """
    converted = to_json(source)
    try:
        return json.loads(converted)
    except json.JSONDecodeError as exc:
        raise SpecParseError(f"Script literal is not valid data: {exc}") from exc


def find_literals(script: str, pattern: re.Pattern[str]) -> list[Any]:
    """Parse every object literal that follows a match of *pattern* in *script*.

    *pattern* must match up to (not including) the opening brace, e.g.
    ``re.compile(r"\\bspec\\s*:\\s*(?=\\{)")``. Literals that fail to parse
    are skipped.
    """
    values: list[Any] = []
    for match in pattern.finditer(script):
        start = _skip_ws(script, match.end())
        try:
            values.append(parse_object_literal(extract_balanced(script, start)))
        except SpecParseError:
            continue
    return values
