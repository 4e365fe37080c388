"""Java-style ``.properties`` parser.

Supports ``=``, ``:`` and whitespace separators, ``#``/``!`` comment lines,
backslash line continuation and the standard escapes (``\\t``, ``\\n``,
``\\uXXXX``, ...). With namespaces enabled, dotted keys nest::

    options.text.color = red, green
    -> {"options": {"text": {"color": "red, green"}}}

Values are always strings; typed interpretation is left to the caller.
"""

from typing import Any

from zclgen.core.errors import ParseError

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_SEPARATORS = "=:"


def _logical_lines(text: str) -> list[str]:
    """Join continuation lines and drop comments and blank lines."""
    lines: list[str] = []
    pending: str | None = None
    for raw in text.splitlines():
        line = raw.lstrip() if pending is not None else raw
        if pending is None:
            stripped = line.lstrip()
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        lines.append((pending or "") + line)
        pending = None
    if pending is not None:
        lines.append(pending)
    return lines


def _unescape(value: str, path: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch != "\\" or i + 1 >= len(value):
            out.append(ch)
            i += 1
            continue
        nxt = value[i + 1]
        if nxt == "u":
            digits = value[i + 2 : i + 6]
            if len(digits) != 4:
                raise ParseError.malformed(path, f"truncated unicode escape in {value!r}")
            try:
                out.append(chr(int(digits, 16)))
            except ValueError as e:
                raise ParseError.malformed(path, e) from e
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch.isspace():
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip()
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip()
    return key, rest


def _assign(tree: dict[str, Any], key: str, value: str, path: str) -> None:
    parts = key.split(".")
    node = tree
    for part in parts[:-1]:
        child = node.setdefault(part, {})
        if not isinstance(child, dict):
            raise ParseError.malformed(path, f"key '{key}' conflicts with scalar '{part}'")
        node = child
    if isinstance(node.get(parts[-1]), dict):
        raise ParseError.malformed(path, f"key '{key}' conflicts with a namespace")
    node[parts[-1]] = value


def parse_properties(data: bytes | str, path: str, namespaces: bool = True) -> dict[str, Any]:
    """Parse properties content into a (possibly nested) dict.

    Raises:
        ParseError: On undecodable bytes, bad escapes or namespace conflicts.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError.malformed(path, e) from e
    else:
        text = data

    result: dict[str, Any] = {}
    for line in _logical_lines(text):
        raw_key, raw_value = _split_key_value(line)
        key = _unescape(raw_key, path)
        value = _unescape(raw_value, path)
        if namespaces:
            _assign(result, key, value, path)
        else:
            result[key] = value
    return result
