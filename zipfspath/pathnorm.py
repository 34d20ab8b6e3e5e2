"""Normalisation of zip entry paths: separator cleanup, dot-segment
resolution and percent-decoding of URI strings."""

from __future__ import annotations

from typing import List, Optional

__all__ = [
    "InvalidPathError",
    "normalize_bytes",
    "normalize_str",
    "resolve_dots",
    "has_dot_segment",
    "decode_uri",
]

_SLASH = ord("/")
_BACKSLASH = ord("\\")
_DOT = ord(".")
_NUL = 0


class InvalidPathError(ValueError):
    """Raised when a path string cannot be turned into a zip path."""

    def __init__(self, input_path: str, reason: str) -> None:
        self.input = input_path
        self.reason = reason
        super().__init__(f"{reason}: {input_path}")


def _needs_rewrite(path: bytes) -> bool:
    prev = None
    for c in path:
        if c in (_BACKSLASH, _NUL):
            return True
        if c == _SLASH and prev == _SLASH:
            return True
        prev = c
    return False


def normalize_bytes(path: bytes) -> bytes:
    """Turn '\\' into '/', collapse repeated '/' and drop a trailing '/'.

    A path of just '/' is kept. A NUL byte raises InvalidPathError.
    """
    path = bytes(path)
    if not path:
        return path
    if not _needs_rewrite(path):
        if len(path) > 1 and path[-1] == _SLASH:
            return path[:-1]
        return path
    out = bytearray()
    prev = None
    for c in path:
        if c == _BACKSLASH:
            c = _SLASH
        if c == _SLASH and prev == _SLASH:
            continue
        if c == _NUL:
            raise InvalidPathError(path.decode("utf-8", "replace"),
                                   "Path: nul character not allowed")
        out.append(c)
        prev = c
    if len(out) > 1 and out[-1] == _SLASH:
        del out[-1]
    return bytes(out)


def normalize_str(path: str) -> bytes:
    """Normalise a path string and return its UTF-8 encoded form."""
    return normalize_bytes(path.encode("utf-8", "surrogatepass"))


def has_dot_segment(path: bytes) -> bool:
    """Tell whether a '.' ends a name, which is when dot resolution is needed."""
    n = len(path)
    return any(
        c == _DOT and (i + 1 == n or path[i + 1] == _SLASH)
        for i, c in enumerate(path)
    )


def _names(path: bytes) -> List[bytes]:
    return [name for name in path.split(b"/") if name]


def resolve_dots(path: bytes) -> bytes:
    """Remove '.' names and fold '..' into the preceding name.

    Leading '..' names of a relative path are kept; at the root of an
    absolute path they are dropped.
    """
    path = bytes(path)
    if not has_dot_segment(path):
        return path
    absolute = path[:1] == b"/"
    out = bytearray()
    marks: List[int] = []
    for name in _names(path):
        if name == b".":
            if not out and absolute:
                out.append(_SLASH)
            continue
        if name == b"..":
            if marks:
                del out[marks.pop():]
                continue
            if absolute:
                if not out:
                    out.append(_SLASH)
            else:
                if out and out[-1] != _SLASH:
                    out.append(_SLASH)
                out += name
            continue
        if (not out and absolute) or (out and out[-1] != _SLASH):
            out.append(_SLASH)
        marks.append(len(out))
        out += name
    if len(out) > 1 and out[-1] == _SLASH:
        del out[-1]
    return bytes(out)


def _hex_value(s: str, i: int) -> int:
    if i >= len(s):
        raise ValueError(f"incomplete escape sequence in {s!r}")
    try:
        return int(s[i], 16)
    except ValueError:
        raise ValueError(f"invalid hex digit {s[i]!r} in {s!r}") from None


def decode_uri(s: Optional[str]) -> Optional[str]:
    """Decode %XX escapes as UTF-8, leaving text between '[' and ']' untouched."""
    if s is None or "%" not in s:
        return s
    parts: List[str] = []
    between_brackets = False
    n = len(s)
    i = 0
    while i < n:
        c = s[i]
        if c == "[":
            between_brackets = True
        elif between_brackets and c == "]":
            between_brackets = False
        if c != "%" or between_brackets:
            parts.append(c)
            i += 1
            continue
        buf = bytearray()
        while c == "%":
            high = _hex_value(s, i + 1)
            low = _hex_value(s, i + 2)
            buf.append((high << 4) | low)
            i += 3
            if i >= n:
                break
            c = s[i]
        parts.append(buf.decode("utf-8", "replace"))
    return "".join(parts)