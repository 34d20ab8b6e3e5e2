"""Helpers shared by the zip file system: permission flags, little-endian
writers, DOS/Windows/Unix time conversion and glob-to-regex translation."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import BinaryIO, Iterable, Optional

__all__ = [
    "PosixFilePermission",
    "PatternSyntaxError",
    "perm_to_flag",
    "perms_to_flags",
    "write_short",
    "write_int",
    "write_long",
    "write_bytes",
    "to_directory_path",
    "dos_to_java_time",
    "java_to_dos_time",
    "win_to_java_time",
    "java_to_win_time",
    "unix_to_java_time",
    "java_to_unix_time",
    "to_regex_pattern",
]

WINDOWS_EPOCH_IN_MICROSECONDS = -11644473600000000

_LONG_MAX = (1 << 63) - 1
_LONG_MIN = -(1 << 63)

_REGEX_META_CHARS = ".^$+{[]|()"
_GLOB_META_CHARS = "\\*?[{"
_EOL = "\0"


class PosixFilePermission(enum.Enum):
    """POSIX permission bits as stored in a zip entry's external attributes."""

    OWNER_READ = 0o400
    OWNER_WRITE = 0o200
    OWNER_EXECUTE = 0o100
    GROUP_READ = 0o040
    GROUP_WRITE = 0o020
    GROUP_EXECUTE = 0o010
    OTHERS_READ = 0o004
    OTHERS_WRITE = 0o002
    OTHERS_EXECUTE = 0o001

    @property
    def flag(self) -> int:
        return self.value


class PatternSyntaxError(ValueError):
    """Raised when a glob pattern cannot be translated."""

    def __init__(self, description: str, pattern: str, index: int) -> None:
        self.description = description
        self.pattern = pattern
        self.index = index
        message = description
        if index >= 0:
            message += f" near index {index}"
        message += f"\n{pattern}"
        if index >= 0:
            message += "\n" + " " * index + "^"
        super().__init__(message)


def perm_to_flag(perm: object) -> int:
    """Return the mode bit for one permission, or 0 if it is not a permission."""
    if isinstance(perm, PosixFilePermission):
        return perm.flag
    return 0


def perms_to_flags(perms: Optional[Iterable[PosixFilePermission]]) -> int:
    """Combine permissions into mode bits; ``None`` yields -1."""
    if perms is None:
        return -1
    flags = 0
    for perm in perms:
        flags |= perm_to_flag(perm)
    return flags


def write_short(os: BinaryIO, v: int) -> None:
    """Write the low 16 bits of ``v`` little-endian."""
    os.write((v & 0xFFFF).to_bytes(2, "little"))


def write_int(os: BinaryIO, v: int) -> None:
    """Write the low 32 bits of ``v`` little-endian."""
    os.write((v & 0xFFFFFFFF).to_bytes(4, "little"))


def write_long(os: BinaryIO, v: int) -> None:
    """Write the low 64 bits of ``v`` little-endian."""
    os.write((v & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "little"))


def write_bytes(os: BinaryIO, b: bytes, off: int = 0, length: Optional[int] = None) -> None:
    """Write ``length`` bytes of ``b`` starting at ``off``."""
    if length is None:
        length = len(b) - off
    if off < 0 or length < 0 or off + length > len(b):
        raise IndexError(f"range [{off}, {off}+{length}) out of bounds for length {len(b)}")
    os.write(bytes(b[off:off + length]))


def to_directory_path(path: bytes) -> bytes:
    """Append a trailing '/' to a non-empty path that lacks one."""
    if path and path[-1:] != b"/":
        return bytes(path) + b"/"
    return path


def _saturate(value: int) -> int:
    return max(_LONG_MIN, min(_LONG_MAX, value))


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _overflow_dos_to_java_time(year: int, month: int, day: int,
                               hour: int, minute: int, second: int) -> int:
    # Out-of-range fields roll over into the neighbouring units.
    y = year + (month - 1) // 12
    m = (month - 1) % 12 + 1
    moment = datetime(y, m, 1) + timedelta(days=day - 1, hours=hour,
                                           minutes=minute, seconds=second)
    return int(moment.timestamp()) * 1000


def dos_to_java_time(dtime: int) -> int:
    """Convert a DOS date/time value to milliseconds since the epoch (local time)."""
    year = ((dtime >> 25) & 0x7F) + 1980
    month = (dtime >> 21) & 0x0F
    day = (dtime >> 16) & 0x1F
    hour = (dtime >> 11) & 0x1F
    minute = (dtime >> 5) & 0x3F
    second = (dtime << 1) & 0x3E
    if 0 < month < 13 and day > 0 and hour < 24 and minute < 60 and second < 60:
        try:
            moment = datetime(year, month, day, hour, minute, second)
            return int(moment.timestamp()) * 1000
        except ValueError:
            pass
    return _overflow_dos_to_java_time(year, month, day, hour, minute, second)


def java_to_dos_time(time: int) -> int:
    """Convert milliseconds since the epoch to a DOS date/time value (local time)."""
    before_1980 = (1 << 21) | (1 << 16)
    try:
        moment = datetime.fromtimestamp(time // 1000)
    except (OverflowError, OSError, ValueError):
        if time < 0:
            return before_1980
        raise
    year = moment.year - 1980
    if year < 0:
        return before_1980
    value = ((year << 25) | (moment.month << 21) | (moment.day << 16)
             | (moment.hour << 11) | (moment.minute << 5) | (moment.second >> 1))
    return value & 0xFFFFFFFF


def win_to_java_time(wtime: int) -> int:
    """Convert a Windows FILETIME (100 ns ticks since 1601) to epoch milliseconds."""
    micros = _trunc_div(wtime, 10) + WINDOWS_EPOCH_IN_MICROSECONDS
    return _trunc_div(micros, 1000)


def java_to_win_time(time: int) -> int:
    """Convert epoch milliseconds to a Windows FILETIME value."""
    return (_saturate(time * 1000) - WINDOWS_EPOCH_IN_MICROSECONDS) * 10


def unix_to_java_time(utime: int) -> int:
    """Convert Unix seconds to epoch milliseconds."""
    return _saturate(utime * 1000)


def java_to_unix_time(time: int) -> int:
    """Convert epoch milliseconds to Unix seconds, truncating toward zero."""
    return _trunc_div(time, 1000)


def _is_regex_meta(c: str) -> bool:
    return c in _REGEX_META_CHARS


def _is_glob_meta(c: str) -> bool:
    return c in _GLOB_META_CHARS


def _next(glob: str, i: int) -> str:
    return glob[i] if i < len(glob) else _EOL


def to_regex_pattern(glob_pattern: str) -> str:
    """Translate a glob pattern into a regular expression for the ``re`` module.

    Wildcards never match across '/', except '**'.
    """
    in_group = False
    regex = ["^"]
    i = 0
    n = len(glob_pattern)
    while i < n:
        c = glob_pattern[i]
        i += 1
        if c == "\\":
            if i == n:
                raise PatternSyntaxError("No character to escape", glob_pattern, i - 1)
            nxt = glob_pattern[i]
            i += 1
            if _is_glob_meta(nxt) or _is_regex_meta(nxt):
                regex.append("\\")
            regex.append(nxt)
        elif c == "/":
            regex.append(c)
        elif c == "[":
            regex.append("(?!/)[")
            if _next(glob_pattern, i) == "^":
                regex.append("\\^")
                i += 1
            else:
                if _next(glob_pattern, i) == "!":
                    regex.append("^")
                    i += 1
                if _next(glob_pattern, i) == "-":
                    regex.append("-")
                    i += 1
            has_range_start = False
            last = _EOL
            while i < n:
                c = glob_pattern[i]
                i += 1
                if c == "]":
                    break
                if c == "/":
                    raise PatternSyntaxError("Explicit 'name separator' in class",
                                             glob_pattern, i - 1)
                if c in "\\[" or (c == "&" and _next(glob_pattern, i) == "&"):
                    regex.append("\\")
                regex.append(c)
                if c == "-":
                    if not has_range_start:
                        raise PatternSyntaxError("Invalid range", glob_pattern, i - 1)
                    c = _next(glob_pattern, i)
                    i += 1
                    if c == _EOL or c == "]":
                        break
                    if c < last:
                        raise PatternSyntaxError("Invalid range", glob_pattern, i - 3)
                    regex.append("\\" + c if c in "\\[]" else c)
                    has_range_start = False
                else:
                    has_range_start = True
                    last = c
            if c != "]":
                raise PatternSyntaxError("Missing ']", glob_pattern, i - 1)
            regex.append("]")
        elif c == "{":
            if in_group:
                raise PatternSyntaxError("Cannot nest groups", glob_pattern, i - 1)
            regex.append("(?:(?:")
            in_group = True
        elif c == "}":
            if in_group:
                regex.append("))")
                in_group = False
            else:
                regex.append("}")
        elif c == ",":
            regex.append(")|(?:" if in_group else ",")
        elif c == "*":
            if _next(glob_pattern, i) == "*":
                regex.append(".*")
                i += 1
            else:
                regex.append("[^/]*")
        elif c == "?":
            regex.append("[^/]")
        else:
            if _is_regex_meta(c):
                regex.append("\\")
            regex.append(c)
    if in_group:
        raise PatternSyntaxError("Missing '}", glob_pattern, i - 1)
    regex.append("$")
    return "".join(regex)