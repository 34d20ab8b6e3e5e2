import io
import re
import struct
from datetime import datetime

import pytest

from zipfspath.utils import (
    PatternSyntaxError,
    PosixFilePermission,
    dos_to_java_time,
    java_to_dos_time,
    java_to_unix_time,
    java_to_win_time,
    perm_to_flag,
    perms_to_flags,
    to_directory_path,
    to_regex_pattern,
    unix_to_java_time,
    win_to_java_time,
    write_bytes,
    write_int,
    write_long,
    write_short,
)


def _dos(year, month, day, hour, minute, second):
    return ((year - 1980) << 25) | (month << 21) | (day << 16) | (hour << 11) | (minute << 5) | (second >> 1)


def _matches(glob, name):
    return re.fullmatch(to_regex_pattern(glob), name) is not None


@pytest.mark.parametrize(
    "perm, flag",
    [
        (PosixFilePermission.OWNER_READ, 256),
        (PosixFilePermission.OWNER_WRITE, 128),
        (PosixFilePermission.OWNER_EXECUTE, 64),
        (PosixFilePermission.GROUP_READ, 32),
        (PosixFilePermission.GROUP_WRITE, 16),
        (PosixFilePermission.GROUP_EXECUTE, 8),
        (PosixFilePermission.OTHERS_READ, 4),
        (PosixFilePermission.OTHERS_WRITE, 2),
        (PosixFilePermission.OTHERS_EXECUTE, 1),
    ],
)
def test_perm_to_flag(perm, flag):
    assert perm_to_flag(perm) == flag


def test_perm_to_flag_unknown_is_zero():
    assert perm_to_flag("rw") == 0


def test_perms_to_flags_none():
    assert perms_to_flags(None) == -1


def test_perms_to_flags_empty():
    assert perms_to_flags(set()) == 0


def test_perms_to_flags_combines():
    perms = {PosixFilePermission.OWNER_READ, PosixFilePermission.OWNER_WRITE, PosixFilePermission.OTHERS_READ}
    assert perms_to_flags(perms) == 256 | 128 | 4


def test_perms_to_flags_all():
    assert perms_to_flags(set(PosixFilePermission)) == 0o777


def test_write_short_roundtrip():
    buf = io.BytesIO()
    write_short(buf, 0x1234)
    assert struct.unpack("<H", buf.getvalue()) == (0x1234,)


def test_write_short_truncates():
    buf = io.BytesIO()
    write_short(buf, 0x12345)
    assert len(buf.getvalue()) == 2
    assert struct.unpack("<H", buf.getvalue()) == (0x2345,)


def test_write_int_roundtrip():
    buf = io.BytesIO()
    write_int(buf, 0x06054B50)
    assert buf.getvalue() == b"PK\x05\x06"


def test_write_int_negative_masked():
    buf = io.BytesIO()
    write_int(buf, -1)
    assert buf.getvalue() == b"\xff" * 4


def test_write_long_roundtrip():
    buf = io.BytesIO()
    write_long(buf, 0x0102030405060708)
    assert struct.unpack("<Q", buf.getvalue()) == (0x0102030405060708,)


def test_write_bytes_whole_and_slice():
    buf = io.BytesIO()
    write_bytes(buf, b"hello")
    write_bytes(buf, b"abcdef", 2, 3)
    assert buf.getvalue() == b"hellocde"


def test_write_bytes_out_of_range():
    with pytest.raises(IndexError):
        write_bytes(io.BytesIO(), b"abc", 2, 5)


@pytest.mark.parametrize(
    "path, expected",
    [(b"a/b", b"a/b/"), (b"a/b/", b"a/b/"), (b"", b""), (b"/", b"/")],
)
def test_to_directory_path(path, expected):
    assert to_directory_path(path) == expected


def test_dos_time_roundtrip():
    d = _dos(2020, 5, 17, 13, 45, 30)
    assert java_to_dos_time(dos_to_java_time(d)) == d


def test_dos_to_java_time_fields():
    millis = dos_to_java_time(_dos(2001, 7, 4, 9, 8, 6))
    moment = datetime.fromtimestamp(millis / 1000)
    assert (moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second) == (
        2001, 7, 4, 9, 8, 6,
    )


def test_dos_to_java_time_overflow_rolls_over():
    millis = dos_to_java_time(_dos(2021, 2, 30, 12, 0, 0))
    moment = datetime.fromtimestamp(millis / 1000)
    assert (moment.month, moment.day) == (3, 2)


def test_java_to_dos_time_before_1980():
    assert java_to_dos_time(0) == (1 << 21) | (1 << 16)


def test_java_to_dos_time_drops_odd_second():
    millis = int(datetime(2010, 1, 2, 3, 4, 7).timestamp()) * 1000
    assert java_to_dos_time(millis) == _dos(2010, 1, 2, 3, 4, 6)


def test_win_time_epoch():
    assert win_to_java_time(116444736000000000) == 0
    assert java_to_win_time(0) == 116444736000000000


@pytest.mark.parametrize("millis", [0, 1, 1_600_000_000_123, -5_000])
def test_win_time_roundtrip(millis):
    assert win_to_java_time(java_to_win_time(millis)) == millis


def test_unix_time():
    assert unix_to_java_time(5) == 5000
    assert java_to_unix_time(5999) == 5
    assert java_to_unix_time(-1500) == -1


@pytest.mark.parametrize("seconds", [0, 1, 1_700_000_000, -42])
def test_unix_time_roundtrip(seconds):
    assert java_to_unix_time(unix_to_java_time(seconds)) == seconds


def test_regex_star_suffix():
    assert to_regex_pattern("*.txt") == "^[^/]*\\.txt$"


def test_glob_star_does_not_cross_separator():
    assert _matches("*.txt", "a.txt")
    assert not _matches("*.txt", "dir/a.txt")


def test_glob_double_star_crosses_separator():
    assert _matches("**.txt", "dir/sub/a.txt")


def test_glob_question_mark():
    assert _matches("a?c", "abc")
    assert not _matches("a?c", "a/c")


def test_glob_group():
    assert _matches("*.{java,class}", "Foo.class")
    assert _matches("*.{java,class}", "Foo.java")
    assert not _matches("*.{java,class}", "Foo.txt")


def test_glob_character_class_and_range():
    assert _matches("[a-c]x", "bx")
    assert not _matches("[a-c]x", "dx")


def test_glob_negated_class_excludes_separator():
    assert _matches("[!a]", "b")
    assert not _matches("[!a]", "a")
    assert not _matches("[!a]", "/")


def test_glob_escape():
    assert _matches("\\*", "*")
    assert not _matches("\\*", "x")


def test_glob_literal_regex_meta():
    assert _matches("a+b(c)", "a+b(c)")


def test_error_no_character_to_escape():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("abc\\")
    assert info.value.index == 3
    assert info.value.description == "No character to escape"


def test_error_nested_groups():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("{a,{b}}")
    assert info.value.description == "Cannot nest groups"


def test_error_missing_brace():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("{a,b")
    assert info.value.description == "Missing '}"


def test_error_missing_bracket():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("[abc")
    assert info.value.description == "Missing ']"


def test_error_separator_in_class():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("[a/b]")
    assert info.value.description == "Explicit 'name separator' in class"


def test_error_invalid_range_order():
    with pytest.raises(PatternSyntaxError) as info:
        to_regex_pattern("[z-a]")
    assert info.value.description == "Invalid range"


def test_error_is_value_error():
    with pytest.raises(ValueError):
        to_regex_pattern("[a--]")