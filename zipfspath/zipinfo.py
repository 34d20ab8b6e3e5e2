"""Dump the central directory and local file headers of a zip archive."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, List, Optional, Sequence

from zipfspath.utils import dos_to_java_time, unix_to_java_time, win_to_java_time

__all__ = [
    "ZipFormatError",
    "read_central_directory",
    "loc_offset",
    "format_cen",
    "format_loc",
    "format_extra",
    "main",
]

_LOCHDR = 30
_CENHDR = 46
_ENDHDR = 22
_ZIP64_LOCHDR = 20
_ZIP64_ENDHDR = 56

_LOCSIG = 0x04034B50
_CENSIG = 0x02014B50
_ENDSIG = 0x06054B50
_ZIP64_LOCSIG = 0x07064B50
_ZIP64_ENDSIG = 0x06064B50

_ZIP64_MINVAL = 0xFFFFFFFF
_ZIP64_MINVAL16 = 0xFFFF
_MAX_COMMENT = 0xFFFF

_EXTID_ZIP64 = 0x0001
_EXTID_NTFS = 0x000A
_EXTID_EXTT = 0x5455


class ZipFormatError(ValueError):
    """Raised when an archive's headers are missing or inconsistent."""


def _field(b: bytes, off: int, size: int) -> int:
    if off < 0 or off + size > len(b):
        raise IndexError(f"offset {off} + {size} out of bounds for length {len(b)}")
    return int.from_bytes(b[off:off + size], "little")


def _sh(b: bytes, off: int) -> int:
    return _field(b, off, 2)


def _lg(b: bytes, off: int) -> int:
    return _field(b, off, 4)


def _ll(b: bytes, off: int) -> int:
    return _field(b, off, 8)


def _cen_nam(cen: bytes, pos: int) -> int:
    return _sh(cen, pos + 28)


def _cen_ext(cen: bytes, pos: int) -> int:
    return _sh(cen, pos + 30)


def _cen_com(cen: bytes, pos: int) -> int:
    return _sh(cen, pos + 32)


def _cen_siz(cen: bytes, pos: int) -> int:
    return _lg(cen, pos + 20)


def _cen_len(cen: bytes, pos: int) -> int:
    return _lg(cen, pos + 24)


def _cen_off(cen: bytes, pos: int) -> int:
    return _lg(cen, pos + 42)


def _loc_nam(loc: bytes) -> int:
    return _sh(loc, 26)


def _loc_ext(loc: bytes) -> int:
    return _sh(loc, 28)


def _format_time(millis: int) -> str:
    """Render epoch milliseconds like a locale-neutral ``date`` output."""
    try:
        moment = datetime.fromtimestamp(millis // 1000).astimezone()
    except (OverflowError, OSError, ValueError):
        try:
            moment = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)
        except OverflowError:
            return str(millis)
    return moment.strftime("%a %b %d %H:%M:%S %Z %Y")


def _find_end(tail: bytes) -> int:
    end = len(tail) - _ENDHDR + 4
    fallback = -1
    while end > 0:
        idx = tail.rfind(b"PK\x05\x06", 0, end)
        if idx < 0:
            break
        if idx + _ENDHDR <= len(tail):
            remaining = len(tail) - idx - _ENDHDR
            comment_len = _sh(tail, idx + 20)
            if comment_len == remaining:
                return idx
            if comment_len <= remaining and fallback < 0:
                fallback = idx
        end = idx + 3
    return fallback


def _read_exact(f: BinaryIO, pos: int, length: int) -> bytes:
    f.seek(pos)
    return f.read(length)


def read_central_directory(path) -> bytes:
    """Return the raw central directory of the archive at ``path``.

    An archive without entries gives empty bytes.
    """
    with open(path, "rb") as f:
        f.seek(0, 2)
        size = f.tell()
        if size == 0:
            return b""
        if size < _ENDHDR:
            raise ZipFormatError("zip END header not found")
        tail_start = max(0, size - (_MAX_COMMENT + _ENDHDR))
        tail = _read_exact(f, tail_start, size - tail_start)
        idx = _find_end(tail)
        if idx < 0:
            raise ZipFormatError("zip END header not found")
        endpos = tail_start + idx
        total = _sh(tail, idx + 10)
        cenlen = _lg(tail, idx + 12)
        cenoff = _lg(tail, idx + 16)
        cen_end = endpos
        if cenlen == _ZIP64_MINVAL or cenoff == _ZIP64_MINVAL or total == _ZIP64_MINVAL16:
            loc64pos = endpos - _ZIP64_LOCHDR
            if loc64pos >= 0:
                loc64 = _read_exact(f, loc64pos, _ZIP64_LOCHDR)
                if len(loc64) == _ZIP64_LOCHDR and _lg(loc64, 0) == _ZIP64_LOCSIG:
                    end64pos = _ll(loc64, 8)
                    end64 = _read_exact(f, end64pos, _ZIP64_ENDHDR)
                    if len(end64) == _ZIP64_ENDHDR and _lg(end64, 0) == _ZIP64_ENDSIG:
                        total = _ll(end64, 32)
                        cenlen = _ll(end64, 40)
                        cenoff = _ll(end64, 48)
                        cen_end = end64pos
        if cenlen == 0 or total == 0:
            return b""
        cenpos = cen_end - cenlen
        if cenpos < 0:
            raise ZipFormatError("invalid END header (bad central directory offset)")
        cen = _read_exact(f, cenpos, cenlen)
        if len(cen) != cenlen:
            raise ZipFormatError("read CEN tables failed")
        return cen


def loc_offset(cen: bytes, pos: int) -> int:
    """Return the local header offset of the entry at ``pos``, ZIP64 aware."""
    locoff = _cen_off(cen, pos)
    if locoff == _ZIP64_MINVAL:
        off = pos + _CENHDR + _cen_nam(cen, pos)
        end = off + _cen_ext(cen, pos)
        while off + 4 < end:
            tag = _sh(cen, off)
            sz = _sh(cen, off + 2)
            if tag != _EXTID_ZIP64:
                off += 4 + sz
                continue
            off += 4
            if _cen_len(cen, pos) == _ZIP64_MINVAL:
                off += 8
            if _cen_siz(cen, pos) == _ZIP64_MINVAL:
                off += 8
            return _ll(cen, off)
    return locoff


def format_extra(extra: bytes, off: int, length: int) -> str:
    """Describe the extra-field blocks in ``extra[off:off + length]``."""
    out: List[str] = []
    end = off + length
    while off + 4 <= end:
        tag = _sh(extra, off)
        sz = _sh(extra, off + 2)
        out.append(f"        [tag=0x{tag:04x}, sz={sz}, data= ")
        if off + sz > end:
            out.append("    Error: Invalid extra data, beyond extra length")
            break
        off += 4
        out.extend(f"{_field(extra, off + i, 1):02x} " for i in range(sz))
        out.append("]\n")
        if tag == _EXTID_ZIP64:
            out.append("         ->ZIP64: ")
            pos = off
            while pos + 8 <= off + sz:
                out.append(f" *0x{_ll(extra, pos):x} ")
                pos += 8
            out.append("\n")
        elif tag == _EXTID_NTFS:
            out.append("         ->PKWare NTFS\n")
            if _sh(extra, off + 4) != 1 or _sh(extra, off + 6) != 24:
                out.append("    Error: Invalid NTFS sub-tag or subsz")
            for label, at in (("mtime", 8), ("atime", 16), ("ctime", 24)):
                when = win_to_java_time(_ll(extra, off + at))
                out.append(f"            {label}:{_format_time(when)}\n")
        elif tag == _EXTID_EXTT:
            out.append(f"         ->Info-ZIP Extended Timestamp: flag={_field(extra, off, 1):x}\n")
            pos = off + 1
            while pos + 4 <= off + sz:
                out.append(f"            *{_format_time(unix_to_java_time(_lg(extra, pos)))}\n")
                pos += 4
        else:
            out.append(f"         ->[tag={tag:x}, size={sz}]\n")
        off += sz
    return "".join(out)


def format_cen(cen: bytes, off: int) -> str:
    """Describe the central directory header at ``off``."""
    out: List[str] = ["[Central Directory Header]\n"]
    sig = _lg(cen, off)
    out.append(f"    Signature   :   {sig:#010x}\n")
    if sig != _CENSIG:
        out.append("    Wrong signature!")
        return "".join(out)
    vem = _sh(cen, off + 4)
    ver = _sh(cen, off + 6)
    tim = _lg(cen, off + 12)
    nam = _cen_nam(cen, off)
    ext = _cen_ext(cen, off)
    name = cen[off + _CENHDR:off + _CENHDR + nam].decode("utf-8", "replace")
    out.append(f"    VerMadeby   :       {vem:#6x}    "
               f"[{vem >> 8}, {(vem & 0xFF) // 10}.{(vem & 0xFF) % 10}]\n")
    out.append(f"    VerExtract  :       {ver:#6x}    [{ver // 10}.{ver % 10}]\n")
    out.append(f"    Flag        :       {_sh(cen, off + 8):#6x}\n")
    out.append(f"    Method      :       {_sh(cen, off + 10):#6x}\n")
    out.append(f"    LastMTime   :   {tim:#10x}    [{_format_time(dos_to_java_time(tim))}]\n")
    out.append(f"    CRC         :   {_lg(cen, off + 16):#10x}\n")
    out.append(f"    CSize       :   {_cen_siz(cen, off):#10x}\n")
    out.append(f"    Size        :   {_cen_len(cen, off):#10x}\n")
    out.append(f"    NameLen     :       {nam:#6x}    [{name}]\n")
    out.append(f"    ExtraLen    :       {ext:#6x}\n")
    if ext != 0:
        out.append(format_extra(cen, off + _CENHDR + nam, ext))
    out.append(f"    CommentLen  :       {_cen_com(cen, off):#6x}\n")
    out.append(f"    DiskStart   :       {_sh(cen, off + 34):#6x}\n")
    out.append(f"    Attrs       :       {_sh(cen, off + 36):#6x}\n")
    out.append(f"    AttrsEx     :   {_lg(cen, off + 38):#10x}\n")
    out.append(f"    LocOff      :   {_cen_off(cen, off):#10x}\n")
    return "".join(out)


def format_loc(loc: bytes) -> str:
    """Describe the local file header at the start of ``loc``."""
    out: List[str] = ["\n", "[Local File Header]\n"]
    sig = _lg(loc, 0)
    out.append(f"    Signature   :   {sig:#010x}\n")
    if sig != _LOCSIG:
        out.append("    Wrong signature!")
        return "".join(out)
    ver = _sh(loc, 4)
    tim = _lg(loc, 10)
    nam = _loc_nam(loc)
    ext = _loc_ext(loc)
    name = loc[_LOCHDR:_LOCHDR + nam].decode("utf-8", "replace")
    out.append(f"    Version     :       {ver:#6x}    [{ver // 10}.{ver % 10}]\n")
    out.append(f"    Flag        :       {_sh(loc, 6):#6x}\n")
    out.append(f"    Method      :       {_sh(loc, 8):#6x}\n")
    out.append(f"    LastMTime   :   {tim:#10x}    [{_format_time(dos_to_java_time(tim))}]\n")
    out.append(f"    CRC         :   {_lg(loc, 14):#10x}\n")
    out.append(f"    CSize       :   {_lg(loc, 18):#10x}\n")
    out.append(f"    Size        :   {_lg(loc, 22):#10x}\n")
    out.append(f"    NameLength  :       {nam:#6x}    [{name}]\n")
    out.append(f"    ExtraLength :       {ext:#6x}\n")
    if ext != 0:
        out.append(format_extra(loc, _LOCHDR + nam, ext))
    return "".join(out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print every central directory entry and its local header."""
    args = list(sys.argv[1:] if argv is None else argv)
    out = sys.stdout
    if not args:
        out.write("Usage: zipinfo zfname\n")
        return 2
    cen = read_central_directory(args[0])
    if not cen:
        out.write("zip file is empty\n")
        return 0
    with open(args[0], "rb") as f:

        def read_loc(length: int, at: int) -> bytes:
            data = _read_exact(f, at, length)
            if len(data) != length:
                raise ZipFormatError("read loc header failed")
            return data

        pos = 0
        number = 1
        while pos + _CENHDR < len(cen):
            out.write(f"----------------#{number}--------------------\n")
            number += 1
            out.write(format_cen(cen, pos))
            at = loc_offset(cen, pos)
            length = _LOCHDR + _cen_nam(cen, pos) + _cen_ext(cen, pos) + _CENHDR
            loc = read_loc(length, at)
            if _loc_ext(loc) > _cen_ext(cen, pos) + _CENHDR:
                loc = read_loc(_LOCHDR + _loc_nam(loc) + _loc_ext(loc), at)
            out.write(format_loc(loc))
            pos += _CENHDR + _cen_nam(cen, pos) + _cen_ext(cen, pos) + _cen_com(cen, pos)
    return 0