# zipfspath

Helpers for paths inside ZIP archives and for the raw ZIP format. The
package has no dependencies beyond the standard library.

## Modules

- `zipfspath.pathnorm`: byte-level handling of entry paths.
  - `normalize_bytes(path)` turns `\` into `/`, collapses repeated `/`
    and drops a trailing `/` (a lone `/` is kept). A NUL byte raises
    `InvalidPathError`.
  - `normalize_str(path)` does the same for a string and returns the
    UTF-8 bytes.
  - `has_dot_segment(path)` tells whether a name ends in `.`.
  - `resolve_dots(path)` removes `.` names and folds `..` into the
    preceding name; leading `..` of a relative path are kept, at the root
    of an absolute path they are dropped.
  - `decode_uri(s)` decodes `%XX` escapes as UTF-8, leaving text between
    `[` and `]` untouched.
- `zipfspath.utils`:
  - time conversion between MS-DOS date/time values, Windows FILETIME,
    Unix seconds and epoch milliseconds: `dos_to_java_time`,
    `java_to_dos_time`, `win_to_java_time`, `java_to_win_time`,
    `unix_to_java_time`, `java_to_unix_time`. DOS values are read and
    written in local time.
  - little-endian writers for binary streams: `write_short`, `write_int`,
    `write_long`, `write_bytes`.
  - `PosixFilePermission`, `perm_to_flag` and `perms_to_flags` (which
    returns -1 for `None`).
  - `to_directory_path(path)` appends a `/` to a non-empty path lacking one.
  - `to_regex_pattern(glob)` turns a glob into a regular expression for
    the `re` module; `*`, `?` and `[...]` never match `/`, `**` does, and
    `{a,b}` is a group. Bad patterns raise `PatternSyntaxError`.
- `zipfspath.zipinfo`: reads an archive's central directory
  (`read_central_directory`, ZIP64 aware), finds local header offsets
  (`loc_offset`) and formats central, local and extra-field headers
  (`format_cen`, `format_loc`, `format_extra`). Raises `ZipFormatError`
  for missing or inconsistent headers.

## Examples

```python
from zipfspath.pathnorm import normalize_bytes, resolve_dots, decode_uri

normalize_bytes(b"a\\b//c/")               # b'a/b/c'
resolve_dots(b"/a/b/../c/./d.txt")         # b'/a/c/d.txt'
decode_uri("a%20b")                        # 'a b'
```

```python
from zipfspath.utils import to_regex_pattern, java_to_unix_time, win_to_java_time

to_regex_pattern("*.txt")                  # '^[^/]*\\.txt$'
java_to_unix_time(1500)                    # 1
win_to_java_time(116444736000000000)       # 0
```

## Inspecting an archive

```
zipfspath-info archive.zip
```

This prints every central-directory header followed by the matching local
header, with extra fields decoded: ZIP64 values, NTFS times and Info-ZIP
extended timestamps. Without an argument it prints a usage line and exits
with status 2; an archive with no entries prints `zip file is empty`.

## What it does not do

There is no path object and no file system over an archive: the package
does not open entries for reading or writing, list directories, or create,
copy, move or delete entries. Path handling is limited to the byte-level
functions in `zipfspath.pathnorm`, and archive reading to the header dump in
`zipfspath.zipinfo`.