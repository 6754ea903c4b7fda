from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union


@dataclass(frozen=True)
class Key:
    """Object member lookup."""

    name: str

    def __str__(self) -> str:
        return escape_path_segment(self.name)


@dataclass(frozen=True)
class Index:
    """Array element lookup (from bracket notation)."""

    position: int

    def __str__(self) -> str:
        return f'[{self.position}]'


Segment = Union[Key, Index]
FieldPath = Tuple[Segment, ...]
PathLike = Union[str, Sequence[Segment], None]

_SPECIAL = ('\\', '.', '[', ']')


def escape_path_segment(segment: str) -> str:
    """Escape a single key segment for path representation.

    Dots and brackets are escaped with a backslash so keys like
    'gpt-3.5-turbo' or 'a[b]' stay a single Key segment; backslashes are
    doubled to preserve round-tripping.
    """
    if not isinstance(segment, str):
        segment = str(segment)
    for ch in _SPECIAL:
        segment = segment.replace(ch, '\\' + ch)
    return segment


def parse_path(path: PathLike) -> FieldPath:
    """Parse 'a.b[0].c' into (Key('a'), Key('b'), Index(0), Key('c')).

    Splits on unescaped '.', and on '[' / ']' inside each token so that
    consecutive indices ('a[0][1]') work. Empty tokens are dropped and a
    bracket token that is not a non-negative integer is kept as a Key.
    Already-parsed paths are returned as a tuple.
    """
    if path is None:
        return ()
    if not isinstance(path, str):
        return tuple(path)

    segments: List[Segment] = []
    buf: List[str] = []
    in_bracket = False
    escaping = False

    def flush() -> None:
        token = ''.join(buf)
        buf.clear()
        if not token:
            return
        if in_bracket and token.isascii() and token.isdigit():
            segments.append(Index(int(token)))
        else:
            segments.append(Key(token))

    for ch in path:
        if escaping:
            buf.append(ch)
            escaping = False
            continue
        if ch == '\\':
            escaping = True
            continue
        if ch == '.' and not in_bracket:
            flush()
            continue
        if ch == '[':
            flush()
            in_bracket = True
            continue
        if ch == ']' and in_bracket:
            flush()
            in_bracket = False
            continue
        buf.append(ch)

    if escaping:
        # Trailing backslash; treat as literal.
        buf.append('\\')
    flush()
    return tuple(segments)


def format_path(path: PathLike) -> str:
    """Serialize a path back to its 'a.b[0].c' string form."""
    if isinstance(path, str):
        path = parse_path(path)
    out: List[str] = []
    for seg in path or ():
        if isinstance(seg, Index):
            out.append(str(seg))
        elif out:
            out.append('.' + str(seg))
        else:
            out.append(str(seg))
    return ''.join(out)


def has_index(path: PathLike) -> bool:
    return any(isinstance(seg, Index) for seg in parse_path(path))


def prefix_before_index(path: PathLike) -> FieldPath:
    """Segments up to (excluding) the first Index segment."""
    out: List[Segment] = []
    for seg in parse_path(path):
        if isinstance(seg, Index):
            break
        out.append(seg)
    return tuple(out)


def starts_with(path: PathLike, prefix: PathLike) -> bool:
    path = parse_path(path)
    prefix = parse_path(prefix)
    return len(path) >= len(prefix) and path[:len(prefix)] == prefix


def strip_leading_array_index(path: PathLike) -> FieldPath:
    """Drop a single leading Index segment: '[3].price' -> 'price'.

    Turns an absolute path inside a root array into one relative to an
    element of that array.
    """
    segments = parse_path(path)
    if segments and isinstance(segments[0], Index):
        return segments[1:]
    return segments


def relative_path(path: PathLike, base: PathLike) -> FieldPath:
    """Path of `path` relative to an element of the array at `base`.

    'items[0].price' relative to 'items' is 'price'; 'items.price' relative
    to 'items' is 'price' too. Paths outside `base` come back unchanged.
    """
    path = parse_path(path)
    base = parse_path(base)
    if not starts_with(path, base) or len(path) == len(base):
        return path
    rest = path[len(base):]
    if isinstance(rest[0], Index):
        return rest[1:]
    return rest


def label_from_path(path: PathLike) -> str:
    """Default display label: the last segment of the path."""
    segments = parse_path(path)
    if not segments:
        return path if isinstance(path, str) else ''
    last = segments[-1]
    if isinstance(last, Index):
        return str(last.position)
    return last.name
