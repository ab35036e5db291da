"""
Scene text parser.
Reads the flags + tilemap scene format and produces a SceneDocument.

    -flag --other=a/b
    baba $is&#you>keke:red rock:rotate/90/ccw
"""
from typing import List, Optional, Tuple, Union

from tilescene.data_model import (
    TileTag, Tile, Variant, Flag, Cell,
    Anim, Stack, Row, Tilemap, SceneDocument,
)


# ── Grammar constants ─────────────────────────────────────────────────

ESCAPE = '\\'

TAG_MAP = {
    '$': TileTag.TEXT,
    '#': TileTag.GLYPH,
}

FLAG_PREFIX = '-'
FLAG_ARGS = '='
ARG_SEPARATOR = '/'
VARIANT_PREFIX = ':'
FRAME_SEPARATOR = '>'
OBJECT_SEPARATOR = '&'
STACK_SEPARATOR = ' '
ROW_SEPARATOR = '\n'

# Separators allowed between flags
FLAG_WHITESPACE = frozenset(' \t\n\r')

# Characters that end an unescaped value at every nesting level
BLACKLIST = frozenset(' \t\n\r&>=:/')

# Stray control bytes are never value content unless escaped
CONTROL_CHARS = frozenset(chr(i) for i in range(0x20)) | {'\x7f'}

VALUE_TERMINATORS = BLACKLIST | CONTROL_CHARS


# ── Errors ────────────────────────────────────────────────────────────

class SceneSyntaxError(ValueError):
    """Input that is not a complete flags-then-tilemap scene.

    Attributes:
        msg: the unformatted error message
        doc: the scene text being parsed
        pos: 0-based character offset of the first unparsed character
        byte_pos: the same offset in bytes of the UTF-8 encoded text
        lineno: 1-based line of pos
        colno: 1-based column of pos
    """

    def __init__(self, msg, doc, pos):
        lineno = doc.count('\n', 0, pos) + 1
        colno = pos - doc.rfind('\n', 0, pos)
        super().__init__(f"{msg}: line {lineno} column {colno} (char {pos})")
        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.byte_pos = len(doc[:pos].encode('utf-8', 'surrogatepass'))
        self.lineno = lineno
        self.colno = colno

    def __reduce__(self):
        return self.__class__, (self.msg, self.doc, self.pos)


def _describe_unparsed(text, pos):
    c = text[pos]
    if c == ESCAPE and pos + 1 == len(text):
        return "unterminated escape at the end of the input"
    return f"did not expect {c!r} here"


# ── Cursor ────────────────────────────────────────────────────────────

class _Cursor:
    """Forward-only scan position over the scene text."""
    __slots__ = ('text', 'pos')

    def __init__(self, text):
        self.text = text
        self.pos = 0

    def peek(self):
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ''

    def skip(self, char):
        if self.peek() == char:
            self.pos += 1
            return True
        return False

    def skip_run(self, chars):
        """Consume one or more characters from chars; False if none."""
        start = self.pos
        while self.peek() and self.peek() in chars:
            self.pos += 1
        return self.pos > start


# ── Value scanner ─────────────────────────────────────────────────────

def _scan_value(cur: _Cursor) -> str:
    """Scan escaped or non-terminator characters, de-escaping as we go.

    Stops at (not past) the first unescaped terminator. A backslash with
    nothing after it is left in place for the caller to reject.
    """
    text = cur.text
    end = len(text)
    pos = cur.pos
    out = []
    while pos < end:
        c = text[pos]
        if c == ESCAPE:
            if pos + 1 == end:
                break
            out.append(text[pos + 1])
            pos += 2
        elif c in VALUE_TERMINATORS:
            break
        else:
            out.append(c)
            pos += 1
    cur.pos = pos
    return ''.join(out)


def _parse_value_list(cur: _Cursor) -> Tuple[str, ...]:
    """Parse 'a/b/c' into ('a', 'b', 'c'). Shared by flags and variants."""
    values = [_scan_value(cur)]
    while cur.skip(ARG_SEPARATOR):
        values.append(_scan_value(cur))
    return tuple(values)


# ── Tiles and variants ────────────────────────────────────────────────

def _parse_tile(cur: _Cursor) -> Tile:
    tag = TAG_MAP.get(cur.peek(), TileTag.NONE)
    if tag != TileTag.NONE:
        cur.pos += 1
    return Tile(tag=tag, name=_scan_value(cur))


def _parse_variant(cur: _Cursor) -> Variant:
    name = _scan_value(cur)
    args = ()
    if cur.skip(ARG_SEPARATOR):
        args = _parse_value_list(cur)
    return Variant(name=name, args=args)


def _parse_variant_list(cur: _Cursor) -> Tuple[Variant, ...]:
    variants = []
    while cur.skip(VARIANT_PREFIX):
        variants.append(_parse_variant(cur))
    return tuple(variants)


def _parse_cell(cur: _Cursor) -> Cell:
    tile = _parse_tile(cur)
    if tile.tag == TileTag.NONE and not tile.name:
        tile = None
    return Cell(tile=tile, variants=_parse_variant_list(cur))


# ── Tilemap levels ────────────────────────────────────────────────────
# A level whose segment consumed nothing and is not followed by its own
# separator is the empty sequence; otherwise every separated slot is a child.

def _parse_anim(cur: _Cursor) -> Anim:
    start = cur.pos
    cells = [_parse_cell(cur)]
    if cur.pos == start and cur.peek() != FRAME_SEPARATOR:
        return ()
    while cur.skip(FRAME_SEPARATOR):
        cells.append(_parse_cell(cur))
    return tuple(cells)


def _parse_stack(cur: _Cursor) -> Stack:
    start = cur.pos
    anims = [_parse_anim(cur)]
    if cur.pos == start and cur.peek() != OBJECT_SEPARATOR:
        return ()
    while cur.skip(OBJECT_SEPARATOR):
        anims.append(_parse_anim(cur))
    return tuple(anims)


def _parse_row(cur: _Cursor) -> Row:
    start = cur.pos
    stacks = [_parse_stack(cur)]
    if cur.pos == start and cur.peek() != STACK_SEPARATOR:
        return ()
    while cur.skip_run(STACK_SEPARATOR):
        stacks.append(_parse_stack(cur))
    return tuple(stacks)


def _parse_tilemap(cur: _Cursor) -> Tilemap:
    start = cur.pos
    rows = [_parse_row(cur)]
    if cur.pos == start and cur.peek() != ROW_SEPARATOR:
        return ()
    while cur.skip(ROW_SEPARATOR):
        rows.append(_parse_row(cur))
    return tuple(rows)


# ── Flags ─────────────────────────────────────────────────────────────

def _parse_flag(cur: _Cursor) -> Optional[Flag]:
    """Parse '-name', '--name' or '-name=a/b'; None if no flag starts here."""
    if not cur.skip(FLAG_PREFIX):
        return None
    cur.skip(FLAG_PREFIX)
    name = _scan_value(cur)
    args = ()
    if cur.skip(FLAG_ARGS):
        args = _parse_value_list(cur)
    return Flag(name=name, args=args)


def _parse_flags(cur: _Cursor) -> Tuple[Flag, ...]:
    flags: List[Flag] = []
    while True:
        flag = _parse_flag(cur)
        if flag is None:
            break
        flags.append(flag)
        # A flag with no whitespace after it is the last one
        if not cur.skip_run(FLAG_WHITESPACE):
            break
    return tuple(flags)


# ── Main entry point ──────────────────────────────────────────────────

def parse_scene(text: Union[str, bytes]) -> SceneDocument:
    """
    Parse scene text into a SceneDocument.

    Args:
        text: the scene source; bytes are decoded as UTF-8

    Returns:
        SceneDocument

    Raises:
        SceneSyntaxError: if input remains after the flags and tilemap;
            its pos counts characters, byte_pos counts UTF-8 bytes
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode('utf-8')
    cur = _Cursor(text)
    flags = _parse_flags(cur)
    tilemap = _parse_tilemap(cur)
    if cur.pos < len(text):
        raise SceneSyntaxError(_describe_unparsed(text, cur.pos), text, cur.pos)
    return SceneDocument(flags=flags, tilemap=tilemap)
