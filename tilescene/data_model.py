import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


class TileTag(enum.IntEnum):
    NONE = 0
    TEXT = 1    # source marker '$'
    GLYPH = 2   # source marker '#'


@dataclass(frozen=True)
class Tile:
    tag: TileTag
    name: str


@dataclass(frozen=True)
class Variant:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Flag:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Cell:
    """One animation frame. ``Cell()`` is the empty "nothing here" cell."""
    tile: Optional[Tile] = None
    variants: Tuple[Variant, ...] = ()


# Sequence levels of the tilemap, outermost last. Every level may be empty.
Anim = Tuple[Cell, ...]
Stack = Tuple[Anim, ...]
Row = Tuple[Stack, ...]
Tilemap = Tuple[Row, ...]


@dataclass(frozen=True)
class SceneDocument:
    flags: Tuple[Flag, ...] = ()
    tilemap: Tilemap = ()

    @property
    def height(self) -> int:
        return len(self.tilemap)

    @property
    def width(self) -> int:
        return max((len(row) for row in self.tilemap), default=0)

    def flag(self, name: str) -> Flag:
        # Later flags override earlier ones with the same name
        for f in reversed(self.flags):
            if f.name == name:
                return f
        raise KeyError(f"Unknown flag: {name}")

    def has_flag(self, name: str) -> bool:
        return any(f.name == name for f in self.flags)

    def flag_map(self) -> Dict[str, Tuple[str, ...]]:
        return {f.name: f.args for f in self.flags}
