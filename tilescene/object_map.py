"""
Object map: flattens a parsed SceneDocument into a sparse grid of tiles
keyed by 4-D (x, y, z, t) positions, resolving the frame shorthand of
animations along the way.
"""
import enum
import functools
import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from tilescene.data_model import TileTag, Tile, Variant, Cell, Anim, SceneDocument


# A frame named '.' is explicitly empty and clears the running tile
EMPTY_TILE_NAME = '.'

TEXT_PREFIX = 'text_'
GLYPH_PREFIX = 'glyph_'


class SceneWarning(UserWarning):
    """Scene content that parses but has no effect."""


class TileDefault(enum.IntEnum):
    TILE = 0
    TEXT = 1
    GLYPH = 2


@functools.total_ordering
@dataclass(frozen=True)
class Position:
    """A position in the scene: column, row, stack layer and frame.

    Positions order bottom layer first, then top-to-bottom, left-to-right,
    then by frame, which is the order tiles are drawn in.
    """
    x: int = 0
    y: int = 0
    z: int = 0
    t: int = 0

    def _order_key(self):
        return (self.z, self.y, self.x, self.t)

    def __lt__(self, other):
        if not isinstance(other, Position):
            return NotImplemented
        return self._order_key() < other._order_key()

    def __add__(self, n):
        return Position(self.x + n, self.y + n, self.z + n, self.t + n)

    def __mul__(self, k):
        return Position(int(self.x * k), int(self.y * k),
                        int(self.z * k), int(self.t * k))


@dataclass(frozen=True)
class PlacedTile:
    name: str
    tag: TileTag = TileTag.NONE
    variants: Tuple[Variant, ...] = ()


@dataclass
class ObjectMap:
    width: int = 0
    height: int = 0
    length: int = 0     # number of animation frames
    objects: Dict[Position, PlacedTile] = field(default_factory=dict)

    def sorted_items(self) -> List[Tuple[Position, PlacedTile]]:
        return sorted(self.objects.items(), key=lambda item: item[0])

    def frame(self, t: int) -> List[Tuple[Position, PlacedTile]]:
        return [(pos, tile) for pos, tile in self.sorted_items() if pos.t == t]

    def occupancy(self) -> np.ndarray:
        """Count objects per cell.

        Returns:
            [length, height, width] int32
        """
        grid = np.zeros((self.length, self.height, self.width), dtype=np.int32)
        for pos in self.objects:
            grid[pos.t, pos.y, pos.x] += 1
        return grid


# ── Frame resolution ──────────────────────────────────────────────────

def _resolve_cell(cell: Cell, last: Optional[PlacedTile], where) -> Optional[PlacedTile]:
    """Resolve one frame against the previous frame of the same object."""
    name = cell.tile.name if cell.tile is not None else ''
    if name == EMPTY_TILE_NAME or (not name and last is None):
        if cell.variants:
            warnings.warn(f"Variants on empty frame at {where} are ignored",
                          SceneWarning, stacklevel=4)
        return None
    if not name:
        # Blank frame continues the previous tile under its own tag
        tag = cell.tile.tag if cell.tile is not None else TileTag.NONE
        return PlacedTile(name=last.name, tag=tag,
                          variants=cell.variants or last.variants)
    return PlacedTile(name=name, tag=cell.tile.tag, variants=cell.variants)


def _resolve_frames(anim: Anim, length: int, x: int, y: int, z: int) -> Iterator[Optional[PlacedTile]]:
    last = None
    for t, cell in enumerate(anim):
        last = _resolve_cell(cell, last, Position(x, y, z, t))
        yield last
    # Shorter animations hold their final frame
    for _ in range(length - len(anim)):
        yield last


def _extent(scene: SceneDocument) -> Position:
    """One past the largest coordinate of any cell, per axis.

    Rows, stacks and objects that hold no cells take up no room, so a
    trailing newline or space does not grow the map.
    """
    extent = Position()
    for y, row in enumerate(scene.tilemap):
        for x, stack in enumerate(row):
            for z, anim in enumerate(stack):
                if anim:
                    extent = Position(max(extent.x, x + 1), max(extent.y, y + 1),
                                      max(extent.z, z + 1), max(extent.t, len(anim)))
    return extent


def build_object_map(scene: SceneDocument) -> ObjectMap:
    """Flatten a SceneDocument into an ObjectMap."""
    extent = _extent(scene)

    objects = {}
    for y, row in enumerate(scene.tilemap):
        for x, stack in enumerate(row):
            for z, anim in enumerate(stack):
                for t, tile in enumerate(_resolve_frames(anim, extent.t, x, y, z)):
                    if tile is not None:
                        objects[Position(x, y, z, t)] = tile

    return ObjectMap(width=extent.x, height=extent.y,
                     length=extent.t, objects=objects)


# ── Canonical names ───────────────────────────────────────────────────

def canonical_name(tile: Union[Tile, PlacedTile], default: TileDefault = TileDefault.TILE) -> str:
    """Spell out a tile's tag as a name prefix.

    A tagged tile whose kind matches the default drops the prefix instead,
    so '$baba' with a TEXT default names the tile 'baba'.
    """
    if tile.tag == TileTag.TEXT:
        if default == TileDefault.TEXT:
            return _strip_prefix(tile.name, TEXT_PREFIX)
        return TEXT_PREFIX + tile.name
    if tile.tag == TileTag.GLYPH:
        if default == TileDefault.GLYPH:
            return _strip_prefix(tile.name, GLYPH_PREFIX)
        return GLYPH_PREFIX + tile.name
    if default == TileDefault.TEXT:
        return TEXT_PREFIX + tile.name
    if default == TileDefault.GLYPH:
        return GLYPH_PREFIX + tile.name
    return tile.name


def _strip_prefix(name, prefix):
    if name.startswith(prefix):
        return name[len(prefix):]
    return name
