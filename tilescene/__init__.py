"""Parser for the flags + tilemap scene format."""
from .data_model import TileTag, Tile, Variant, Flag, Cell, SceneDocument
from .parser import parse_scene, SceneSyntaxError
from .object_map import (Position, PlacedTile, ObjectMap, SceneWarning, TileDefault,
                         build_object_map, canonical_name)
