"""Shared test fixtures and sample scenes for tilescene tests."""
from tilescene.parser import parse_scene


# One row: a plain tile, a two-object stack, and a six-frame animation
SIMPLE_SCENE = "baba keke&me>fofo jiji:red>>>:blue>>jiji"

FLAGGED_SCENE = "--palette=mountain -b=1/2 -tb\n$baba #is you\nrock:rotate/90/ccw"

ALL_DELIMITERS = " \t\n\r&>=:/"


def cell_at(scene, y, x, z=0, t=0):
    """Cell at row y, stack x, object z, frame t."""
    return scene.tilemap[y][x][z][t]


def parse_cell(text):
    """Parse a single-cell tilemap and return that cell."""
    scene = parse_scene(text)
    assert len(scene.tilemap) == 1
    assert len(scene.tilemap[0]) == 1
    assert len(scene.tilemap[0][0]) == 1
    assert len(scene.tilemap[0][0][0]) == 1
    return cell_at(scene, 0, 0)
