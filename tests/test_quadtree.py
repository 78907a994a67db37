import pytest

from quadpress.metrics import Pixel
from quadpress.quadtree import QuadtreeNode


def make_image(width, height, colour_of):
    data = bytearray()
    for y in range(height):
        for x in range(width):
            data.extend(colour_of(x, y))
    return bytes(data)


def quadrant_colour(x, y):
    return {
        (0, 0): (10, 20, 30),
        (1, 0): (40, 50, 60),
        (0, 1): (70, 80, 90),
        (1, 1): (100, 110, 120),
    }[(x, y)]


def test_extract_collects_all_pixels_in_order():
    data = make_image(2, 2, quadrant_colour)
    node = QuadtreeNode(0, 0, 2, 2)
    node.extract(data, 2, 2)
    assert node.pixels == [
        Pixel(10, 20, 30),
        Pixel(40, 50, 60),
        Pixel(70, 80, 90),
        Pixel(100, 110, 120),
    ]
    assert node.average_color == Pixel(55, 65, 75)


def test_extract_average_truncates():
    data = bytes([0, 0, 0, 1, 1, 1])
    node = QuadtreeNode(0, 0, 2, 1)
    node.extract(data, 2, 1)
    assert node.average_color == Pixel(0, 0, 0)


def test_extract_clips_to_image():
    data = make_image(3, 3, lambda x, y: (x, y, 7))
    node = QuadtreeNode(2, 2, 4, 4)
    node.extract(data, 3, 3)
    assert node.pixels == [Pixel(2, 2, 7)]


def test_extract_outside_image_raises():
    data = make_image(2, 2, quadrant_colour)
    node = QuadtreeNode(5, 5, 2, 2)
    with pytest.raises(ValueError):
        node.extract(data, 2, 2)


def test_split_even_block():
    node = QuadtreeNode(0, 0, 4, 4, depth=1)
    node.split()
    assert [(c.x, c.y, c.width, c.height) for c in node.children] == [
        (0, 0, 2, 2),
        (2, 0, 2, 2),
        (0, 2, 2, 2),
        (2, 2, 2, 2),
    ]
    assert all(c.depth == 2 for c in node.children)


def test_split_odd_block_covers_whole_area():
    node = QuadtreeNode(1, 2, 5, 3)
    node.split()
    assert sum(c.width * c.height for c in node.children) == 15
    assert [(c.x, c.y, c.width, c.height) for c in node.children] == [
        (1, 2, 2, 1),
        (3, 2, 3, 1),
        (1, 3, 2, 2),
        (3, 3, 3, 2),
    ]


def test_render_leaf_fills_average():
    data = make_image(2, 2, quadrant_colour)
    node = QuadtreeNode(0, 0, 2, 2)
    node.extract(data, 2, 2)
    output = bytearray(12)
    node.render(output, 2, 2)
    assert bytes(output) == bytes(node.average_color) * 4


def test_render_split_tree_reproduces_image():
    data = make_image(2, 2, quadrant_colour)
    root = QuadtreeNode(0, 0, 2, 2)
    root.extract(data, 2, 2)
    root.split()
    for child in root.children:
        child.extract(data, 2, 2)
    output = bytearray(len(data))
    root.render(output, 2, 2)
    assert bytes(output) == data


def test_render_uniform_image_round_trip():
    data = make_image(5, 3, lambda x, y: (9, 8, 7))
    root = QuadtreeNode(0, 0, 5, 3)
    root.extract(data, 5, 3)
    root.split()
    for child in root.children:
        child.extract(data, 5, 3)
    output = bytearray(len(data))
    root.render(output, 5, 3)
    assert bytes(output) == data


def test_render_at_depth_stops_at_limit():
    data = make_image(2, 2, quadrant_colour)
    root = QuadtreeNode(0, 0, 2, 2)
    root.extract(data, 2, 2)
    root.split()
    for child in root.children:
        child.extract(data, 2, 2)

    shallow = bytearray(len(data))
    root.render_at_depth(shallow, 2, 2, 0)
    assert bytes(shallow) == bytes(root.average_color) * 4

    deep = bytearray(len(data))
    root.render_at_depth(deep, 2, 2, 1)
    full = bytearray(len(data))
    root.render(full, 2, 2)
    assert deep == full


def test_render_at_depth_below_root_leaves_output_untouched():
    data = make_image(2, 2, quadrant_colour)
    root = QuadtreeNode(0, 0, 2, 2, depth=3)
    root.extract(data, 2, 2)
    output = bytearray(b"\xff" * 12)
    root.render_at_depth(output, 2, 2, 1)
    assert output == bytearray(b"\xff" * 12)