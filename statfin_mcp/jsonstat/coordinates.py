from collections.abc import Sequence


def decode_coordinates(linear_index: int, sizes: Sequence[int]) -> list[int]:
    """
    Converts a position in a JSON-stat value array into one category index per
    dimension. The array is row-major with the last dimension varying fastest,
    so the digits are peeled off from the last dimension backwards.

    The index must lie in [0, prod(sizes)); callers never pass anything else.
    """
    coords: list[int] = [0] * len(sizes)
    remaining: int = linear_index
    for d in range(len(sizes) - 1, -1, -1):
        coords[d] = remaining % sizes[d]
        remaining //= sizes[d]
    return coords


def encode_coordinates(coords: Sequence[int], sizes: Sequence[int]) -> int:
    """Inverse of decode_coordinates."""
    linear_index: int = 0
    for coord, size in zip(coords, sizes):
        linear_index = linear_index * size + coord
    return linear_index
