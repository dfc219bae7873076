"""Bounding volume hierarchy over particles sorted by Morton code.

The tree is built level by level. Each node covers a contiguous range of
the sorted particles and is split where the bit at ``split_idx``
(counted from the most significant bit of a 64-bit code) flips from 0 to 1.
A node whose particles cannot be split any further becomes a leaf.
"""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import Sequence

__all__ = ["BvhNode", "first_diff_bit", "build_bvh_tree"]

_logger = logging.getLogger(__name__)

_NBITS = 64
_MAX_CODE = (1 << _NBITS) - 1
_MAX_PARTS = (1 << 32) - 1
_INF = math.inf
_DEFAULT_LB: tuple[float, ...] = (_INF, _INF, _INF, _INF)
_DEFAULT_UB: tuple[float, ...] = (-_INF, -_INF, -_INF, -_INF)


@dataclass
class BvhNode:
    """A node covering the sorted particles ``begin`` up to ``end``.

    ``left``, ``right`` and ``parent`` are tree indices, ``-1`` when absent.
    ``lb`` and ``ub`` are the corners of the 4-dimensional bounding box,
    ``nn_level`` is the number of nodes in the node's tree level and
    ``split_idx`` is the bit index (from the MSB) used to split the node.
    """

    begin: int
    end: int
    parent: int = -1
    left: int = -1
    right: int = -1
    lb: tuple[float, ...] = _DEFAULT_LB
    ub: tuple[float, ...] = _DEFAULT_UB
    nn_level: int = 0
    split_idx: int = 0


def _check_code(value: int) -> int:
    value = int(value)
    if not 0 <= value <= _MAX_CODE:
        raise ValueError(f"The value {value} is not a valid 64-bit unsigned integer")
    return value


def first_diff_bit(n1: int, n2: int) -> int:
    """Index of the first differing bit between two 64-bit codes, from the MSB.

    Returns 64 when the codes are equal.
    """
    return _NBITS - (_check_code(n1) ^ _check_code(n2)).bit_length()


def _check_bounds(bounds: Sequence[Sequence[float]], what: str) -> list[tuple[float, ...]]:
    ret = []
    for box in bounds:
        box = tuple(float(v) for v in box)
        if len(box) != 4:
            raise ValueError(f"Every {what} entry must have 4 components, got {len(box)}")
        if not all(math.isfinite(v) for v in box):
            raise ValueError(f"Non-finite value detected in the {what}: {box}")
        ret.append(box)
    return ret


def _find_split(node: BvhNode, mcodes: Sequence[int]) -> int | None:
    """Return the split point of the node, or None if it must be a leaf.

    ``split_idx`` is bumped on the node while no bit flip is found.
    """
    if node.end - node.begin <= 1 or node.split_idx > _NBITS - 1:
        return None
    while True:
        shift = _NBITS - 1 - node.split_idx
        split = bisect_left(
            mcodes, 1, node.begin, node.end, key=lambda m: (m >> shift) & 1
        )
        if node.begin < split < node.end:
            return split
        if node.split_idx == _NBITS - 1:
            return None
        node.split_idx += 1


def _leaf_box(
    boxes: Sequence[tuple[float, ...]], begin: int, end: int, reducer, default: float
) -> tuple[float, ...]:
    chunk = boxes[begin:end]
    return tuple(reducer((b[i] for b in chunk), default=default) for i in range(4))


def build_bvh_tree(
    mcodes: Sequence[int],
    lbs: Sequence[Sequence[float]],
    ubs: Sequence[Sequence[float]],
) -> list[BvhNode]:
    """Build the BVH tree for particles already sorted by Morton code.

    ``mcodes`` holds the sorted 64-bit codes; ``lbs`` and ``ubs`` hold the
    4-dimensional lower and upper bounding-box corners of the particles in
    the same order. The root is at index 0 and children always follow
    their parents.
    """
    codes = [_check_code(c) for c in mcodes]
    nparts = len(codes)
    if nparts > _MAX_PARTS:
        raise OverflowError("Overflow detected during the construction of a BVH tree")
    if any(a > b for a, b in zip(codes, codes[1:])):
        raise ValueError("The Morton codes must be sorted in ascending order")
    lb_boxes = _check_bounds(lbs, "lower bounds")
    ub_boxes = _check_bounds(ubs, "upper bounds")
    if len(lb_boxes) != nparts or len(ub_boxes) != nparts:
        raise ValueError(
            f"Inconsistent sizes: {nparts} Morton codes, {len(lb_boxes)} lower "
            f"bounds and {len(ub_boxes)} upper bounds"
        )

    tree = [BvhNode(0, nparts)]
    cur_n_nodes = 1
    n_levels = 0
    n_nodes = 0

    while cur_n_nodes:
        level_begin = len(tree) - cur_n_nodes
        level = tree[level_begin:]

        for node in level:
            node.nn_level = cur_n_nodes
            split = _find_split(node, codes)
            if split is None:
                node.lb = _leaf_box(lb_boxes, node.begin, node.end, min, _INF)
                node.ub = _leaf_box(ub_boxes, node.begin, node.end, max, -_INF)
                continue

            node_idx = tree.index(node, level_begin)
            node.left = len(tree)
            node.right = len(tree) + 1
            child_split = node.split_idx + 1
            tree.append(BvhNode(node.begin, split, parent=node_idx, split_idx=child_split))
            tree.append(BvhNode(split, node.end, parent=node_idx, split_idx=child_split))

        cur_n_nodes = len(tree) - level_begin - len(level)
        n_levels += 1
        n_nodes += cur_n_nodes

    # Children always come after their parents, so a reverse sweep
    # sees both children's boxes before the parent's.
    for node in reversed(tree):
        if node.left != -1:
            lc, rc = tree[node.left], tree[node.right]
            node.lb = tuple(map(min, lc.lb, rc.lb))
            node.ub = tuple(map(max, lc.ub, rc.ub))

    _logger.debug("Tree levels/nodes: %d/%d", n_levels, n_nodes)
    return tree