"""Consistency checks for BVH trees built by :func:`orbitsweep.bvh.build_bvh_tree`."""

from __future__ import annotations

import math
from typing import Sequence

from orbitsweep.bvh import BvhNode, first_diff_bit

__all__ = ["BvhVerificationError", "verify_bvh_tree"]

_MAX_INTERNAL_SPLIT = 63
_MAX_LEAF_SPLIT = 64


class BvhVerificationError(Exception):
    """Raised when a BVH tree violates one of its structural invariants."""


def _fail(idx: int, message: str) -> None:
    raise BvhVerificationError(f"Node {idx}: {message}")


def _add_particle(pset: set[int], idx: int, pidx: int) -> None:
    if pidx in pset:
        _fail(idx, f"particle {pidx} belongs to more than one leaf")
    pset.add(pidx)


def _check_children(
    tree: Sequence[BvhNode], idx: int, node: BvhNode, mcodes: Sequence[int]
) -> None:
    size = len(tree)
    for child in (node.left, node.right):
        if not idx < child < size:
            _fail(idx, f"child index {child} is not after the node and within the tree")

    lc, rc = tree[node.left], tree[node.right]
    if lc.begin != node.begin or not lc.end < node.end:
        _fail(idx, "the left child's range is inconsistent with the node's range")
    if rc.begin != lc.end or rc.end != node.end:
        _fail(idx, "the right child's range is inconsistent with the node's range")

    if node.split_idx > _MAX_INTERNAL_SPLIT:
        _fail(idx, f"internal node with split index {node.split_idx} larger than 63")

    boundary = lc.end - 1
    diff = first_diff_bit(mcodes[boundary], mcodes[boundary + 1])
    if diff != node.split_idx:
        _fail(
            idx,
            f"split index {node.split_idx} does not match the first differing "
            f"bit {diff} at the children's boundary",
        )


def _check_parent(tree: Sequence[BvhNode], idx: int, node: BvhNode) -> None:
    if idx == 0:
        if node.parent != -1:
            _fail(idx, f"the root must have no parent, but its parent is {node.parent}")
        return

    if not 0 <= node.parent < idx:
        _fail(idx, f"invalid parent index {node.parent}")

    par = tree[node.parent]
    if node.begin < par.begin or node.end > par.end:
        _fail(idx, "the node's range is not contained in the parent's range")
    if node.begin != par.begin and node.end != par.end:
        _fail(idx, "the node's range shares no boundary with the parent's range")


def _check_box(
    idx: int,
    node: BvhNode,
    lbs: Sequence[Sequence[float]],
    ubs: Sequence[Sequence[float]],
) -> None:
    lb_chunk = lbs[node.begin : node.end]
    ub_chunk = ubs[node.begin : node.end]
    exp_lb = tuple(min((float(b[k]) for b in lb_chunk), default=math.inf) for k in range(4))
    exp_ub = tuple(max((float(b[k]) for b in ub_chunk), default=-math.inf) for k in range(4))

    if tuple(float(v) for v in node.lb) != exp_lb:
        _fail(idx, f"lower bound {tuple(node.lb)} differs from the expected {exp_lb}")
    if tuple(float(v) for v in node.ub) != exp_ub:
        _fail(idx, f"upper bound {tuple(node.ub)} differs from the expected {exp_ub}")


def verify_bvh_tree(
    tree: Sequence[BvhNode],
    mcodes: Sequence[int],
    lbs: Sequence[Sequence[float]],
    ubs: Sequence[Sequence[float]],
) -> frozenset[int]:
    """Check every invariant of a BVH tree over sorted particle data.

    ``mcodes``, ``lbs`` and ``ubs`` are the sorted Morton codes and
    bounding-box corners the tree was built from. Returns the indices of
    the particles held by the tree's leaves; raises
    :class:`BvhVerificationError` on the first violated invariant.
    """
    nparts = len(mcodes)
    if len(lbs) != nparts or len(ubs) != nparts:
        raise ValueError(
            f"Inconsistent sizes: {nparts} Morton codes, {len(lbs)} lower "
            f"bounds and {len(ubs)} upper bounds"
        )
    if not tree:
        raise BvhVerificationError("The tree has no nodes")

    pset: set[int] = set()

    for idx, node in enumerate(tree):
        if not 0 <= node.begin < node.end <= nparts:
            _fail(idx, f"invalid particle range [{node.begin}, {node.end})")

        if node.left == -1:
            if node.right != -1:
                _fail(idx, "a node must have either zero or two children")
        elif node.left <= 0 or node.right <= 0:
            _fail(idx, "children indices must be positive")

        if node.end - node.begin == 1:
            if node.left != -1 or node.right != -1:
                _fail(idx, "a node with a single particle must be a leaf")
            _add_particle(pset, idx, node.begin)
        elif node.left == -1:
            first = mcodes[node.begin]
            for pidx in range(node.begin, node.end):
                if pidx != node.begin and mcodes[pidx] != first:
                    _fail(idx, "the particles of a multi-particle leaf differ in Morton code")
                _add_particle(pset, idx, pidx)

        if node.left != -1:
            _check_children(tree, idx, node, mcodes)
        elif node.split_idx > _MAX_LEAF_SPLIT:
            _fail(idx, f"leaf node with split index {node.split_idx} larger than 64")

        _check_parent(tree, idx, node)

        if node.nn_level <= 0:
            _fail(idx, "the number of nodes in the level must be positive")

        _check_box(idx, node, lbs, ubs)

    return frozenset(pset)