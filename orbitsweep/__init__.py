"""Polynomial root finding and BVH trees for detecting collisions and conjunctions of orbiting particles."""

__version__ = "0.1.0"

__all__ = ["bvh", "bvh_verify", "polynomials", "polyops", "rootfinding"]