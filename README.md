# orbitsweep

Building blocks for finding collisions and close approaches (conjunctions)
between particles whose motion over a time step is given by Taylor
polynomials. orbitsweep builds a bounding volume hierarchy over particles
sorted by Morton code, and finds the times at which a squared-distance
polynomial crosses a threshold by real root isolation and bracketed root
finding.

## Installation

```
pip install orbitsweep
```

To also install what the test suite needs:

```
pip install "orbitsweep[test]"
```

## Modules

- `orbitsweep.polynomials`: `translate(coeffs, a)` returns the coefficients
  of `p(x + a)`. `ssdiff3(xi, yi, zi, xj, yj, zj)` returns
  `(xi - xj)**2 + (yi - yj)**2 + (zi - zj)**2` in truncated power-series
  arithmetic. All six inputs must have the same number of coefficients.
- `orbitsweep.polyops`: `Interval`, a closed interval that supports `+`
  and `*`. `poly_eval` and `poly_eval_derivative` use Horner's rule and
  accept floats or `Interval` values. The module also has `derivative`,
  `rescale`, `rescale_p2` (`2**n * p(x / 2)`), `translate_one`,
  `count_sign_changes`, `reverse_translate_sign_changes` and
  `fast_exclusion_check(coeffs, h)`. The last one returns True when an
  interval enclosure shows the polynomial has no root in `[0, h]`.
- `orbitsweep.bvh`: `build_bvh_tree(mcodes, lbs, ubs)` takes sorted 64-bit
  Morton codes and 4-D lower/upper bounding-box corners and returns a list
  of `BvhNode` objects. The root is at index 0. `first_diff_bit(n1, n2)`
  gives the index, counted from the most significant bit, of the first bit
  where two 64-bit codes differ. It returns 64 when the codes are equal.
- `orbitsweep.bvh_verify`: `verify_bvh_tree(tree, mcodes, lbs, ubs)` checks
  the tree's invariants. These cover ranges, children, parents, split
  indices and bounding boxes. It returns the set of particle indices held by
  the leaves and raises `BvhVerificationError` on the first violation it
  finds.
- `orbitsweep.rootfinding`: `isolate_roots(poly)` isolates the roots in
  `[0, 1)` by Descartes' rule of signs with bisection.
  `bracketed_root_find(poly, lb, ub)` refines the single root in `[lb, ub)`
  with scipy's TOMS 748 solver. `find_roots(poly, rf_int, direction)`
  returns the roots in `[0, rf_int)`. With `direction` set to 1 or -1 it
  keeps only roots where the polynomial is rising or falling. Roots that
  cannot be computed reliably are skipped and logged as warnings.

## Example

```python
from orbitsweep.polynomials import ssdiff3
from orbitsweep.rootfinding import find_roots

# x(t) = t - 1 against a particle fixed at the origin: squared distance (t - 1)^2
xi, yi, zi = [-1.0, 1.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]
zero = [0.0, 0.0, 0.0]
dist2 = ssdiff3(xi, yi, zi, zero, zero, zero)

# collision radius 0.5: subtract 0.25 and keep only approaching crossings
dist2[0] -= 0.25
print(find_roots(dist2, 2.0, -1))   # about [0.5]
```

## What orbitsweep does not do

orbitsweep has no integrator and no description of the equations of motion.
The Taylor coefficients of each trajectory must come from elsewhere. It also
has no driver that takes the candidate pairs from a tree, walks their
substeps and collects collision and conjunction records. You compose that
yourself from `ssdiff3`, `translate` and `find_roots`. There is no
command-line tool.

## Running the tests

```
pytest
```