"""pybspline: Piecewise polynomials and B-splines on shared grids.

Provides the :class:`Grid` and :class:`Support` index model, the
:class:`Spline` class for piecewise polynomials with exact algebra
(sums, products, derivatives, reflection), the :class:`BSplineGenerator`
for B-spline bases on arbitrary knot vectors, operators such as
:class:`Dx` and :class:`X`, analytic and numerical integration of spline
products, and interpolation through sample points.

Example
-------
>>> from pybspline import BSplineGenerator, ScalarProduct, Dx
>>> gen = BSplineGenerator([0.0, 0.0, 0.0, 0.0, 1.0, 2.0, 3.0, 3.0, 3.0, 3.0])
>>> basis = gen.generate_bsplines(4)
>>> len(basis)
6
>>> round(float(sum(basis)(1.5)), 12)
1.0
>>> round(float(ScalarProduct()(basis[0], Dx(1) * basis[0])), 12)
-0.5
"""

from pybspline._version import __version__
from pybspline.exceptions import (
    BSplineError,
    DifferingGridsError,
    ErrorCode,
    InconsistentDataError,
    IndexOutOfRangeError,
    InvalidGridError,
    UndeterminedError,
)
from pybspline.generator import BSplineGenerator
from pybspline.grid import Grid, Support
from pybspline.integration import (
    BilinearForm,
    LinearForm,
    ScalarProduct,
    integrate,
    integrate_numerically,
)
from pybspline.interpolation import Boundary, default_boundaries, interpolate
from pybspline.operators import (
    Derivative,
    Dx,
    IdentityOperator,
    Operator,
    Position,
    X,
)
from pybspline.spline import Spline

__all__ = [
    "BSplineError",
    "BSplineGenerator",
    "BilinearForm",
    "Boundary",
    "Derivative",
    "DifferingGridsError",
    "Dx",
    "ErrorCode",
    "Grid",
    "IdentityOperator",
    "InconsistentDataError",
    "IndexOutOfRangeError",
    "InvalidGridError",
    "LinearForm",
    "Operator",
    "Position",
    "ScalarProduct",
    "Spline",
    "Support",
    "UndeterminedError",
    "X",
    "default_boundaries",
    "integrate",
    "integrate_numerically",
    "interpolate",
    "__version__",
]
