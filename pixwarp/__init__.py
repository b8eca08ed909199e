"""pixwarp: geometric warping of RGBA images using affine, perspective, quad, and mesh maps.

.. include:: ../README.md
"""

from __future__ import annotations

__docformat__ = 'google'
__version__ = '0.1.0'
__version_info__ = tuple(int(num) for num in __version__.split('.'))

from collections.abc import Callable, Iterable, Sequence
import abc
import concurrent.futures
import dataclasses
import enum
import math
import os
import typing
from typing import Any, NamedTuple

import numpy as np
import numpy.typing as npt
import scipy.linalg
import scipy.sparse

if typing.TYPE_CHECKING:
  _NDArray = npt.NDArray[Any]
  _DTypeLike = npt.DTypeLike
  _ArrayLike = npt.ArrayLike
else:
  _NDArray = Any
  _DTypeLike = Any  # Else `pdoc` uses a long type expression for documentation.
  _ArrayLike = Any  # Same.


def _check_eq(a: Any, b: Any) -> None:
  """If the two values or arrays are not equal, raise an exception with a useful message."""
  are_equal = np.all(a == b) if isinstance(a, np.ndarray) else a == b
  if not are_equal:
    raise AssertionError(f'{a!r} == {b!r}')


def _sinc(x: _ArrayLike) -> _NDArray:
  """Return the value `np.sinc(x)` but improved to:
  (1) ignore underflow that occurs at 0.0 for np.float32, and
  (2) output exact zero for integer input values.

  >>> _sinc(np.array([-3, -2, -1, 0], dtype=np.float32))
  array([0., 0., 0., 1.], dtype=float32)

  >>> _sinc(0)
  1.0
  """
  x = np.asarray(x)
  x_is_scalar = x.ndim == 0
  with np.errstate(under='ignore'):
    result = np.sinc(np.atleast_1d(x))
    result[x == np.floor(x)] = 0.0
    result[x == 0] = 1.0
    return result.item() if x_is_scalar else result


class TransformError(ValueError):
  """Configuration error, always detected before any destination pixel is written."""


class InvalidMethodError(TransformError):
  """The transform method is unrecognized, or its parameters have the wrong structure."""


class InvalidParamsError(TransformError):
  """The transform parameters or options have unusable values."""


class DegenerateRegionError(TransformError):
  """A region has negative extent, or zero extent where coefficients are derived from it."""


class TransformMethod(enum.Enum):
  """Method used to map destination pixels to source coordinates.

  `EXTENT` and `MESH` are conveniences: they are canonicalized into `AFFINE` and `QUAD`
  coefficients before any pixel is produced.
  """

  AFFINE = 'affine'
  EXTENT = 'extent'
  PERSPECTIVE = 'perspective'
  QUAD = 'quad'
  MESH = 'mesh'


METHODS = [method.value for method in TransformMethod]
"""Names of the transform methods:

| name            | `params` |
|-----------------|----------|
| `'affine'`      | 6 coefficients `[a0, a1, a2, a3, a4, a5]` |
| `'extent'`      | source box `[x0, y0, x1, y1]` mapped onto the destination |
| `'perspective'` | 8 coefficients `[a0, ..., a7]` |
| `'quad'`        | 4 source corners `[nw, sw, se, ne]` as 8 values |
| `'mesh'`        | sequence of `(region, corners)` pairs |
"""

_CANONICAL_METHODS = (TransformMethod.AFFINE, TransformMethod.PERSPECTIVE, TransformMethod.QUAD)

_NUM_COEFFICIENTS = {
    TransformMethod.AFFINE: 6,
    TransformMethod.PERSPECTIVE: 8,
    TransformMethod.QUAD: 8,
}

_NUM_PARAMS = {
    TransformMethod.AFFINE: 6,
    TransformMethod.EXTENT: 4,
    TransformMethod.PERSPECTIVE: 8,
    TransformMethod.QUAD: 8,
}


def _get_method(method: str | TransformMethod) -> TransformMethod:
  """Return a `TransformMethod`, which can be specified as a name in `METHODS`."""
  if isinstance(method, TransformMethod):
    return method
  try:
    return TransformMethod(method)
  except (ValueError, TypeError):
    raise InvalidMethodError(f'Transform method {method!r} is not in {METHODS}.') from None


def _get_params(params: _ArrayLike, count: int, method: TransformMethod) -> tuple[float, ...]:
  """Return the first `count` values of the flattened `params` as a tuple of floats."""
  try:
    values = np.asarray(params, dtype=np.float64).reshape(-1)
  except (ValueError, TypeError):
    raise InvalidParamsError(f'Parameters {params!r} of {method.value} are not numeric.') from None
  if len(values) < count:
    raise InvalidParamsError(f'Method {method.value} requires {count} parameters,'
                             f' but only {len(values)} were given.')
  values = values[:count]
  if not np.all(np.isfinite(values)):
    raise InvalidParamsError(f'Parameters {values.tolist()} of {method.value} are not finite.')
  return tuple(float(value) for value in values)


@dataclasses.dataclass(frozen=True)
class Region:
  """Axis-aligned box of destination pixels, covering columns `[x0, x1)` and rows `[y0, y1)`."""

  x0: int
  y0: int
  x1: int
  y1: int

  def __post_init__(self) -> None:
    if self.x1 < self.x0 or self.y1 < self.y0:
      raise DegenerateRegionError(f'Region {self} has x1 < x0 or y1 < y0.')

  @property
  def width(self) -> int:
    return self.x1 - self.x0

  @property
  def height(self) -> int:
    return self.y1 - self.y0

  def clip(self, width: int, height: int) -> Region:
    """Return the region clamped to the bounds `[0, width] x [0, height]`."""
    x0, x1 = (min(max(x, 0), width) for x in (self.x0, self.x1))
    y0, y1 = (min(max(y, 0), height) for y in (self.y0, self.y1))
    return Region(x0, y0, x1, y1)


def _get_region(region: Region | Sequence[float]) -> Region:
  """Return a `Region`, which can be specified as a sequence `(x0, y0, x1, y1)` of integers."""
  if isinstance(region, Region):
    return region
  try:
    values = np.asarray(region, dtype=np.float64).reshape(-1)
  except (ValueError, TypeError):
    raise InvalidParamsError(f'Region {region!r} is not numeric.') from None
  if len(values) != 4 or not np.all(np.isfinite(values)):
    raise InvalidParamsError(f'Region {region!r} is not four finite values (x0, y0, x1, y1).')
  if not np.all(values == np.round(values)):
    raise InvalidParamsError(f'Region {region!r} does not lie on pixel boundaries.')
  x0, y0, x1, y1 = (int(value) for value in values)
  return Region(x0, y0, x1, y1)


def affine_transform(x: _ArrayLike, y: _ArrayLike,
                     coefficients: Sequence[float]) -> tuple[_NDArray, _NDArray]:
  """Map destination pixels `(x, y)` to continuous source coordinates using an affine map."""
  a0, a1, a2, a3, a4, a5 = coefficients[:6]
  xin = np.add(x, 0.5)
  yin = np.add(y, 0.5)
  return a0 * xin + a1 * yin + a2, a3 * xin + a4 * yin + a5


def perspective_transform(x: _ArrayLike, y: _ArrayLike,
                          coefficients: Sequence[float]) -> tuple[_NDArray, _NDArray]:
  """Map destination pixels `(x, y)` to continuous source coordinates using a homography.

  Points on the horizon line (zero denominator) map to non-finite coordinates, which are never
  sampled.
  """
  a0, a1, a2, a3, a4, a5, a6, a7 = coefficients[:8]
  xin = np.add(x, 0.5)
  yin = np.add(y, 0.5)
  denominator = a6 * xin + a7 * yin + 1
  with np.errstate(divide='ignore', invalid='ignore'):
    return (a0 * xin + a1 * yin + a2) / denominator, (a3 * xin + a4 * yin + a5) / denominator


def quad_transform(x: _ArrayLike, y: _ArrayLike,
                   coefficients: Sequence[float]) -> tuple[_NDArray, _NDArray]:
  """Map destination pixels `(x, y)` to continuous source coordinates using a bilinear map."""
  a0, a1, a2, a3, a4, a5, a6, a7 = coefficients[:8]
  xin = np.add(x, 0.5)
  yin = np.add(y, 0.5)
  return a0 + a1 * xin + a2 * yin + a3 * xin * yin, a4 + a5 * xin + a6 * yin + a7 * xin * yin


_DICT_MAPPERS: dict[TransformMethod, Callable[..., tuple[_NDArray, _NDArray]]] = {
    TransformMethod.AFFINE: affine_transform,
    TransformMethod.PERSPECTIVE: perspective_transform,
    TransformMethod.QUAD: quad_transform,
}


@dataclasses.dataclass(frozen=True)
class CanonicalTransform:
  """A transform reduced to a canonical method (affine, perspective, or quad) and coefficients.

  The mapping takes destination pixel indices relative to the origin of their region and
  returns continuous source coordinates, in which source pixel `u` covers `[u, u + 1)`.
  """

  method: TransformMethod
  coefficients: tuple[float, ...]

  def __post_init__(self) -> None:
    if self.method not in _CANONICAL_METHODS:
      raise InvalidMethodError(f'Method {self.method.value} is not canonical.')
    _check_eq(len(self.coefficients), _NUM_COEFFICIENTS[self.method])

  def map(self, x: _ArrayLike, y: _ArrayLike) -> tuple[_NDArray, _NDArray]:
    """Return the continuous source coordinates of the destination pixels `(x, y)`."""
    return _DICT_MAPPERS[self.method](x, y, self.coefficients)

  def separable_axes(self) -> tuple[tuple[float, float], tuple[float, float]] | None:
    """Return `((scale_x, offset_x), (scale_y, offset_y))` if the map is axis-aligned affine.

    For such maps `xx = scale_x * (x + 0.5) + offset_x`, and likewise for y, so that each axis
    can be resampled independently.  Returns `None` for all other maps.
    """
    a = self.coefficients
    if self.method == TransformMethod.AFFINE:
      if a[1] == 0.0 and a[3] == 0.0:
        return (a[0], a[2]), (a[4], a[5])
    elif self.method == TransformMethod.PERSPECTIVE:
      if a[1] == 0.0 and a[3] == 0.0 and a[6] == 0.0 and a[7] == 0.0:
        return (a[0], a[2]), (a[4], a[5])
    elif self.method == TransformMethod.QUAD:
      if a[2] == 0.0 and a[3] == 0.0 and a[5] == 0.0 and a[7] == 0.0:
        return (a[1], a[0]), (a[6], a[4])
    return None

  def is_identity(self) -> bool:
    """Return True if every destination pixel maps onto the center of the same source pixel."""
    return self.separable_axes() == ((1.0, 0.0), (1.0, 0.0))


def transform_points(method: str | TransformMethod, coefficients: Sequence[float],
                     x: _ArrayLike, y: _ArrayLike) -> tuple[_NDArray, _NDArray]:
  """Return the continuous source coordinates of destination pixels `(x, y)`.

  Args:
    method: A canonical method: `'affine'`, `'perspective'`, or `'quad'`.
    coefficients: The 6 or 8 coefficients of the method (e.g., from `build_coefficients`).
    x: Destination column indices (scalar or array).
    y: Destination row indices, broadcastable with `x`.

  >>> transform_points('affine', [2, 0, 0, 0, 2, 1], [0, 1], [0, 0])
  (array([1., 3.]), array([2., 2.]))
  """
  method2 = _get_method(method)
  if method2 not in _CANONICAL_METHODS:
    raise InvalidMethodError(f'Method {method2.value} must first be canonicalized.')
  coefficients2 = _get_params(coefficients, _NUM_COEFFICIENTS[method2], method2)
  return CanonicalTransform(method2, coefficients2).map(x, y)


def build_coefficients(method: str | TransformMethod, params: _ArrayLike,
                       region: Region | Sequence[float]) -> CanonicalTransform:
  """Resolve a method and its user parameters into a `CanonicalTransform` for `region`.

  Args:
    method: Any name in `METHODS` except `'mesh'` (see `build_mesh`).
    params: Affine: 6 coefficients.  Extent: source box `(x0, y0, x1, y1)`.  Perspective: 8
      coefficients.  Quad: source corners `nw, sw, se, ne`, as 8 values or 4 pairs.
    region: The destination region; its width and height scale the extent and quad maps.

  Returns:
    An affine, perspective, or quad transform.  An extent becomes an affine map that scales
    the region onto the source box.  A quad becomes the bilinear map that takes the region
    corners onto the source corners.

  >>> build_coefficients('extent', [0, 0, 8, 2], (0, 0, 4, 4)).coefficients
  (2.0, 0.0, 0.0, 0.0, 0.5, 0.0)
  """
  method = _get_method(method)
  if method == TransformMethod.MESH:
    raise InvalidMethodError('A mesh has one transform per region; use build_mesh().')
  region = _get_region(region)
  values = _get_params(params, _NUM_PARAMS[method], method)
  if method in (TransformMethod.AFFINE, TransformMethod.PERSPECTIVE):
    return CanonicalTransform(method, values)

  width, height = region.width, region.height
  if width <= 0 or height <= 0:
    raise DegenerateRegionError(f'Region {region} must have positive width and height'
                                f' for method {method.value}.')

  if method == TransformMethod.EXTENT:
    x0, y0, x1, y1 = values
    scale_x = (x1 - x0) / width
    scale_y = (y1 - y0) / height
    return CanonicalTransform(TransformMethod.AFFINE, (scale_x, 0.0, x0, 0.0, scale_y, y0))

  assert method == TransformMethod.QUAD
  nw, sw, se, ne = values[0:2], values[2:4], values[4:6], values[6:8]
  a_s = 1.0 / width
  a_t = 1.0 / height

  def axis_coefficients(i: int) -> tuple[float, float, float, float]:
    return (nw[i], (ne[i] - nw[i]) * a_s, (sw[i] - nw[i]) * a_t,
            (se[i] - sw[i] - ne[i] + nw[i]) * a_s * a_t)

  return CanonicalTransform(TransformMethod.QUAD, axis_coefficients(0) + axis_coefficients(1))


@dataclasses.dataclass(frozen=True)
class MeshEntry:
  """One region of a mesh, mapped onto the source quadrilateral with corners nw, sw, se, ne."""

  region: Region
  corners: tuple[float, ...]


def _get_mesh(mesh: Iterable[Any]) -> list[MeshEntry]:
  """Return the mesh as a list of `MeshEntry`, validating its structure."""
  if isinstance(mesh, (str, bytes, np.ndarray)) or not isinstance(mesh, Iterable):
    raise InvalidMethodError(f'Mesh {mesh!r} is not a sequence of (region, corners) pairs.')
  entries = []
  for item in mesh:
    if isinstance(item, MeshEntry):
      entries.append(item)
      continue
    try:
      region, corners = item
    except (TypeError, ValueError):
      raise InvalidMethodError(f'Mesh entry {item!r} is not a (region, corners) pair.') from None
    corners2 = _get_params(corners, 8, TransformMethod.QUAD)
    entries.append(MeshEntry(_get_region(region), corners2))
  return entries


def build_mesh(mesh: Iterable[Any]) -> list[tuple[Region, CanonicalTransform]]:
  """Return the quad transform of each mesh entry, in mesh order.

  Args:
    mesh: Sequence of `MeshEntry` or `(region, corners)` pairs, where `region` is `(x0, y0, x1,
      y1)` in the destination and `corners` are the source points `nw, sw, se, ne`.  Regions
      may overlap; nothing resolves the overlap.
  """
  return [(entry.region, build_coefficients(TransformMethod.QUAD, entry.corners, entry.region))
          for entry in _get_mesh(mesh)]


def perspective_coefficients(width: float, height: float,
                             corners: _ArrayLike) -> tuple[float, ...]:
  """Return the 8 perspective coefficients mapping a `width x height` region onto a quadrilateral.

  The destination region corners `(0, 0), (0, height), (width, height), (width, 0)` (in
  continuous coordinates) are mapped to the source `corners` nw, sw, se, ne.  Unlike the
  bilinear `'quad'` method, straight lines in the destination stay straight in the source.
  """
  if not (width > 0 and height > 0):
    raise DegenerateRegionError(f'Region size {width}x{height} must be positive.')
  points = np.array(_get_params(corners, 8, TransformMethod.PERSPECTIVE)).reshape(4, 2)
  region_corners = [(0.0, 0.0), (0.0, height), (width, height), (width, 0.0)]
  matrix = np.zeros((8, 8))
  rhs = np.zeros(8)
  for i, ((xin, yin), (x, y)) in enumerate(zip(region_corners, points)):
    matrix[2 * i] = xin, yin, 1.0, 0.0, 0.0, 0.0, -xin * x, -yin * x
    matrix[2 * i + 1] = 0.0, 0.0, 0.0, xin, yin, 1.0, -xin * y, -yin * y
    rhs[2 * i], rhs[2 * i + 1] = x, y
  try:
    solution = scipy.linalg.solve(matrix, rhs)
  except scipy.linalg.LinAlgError:
    raise InvalidParamsError(f'Corners {points.tolist()} are degenerate.') from None
  return tuple(float(value) for value in solution)


def affine_rotation_about_center(src_shape: Sequence[int], angle: float, *,
                                 new_shape: Sequence[int] | None = None,
                                 scale: float = 1.0) -> tuple[float, ...]:
  """Return the 6 affine coefficients that rotate an image about its center.

  Args:
    src_shape: Resolution `(height, width)` of the source image.
    angle: Angle in radians (positive from x to y axis) applied when mapping the source image
      onto the destination.
    new_shape: Resolution `(height, width)` of the destination; it defaults to `src_shape`.
    scale: Scaling factor applied when mapping the source image onto the destination.
  """

  def translation_matrix(vector: _NDArray) -> _NDArray:
    matrix = np.eye(3)
    matrix[:2, 2] = vector
    return matrix

  def rotation_matrix_2d(angle: float) -> _NDArray:
    cos, sin = np.cos(angle), np.sin(angle)
    return np.array([[cos, sin, 0], [-sin, cos, 0], [0, 0, 1]])

  if scale <= 0:
    raise InvalidParamsError(f'Scale {scale} is not positive.')
  src_shape = np.asarray(src_shape)
  new_shape = src_shape if new_shape is None else np.asarray(new_shape)
  _check_eq(src_shape.shape, (2,))
  _check_eq(new_shape.shape, (2,))
  src_center = src_shape[::-1] / 2
  dst_center = new_shape[::-1] / 2
  matrix = (translation_matrix(src_center) @
            rotation_matrix_2d(angle) @
            np.diag([1 / scale, 1 / scale, 1.0]) @
            translation_matrix(-dst_center))
  assert np.allclose(matrix[-1], [0.0, 0.0, 1.0])
  return tuple(float(value) for value in matrix[:2].reshape(-1))


@dataclasses.dataclass(frozen=True)
class Filter:
  """Abstract base class for filter kernel functions.

  Each kernel is assumed to be symmetric in a support interval [-radius, radius].  A kernel
  with `radius == 0` requests nearest-neighbor sampling and is never evaluated.  Any object
  with a `radius` attribute and a vectorized `__call__` may be used in place of a `Filter`.
  """

  name: str
  """Filter kernel name."""

  radius: float
  """Max absolute value of x for which self(x) is nonzero."""

  @abc.abstractmethod
  def __call__(self, x: _ArrayLike) -> _NDArray:
    """Return evaluation of filter kernel at locations x."""


class ImpulseFilter(Filter):
  """Nearest-neighbor sampling, i.e. a kernel with zero support."""

  def __init__(self) -> None:
    super().__init__(name='impulse', radius=0.0)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    raise AssertionError('The Impulse is infinitely narrow, so cannot be directly evaluated.')


class BoxFilter(Filter):
  """See https://en.wikipedia.org/wiki/Box_function.

  The kernel function has value 1.0 over the half-open interval [-.5, .5).
  """

  def __init__(self) -> None:
    super().__init__(name='box', radius=0.5)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.asarray(x)
    return np.where((-0.5 <= x) & (x < 0.5), 1.0, 0.0)


class TriangleFilter(Filter):
  """See https://en.wikipedia.org/wiki/Triangle_function.

  Also known as the hat or tent function.  It is used for bilinear interpolation.
  """

  def __init__(self) -> None:
    super().__init__(name='triangle', radius=1.0)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    return (1.0 - np.abs(x)).clip(0.0, 1.0)


class CubicFilter(Filter):
  """Family of cubic filters parameterized by two scalar parameters.

  Args:
    b: first scalar parameter.
    c: second scalar parameter.

  See https://en.wikipedia.org/wiki/Mitchell%E2%80%93Netravali_filters.
  The filter is interpolating iff b == 0.
  """

  def __init__(self, *, b: float, c: float, name: str | None = None) -> None:
    name = f'cubic_b{b}_c{c}' if name is None else name
    super().__init__(name=name, radius=2.0)
    self.b, self.c = b, c

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    b, c = self.b, self.c
    f3, f2, f0 = 2 - 9/6*b - c, -3 + 2*b + c, 1 - 1/3*b
    g3, g2, g1, g0 = -b/6 - c, b + 5*c, -2*b - 8*c, 8/6*b + 4*c
    v01 = ((f3 * x + f2) * x) * x + f0
    v12 = ((g3 * x + g2) * x + g1) * x + g0
    return np.where(x < 1.0, v01, np.where(x < 2.0, v12, 0.0))


class CatmullRomFilter(CubicFilter):
  """Interpolating cubic filter with cubic precision (a.k.a. Keys or bicubic)."""

  def __init__(self) -> None:
    super().__init__(b=0, c=0.5, name='cubic')


class MitchellFilter(CubicFilter):
  """Non-interpolating cubic with (b, c) = (1/3, 1/3); see https://doi.org/10.1145/378456.378514."""

  def __init__(self) -> None:
    super().__init__(b=1/3, c=1/3, name='mitchell')


class LanczosFilter(Filter):
  """High-quality filter: sinc function modulated by a sinc window.

  Args:
    radius: Specifies support window [-radius, radius].
  """

  def __init__(self, *, radius: int) -> None:
    super().__init__(name=f'lanczos_{radius}', radius=radius)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    radius = self.radius
    return np.where(x < radius, _sinc(x) * _sinc(x / radius), 0.0)


_DEFAULT_FILTER = 'box'

_DICT_FILTERS = {
    'impulse': ImpulseFilter(),
    'box': BoxFilter(),
    'triangle': TriangleFilter(),
    'cubic': CatmullRomFilter(),
    'mitchell': MitchellFilter(),
    'lanczos3': LanczosFilter(radius=3),
    'lanczos5': LanczosFilter(radius=5),
}

FILTERS = list(_DICT_FILTERS)
r"""Shortcut names for the predefined filter kernels:

| name         | `Filter`                  | a.k.a. / comments |
|--------------|---------------------------|-------------------|
| `'impulse'`  | `ImpulseFilter()`         | *nearest*, zero support |
| `'box'`      | `BoxFilter()`             | default |
| `'triangle'` | `TriangleFilter()`        | *bilinear* |
| `'cubic'`    | `CatmullRomFilter()`      | *bicubic* |
| `'mitchell'` | `MitchellFilter()`        | non-interpolating |
| `'lanczos3'` | `LanczosFilter`(radius=3) | support window [-3, 3] |
| `'lanczos5'` | `LanczosFilter`(radius=5) | [-5, 5] |
"""


def _get_filter(filter: str | Filter) -> Filter:
  """Return a `Filter`, which can be specified as a name string key in `FILTERS`."""
  if isinstance(filter, str):
    if filter not in _DICT_FILTERS:
      raise InvalidParamsError(f'Filter {filter!r} is not in {FILTERS}.')
    return _DICT_FILTERS[filter]
  radius = getattr(filter, 'radius', None)
  if not callable(filter) or radius is None:
    raise InvalidParamsError(f'Filter {filter!r} has no kernel function and radius.')
  if not (np.isfinite(radius) and radius >= 0):
    raise InvalidParamsError(f'Filter radius {radius} is not finite and nonnegative.')
  return filter


def _axis_weights(center: _ArrayLike, radius: int, scale: _ArrayLike, size: int,
                  filter: Filter) -> tuple[_NDArray, _NDArray]:
  """Compute the normalized 1D filter weights about each float source index in `center`.

  Args:
    center: Float source indices (source pixel `u` is centered at index `u`), shape `(n,)`.
    radius: Number of source samples on each side of the center that may contribute.
    scale: Width of the kernel in source samples, at least 1; a scalar or one value per center.
    size: Number of source samples along the axis.
    filter: The reconstruction kernel.

  Returns:
    index: Source indices of shape `(n, min(2 * radius + 1, size))`, within `[0, size - 1]`.
    weight: Weights of the same shape.  Out-of-range and non-finite candidates have zero weight;
      each row with nonzero sum is normalized to unit sum.
  """
  center = np.asarray(center, dtype=np.float64)
  finite = np.isfinite(center)
  # Centers beyond this range have no candidates in [0, size - 1].
  center = np.where(finite, center, 0.0).clip(-radius - 1.0, size + radius)
  low = np.ceil(center - radius).clip(0, size)
  high = np.floor(center + radius).clip(-1, size - 1)
  # The window holds every candidate in [low, high], and never exceeds the source.
  width = max(min(2 * radius + 1, size), 1)
  first = low.clip(0, max(size - width, 0)).astype(np.int64)
  index = first[:, None] + np.arange(width)
  valid = (index >= low[:, None]) & (index <= high[:, None]) & finite[:, None]
  scale = np.broadcast_to(np.asarray(scale, dtype=np.float64), center.shape)[:, None]
  weight = np.where(valid, filter((index - center[:, None]) / scale), 0.0)
  total = weight.sum(axis=-1)[:, None]
  np.divide(weight, total, out=weight, where=total != 0.0)
  return index.clip(0, max(size - 1, 0)), weight


class WeightEntry(NamedTuple):
  """Contribution of one source sample to one destination sample."""

  index: int
  weight: float


@dataclasses.dataclass(frozen=True)
class WeightTable:
  """Sparse 1D convolution weights, with one list of source contributions per destination index.

  Zero weights are omitted, and each nonempty list has unit sum.
  """

  entries: list[list[WeightEntry]]
  src_size: int
  scale: float
  """Ratio of the source extent to the destination extent."""
  radius: int
  """Support radius in source samples, after widening for minification."""

  @property
  def dst_size(self) -> int:
    return len(self.entries)

  def to_sparse(self, dtype: _DTypeLike = np.float64) -> scipy.sparse.csr_matrix:
    """Return the table as a sparse matrix of shape `(dst_size, src_size)`."""
    row_ind = np.array([v for v, entries in enumerate(self.entries) for _ in entries], np.int64)
    col_ind = np.array([entry.index for entries in self.entries for entry in entries], np.int64)
    data = np.array([entry.weight for entries in self.entries for entry in entries], dtype)
    return scipy.sparse.csr_matrix((data, (row_ind, col_ind)),
                                   shape=(self.dst_size, self.src_size))


def create_weight_table(dst_size: int, src_size: int, scale: float, filter: str | Filter,
                        offset: float = 0.0) -> WeightTable:
  """Compute the 1D resampling weights from `src_size` samples onto `dst_size` samples.

  Destination sample `v` is centered on the source float index `(v + 0.5) * scale + offset -
  0.5`.  For minification (`abs(scale) > 1`) the kernel is widened by `abs(scale)` to avoid
  aliasing; for magnification it keeps the width of one source sample.  A zero scale maps all
  destination samples onto the same source location.

  Args:
    dst_size: The number of samples along the destination axis.
    src_size: The number of samples along the source axis.
    scale: Ratio of source extent to destination extent; negative values mirror the axis.
    filter: The reconstruction kernel, with a nonzero radius.
    offset: Translation (in source pixels) applied after scaling.

  >>> create_weight_table(1, 1, 1.0, 'box').entries
  [[WeightEntry(index=0, weight=1.0)]]
  """
  filter = _get_filter(filter)
  if dst_size < 0 or src_size < 0:
    raise ValueError(f'Sizes {dst_size} and {src_size} must be nonnegative.')
  if not (np.isfinite(scale) and np.isfinite(offset)):
    raise ValueError(f'Scale {scale} and offset {offset} must be finite.')
  if filter.radius == 0:
    name = getattr(filter, 'name', filter)
    raise ValueError(f'Filter {name!r} has zero support; it samples nearest neighbors.')
  effective_scale = max(abs(scale), 1.0)
  radius = math.ceil(effective_scale * filter.radius)
  center = (np.arange(dst_size) + 0.5) * scale + offset - 0.5
  index, weight = _axis_weights(center, radius, effective_scale, src_size, filter)
  entries = [[WeightEntry(int(u), float(w)) for u, w in zip(row_index, row_weight) if w != 0.0]
             for row_index, row_weight in zip(index, weight)]
  return WeightTable(entries=entries, src_size=src_size, scale=scale, radius=radius)


def _to_float_01(array: _NDArray, dtype: _DTypeLike) -> _NDArray:
  """Scale uint to the range [0.0, 1.0], and clip float to [0.0, 1.0]."""
  dtype = np.dtype(dtype)
  assert np.issubdtype(dtype, np.floating)
  if array.dtype.type in (np.uint8, np.uint16, np.uint32):
    return np.multiply(array, 1 / np.iinfo(array.dtype).max, dtype=dtype)
  if not np.issubdtype(array.dtype, np.floating):
    raise InvalidParamsError(f'Image type {array.dtype} is neither uint nor float.')
  return array.clip(0.0, 1.0).astype(dtype)


def _from_float(array: _NDArray, dtype: _DTypeLike) -> _NDArray:
  """Convert a float in range [0.0, 1.0] to uint type, with rounding."""
  assert np.issubdtype(array.dtype, np.floating)
  dtype = np.dtype(dtype)
  return (array * np.iinfo(dtype).max + 0.5).astype(dtype)


class SourceImage:
  """Read-only RGBA source image whose channels are floats in the range [0.0, 1.0].

  Args:
    image: Array of shape `(height, width)` (gray), `(height, width, 2)` (gray and alpha),
      `(height, width, 3)` (RGB), or `(height, width, 4)` (RGBA), with type uint8, uint16,
      uint32, or float (in [0.0, 1.0]).  Images without alpha are opaque.
  """

  def __init__(self, image: _ArrayLike) -> None:
    array = np.asarray(image)
    if array.ndim == 2:
      array = array[..., None]
    if array.ndim != 3 or array.shape[2] not in (1, 2, 3, 4):
      raise InvalidParamsError(f'Image shape {array.shape} is not (height, width[, channels]).')
    values = _to_float_01(array, np.float64)
    num_channels = values.shape[2]
    opaque = np.ones(values.shape[:2] + (1,))
    if num_channels == 1:
      rgba = np.concatenate([values] * 3 + [opaque], axis=-1)
    elif num_channels == 2:
      rgba = np.concatenate([values[..., :1]] * 3 + [values[..., 1:]], axis=-1)
    elif num_channels == 3:
      rgba = np.concatenate([values, opaque], axis=-1)
    else:
      rgba = values
    self.rgba: _NDArray = np.ascontiguousarray(rgba)
    self.premultiplied: _NDArray = np.concatenate(
        [rgba[..., :3] * rgba[..., 3:], rgba[..., 3:]], axis=-1)
    self.rgba8: _NDArray = _from_float(self.rgba, np.uint8)
    for buffer in (self.rgba, self.premultiplied, self.rgba8):
      buffer.flags.writeable = False

  @property
  def height(self) -> int:
    return self.rgba.shape[0]

  @property
  def width(self) -> int:
    return self.rgba.shape[1]

  def at(self, x: int, y: int) -> tuple[float, float, float, float]:
    """Return the `(r, g, b, a)` channels of pixel `(x, y)`, each in [0.0, 1.0]."""
    if not (0 <= x < self.width and 0 <= y < self.height):
      raise IndexError(f'Pixel ({x}, {y}) is outside the {self.width}x{self.height} image.')
    r, g, b, a = self.rgba[y, x].tolist()
    return r, g, b, a


def _get_source(image: _ArrayLike | SourceImage) -> SourceImage:
  return image if isinstance(image, SourceImage) else SourceImage(image)


def clone(image: _ArrayLike | SourceImage) -> _NDArray:
  """Return a new uint8 RGBA array of shape `(height, width, 4)` with the pixels of `image`."""
  return _get_source(image).rgba8.copy()


def _get_fill_color(fill_color: _ArrayLike | None) -> _NDArray | None:
  """Return the fill color as a uint8 RGBA array, given uint (0-255) or float ([0, 1]) values."""
  if fill_color is None:
    return None
  color = np.asarray(fill_color)
  if color.shape not in ((3,), (4,)) or not np.issubdtype(color.dtype, np.number):
    raise InvalidParamsError(f'Fill color {fill_color!r} is not 3 or 4 numbers.')
  if np.issubdtype(color.dtype, np.integer):
    if not np.all((color >= 0) & (color <= 255)):
      raise InvalidParamsError(f'Fill color {fill_color!r} is outside the range [0, 255].')
    color = color.astype(np.uint8)
  else:
    if not np.all((color >= 0.0) & (color <= 1.0)):
      raise InvalidParamsError(f'Fill color {fill_color!r} is outside the range [0.0, 1.0].')
    color = _from_float(color.astype(np.float64), np.uint8)
  if len(color) == 3:
    color = np.append(color, np.uint8(255))
  return color


def _get_destination(out: _NDArray | None, width: int, height: int) -> _NDArray:
  """Return the destination buffer, creating a zero-filled (transparent black) one if needed."""
  if not (isinstance(width, (int, np.integer)) and isinstance(height, (int, np.integer))):
    raise InvalidParamsError(f'Destination size {width}x{height} is not integer.')
  if width < 0 or height < 0:
    raise DegenerateRegionError(f'Destination size {width}x{height} is negative.')
  if out is None:
    return np.zeros((height, width, 4), np.uint8)
  if not isinstance(out, np.ndarray) or out.dtype != np.uint8:
    raise InvalidParamsError(f'Destination {type(out).__name__} is not a uint8 numpy array.')
  if out.shape != (height, width, 4):
    raise InvalidParamsError(f'Destination shape {out.shape} is not {(height, width, 4)}.')
  if not out.flags.writeable:
    raise InvalidParamsError('Destination array is not writeable.')
  return out


class RowExecutor(abc.ABC):
  """Strategy for producing the destination rows `[start, end)`."""

  name: str

  @abc.abstractmethod
  def for_each_row_range(self, start: int, end: int, func: Callable[[int, int], None]) -> None:
    """Call `func(row_start, row_end)` over disjoint ranges covering `[start, end)`.

    Returns after all calls complete.  An exception raised by any call propagates.
    """


class SerialRowExecutor(RowExecutor):
  """Produce all rows in the calling thread."""

  name = 'serial'

  def for_each_row_range(self, start: int, end: int, func: Callable[[int, int], None]) -> None:
    if start < end:
      func(start, end)


class ThreadRowExecutor(RowExecutor):
  """Partition the rows into contiguous chunks, one per worker thread.

  Args:
    num_workers: Maximum number of threads; it defaults to `os.cpu_count()`.
    min_rows_per_worker: Fewer rows than this per worker run with fewer threads, as the
      threading overhead dominates on small images.
  """

  name = 'threads'

  def __init__(self, num_workers: int | None = None, *, min_rows_per_worker: int = 16) -> None:
    num_workers = (os.cpu_count() or 1) if num_workers is None else num_workers
    if num_workers < 1 or min_rows_per_worker < 1:
      raise InvalidParamsError(f'Number of workers {num_workers} and rows per worker'
                               f' {min_rows_per_worker} must be positive.')
    self.num_workers = num_workers
    self.min_rows_per_worker = min_rows_per_worker

  def row_ranges(self, start: int, end: int) -> list[tuple[int, int]]:
    """Return the contiguous chunks `[(row_start, row_end), ...]` assigned to the workers."""
    num_rows = end - start
    if num_rows <= 0:
      return []
    num_workers = min(self.num_workers, max(1, num_rows // self.min_rows_per_worker))
    chunk = -(-num_rows // num_workers)
    return [(lo, min(lo + chunk, end)) for lo in range(start, end, chunk)]

  def for_each_row_range(self, start: int, end: int, func: Callable[[int, int], None]) -> None:
    ranges = self.row_ranges(start, end)
    if len(ranges) <= 1:
      for lo, hi in ranges:
        func(lo, hi)
      return
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(ranges)) as pool:
      futures = [pool.submit(func, lo, hi) for lo, hi in ranges]
      for future in futures:
        future.result()


_DICT_EXECUTORS: dict[str, Callable[..., RowExecutor]] = {
    'serial': lambda num_workers: SerialRowExecutor(),
    'threads': ThreadRowExecutor,
}

EXECUTORS = list(_DICT_EXECUTORS)
"""Names of the row execution strategies: `'serial'` and `'threads'` (the default)."""


def _get_executor(executor: str | RowExecutor, num_workers: int | None = None) -> RowExecutor:
  """Return a `RowExecutor`, which can be specified as a name in `EXECUTORS`."""
  if isinstance(executor, RowExecutor):
    return executor
  if executor not in _DICT_EXECUTORS:
    raise InvalidParamsError(f'Executor {executor!r} is not in {EXECUTORS}.')
  return _DICT_EXECUTORS[executor](num_workers)


def _local_scales(transform: CanonicalTransform, x: _NDArray, y: _NDArray, xx: _NDArray,
                  yy: _NDArray) -> tuple[_NDArray, _NDArray]:
  """Return the kernel scales along the source x and y axes at the destination pixels `(x, y)`.

  The scale is the length of the mapped step to an adjacent pixel (the smaller of the forward and
  backward differences, so that a neighbor beyond the horizon does not inflate it), at least 1.
  `(xx, yy)` are the mapped coordinates of `(x, y)`.
  """
  scales = []
  for mapped, index in [(xx, 0), (yy, 1)]:
    steps = []
    for dx, dy in [(1, 0), (-1, 0), (0, 1), (0, -1)]:
      with np.errstate(invalid='ignore', over='ignore'):
        steps.append(transform.map(x + dx, y + dy)[index] - mapped)
    with np.errstate(invalid='ignore', over='ignore'):
      forward = np.hypot(steps[0], steps[2])
      backward = np.hypot(steps[1], steps[3])
      scale = np.fmin(forward, backward)
    scales.append(np.where(np.isfinite(scale), np.maximum(scale, 1.0), 1.0))
  return scales[0], scales[1]


class Resampler:
  """Produce the destination pixels of a region from a source image and a transform.

  Args:
    source: The source image.
    transform: The canonical transform, which maps pixel indices relative to the region origin.
    filter: The reconstruction kernel; `radius == 0` selects nearest-neighbor sampling.
    fill_color: Optional uint8 RGBA color written where no source sample contributes (i.e.,
      the sample lies outside the source or the accumulated alpha is zero).  If `None`, those
      destination pixels are left unmodified.
    use_tables: If False, evaluate weights at every mapped pixel even for separable maps.
    debug: Show internal information.
  """

  def __init__(self, source: SourceImage, transform: CanonicalTransform, filter: Filter, *,
               fill_color: _NDArray | None = None, use_tables: bool = True,
               debug: bool = False) -> None:
    self.source = source
    self.transform = transform
    self.filter = filter
    self.fill_color = fill_color
    self.use_tables = use_tables
    self.debug = debug

  def resample(self, out: _NDArray, region: Region, executor: RowExecutor,
               active: Region | None = None) -> None:
    """Write the pixels of `active` (by default `region`) into `out`, in parallel over rows.

    The transform is applied to pixel indices relative to `(region.x0, region.y0)`; `active`
    must lie within `region` and within `out`.
    """
    active = region if active is None else active
    if active.width == 0 or active.height == 0:
      return
    separable = self.transform.separable_axes() if self.use_tables else None
    if self.filter.radius == 0:
      produce_rows = self._nearest_rows(out, region, active)
      path = 'nearest'
    elif separable is not None:
      produce_rows = self._separable_rows(out, region, active, separable)
      path = 'separable'
    else:
      produce_rows = self._general_rows(out, region, active)
      path = 'general'
    if self.debug:
      print(f'(resample: {self.transform.method.value} {path} over {active}'
            f' using {type(executor).__name__}).')
    executor.for_each_row_range(active.y0, active.y1, produce_rows)

  def _write(self, block: _NDArray, pixels: _NDArray) -> None:
    """Un-premultiply the accumulated `pixels` (..., 4) and store them into uint8 `block`."""
    alpha = pixels[..., 3]
    nonzero = alpha != 0.0
    values = pixels[nonzero]
    values[:, :3] /= values[:, 3:]
    block[nonzero] = np.floor(values * 255 + 0.5).clip(0, 255).astype(np.uint8)
    if self.fill_color is not None:
      block[~nonzero] = self.fill_color

  def _nearest_rows(self, out: _NDArray, region: Region,
                    active: Region) -> Callable[[int, int], None]:
    """Sample the source pixel `floor(fx + 0.5)` about the float index `fx = xx - 0.5`."""
    source = self.source
    xs = np.arange(active.x0, active.x1) - region.x0

    def produce_rows(row_start: int, row_end: int) -> None:
      ys = np.arange(row_start, row_end) - region.y0
      xx, yy = self.transform.map(xs[None], ys[:, None])
      fx, fy = xx - 0.5, yy - 0.5
      with np.errstate(invalid='ignore'):
        ix = np.floor(fx + 0.5)
        iy = np.floor(fy + 0.5)
        inside = (ix >= 0) & (ix < source.width) & (iy >= 0) & (iy < source.height)
      block = out[row_start:row_end, active.x0:active.x1]
      block[inside] = source.rgba8[iy[inside].astype(np.int64), ix[inside].astype(np.int64)]
      if self.fill_color is not None:
        block[~inside] = self.fill_color

    return produce_rows

  def _separable_rows(self, out: _NDArray, region: Region, active: Region,
                      separable: tuple[tuple[float, float], tuple[float, float]],
                      ) -> Callable[[int, int], None]:
    source = self.source
    (scale_x, offset_x), (scale_y, offset_y) = separable
    # Tables are indexed from the active origin, which may be clipped from the region origin.
    offset_x += (active.x0 - region.x0) * scale_x
    offset_y += (active.y0 - region.y0) * scale_y
    x_table = create_weight_table(active.width, source.width, scale_x, self.filter, offset_x)
    y_table = create_weight_table(active.height, source.height, scale_y, self.filter, offset_y)
    if self.debug:
      print(f'(resample: weight tables with scales ({scale_x:.4g}, {scale_y:.4g})'
            f' and radii ({x_table.radius}, {y_table.radius})).')
    x_matrix = x_table.to_sparse()
    y_matrix = y_table.to_sparse()
    src_flat = source.premultiplied.reshape(source.height, -1)

    def produce_rows(row_start: int, row_end: int) -> None:
      # Vertical gather into a scratch block of source-width scanlines, then horizontal gather.
      rows = y_matrix[row_start - active.y0:row_end - active.y0]
      scanlines = (rows @ src_flat).reshape(row_end - row_start, source.width, 4)
      columns = np.moveaxis(scanlines, 1, 0).reshape(source.width, -1)
      pixels = (x_matrix @ columns).reshape(active.width, row_end - row_start, 4)
      self._write(out[row_start:row_end, active.x0:active.x1], np.moveaxis(pixels, 1, 0))

    return produce_rows

  def _general_rows(self, out: _NDArray, region: Region,
                    active: Region) -> Callable[[int, int], None]:
    source = self.source
    filter = self.filter
    if self.debug:
      print(f'(resample: per-pixel weights with local scales over {source.width}x'
            f'{source.height} source samples).')
    xs = np.arange(active.x0, active.x1) - region.x0

    def produce_rows(row_start: int, row_end: int) -> None:
      for y in range(row_start, row_end):
        ys = np.full(xs.shape, y - region.y0)
        xx, yy = self.transform.map(xs, ys)
        scale_x, scale_y = _local_scales(self.transform, xs, ys, xx, yy)
        radius_x = math.ceil(float(scale_x.max()) * filter.radius)
        radius_y = math.ceil(float(scale_y.max()) * filter.radius)
        x_index, x_weight = _axis_weights(xx - 0.5, radius_x, scale_x, source.width, filter)
        y_index, y_weight = _axis_weights(yy - 0.5, radius_y, scale_y, source.height, filter)
        # Contract each row of source taps with the x weights, then accumulate the y weights.
        pixels = np.zeros((len(xs), 4))
        for j in range(y_index.shape[1]):
          if not np.any(y_weight[:, j]):
            continue
          samples = source.premultiplied[y_index[:, j, None], x_index]
          pixels += y_weight[:, j, None] * np.einsum('nk,nkc->nc', x_weight, samples)
        self._write(out[y, active.x0:active.x1], pixels)

    return produce_rows


def transform_region(source: _ArrayLike | SourceImage, out: _NDArray,
                     region: Region | Sequence[float], transform: CanonicalTransform, *,
                     filter: str | Filter = _DEFAULT_FILTER, fill_color: _ArrayLike | None = None,
                     executor: str | RowExecutor = 'threads', num_workers: int | None = None,
                     debug: bool = False) -> None:
  """Resample the pixels of one destination region of `out` in place.

  Args:
    source: The source image (see `SourceImage`).
    out: Destination uint8 array of shape `(height, width, 4)`.
    region: Destination region `(x0, y0, x1, y1)`; it is clipped to the bounds of `out`.
    transform: Map from pixel indices relative to the region origin into the source.
    filter: The reconstruction kernel, specified as a name in `FILTERS` or a `Filter`.
    fill_color: Color for pixels without source contribution, or `None` to leave them as is.
    executor: Row execution strategy, specified as a name in `EXECUTORS` or a `RowExecutor`.
    num_workers: Number of worker threads for the `'threads'` executor.
    debug: Show internal information.
  """
  source = _get_source(source)
  region = _get_region(region)
  filter = _get_filter(filter)
  fill_color = _get_fill_color(fill_color)
  executor = _get_executor(executor, num_workers)
  if not (isinstance(out, np.ndarray) and out.ndim == 3 and out.shape[2] == 4 and
          out.dtype == np.uint8):
    raise InvalidParamsError('Destination is not a uint8 array of shape (height, width, 4).')
  if source.width == 0 or source.height == 0:
    return
  active = region.clip(out.shape[1], out.shape[0])
  if active.width == 0 or active.height == 0:
    return
  if active == region == Region(0, 0, source.width, source.height) and transform.is_identity():
    if debug:
      print(f'(transform_region: identity over {region}; copying the source pixels).')
    out[:source.height, :source.width] = source.rgba8
    return
  resampler = Resampler(source, transform, filter, fill_color=fill_color, debug=debug)
  resampler.resample(out, region, executor, active)


def transform(
    image: _ArrayLike | SourceImage,
    width: int,
    height: int,
    method: str | TransformMethod,
    params: Any,
    *,
    filter: str | Filter = _DEFAULT_FILTER,
    fill_color: _ArrayLike | None = None,
    out: _NDArray | None = None,
    executor: str | RowExecutor = 'threads',
    num_workers: int | None = None,
    debug: bool = False,
) -> _NDArray:
  """Warp `image` into a `width x height` RGBA image using a geometric transform.

  Each destination pixel `(x, y)` is mapped to a continuous source coordinate by the
  transform (with pixel centers at `x + 0.5`), and the source pixels about that coordinate are
  blended using the filter kernel, with premultiplied alpha.  The kernel is widened along
  axes where the transform minifies the source, to avoid aliasing.

  Args:
    image: Source image: an array of shape `(h, w)`, `(h, w, 2)`, `(h, w, 3)`, or `(h, w, 4)`
      with uint or float values, or a `SourceImage`.
    width: Width of the destination image.
    height: Height of the destination image.
    method: The transform method, specified as a name in `METHODS` or a `TransformMethod`.
    params: Parameters of the method (see `METHODS`).  For `'mesh'`, a sequence of `(region,
      corners)` pairs, processed in order; overlapping regions are overwritten by later ones.
    filter: The reconstruction kernel, specified as either a filter name in `FILTERS` or a
      `Filter` instance.  A kernel with zero radius (e.g. `'impulse'`) samples nearest neighbors.
    fill_color: RGB or RGBA color (uint values in [0, 255] or floats in [0.0, 1.0]) written to
      destination pixels that receive no source contribution.  If `None`, these pixels keep
      their prior value (transparent black in a newly created destination).
    out: Optional destination uint8 array of shape `(height, width, 4)`, updated in place.
    executor: Row execution strategy, specified as a name in `EXECUTORS` or a `RowExecutor`.
    num_workers: Number of worker threads for the `'threads'` executor; defaults to the number
      of CPUs.
    debug: Show internal information.

  Returns:
    The destination uint8 RGBA array of shape `(height, width, 4)`.

  Raises:
    InvalidMethodError: If `method` is unknown or mesh `params` are malformed.
    DegenerateRegionError: If an extent, quad, or mesh region has zero width or height.
    InvalidParamsError: If the parameters or options have unusable values.

  >>> image = np.full((4, 4, 4), 255, np.uint8)
  >>> transform(image, 2, 2, 'extent', [0, 0, 4, 4]).shape
  (2, 2, 4)
  """
  method = _get_method(method)
  filter = _get_filter(filter)
  fill_color = _get_fill_color(fill_color)
  executor = _get_executor(executor, num_workers)
  out = _get_destination(out, width, height)
  if method == TransformMethod.MESH:
    jobs = build_mesh(params)
  else:
    full = Region(0, 0, int(width), int(height))
    jobs = [(full, build_coefficients(method, params, full))]
  source = _get_source(image)
  if source.width == 0 or source.height == 0:
    if debug:
      print(f'(transform: empty source {source.width}x{source.height}; nothing to do).')
    return out

  for region, canonical in jobs:
    if debug:
      print(f'(transform: {method.value} -> {canonical.method.value}'
            f' {canonical.coefficients} over {region}).')
    transform_region(source, out, region, canonical, filter=filter, fill_color=fill_color,
                     executor=executor, debug=debug)
  return out
