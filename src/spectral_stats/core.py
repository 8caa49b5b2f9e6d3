"""
Core functionality for reducing hyperspectral cubes to spectra and histograms
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, NamedTuple, Sequence, Tuple, Union

import cv2
import numpy as np

from .cube import CubeView, ProcessingMode
from .errors import InsufficientDataError

SENTINEL_VALUE = -999.0
VERTEX_SNAP_TOLERANCE = 1e-9


class Point(NamedTuple):
    """Position in normalized image coordinates, (0, 0) is the top-left pixel."""

    x: float
    y: float


PointLike = Union[Point, Tuple[float, float]]
Polygon = Sequence[PointLike]


@dataclass
class SpectralMean:
    """Mean value and standard deviation of one band."""

    wavelength: int
    value: float = SENTINEL_VALUE
    std: float = 0.0

    @property
    def is_sentinel(self) -> bool:
        return self.value == SENTINEL_VALUE


@dataclass
class Histogram:
    """
    Value histogram of one group of consecutive bands.

    ``count`` holds the lower edge of every bin and ``occurrence`` the
    number of samples that fell into it.
    """

    wavelength: int
    count: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    occurrence: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint64))


Spectrum = List[SpectralMean]
HistogramVector = List[Histogram]


def _sentinel_spectrum(cube: CubeView) -> Spectrum:
    return [SpectralMean(wavelength=cube.wavelength_at(z)) for z in range(cube.channels)]


def polygon_mask(polygon: Polygon, width: int, height: int) -> np.ndarray:
    """
    Rasterize a polygon into a binary pixel mask.

    Vertices are scaled to pixel positions and truncated to integers, then
    the polygon is scan-filled without anti-aliasing. Pixels on the
    boundary belong to the region.

    Parameters
    ----------
    polygon : sequence of (x, y)
        Vertices in normalized [0, 1] coordinates
    width, height : int
        Size of the pixel grid

    Returns
    -------
    np.ndarray
        Boolean mask of shape (height, width)
    """
    points = np.asarray(polygon, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Polygon vertices must be (x, y) pairs, got shape {points.shape}")

    scale = np.array([width - 1, height - 1], dtype=np.float64)
    scaled = points * scale
    # pixel vertices normalized by the same scale come back a hair below k
    nearest = np.rint(scaled)
    scaled = np.where(np.abs(scaled - nearest) < VERTEX_SNAP_TOLERANCE, nearest, scaled)
    # astype truncates toward zero
    pixels = scaled.astype(np.int32)

    mask = np.zeros((height, width), dtype=np.uint8)
    cv2.fillPoly(mask, [pixels.reshape(-1, 1, 2)], 255)
    return mask > 128


def _polygon_spectrum(cube: CubeView, polygon: Polygon) -> Spectrum:
    mask = polygon_mask(polygon, cube.width, cube.height)
    n = int(np.count_nonzero(mask))
    if n == 0:
        warnings.warn("Polygon encloses no pixels, returning sentinel spectrum")
        return _sentinel_spectrum(cube)

    masked = cube.data[mask].astype(np.float64)
    sum_v = masked.sum(axis=0)
    sq_sum_v = np.square(masked).sum(axis=0)

    mean = sum_v / n
    # sum((v - m)^2) = sum(v^2) - 2 * m * sum(v) + n * m^2
    variance = (sq_sum_v - 2.0 * sum_v * mean) / n + mean * mean
    # rounding can push a zero variance slightly negative
    std = np.sqrt(np.maximum(variance, 0.0))

    return [
        SpectralMean(wavelength=cube.wavelength_at(z), value=float(mean[z]), std=float(std[z]))
        for z in range(cube.channels)
    ]


def _point_spectrum(cube: CubeView, point: PointLike) -> Spectrum:
    x, y = float(point[0]), float(point[1])
    if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
        warnings.warn(f"Point ({x}, {y}) lies outside the image, returning sentinel spectrum")
        return _sentinel_spectrum(cube)

    # round half away from zero; both products are non-negative here
    px = int(np.floor(x * (cube.width - 1) + 0.5))
    py = int(np.floor(y * (cube.height - 1) + 0.5))
    values = cube.data[py, px, :]

    return [
        SpectralMean(wavelength=cube.wavelength_at(z), value=float(values[z]), std=0.0)
        for z in range(cube.channels)
    ]


def extract_spectrum(cube: CubeView, polygon: Polygon) -> Spectrum:
    """
    Calculate the spectrum of a region of interest.

    Parameters
    ----------
    cube : CubeView
        Cube to analyze
    polygon : sequence of (x, y)
        Region in normalized [0, 1] coordinates. Two or more vertices
        describe a polygon, a single vertex is a point query.

    Returns
    -------
    list of SpectralMean
        One entry per band in cube order. Bands that cannot be computed
        (empty polygon, point outside the image, region without pixels)
        carry the sentinel value -999.0.
    """
    if len(polygon) > 1:
        return _polygon_spectrum(cube, polygon)
    if len(polygon) == 1:
        return _point_spectrum(cube, polygon[0])

    warnings.warn("Empty polygon, returning sentinel spectrum")
    return _sentinel_spectrum(cube)


def extract_roi_spectra(cube: CubeView, rois: Mapping[str, Polygon]) -> Dict[str, Spectrum]:
    """
    Extract spectra for several named regions of the same cube.

    Parameters
    ----------
    cube : CubeView
        Cube to analyze
    rois : mapping
        ROI name to polygon

    Returns
    -------
    dict
        Dictionary mapping ROI names to spectra, in input order
    """
    return {name: extract_spectrum(cube, polygon) for name, polygon in rois.items()}


def full_image_polygon() -> List[Point]:
    """Polygon covering every pixel of a cube."""
    return [Point(0.0, 0.0), Point(1.0, 0.0), Point(1.0, 1.0), Point(0.0, 1.0)]


def _accumulate_histogram(
    samples: np.ndarray,
    count_bins: int,
    max_value: float,
    bin_size: float,
    out: np.ndarray
) -> None:
    values = samples.ravel().astype(np.float64)
    values = values[np.isfinite(values) & (values >= 0.0) & (values <= max_value)]
    if bin_size > 0:
        idx = np.floor(values / bin_size).astype(np.int64)
        np.minimum(idx, count_bins - 1, out=idx)
    else:
        idx = np.zeros(values.size, dtype=np.int64)
    out += np.bincount(idx, minlength=count_bins).astype(np.uint64)


def _detect_max_value(cube: CubeView) -> float:
    if not cube.encoding.is_float:
        return float(cube.data.max())
    finite = cube.data[np.isfinite(cube.data)]
    # no finite samples leaves a single zero-width range
    return float(finite.max()) if finite.size else 0.0


def build_histograms(
    cube: CubeView,
    min_samples: int,
    count_bins: int,
    wavelength_bins: int,
    detect_max_value: bool = False,
    mode: Union[ProcessingMode, str] = ProcessingMode.RAW
) -> HistogramVector:
    """
    Calculate value histograms for groups of consecutive bands.

    Channels are split into groups of ``int(channels / wavelength_bins)``
    bands. The number of groups is ``channels // bands_per_group``, which
    can be larger than ``wavelength_bins``; bands left over after the last
    full group are not counted.

    Parameters
    ----------
    cube : CubeView
        Cube to analyze
    min_samples : int
        The cube must hold more samples than this
    count_bins : int
        Number of equal-width value bins spanning [0, max_value]
    wavelength_bins : int
        Requested number of band groups
    detect_max_value : bool, default=False
        Use the largest sample in the cube as upper bound instead of the
        largest value the sample type can represent
    mode : ProcessingMode or str, default=ProcessingMode.RAW
        Processing state of the cube. Bin labels of reflectance cubes are
        divided by 100.

    Returns
    -------
    list of Histogram
        One histogram per band group, in band order
    """
    mode = ProcessingMode.parse(mode)

    if cube.size <= min_samples:
        raise InsufficientDataError(
            f"Cube holds {cube.size} samples, more than {min_samples} required"
        )
    if count_bins < 1:
        raise ValueError(f"count_bins must be at least 1, got {count_bins}")
    if wavelength_bins < 1 or wavelength_bins > cube.channels:
        raise ValueError(
            f"wavelength_bins must be between 1 and {cube.channels}, got {wavelength_bins}"
        )

    cube.encoding.histogram_type(cube.channels)

    if detect_max_value:
        max_value = _detect_max_value(cube)
    else:
        max_value = cube.encoding.max_value

    bin_size = max_value / count_bins
    bands_per_group = int(cube.channels / wavelength_bins)
    group_count = cube.channels // bands_per_group

    edges = np.arange(count_bins, dtype=np.float64) * bin_size
    if mode is ProcessingMode.REFLECTANCE:
        edges = edges / 100.0
    edges = edges.astype(np.float32)

    output = []
    for group in range(group_count):
        first = group * bands_per_group
        occurrence = np.zeros(count_bins, dtype=np.uint64)
        for z in range(first, first + bands_per_group):
            _accumulate_histogram(cube.data[:, :, z], count_bins, max_value, bin_size, occurrence)

        output.append(Histogram(
            wavelength=cube.wavelength_at(first + bands_per_group // 2),
            count=edges.copy(),
            occurrence=occurrence,
        ))

    return output
