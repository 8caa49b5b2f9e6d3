"""
Spectral Stats - Reduce hyperspectral cubes to region spectra and band histograms
"""

__version__ = "0.1.0"

from .cube import CubeView, ProcessingMode, SampleEncoding
from .errors import (
    SpectralStatsError,
    InvalidShapeError,
    InsufficientDataError,
    UnsupportedSampleEncodingError,
)
from .core import (
    SENTINEL_VALUE,
    Point,
    SpectralMean,
    Histogram,
    extract_spectrum,
    extract_roi_spectra,
    full_image_polygon,
    polygon_mask,
    build_histograms,
)
from .tables import spectrum_to_dataframe, histograms_to_dataframe
from .rois import discover_roi_files, load_imagej_polygons, merge_roi_files

__all__ = [
    "CubeView",
    "ProcessingMode",
    "SampleEncoding",
    "SpectralStatsError",
    "InvalidShapeError",
    "InsufficientDataError",
    "UnsupportedSampleEncodingError",
    "SENTINEL_VALUE",
    "Point",
    "SpectralMean",
    "Histogram",
    "extract_spectrum",
    "extract_roi_spectra",
    "full_image_polygon",
    "polygon_mask",
    "build_histograms",
    "spectrum_to_dataframe",
    "histograms_to_dataframe",
    "discover_roi_files",
    "load_imagej_polygons",
    "merge_roi_files",
]
