"""
Loading ImageJ ROI files as normalized polygons
"""

import warnings
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np
from roifile import ImagejRoi, ROI_TYPE, roiread

from .core import Point
from .files import discover_files

PolygonDict = Dict[str, List[Point]]


def discover_roi_files(directory: Union[str, Path]) -> List[Path]:
    """
    Discover all ROI files (.roi and .zip) in a directory.

    Parameters
    ----------
    directory : str or Path
        Directory to search for ROI files

    Returns
    -------
    List[Path]
        Sorted list of paths to ROI files found
    """
    return discover_files(directory, ['.roi', '.zip'])


def _normalize(coords: np.ndarray, width: int, height: int) -> List[Point]:
    scale = np.array([width - 1, height - 1], dtype=np.float64)
    normalized = np.asarray(coords, dtype=np.float64).reshape(-1, 2) / scale
    return [Point(float(x), float(y)) for x, y in normalized]


def load_imagej_polygons(roi_path: Union[str, Path], width: int, height: int) -> PolygonDict:
    """
    Load ImageJ ROIs from a .roi or .zip file as normalized polygons.

    Parameters
    ----------
    roi_path : str or Path
        Path to the ROI file (.roi or .zip)
    width, height : int
        Size of the image the ROIs were drawn on, in pixels

    Returns
    -------
    dict
        ROI name to polygon in normalized [0, 1] coordinates. A point ROI
        with several points yields one single-point polygon per point.
    """
    roi_path = Path(roi_path)
    if not roi_path.exists():
        raise FileNotFoundError(f"ROI file not found: {roi_path}")

    if roi_path.suffix.lower() == '.zip':
        roi_list = roiread(str(roi_path))
        if not isinstance(roi_list, list):
            roi_list = [roi_list]
    else:
        roi_list = [ImagejRoi.fromfile(str(roi_path))]

    polygons = {}
    for idx, roi in enumerate(roi_list):
        roi_name = roi.name or f'ROI_{idx + 1}'
        coords = roi.coordinates()

        if coords is None or len(coords) == 0:
            warnings.warn(f"ROI '{roi_name}' has no coordinates, skipping")
            continue

        points = _normalize(coords, width, height)
        if roi.roitype == ROI_TYPE.POINT and len(points) > 1:
            for point_idx, point in enumerate(points):
                polygons[f"{roi_name}_{point_idx + 1}"] = [point]
        else:
            polygons[roi_name] = points

    return polygons


def merge_roi_files(
    roi_paths: List[Union[str, Path]],
    width: int,
    height: int,
    warn_on_conflict: bool = True
) -> Tuple[PolygonDict, List[str]]:
    """
    Load and merge multiple ROI files, checking for name conflicts.

    Parameters
    ----------
    roi_paths : List[str or Path]
        List of paths to ROI files
    width, height : int
        Size of the image the ROIs were drawn on
    warn_on_conflict : bool, default=True
        Whether to warn when ROI names conflict

    Returns
    -------
    polygons : dict
        Combined ROI polygons. Later files win on name conflicts.
    warnings : List[str]
        Messages about conflicts and unreadable files
    """
    all_polygons = {}
    names_seen = {}
    warning_messages = []

    for roi_path in roi_paths:
        roi_path = Path(roi_path)
        try:
            polygons = load_imagej_polygons(roi_path, width, height)
        except (OSError, ValueError) as e:
            msg = f"Error loading ROI file '{roi_path}': {e}"
            warning_messages.append(msg)
            warnings.warn(msg)
            continue

        for roi_name, polygon in polygons.items():
            if roi_name in names_seen:
                msg = (f"Warning: ROI name '{roi_name}' appears in both "
                       f"'{names_seen[roi_name]}' and '{roi_path.name}'. "
                       f"Using ROI from '{roi_path.name}'.")
                warning_messages.append(msg)
                if warn_on_conflict:
                    warnings.warn(msg)
                # replacement moves to the end
                del all_polygons[roi_name]

            all_polygons[roi_name] = polygon
            names_seen[roi_name] = roi_path.name

    return all_polygons, warning_messages
