"""
File discovery helpers
"""

from pathlib import Path
from typing import Iterable, List, Union


def discover_files(directory: Union[str, Path], suffixes: Iterable[str]) -> List[Path]:
    """
    Discover files with any of the given suffixes in a directory.

    Parameters
    ----------
    directory : str or Path
        Directory to search
    suffixes : iterable of str
        Suffixes including the dot, such as ``'.tif'``. Matching ignores case.

    Returns
    -------
    List[Path]
        Sorted list of matching paths
    """
    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ValueError(f"Path is not a directory: {directory}")

    suffixes = {s.lower() for s in suffixes}
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in suffixes)
