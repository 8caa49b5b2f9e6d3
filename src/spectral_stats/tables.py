"""
Conversion of spectra and histograms to pandas tables
"""

from typing import Sequence

import numpy as np
import pandas as pd

from .core import Histogram, SpectralMean


def spectrum_to_dataframe(spectrum: Sequence[SpectralMean]) -> pd.DataFrame:
    """
    Convert a spectrum to a table.

    Parameters
    ----------
    spectrum : list of SpectralMean
        Spectrum as returned by ``extract_spectrum``

    Returns
    -------
    pd.DataFrame
        DataFrame with columns: wavelength, value, std
    """
    return pd.DataFrame({
        'wavelength': np.array([m.wavelength for m in spectrum], dtype=np.uint32),
        'value': np.array([m.value for m in spectrum], dtype=np.float64),
        'std': np.array([m.std for m in spectrum], dtype=np.float64),
    })


def histograms_to_dataframe(histograms: Sequence[Histogram]) -> pd.DataFrame:
    """
    Convert a histogram vector to a long-format table.

    Parameters
    ----------
    histograms : list of Histogram
        Histograms as returned by ``build_histograms``

    Returns
    -------
    pd.DataFrame
        DataFrame with columns: wavelength, count, occurrence. One row per
        band group and value bin.
    """
    if not histograms:
        return pd.DataFrame({
            'wavelength': np.zeros(0, dtype=np.uint32),
            'count': np.zeros(0, dtype=np.float32),
            'occurrence': np.zeros(0, dtype=np.uint64),
        })

    return pd.DataFrame({
        'wavelength': np.concatenate([
            np.full(len(h.count), h.wavelength, dtype=np.uint32) for h in histograms
        ]),
        'count': np.concatenate([h.count for h in histograms]).astype(np.float32),
        'occurrence': np.concatenate([h.occurrence for h in histograms]).astype(np.uint64),
    })
