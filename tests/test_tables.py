"""
Tests for table conversion
"""

import numpy as np
import pandas as pd

from spectral_stats import (
    CubeView,
    SENTINEL_VALUE,
    build_histograms,
    extract_spectrum,
    full_image_polygon,
    histograms_to_dataframe,
    spectrum_to_dataframe,
)


def make_cube():
    rng = np.random.default_rng(3)
    return CubeView(rng.integers(0, 256, (5, 6, 6), dtype=np.uint8), [450, 500, 550, 600, 650, 700])


class TestSpectrumToDataframe:
    """Tests for spectrum_to_dataframe"""

    def test_columns(self):
        """Test one row per band with wavelength, value and std"""
        cube = make_cube()
        spectrum = extract_spectrum(cube, full_image_polygon())
        df = spectrum_to_dataframe(spectrum)

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['wavelength', 'value', 'std']
        assert len(df) == 6
        assert df['wavelength'].tolist() == [450, 500, 550, 600, 650, 700]
        np.testing.assert_allclose(df['value'], [m.value for m in spectrum])

    def test_sentinel_rows(self):
        """Test sentinel values are kept in the table"""
        cube = make_cube()
        spectrum = extract_spectrum(cube, [(2.0, 0.5)])
        df = spectrum_to_dataframe(spectrum)

        assert (df['value'] == SENTINEL_VALUE).all()
        assert (df['std'] == 0.0).all()


class TestHistogramsToDataframe:
    """Tests for histograms_to_dataframe"""

    def test_long_format(self):
        """Test one row per band group and bin"""
        cube = make_cube()
        histograms = build_histograms(cube, 0, 8, 3)
        df = histograms_to_dataframe(histograms)

        assert list(df.columns) == ['wavelength', 'count', 'occurrence']
        assert len(df) == 3 * 8
        assert df['wavelength'].unique().tolist() == [h.wavelength for h in histograms]
        assert df['occurrence'].sum() == 5 * 6 * 6
        np.testing.assert_allclose(df['count'].iloc[:8], histograms[0].count)

    def test_empty(self):
        """Test an empty vector gives an empty table"""
        df = histograms_to_dataframe([])
        assert list(df.columns) == ['wavelength', 'count', 'occurrence']
        assert len(df) == 0
