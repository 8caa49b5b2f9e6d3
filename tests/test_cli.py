"""
Tests for the command-line interface
"""

import pytest
import tempfile
import shutil
from pathlib import Path
import numpy as np
import pandas as pd
import tifffile
from roifile import ImagejRoi, roiwrite

from spectral_stats.cli import (
    discover_tiff_files,
    load_tiff_cube,
    main,
    parse_wavelengths,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_stack():
    """Band-first stack: 4 bands, 20x30 pixels"""
    rng = np.random.default_rng(0)
    return rng.integers(0, 1000, (4, 20, 30), dtype=np.uint16)


@pytest.fixture
def tiff_path(temp_dir, sample_stack):
    """Write the sample stack to a TIFF file"""
    path = temp_dir / "cube.tiff"
    tifffile.imwrite(path, sample_stack)
    return path


class TestLoadTiffCube:
    """Tests for load_tiff_cube"""

    def test_load(self, tiff_path, sample_stack):
        """Test a TIFF stack becomes an interleaved cube"""
        cube = load_tiff_cube(tiff_path)

        assert cube.channels == 4
        assert cube.height == 20
        assert cube.width == 30
        assert cube.wavelength.tolist() == [1, 2, 3, 4]
        assert cube.sample_at(7, 3, 2) == sample_stack[2, 3, 7]

    def test_load_with_wavelengths(self, tiff_path):
        """Test explicit wavelength labels"""
        cube = load_tiff_cube(tiff_path, [450, 500, 550, 600])
        assert cube.wavelength_at(3) == 600

    def test_load_nonexistent_file(self):
        """Test loading a non-existent file raises error"""
        with pytest.raises(FileNotFoundError):
            load_tiff_cube("nonexistent.tiff")


class TestHelpers:
    """Tests for argument helpers"""

    def test_parse_wavelengths(self):
        """Test comma separated wavelengths"""
        assert parse_wavelengths("450,500, 550") == [450, 500, 550]
        assert parse_wavelengths(None) is None

    def test_parse_wavelengths_invalid(self):
        """Test non-numeric wavelengths raise"""
        with pytest.raises(ValueError):
            parse_wavelengths("450,abc")

    def test_discover_tiff_files(self, temp_dir, sample_stack):
        """Test TIFF discovery is sorted and ignores other files"""
        for name in ["z.tif", "a.tiff"]:
            tifffile.imwrite(temp_dir / name, sample_stack)
        (temp_dir / "notes.txt").write_text("not a tiff")

        assert [p.name for p in discover_tiff_files(temp_dir)] == ["a.tiff", "z.tif"]


class TestSpectrumCommand:
    """Tests for the spectrum subcommand"""

    def test_full_image(self, tiff_path, temp_dir, sample_stack):
        """Test the full image spectrum is written without ROI options"""
        output_dir = temp_dir / "out"
        main(['spectrum', str(tiff_path), '-o', str(output_dir)])

        df = pd.read_csv(output_dir / "full_image.csv")
        assert list(df.columns) == ['wavelength', 'value', 'std']
        assert df['wavelength'].tolist() == [1, 2, 3, 4]
        np.testing.assert_allclose(df['value'], sample_stack.mean(axis=(1, 2)))

    def test_default_output_dir(self, tiff_path):
        """Test results go next to the TIFF by default"""
        main(['spectrum', str(tiff_path)])
        assert (tiff_path.parent / "cube_Spectral_Stats" / "full_image.csv").exists()

    def test_point_and_polygon(self, tiff_path, temp_dir, sample_stack):
        """Test point and polygon options"""
        output_dir = temp_dir / "out"
        main([
            'spectrum', str(tiff_path),
            '--wavelengths', '450,500,550,600',
            '--point', '0,0',
            '--point', '1.5,0.5',
            '--polygon', '0.1,0.1', '0.9,0.1', '0.5,0.9',
            '-o', str(output_dir),
        ])

        point = pd.read_csv(output_dir / "point_1.csv")
        assert point['wavelength'].tolist() == [450, 500, 550, 600]
        assert point['value'].tolist() == sample_stack[:, 0, 0].astype(float).tolist()

        outside = pd.read_csv(output_dir / "point_2.csv")
        assert (outside['value'] == -999.0).all()

        assert (output_dir / "polygon.csv").exists()

    def test_roi_file(self, tiff_path, temp_dir):
        """Test spectra for every ROI in a file"""
        roi = ImagejRoi.frompoints([[5, 5], [20, 5], [20, 15], [5, 15]])
        roi.name = "box"
        roi_path = temp_dir / "rois.roi"
        roiwrite(roi_path, roi)

        output_dir = temp_dir / "out"
        main(['spectrum', str(tiff_path), '--roi', str(roi_path), '-o', str(output_dir)])

        df = pd.read_csv(output_dir / "box.csv")
        assert len(df) == 4

    def test_no_save(self, tiff_path, temp_dir):
        """Test nothing is written with --no-save"""
        output_dir = temp_dir / "out"
        main(['spectrum', str(tiff_path), '-o', str(output_dir), '--no-save'])
        assert not output_dir.exists()

    def test_directory_input(self, temp_dir, sample_stack):
        """Test every TIFF in a directory is processed"""
        data_dir = temp_dir / "data"
        data_dir.mkdir()
        for name in ["a.tiff", "b.tiff"]:
            tifffile.imwrite(data_dir / name, sample_stack)

        main(['spectrum', str(data_dir)])
        assert (data_dir / "a_Spectral_Stats" / "full_image.csv").exists()
        assert (data_dir / "b_Spectral_Stats" / "full_image.csv").exists()


class TestHistogramCommand:
    """Tests for the histogram subcommand"""

    def test_histograms(self, tiff_path, temp_dir):
        """Test histograms are written in long format"""
        output_dir = temp_dir / "out"
        main([
            'histogram', str(tiff_path),
            '--count-bins', '16',
            '--wavelength-bins', '2',
            '--detect-max',
            '-o', str(output_dir),
        ])

        df = pd.read_csv(output_dir / "histograms.csv")
        assert list(df.columns) == ['wavelength', 'count', 'occurrence']
        assert len(df) == 2 * 16
        assert df['occurrence'].sum() == 4 * 20 * 30

    def test_reflectance_mode(self, tiff_path, temp_dir):
        """Test reflectance bin labels"""
        raw_dir = temp_dir / "raw"
        refl_dir = temp_dir / "refl"
        main(['histogram', str(tiff_path), '--count-bins', '8', '-o', str(raw_dir), '--wavelength-bins', '4'])
        main(['histogram', str(tiff_path), '--count-bins', '8', '-o', str(refl_dir), '--wavelength-bins', '4',
              '--mode', 'reflectance'])

        raw = pd.read_csv(raw_dir / "histograms.csv")
        refl = pd.read_csv(refl_dir / "histograms.csv")
        np.testing.assert_allclose(refl['count'], raw['count'] / 100.0, rtol=1e-6)


class TestErrors:
    """Tests for CLI error handling"""

    def test_missing_tiff(self, temp_dir):
        """Test a missing input path exits with an error"""
        with pytest.raises(SystemExit) as excinfo:
            main(['spectrum', str(temp_dir / "missing.tiff")])
        assert excinfo.value.code == 1

    def test_empty_directory(self, temp_dir):
        """Test a directory without TIFFs exits with an error"""
        with pytest.raises(SystemExit) as excinfo:
            main(['histogram', str(temp_dir)])
        assert excinfo.value.code == 1

    def test_insufficient_data(self, tiff_path):
        """Test analysis errors exit with an error"""
        with pytest.raises(SystemExit) as excinfo:
            main(['histogram', str(tiff_path), '--min-samples', '1000000', '--no-save'])
        assert excinfo.value.code == 1

    def test_too_many_wavelength_bins(self, tiff_path):
        """Test more wavelength bins than bands exits with an error"""
        with pytest.raises(SystemExit) as excinfo:
            main(['histogram', str(tiff_path), '--wavelength-bins', '10', '--no-save'])
        assert excinfo.value.code == 1

    def test_wavelength_count_mismatch(self, tiff_path):
        """Test a wrong number of wavelengths exits with an error"""
        with pytest.raises(SystemExit) as excinfo:
            main(['spectrum', str(tiff_path), '--wavelengths', '450,500', '--no-save'])
        assert excinfo.value.code == 1
