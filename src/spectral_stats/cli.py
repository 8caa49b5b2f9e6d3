"""
Command-line interface for spectral-stats
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import tifffile
from tqdm import tqdm

from . import __version__
from .core import Point, build_histograms, extract_roi_spectra, full_image_polygon
from .cube import CubeView, ProcessingMode
from .files import discover_files
from .rois import discover_roi_files, merge_roi_files
from .tables import histograms_to_dataframe, spectrum_to_dataframe


def discover_tiff_files(directory: Union[str, Path]) -> List[Path]:
    """
    Discover all TIFF files in a directory.

    Parameters
    ----------
    directory : str or Path
        Directory to search for TIFF files

    Returns
    -------
    List[Path]
        Sorted list of paths to TIFF files found
    """
    return discover_files(directory, ['.tif', '.tiff'])


def parse_wavelengths(text: Optional[str]) -> Optional[List[int]]:
    """Parse a comma separated wavelength list such as ``450,460,470``."""
    if text is None:
        return None
    try:
        return [int(float(item)) for item in text.split(',') if item.strip()]
    except ValueError:
        raise ValueError(f"Invalid wavelength list: {text}") from None


def parse_point(text: str) -> Point:
    """Parse ``x,y`` into a normalized point."""
    parts = text.split(',')
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected X,Y but got '{text}'")
    try:
        return Point(float(parts[0]), float(parts[1]))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected numeric X,Y but got '{text}'") from None


def load_tiff_cube(tiff_path: Union[str, Path], wavelengths: Optional[Sequence[int]] = None) -> CubeView:
    """
    Load a TIFF stack as a cube.

    Parameters
    ----------
    tiff_path : str or Path
        Path to a multi-page TIFF with one page per band
    wavelengths : sequence of int, optional
        Wavelength of every page. Defaults to band numbers starting at 1.

    Returns
    -------
    CubeView
    """
    tiff_path = Path(tiff_path)
    if not tiff_path.exists():
        raise FileNotFoundError(f"TIFF file not found: {tiff_path}")

    stack = tifffile.imread(str(tiff_path))
    if stack.ndim == 2:
        stack = stack[np.newaxis, :, :]
    elif stack.ndim != 3:
        raise ValueError(f"Expected a (bands, height, width) stack, got shape {stack.shape}")

    if wavelengths is None:
        wavelengths = np.arange(1, stack.shape[0] + 1)

    return CubeView.from_stack(stack, wavelengths)


def _output_dir(tiff_path: Path, output: Optional[str]) -> Path:
    if output is not None:
        return Path(output)
    return tiff_path.parent / f"{tiff_path.stem}_Spectral_Stats"


def _spectrum_command(args, tiff_files: List[Path], wavelengths) -> None:
    for tiff_path in tqdm(tiff_files, desc="Extracting spectra", unit="file", disable=len(tiff_files) < 2):
        cube = load_tiff_cube(tiff_path, wavelengths)
        tqdm.write(f"Processing TIFF: {tiff_path} ({cube.width}x{cube.height}, {cube.channels} bands)")

        rois = {}
        if args.roi:
            roi_path = Path(args.roi)
            roi_files = discover_roi_files(roi_path) if roi_path.is_dir() else [roi_path]
            rois, roi_warnings = merge_roi_files(roi_files, cube.width, cube.height)
            for warning in roi_warnings:
                tqdm.write(f"  {warning}")
        if args.point:
            for idx, point in enumerate(args.point, 1):
                rois[f"point_{idx}"] = [point]
        if args.polygon:
            rois['polygon'] = args.polygon
        if not rois:
            rois['full_image'] = full_image_polygon()

        spectra = extract_roi_spectra(cube, rois)
        tqdm.write(f"Extracted {len(spectra)} spectrum/spectra")

        if args.no_save:
            continue

        output_dir = _output_dir(tiff_path, args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, spectrum in spectra.items():
            csv_path = output_dir / f"{name}.csv"
            spectrum_to_dataframe(spectrum).to_csv(csv_path, index=False)
            tqdm.write(f"Saved: {csv_path}")


def _histogram_command(args, tiff_files: List[Path], wavelengths) -> None:
    mode = ProcessingMode.parse(args.mode)
    for tiff_path in tqdm(tiff_files, desc="Building histograms", unit="file", disable=len(tiff_files) < 2):
        cube = load_tiff_cube(tiff_path, wavelengths)
        tqdm.write(f"Processing TIFF: {tiff_path} ({cube.width}x{cube.height}, {cube.channels} bands)")

        histograms = build_histograms(
            cube,
            min_samples=args.min_samples,
            count_bins=args.count_bins,
            wavelength_bins=args.wavelength_bins,
            detect_max_value=args.detect_max,
            mode=mode,
        )
        tqdm.write(f"Built {len(histograms)} histogram(s) with {args.count_bins} bins")

        if args.no_save:
            continue

        output_dir = _output_dir(tiff_path, args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        csv_path = output_dir / "histograms.csv"
        histograms_to_dataframe(histograms).to_csv(csv_path, index=False)
        tqdm.write(f"Saved: {csv_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spectral-stats',
        description="Reduce hyperspectral TIFF stacks to region spectra and band histograms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mean spectrum of the entire image
  spectral-stats spectrum cube.tiff

  # Spectra for every ROI in an ImageJ ROI file
  spectral-stats spectrum cube.tiff --roi rois.zip

  # Spectrum of a single pixel and of a triangle (normalized coordinates)
  spectral-stats spectrum cube.tiff --point 0.5,0.5 --polygon 0.1,0.1 0.9,0.1 0.5,0.9

  # Label bands with their wavelengths
  spectral-stats spectrum cube.tiff --wavelengths 450,460,470,480

  # 256-bin histograms for 10 band groups of a reflectance cube
  spectral-stats histogram cube.tiff --count-bins 256 --wavelength-bins 10 --mode reflectance

  # Process every TIFF in a directory, scaling bins to the data maximum
  spectral-stats histogram data/ --detect-max --output ./results
        """
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        'tiff',
        type=str,
        help='Path to a TIFF stack (one page per band) or a directory of TIFF stacks'
    )
    common.add_argument(
        '-w', '--wavelengths',
        type=str,
        default=None,
        help='Comma separated wavelength of every band. Default: band numbers starting at 1'
    )
    common.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output directory for CSV files. Default: <stem>_Spectral_Stats subfolder next to each TIFF file.'
    )
    common.add_argument(
        '--no-save',
        action='store_true',
        help='Do not save CSV files (only useful for testing)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    spectrum = subparsers.add_parser(
        'spectrum',
        parents=[common],
        help='Mean and standard deviation spectra of regions of interest'
    )
    spectrum.add_argument(
        '-r', '--roi',
        type=str,
        default=None,
        help='ImageJ ROI file (.roi or .zip), or a directory of ROI files to merge'
    )
    spectrum.add_argument(
        '-p', '--point',
        type=parse_point,
        action='append',
        default=None,
        help='Single pixel query as X,Y in normalized [0, 1] coordinates. May be repeated.'
    )
    spectrum.add_argument(
        '--polygon',
        type=parse_point,
        nargs='+',
        default=None,
        help='Polygon vertices as X,Y pairs in normalized [0, 1] coordinates'
    )

    histogram = subparsers.add_parser(
        'histogram',
        parents=[common],
        help='Value histograms of groups of consecutive bands'
    )
    histogram.add_argument(
        '--count-bins',
        type=int,
        default=256,
        help='Number of value bins per histogram. Default: 256'
    )
    histogram.add_argument(
        '--wavelength-bins',
        type=int,
        default=10,
        help='Requested number of band groups. Default: 10'
    )
    histogram.add_argument(
        '--min-samples',
        type=int,
        default=0,
        help='Minimum number of samples the cube must exceed. Default: 0'
    )
    histogram.add_argument(
        '--detect-max',
        action='store_true',
        help='Span the bins up to the largest sample instead of the largest value of the sample type'
    )
    histogram.add_argument(
        '-m', '--mode',
        type=str,
        choices=[m.value for m in ProcessingMode],
        default=ProcessingMode.RAW.value,
        help='Processing state of the cube. Bin labels of reflectance cubes are divided by 100. Default: raw'
    )

    return parser


def main(argv: Optional[Sequence[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    tiff_input = Path(args.tiff)
    if not tiff_input.exists():
        print(f"Error: Path not found: {tiff_input}", file=sys.stderr)
        sys.exit(1)

    if tiff_input.is_dir():
        tiff_files = discover_tiff_files(tiff_input)
        if not tiff_files:
            print(f"Error: No TIFF files found in {tiff_input}", file=sys.stderr)
            sys.exit(1)
        print(f"Discovered {len(tiff_files)} TIFF file(s) in {tiff_input}")
    else:
        tiff_files = [tiff_input]

    if args.command == 'spectrum' and args.roi and not Path(args.roi).exists():
        print(f"Error: ROI path not found: {args.roi}", file=sys.stderr)
        sys.exit(1)

    try:
        wavelengths = parse_wavelengths(args.wavelengths)
        if args.command == 'spectrum':
            _spectrum_command(args, tiff_files, wavelengths)
        else:
            _histogram_command(args, tiff_files, wavelengths)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("\nDone!")


if __name__ == '__main__':
    main()
