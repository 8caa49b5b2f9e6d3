"""
Read-only view over a hyperspectral image cube
"""

from enum import Enum
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidShapeError, UnsupportedSampleEncodingError

MAX_CHANNELS = 511


class SampleEncoding(Enum):
    """
    Closed set of sample types a cube may be stored in.

    Each member carries its numpy dtype and whether the histogram builder
    has a storage mapping for it.
    """

    UINT8 = ('uint8', True)
    UINT16 = ('uint16', True)
    UINT32 = ('uint32', False)
    INT8 = ('int8', True)
    INT16 = ('int16', True)
    INT32 = ('int32', True)
    FLOAT16 = ('float16', True)
    FLOAT32 = ('float32', True)
    FLOAT64 = ('float64', True)

    def __init__(self, dtype_name: str, histogram_supported: bool):
        self.dtype = np.dtype(dtype_name)
        self.histogram_supported = histogram_supported

    @property
    def is_float(self) -> bool:
        return self.dtype.kind == 'f'

    @property
    def is_signed(self) -> bool:
        return self.dtype.kind in ('i', 'f')

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize

    @property
    def max_value(self) -> float:
        """Largest value representable by the sample type."""
        if self.is_float:
            return float(np.finfo(self.dtype).max)
        return float(np.iinfo(self.dtype).max)

    @classmethod
    def from_dtype(cls, dtype) -> 'SampleEncoding':
        """
        Resolve a numpy dtype to its encoding.

        Raises
        ------
        UnsupportedSampleEncodingError
            If the dtype is not one of the supported sample types
        """
        # byte order is a storage detail, not part of the sample type
        dtype = np.dtype(dtype).newbyteorder('=')
        for encoding in cls:
            if encoding.dtype == dtype:
                return encoding
        raise UnsupportedSampleEncodingError(f"Unsupported sample type: {dtype}")

    def histogram_type(self, channels: int) -> Tuple[np.dtype, int]:
        """
        Storage descriptor used when binning samples of this encoding.

        Parameters
        ----------
        channels : int
            Number of interleaved channels

        Returns
        -------
        tuple
            (dtype, channels)
        """
        if channels < 1 or channels > MAX_CHANNELS:
            raise InvalidShapeError(f"Invalid channel count: {channels}")
        if not self.histogram_supported:
            kind = 'floating point' if self.is_float else 'signed integer' if self.is_signed else 'unsigned integer'
            raise UnsupportedSampleEncodingError(
                f"Invalid bitdepth for {kind} data type: {self.itemsize} bytes"
            )
        return self.dtype, channels


class ProcessingMode(Enum):
    """Processing state of the measurement a cube was produced from."""

    PREVIEW = 'preview'
    RAW = 'raw'
    DARK_SUBTRACT = 'dark_subtract'
    REFLECTANCE = 'reflectance'
    SPECTRAL_RADIANCE = 'spectral_radiance'

    @classmethod
    def parse(cls, mode: Union[str, 'ProcessingMode']) -> 'ProcessingMode':
        if isinstance(mode, cls):
            return mode
        key = str(mode).strip().lower().replace('-', '_')
        try:
            return cls(key)
        except ValueError:
            choices = ', '.join(m.value for m in cls)
            raise ValueError(f"Unknown processing mode '{mode}'. Choose from: {choices}") from None


class CubeView:
    """
    Immutable view over an interleaved hyperspectral cube.

    Samples are stored row-major and interleaved by band, so the sample of
    pixel (x, y) in band z sits at flat index ``(y * width + x) * channels + z``.

    Parameters
    ----------
    data : array-like
        Either a 3D array of shape (height, width, channels) or a flat
        buffer of length width * height * channels
    wavelength : sequence of int
        Wavelength label (nm) of every channel
    width, height, channels : int, optional
        Cube dimensions. Required when ``data`` is flat.
    """

    def __init__(
        self,
        data,
        wavelength: Optional[Sequence[int]],
        width: Optional[int] = None,
        height: Optional[int] = None,
        channels: Optional[int] = None
    ):
        array = np.asarray(data)
        self._encoding = SampleEncoding.from_dtype(array.dtype)
        if not array.dtype.isnative:
            array = array.astype(array.dtype.newbyteorder('='))

        if array.ndim == 3:
            shape = array.shape
            expected = (height, width, channels)
            if any(e is not None and e != s for e, s in zip(expected, shape)):
                raise InvalidShapeError(
                    f"Array shape {shape} does not match (height, width, channels) = {expected}"
                )
            height, width, channels = shape
        elif array.ndim == 1:
            if width is None or height is None or channels is None:
                raise InvalidShapeError("width, height and channels are required for a flat buffer")
        else:
            raise InvalidShapeError(f"Expected a 1D buffer or 3D array, got {array.ndim}D")

        width, height, channels = int(width), int(height), int(channels)
        if width <= 1 or height <= 1:
            raise InvalidShapeError(f"Cube must be at least 2x2 pixels, got {width}x{height}")
        if channels < 1 or channels > MAX_CHANNELS:
            raise InvalidShapeError(f"Invalid channel count: {channels}")
        if wavelength is None:
            raise InvalidShapeError("Cube has no wavelength table")

        wavelength = np.asarray(wavelength).ravel()
        if wavelength.dtype.kind not in 'iuf':
            raise InvalidShapeError(f"Wavelength table must be numeric, got {wavelength.dtype}")
        if wavelength.size and not (np.all(np.isfinite(wavelength))
                                    and wavelength.min() >= 0
                                    and wavelength.max() <= np.iinfo(np.uint32).max):
            raise InvalidShapeError("Wavelengths must be non-negative and fit in 32 bits")
        wavelength = wavelength.astype(np.uint32)
        if wavelength.size != channels:
            raise InvalidShapeError(
                f"Wavelength table has {wavelength.size} entries for {channels} channels"
            )

        if array.ndim == 1:
            if array.size != width * height * channels:
                raise InvalidShapeError(
                    f"Buffer holds {array.size} samples, expected {width * height * channels}"
                )
            array = array.reshape(height, width, channels)

        # Read-only view; the caller's buffer keeps its own flags
        view = np.ascontiguousarray(array).view()
        view.setflags(write=False)
        wavelength.setflags(write=False)

        self._data = view
        self._wavelength = wavelength
        self._width = width
        self._height = height
        self._channels = channels

    @classmethod
    def from_stack(cls, stack, wavelength: Optional[Sequence[int]]) -> 'CubeView':
        """
        Build a view from a band-first stack.

        Parameters
        ----------
        stack : np.ndarray
            3D array with shape (channels, height, width), as TIFF stacks are read
        wavelength : sequence of int
            Wavelength label of every slice

        Returns
        -------
        CubeView
        """
        stack = np.asarray(stack)
        if stack.ndim != 3:
            raise InvalidShapeError(f"Expected a 3D stack, got {stack.ndim}D")
        return cls(np.moveaxis(stack, 0, -1), wavelength)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._height, self._width, self._channels

    @property
    def size(self) -> int:
        """Total number of samples in the cube."""
        return self._width * self._height * self._channels

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def encoding(self) -> SampleEncoding:
        return self._encoding

    @property
    def data(self) -> np.ndarray:
        """Read-only (height, width, channels) array."""
        return self._data

    @property
    def wavelength(self) -> np.ndarray:
        return self._wavelength

    def wavelength_at(self, z: int) -> int:
        return int(self._wavelength[z])

    def sample_at(self, x: int, y: int, z: int):
        if not (0 <= x < self._width and 0 <= y < self._height and 0 <= z < self._channels):
            raise IndexError(f"Sample ({x}, {y}, {z}) outside cube of shape {self.shape}")
        return self._data[y, x, z]

    def __repr__(self):
        return (f"CubeView(width={self._width}, height={self._height}, "
                f"channels={self._channels}, dtype={self.dtype})")
