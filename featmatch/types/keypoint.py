"""Keypoint and binary descriptor value types."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from featmatch.exceptions import PreconditionError

WORD_BITS = 64
WORD_BYTES = WORD_BITS // 8


@dataclass(frozen=True)
class Keypoint:
    """
    A point of interest in an image.

    Attributes:
        point: (x, y) location; +x points right, +y points down
        response: Detector response magnitude
        size: Radius of the support region in pixels
        octave: Scale-space level the keypoint was detected in
        class_id: Classification identifier
    """
    point: Tuple[float, float]
    response: float = 0.0
    size: float = 0.0
    octave: int = 0
    class_id: int = 0

    @classmethod
    def from_cv2(cls, keypoint: cv2.KeyPoint) -> 'Keypoint':
        """Convert an OpenCV keypoint (whose size is a diameter)."""
        return cls(
            point=(float(keypoint.pt[0]), float(keypoint.pt[1])),
            response=float(keypoint.response),
            size=float(keypoint.size) / 2.0,
            octave=int(keypoint.octave),
            class_id=int(keypoint.class_id)
        )

    def to_cv2(self) -> cv2.KeyPoint:
        """Convert to an OpenCV keypoint."""
        return cv2.KeyPoint(self.point[0], self.point[1], self.size * 2.0,
                            -1, self.response, self.octave, self.class_id)


def keypoints_from_cv2(keypoints: Iterable[cv2.KeyPoint]) -> List[Keypoint]:
    """Convert a sequence of OpenCV keypoints."""
    return [Keypoint.from_cv2(kp) for kp in keypoints]


def keypoints_to_array(keypoints: Sequence[Keypoint]) -> np.ndarray:
    """Stack keypoint locations into an (N, 2) float64 array."""
    if len(keypoints) == 0:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([kp.point for kp in keypoints], dtype=np.float64)


class Descriptor:
    """
    Immutable fixed-length bit vector.

    Bits are packed most-significant first into 64-bit words held as Python
    ints. The last word is zero padded, so XOR of two equal-length
    descriptors never sets a padding bit.
    """

    __slots__ = ('_words', '_n_bits')

    def __init__(self, words: Sequence[int], n_bits: int):
        n_words = -(-n_bits // WORD_BITS)
        if n_bits < 0 or len(words) != n_words:
            raise PreconditionError(
                f"{len(words)} words cannot hold a {n_bits}-bit descriptor"
            )
        words = tuple(int(w) for w in words)
        if any(not 0 <= w < 1 << WORD_BITS for w in words):
            raise PreconditionError("Descriptor words must be unsigned 64-bit values")
        padding = n_words * WORD_BITS - n_bits
        if words and words[-1] & ((1 << padding) - 1):
            raise PreconditionError(
                f"Padding bits past bit {n_bits} must be zero"
            )
        object.__setattr__(self, '_words', words)
        object.__setattr__(self, '_n_bits', int(n_bits))

    def __setattr__(self, name, value):
        raise AttributeError("Descriptor is immutable")

    def __reduce__(self):
        return (Descriptor, (self._words, self._n_bits))

    @classmethod
    def from_bits(cls, bits: Iterable) -> 'Descriptor':
        """Build a descriptor from a sequence of truthy/falsy bit values."""
        if not isinstance(bits, np.ndarray):
            bits = list(bits)
        bits = np.asarray(bits).astype(bool).ravel()
        n_bits = bits.size
        n_words = -(-n_bits // WORD_BITS)

        padded = np.zeros(n_words * WORD_BITS, dtype=np.uint8)
        padded[:n_bits] = bits
        packed = np.packbits(padded).tobytes()

        words = [
            int.from_bytes(packed[k * WORD_BYTES:(k + 1) * WORD_BYTES], 'big')
            for k in range(n_words)
        ]
        return cls(words, n_bits)

    @classmethod
    def from_bytes(cls, data, n_bits: Optional[int] = None) -> 'Descriptor':
        """
        Build a descriptor from packed bytes.

        Args:
            data: uint8 array laid out as an OpenCV binary descriptor row
            n_bits: Number of meaningful bits; defaults to 8 * len(data)

        Returns:
            Descriptor
        """
        data = np.asarray(data, dtype=np.uint8).ravel()
        total_bits = data.size * 8
        if n_bits is None:
            n_bits = total_bits
        if not 0 <= n_bits <= total_bits:
            raise PreconditionError(
                f"Cannot take {n_bits} bits from {data.size} bytes"
            )
        return cls.from_bits(np.unpackbits(data)[:n_bits])

    @property
    def words(self) -> Tuple[int, ...]:
        return self._words

    @property
    def n_bits(self) -> int:
        return self._n_bits

    def to_bits(self) -> np.ndarray:
        """Unpack into a uint8 array of 0/1 values of length n_bits."""
        raw = b''.join(w.to_bytes(WORD_BYTES, 'big') for w in self._words)
        return np.unpackbits(np.frombuffer(raw, dtype=np.uint8))[:self._n_bits]

    def __len__(self) -> int:
        return self._n_bits

    def __eq__(self, other) -> bool:
        if not isinstance(other, Descriptor):
            return NotImplemented
        return self._n_bits == other._n_bits and self._words == other._words

    def __hash__(self) -> int:
        return hash((self._n_bits, self._words))

    def __repr__(self) -> str:
        return f"Descriptor(n_bits={self._n_bits})"


def descriptors_from_array(array: Optional[np.ndarray],
                           n_bits: Optional[int] = None) -> List[Descriptor]:
    """Convert an (N, B) uint8 descriptor matrix, e.g. from ORB or AKAZE."""
    if array is None:
        return []
    array = np.asarray(array, dtype=np.uint8)
    if array.ndim != 2:
        raise PreconditionError(f"Expected a 2D descriptor array, got shape {array.shape}")
    return [Descriptor.from_bytes(row, n_bits) for row in array]
