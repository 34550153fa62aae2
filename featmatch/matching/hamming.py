"""Hamming distance between binary descriptors."""

from typing import Optional

from featmatch.exceptions import PreconditionError
from featmatch.types.keypoint import Descriptor


def hamming_distance(d0: Descriptor, d1: Descriptor,
                     bailout: Optional[int] = None) -> int:
    """
    Count the bit positions in which two descriptors differ.

    Ex.
        0100100
        0100000
        distance = 1

    The descriptors are compared one 64-bit word at a time. As soon as the
    running count exceeds ``bailout`` the partial count is returned; it is
    then larger than ``bailout`` but never larger than the true distance.

    Args:
        d0: First descriptor
        d1: Second descriptor, same length as d0
        bailout: Stop once the count is strictly greater than this; None scans everything

    Returns:
        Number of differing bits, or a partial count above bailout

    Raises:
        PreconditionError: If the descriptors differ in length
    """
    if d0.n_bits != d1.n_bits:
        raise PreconditionError(
            f"Cannot compare a {d0.n_bits}-bit and a {d1.n_bits}-bit descriptor"
        )
    distance = 0
    for w0, w1 in zip(d0.words, d1.words):
        distance += (w0 ^ w1).bit_count()
        if bailout is not None and distance > bailout:
            break
    return distance
