"""SHA-256 fingerprints for rendered pixel buffers.

Provides:
    - sha256_array(): Hash pixel buffers (shape + dtype + values)

Used for:
    - Logging a fingerprint per rendered screenshot, so two runs can be
      compared for byte-identical output without re-diffing
    - Determinism checks in tests

Results are hex strings (64 chars).
"""

import hashlib

import numpy as np


def sha256_array(arr: np.ndarray) -> str:
    """Compute SHA-256 hash of an array's shape, dtype and values.

    Parameters
    ----------
    arr : np.ndarray
        Any array (pixel buffers are (H, W, 4) uint8)

    Returns
    -------
    str
        SHA-256 hex digest

    Notes
    -----
    Shape and dtype are folded in so that a 2×8 and a 4×4 buffer with the
    same bytes hash differently.
    """
    hasher = hashlib.sha256()
    hasher.update(str(arr.shape).encode('utf-8'))
    hasher.update(str(arr.dtype).encode('utf-8'))
    hasher.update(np.ascontiguousarray(arr).tobytes())
    return hasher.hexdigest()
