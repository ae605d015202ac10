"""Atomic filesystem operations for render artifacts and structured inputs.

Provides:
    - Atomic writes: tmp file → fsync → rename (readers never see partial files)
    - Atomic PNG save from numpy RGBA/RGB arrays
    - PNG load into numpy RGBA arrays
    - YAML load (pipeline config) and JSON load (theme catalog and documents)
    - Directory creation with exist_ok semantics

Critical for batch runs:
    - Workers write per-slug artifacts atomically
    - An interrupted batch leaves only complete PNG/report files behind
    - Directory creation is idempotent and safe under concurrent first use

All paths use pathlib.Path.

Usage:
    from themeshot.utils import fs
    fs.atomic_save_image(pixels, screenshots_dir / "ocean-dark.png")
    fs.atomic_write_text(screenshots_dir / "comparison-report.txt", text)
    catalog = fs.load_json(themes_dir / "theme-list.json")
"""

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import yaml
from PIL import Image



PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create directory p (and parents) if missing; return it as a Path.

    Safe when several workers race to create the same output directory.
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


@contextmanager
def _staged(path: Path, tmp_name: str) -> Iterator[Path]:
    """Yield a sibling temp path; on success rename it over ``path``.

    The temp file lives in the target directory so the final rename stays on
    one filesystem. On failure the temp file is removed and OSError is raised
    with the target path in the message.
    """
    ensure_dir(path.parent)
    tmp = path.with_name(tmp_name)
    try:
        yield tmp
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise OSError(f"Atomic write of {path} failed: {e}") from e


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path`` via tmp file + fsync + rename."""
    path = Path(path)
    with _staged(path, path.name + ".tmp") as tmp:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Text variant of atomic_write_bytes (reports, logs)."""
    atomic_write_bytes(path, text.encode(encoding))


def atomic_save_image(
    img: np.ndarray,
    path: PathLike,
    pil_kwargs: Optional[Dict[str, Any]] = None,
) -> None:
    """Save a pixel array atomically.

    Parameters
    ----------
    img : np.ndarray
        (H, W, 4) RGBA, (H, W, 3) RGB or (H, W) gray; non-uint8 input is
        clipped to [0, 255]
    path : str or Path
        Target; the suffix selects the format (.png for every pipeline artifact)
    pil_kwargs : dict, optional
        Forwarded to ``PIL.Image.Image.save`` (e.g. ``compress_level=6``)
    """
    path = Path(path)
    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[..., 0]
    pil_img = Image.fromarray(np.ascontiguousarray(img))

    # PIL picks the encoder from the suffix, so the temp name keeps it
    with _staged(path, f"{path.stem}.tmp{path.suffix}") as tmp:
        pil_img.save(tmp, **(pil_kwargs or {}))


def load_image(path: PathLike) -> np.ndarray:
    """Decode an image file into an (H, W, 4) uint8 RGBA array.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    OSError
        If Pillow cannot decode it (``PIL.UnidentifiedImageError`` is an OSError)
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as im:
        return np.array(im.convert("RGBA"), dtype=np.uint8)


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``yaml.safe_load``.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    yaml.YAMLError
        If parsing fails; the message names the file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse {path}: {e}") from e


def load_json(path: PathLike) -> Any:
    """Parse a JSON file (theme-list.json, ``<slug>.theme.json``).

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    json.JSONDecodeError
        If parsing fails; the message names the file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise json.JSONDecodeError(f"Failed to parse {path}: {e.msg}", e.doc, e.pos) from e
