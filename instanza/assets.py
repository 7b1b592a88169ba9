"""
INSTANZA Assets - Frame overlay and font loading.
Both loaders degrade gracefully: a missing frame yields None and a missing
font yields Pillow's built-in font.
"""

import io
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import httpx
from PIL import Image, ImageFont

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent / 'data'
DEFAULT_FRAME_PATH = ASSETS_DIR / 'polaroid.png'
DEFAULT_CAPTION_FONT = ASSETS_DIR / 'fonts' / 'ReenieBeanie-Regular.ttf'
DEFAULT_STAMP_FONT = ASSETS_DIR / 'fonts' / 'Doto-Black.ttf'

FRAME_FETCH_TIMEOUT = 10.0


def default_frame_source() -> str:
    return os.getenv('INSTANZA_FRAME_PATH') or str(DEFAULT_FRAME_PATH)


def _fetch_frame_bytes(source: str) -> bytes:
    if source.startswith(('http://', 'https://')):
        resp = httpx.get(source, timeout=FRAME_FETCH_TIMEOUT, follow_redirects=True)
        resp.raise_for_status()
        return resp.content
    return Path(source).read_bytes()


def load_frame(source: Optional[Union[str, Path]] = None) -> Optional[Image.Image]:
    """
    Load the decorative frame overlay.

    Args:
        source: File path or http(s) URL. Defaults to INSTANZA_FRAME_PATH or
            the bundled polaroid.png.

    Returns:
        A fully loaded RGBA image, or None if the frame could not be fetched
        or decoded. Never raises.
    """
    source = str(source) if source is not None else default_frame_source()

    try:
        data = _fetch_frame_bytes(source)
        with Image.open(io.BytesIO(data)) as img:
            frame = img.convert('RGBA')
    except Exception as e:
        logger.warning("Frame asset unavailable (%s): %s", source, e)
        return None

    logger.debug("Loaded frame %s (%dx%d)", source, frame.width, frame.height)
    return frame


@lru_cache(maxsize=32)
def load_font(path: Optional[str], size: int) -> ImageFont.FreeTypeFont:
    """
    Load a TrueType font at the given pixel size.

    Falls back to Pillow's scalable default font when the file is missing or
    unreadable. Results are cached; fonts are never mutated after loading.
    """
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as e:
            logger.warning("Font %s unavailable, using default font: %s", path, e)
    return ImageFont.load_default(size=size)


def caption_font_path() -> str:
    return os.getenv('INSTANZA_CAPTION_FONT') or str(DEFAULT_CAPTION_FONT)


def stamp_font_path() -> str:
    return os.getenv('INSTANZA_STAMP_FONT') or str(DEFAULT_STAMP_FONT)
