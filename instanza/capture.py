"""
INSTANZA Capture - Prepares uploaded or captured photos for developing.
Every capture is centre-cropped to a square before it reaches the compositor.
"""

import io
from typing import Union

from PIL import Image, ImageOps

from instanza.compositor import PhotoDecodeError, encode_jpeg
from instanza.utils import ImageSource, read_image_bytes

CAPTURE_SIZE = 1500


def square_crop(image: Image.Image, size: int = CAPTURE_SIZE) -> Image.Image:
    """Centre-crop to the largest square and resample to size x size."""
    side = min(image.width, image.height)
    left = (image.width - side) // 2
    top = (image.height - side) // 2
    square = image.crop((left, top, left + side, top + side))
    return square.resize((size, size), Image.Resampling.LANCZOS)


def load_capture(source: Union[ImageSource, Image.Image], size: int = CAPTURE_SIZE) -> bytes:
    """
    Turn an uploaded photo into the square JPEG capture used by the pipeline.

    EXIF orientation is applied first so phone uploads are not sideways.

    Raises:
        PhotoDecodeError: if the upload cannot be decoded
    """
    if isinstance(source, Image.Image):
        upright = ImageOps.exif_transpose(source).convert('RGB')
    else:
        try:
            data = read_image_bytes(source)
            with Image.open(io.BytesIO(data)) as img:
                upright = ImageOps.exif_transpose(img).convert('RGB')
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise PhotoDecodeError(f"Could not decode capture: {e}") from e

    return encode_jpeg(square_crop(upright, size))
