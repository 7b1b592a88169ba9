#!/usr/bin/env python3
"""
INSTANZA Compositor - Instant Print Developer
Composites a square photo, a handwritten caption, a date stamp and the
decorative frame into the final instant-print image.
"""

import io
import logging
import math
import random
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageEnhance, ImageFilter

from instanza.assets import caption_font_path, load_font, load_frame, stamp_font_path
from instanza.utils import ImageSource, read_image_bytes

logger = logging.getLogger(__name__)

# Canvas used when the frame asset is unavailable
DEFAULT_CANVAS_SIZE = (1200, 1480)
PAPER_COLOR = (253, 253, 253, 255)
BORDER_COLOR = (255, 255, 255, 255)

# Photo window, as fractions of the canvas
SIDE_MARGIN_RATIO = 0.04
TOP_MARGIN_RATIO = 0.04
PHOTO_SIZE_RATIO = 0.92

# Vintage analog filter chain, applied in this order
CONTRAST = 1.06
BRIGHTNESS = 1.02
SATURATION = 0.85
SEPIA = 0.08
BLUR_RADIUS = 0.2

VIGNETTE_RADIUS_RATIO = 0.8
VIGNETTE_STRENGTH = 0.18

STAMP_COLOR = (204, 27, 66)
STAMP_OPACITY = 0.5
STAMP_SIZE_RATIO = 0.021
STAMP_X_RATIO = 0.98
STAMP_X_NUDGE = 7
STAMP_Y_RATIO = 0.22

CAPTION_COLOR = (29, 78, 216)
CAPTION_OPACITY = 0.85
CAPTION_SIZE_RATIO = 0.065
CAPTION_WIDTH_RATIO = 0.82
CAPTION_AREA_RATIO = 0.45
CAPTION_LINE_SPACING = 1.1
CAPTION_MAX_TILT = 0.01  # radians, either direction

QUOTE_CHARS = '"\'“”„‘’'
JPEG_QUALITY = 95


class PhotoDecodeError(ValueError):
    """Raised when the captured photo cannot be decoded."""


@dataclass(frozen=True)
class PolaroidLayout:
    """Geometry of one instant print, derived from the canvas size."""

    width: int
    height: int
    side_margin: float
    top_margin: float
    photo_size: float

    @property
    def photo_rect(self) -> Tuple[float, float, float, float]:
        """Photo window as (x, y, width, height)."""
        return (self.side_margin, self.top_margin, self.photo_size, self.photo_size)

    @property
    def photo_box(self) -> Tuple[int, int, int, int]:
        """Photo window snapped to whole pixels as (left, top, right, bottom)."""
        left = round(self.side_margin)
        top = round(self.top_margin)
        size = round(self.photo_size)
        return (left, top, left + size, top + size)

    @property
    def bottom_area_start(self) -> float:
        return self.top_margin + self.photo_size

    @property
    def bottom_area_height(self) -> float:
        return self.height - self.bottom_area_start

    @property
    def caption_baseline(self) -> float:
        return self.bottom_area_start + self.bottom_area_height * CAPTION_AREA_RATIO

    @property
    def caption_font_size(self) -> int:
        return math.floor(self.width * CAPTION_SIZE_RATIO)

    @property
    def caption_max_width(self) -> float:
        return self.width * CAPTION_WIDTH_RATIO

    @property
    def stamp_font_size(self) -> int:
        return math.floor(self.width * STAMP_SIZE_RATIO)

    @property
    def stamp_center(self) -> Tuple[float, float]:
        return (
            self.width * STAMP_X_RATIO - STAMP_X_NUDGE,
            self.top_margin + self.photo_size * STAMP_Y_RATIO,
        )


@dataclass(frozen=True)
class CaptionLine:
    """One wrapped caption line, centred on (x, baseline) and tilted in radians."""

    text: str
    x: float
    baseline: float
    tilt: float


def compute_layout(width: int, height: int) -> PolaroidLayout:
    """Compute the print geometry. The photo window is always square."""
    return PolaroidLayout(
        width=width,
        height=height,
        side_margin=width * SIDE_MARGIN_RATIO,
        top_margin=height * TOP_MARGIN_RATIO,
        photo_size=width * PHOTO_SIZE_RATIO,
    )


def format_date_stamp(moment: datetime) -> str:
    """
    Format the side date stamp as DD/MM/YYYY H:MM.

    The hour is intentionally not zero-padded while day, month and minute are.
    """
    return f"{moment.day:02d}/{moment.month:02d}/{moment.year} {moment.hour}:{moment.minute:02d}"


def clean_caption(caption: Optional[str]) -> str:
    """Remove every double and single quote character from the caption."""
    return (caption or '').translate({ord(ch): None for ch in QUOTE_CHARS})


def wrap_caption(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """
    Greedily wrap words into lines no wider than max_width.

    Words are never split or dropped; a single word wider than max_width is
    emitted on a line of its own.

    Args:
        text: Caption text (already cleaned)
        measure: Returns the rendered width of a string
        max_width: Maximum line width in pixels

    Returns:
        Wrapped lines, empty if the text holds no words
    """
    lines = []
    current = ''

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate

    if current:
        lines.append(current)

    return lines


def sepia_matrix(amount: float) -> Tuple[float, ...]:
    """RGB -> RGB conversion matrix for a partial sepia tint (0 = none, 1 = full)."""
    keep = 1 - amount
    return (
        0.393 + 0.607 * keep, 0.769 - 0.769 * keep, 0.189 - 0.189 * keep, 0,
        0.349 - 0.349 * keep, 0.686 + 0.314 * keep, 0.168 - 0.168 * keep, 0,
        0.272 - 0.272 * keep, 0.534 - 0.534 * keep, 0.131 + 0.869 * keep, 0,
    )


def apply_vintage_filter(photo: Image.Image) -> Image.Image:
    """Apply contrast, brightness, desaturation, sepia and blur, in that order."""
    filtered = ImageEnhance.Contrast(photo).enhance(CONTRAST)
    filtered = ImageEnhance.Brightness(filtered).enhance(BRIGHTNESS)
    filtered = ImageEnhance.Color(filtered).enhance(SATURATION)
    filtered = filtered.convert('RGB', sepia_matrix(SEPIA))
    return filtered.filter(ImageFilter.GaussianBlur(BLUR_RADIUS))


def vignette_mask(size: int, radius: float, strength: float) -> Image.Image:
    """
    Build a size x size opacity mask for the vignette.

    Opacity grows linearly from 0 at the centre to `strength` at `radius`.
    """
    diameter = max(1, round(radius * 2))
    # radial_gradient reaches 255 at half its width
    gradient = Image.radial_gradient('L').resize((diameter, diameter), Image.Resampling.BILINEAR)
    offset = (diameter - size) // 2
    mask = gradient.crop((offset, offset, offset + size, offset + size))
    return mask.point(lambda value: round(value * strength))


def decode_photo(source: Union[ImageSource, Image.Image]) -> Image.Image:
    """
    Decode the captured photo into an RGB image.

    Args:
        source: Encoded bytes, a data URI, a file path or a PIL image

    Returns:
        Fully loaded RGB image

    Raises:
        PhotoDecodeError: if the photo cannot be read or decoded
    """
    if isinstance(source, Image.Image):
        return source.convert('RGB')

    try:
        data = read_image_bytes(source)
        with Image.open(io.BytesIO(data)) as img:
            return img.convert('RGB')
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise PhotoDecodeError(f"Could not decode photo: {e}") from e


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buffer = io.BytesIO()
    image.convert('RGB').save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


class PolaroidCompositor:
    """Develops a photo and caption into a finished instant print."""

    def __init__(
        self,
        frame_source: Optional[Union[str, Path]] = None,
        caption_font: Optional[str] = None,
        stamp_font: Optional[str] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the Compositor.

        Args:
            frame_source: Frame overlay path or URL (defaults to INSTANZA_FRAME_PATH)
            caption_font: Handwriting font path (defaults to INSTANZA_CAPTION_FONT)
            stamp_font: Date stamp font path (defaults to INSTANZA_STAMP_FONT)
            rng: Source of the per-line caption tilt
            clock: Returns the instant printed in the date stamp
        """
        self.frame_source = frame_source
        self.caption_font = caption_font or caption_font_path()
        self.stamp_font = stamp_font or stamp_font_path()
        self.rng = rng or random.Random()
        self.clock = clock or datetime.now

    def compose(self, photo: Union[ImageSource, Image.Image], caption: Optional[str]) -> bytes:
        """
        Develop the final instant print.

        Args:
            photo: Square photo as bytes, data URI, path or PIL image
            caption: Caption text, may be empty

        Returns:
            JPEG bytes of the finished print

        Raises:
            PhotoDecodeError: if the photo cannot be decoded
        """
        return encode_jpeg(self.render(photo, caption))

    def render(self, photo: Union[ImageSource, Image.Image], caption: Optional[str]) -> Image.Image:
        """Same as compose() but returns the unencoded RGB canvas."""
        photo_img = decode_photo(photo)
        frame = load_frame(self.frame_source)

        width, height = frame.size if frame is not None else DEFAULT_CANVAS_SIZE
        layout = compute_layout(width, height)

        canvas = Image.new('RGBA', (width, height), PAPER_COLOR)
        self._draw_photo(canvas, photo_img, layout)
        self._draw_vignette(canvas, layout)

        if frame is not None:
            canvas.alpha_composite(frame)
        else:
            logger.warning("Drawing fallback frame border")
            self._draw_fallback_border(canvas, layout)

        try:
            self._draw_date_stamp(canvas, layout)
        except Exception as e:
            logger.error("Error drawing date stamp: %s", e)

        try:
            self._draw_caption(canvas, caption, layout)
        except Exception as e:
            logger.error("Error drawing caption: %s", e)

        return canvas.convert('RGB')

    def layout_caption(self, caption: Optional[str], layout: PolaroidLayout) -> List[CaptionLine]:
        """
        Wrap the caption and position each line below the photo.

        Draws one tilt per line from the injected random source.
        """
        font = load_font(self.caption_font, layout.caption_font_size)
        lines = wrap_caption(clean_caption(caption), font.getlength, layout.caption_max_width)

        center_x = layout.width / 2
        baseline = layout.caption_baseline - (len(lines) - 1) * layout.caption_font_size * 0.5

        placed = []
        for text in lines:
            tilt = (self.rng.random() - 0.5) * 2 * CAPTION_MAX_TILT
            placed.append(CaptionLine(text=text, x=center_x, baseline=baseline, tilt=tilt))
            baseline += layout.caption_font_size * CAPTION_LINE_SPACING
        return placed

    def _draw_photo(self, canvas: Image.Image, photo: Image.Image, layout: PolaroidLayout):
        left, top, right, bottom = layout.photo_box
        scaled = photo.resize((right - left, bottom - top), Image.Resampling.LANCZOS)
        canvas.paste(apply_vintage_filter(scaled), (left, top))

    def _draw_vignette(self, canvas: Image.Image, layout: PolaroidLayout):
        left, top, right, bottom = layout.photo_box
        mask = vignette_mask(
            right - left,
            layout.photo_size * VIGNETTE_RADIUS_RATIO,
            VIGNETTE_STRENGTH
        )
        # Pasting through the mask keeps the darkening inside the photo window
        canvas.paste((0, 0, 0, 255), layout.photo_box, mask)

    def _draw_fallback_border(self, canvas: Image.Image, layout: PolaroidLayout):
        # A stroke of side_margin centred on an inset of side_margin / 2
        # covers exactly the outer side_margin band of the canvas.
        draw = ImageDraw.Draw(canvas)
        draw.rectangle(
            (0, 0, layout.width - 1, layout.height - 1),
            outline=BORDER_COLOR,
            width=max(1, round(layout.side_margin))
        )

    def _draw_date_stamp(self, canvas: Image.Image, layout: PolaroidLayout):
        text = format_date_stamp(self.clock())
        font = load_font(self.stamp_font, layout.stamp_font_size)
        fill = STAMP_COLOR + (round(255 * STAMP_OPACITY),)

        left, top, right, bottom = font.getbbox(text, anchor='mm')
        label = Image.new('RGBA', (math.ceil(right - left) + 2, math.ceil(bottom - top) + 2), (0, 0, 0, 0))
        ImageDraw.Draw(label).text((1 - left, 1 - top), text, font=font, fill=fill, anchor='mm')

        # Negative angles rotate clockwise in Pillow
        label = label.rotate(-90, expand=True)
        center_x, center_y = layout.stamp_center
        position = (round(center_x - label.width / 2), round(center_y - label.height / 2))
        canvas.paste(label, position, label)

    def _draw_caption(self, canvas: Image.Image, caption: Optional[str], layout: PolaroidLayout):
        font = load_font(self.caption_font, layout.caption_font_size)
        fill = CAPTION_COLOR + (round(255 * CAPTION_OPACITY),)

        for line in self.layout_caption(caption, layout):
            left, top, right, bottom = font.getbbox(line.text, anchor='ms')
            half_width = math.ceil(max(-left, right)) + 2
            # Room for the tilt to lift the line ends
            half_height = math.ceil(max(-top, bottom) + half_width * CAPTION_MAX_TILT) + 2

            layer = Image.new('RGBA', (half_width * 2, half_height * 2), (0, 0, 0, 0))
            ImageDraw.Draw(layer).text((half_width, half_height), line.text, font=font, fill=fill, anchor='ms')
            layer = layer.rotate(
                -math.degrees(line.tilt),
                resample=Image.Resampling.BICUBIC,
                center=(half_width, half_height)
            )
            position = (round(line.x) - half_width, round(line.baseline) - half_height)
            canvas.paste(layer, position, layer)


def main():
    """CLI interface for the Compositor."""
    from dotenv import load_dotenv

    if len(sys.argv) != 4:
        print("Usage: compositor.py <photo_path> <caption> <output_path>", file=sys.stderr)
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    photo_path = Path(sys.argv[1])
    caption = sys.argv[2]
    output_path = Path(sys.argv[3])

    if not photo_path.exists():
        print(f"Error: Photo not found: {photo_path}", file=sys.stderr)
        sys.exit(1)

    compositor = PolaroidCompositor()
    try:
        output_path.write_bytes(compositor.compose(photo_path, caption))
    except PhotoDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Instant print saved to: {output_path}")


if __name__ == '__main__':
    main()
