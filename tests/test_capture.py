"""Tests for capture module."""

import io

import pytest
from PIL import Image

from instanza.capture import load_capture, square_crop
from instanza.compositor import PhotoDecodeError
from instanza.utils import to_data_uri

ORIENTATION_TAG = 0x0112


def banded(size, left_color, right_color, band):
    """Image whose leftmost `band` columns use left_color."""
    img = Image.new('RGB', size, right_color)
    img.paste(left_color, (0, 0, band, size[1]))
    return img


class TestSquareCrop:
    """Tests for centre square cropping."""

    def test_landscape_crops_sides(self):
        img = banded((1600, 900), (0, 255, 0), (255, 0, 0), 300)

        square = square_crop(img)

        assert square.size == (1500, 1500)
        # The green band lies outside the centred 900px square
        assert square.getpixel((5, 750)) == pytest.approx((255, 0, 0), abs=8)

    def test_portrait_crops_top_and_bottom(self):
        img = Image.new('RGB', (600, 1000), (0, 0, 255))
        img.paste((0, 255, 0), (0, 0, 600, 150))

        square = square_crop(img, size=300)

        assert square.size == (300, 300)
        assert square.getpixel((150, 2)) == pytest.approx((0, 0, 255), abs=8)

    def test_custom_size(self):
        assert square_crop(Image.new('RGB', (50, 50)), size=64).size == (64, 64)


class TestLoadCapture:
    """Tests for turning uploads into square captures."""

    def test_returns_square_jpeg(self):
        buffer = io.BytesIO()
        Image.new('RGB', (1920, 1080), (90, 90, 90)).save(buffer, format='PNG')

        capture = load_capture(buffer.getvalue())

        with Image.open(io.BytesIO(capture)) as img:
            assert img.format == 'JPEG'
            assert img.size == (1500, 1500)

    def test_accepts_data_uri_and_path(self, tmp_path):
        buffer = io.BytesIO()
        Image.new('RGB', (400, 300)).save(buffer, format='JPEG')
        path = tmp_path / 'upload.jpg'
        path.write_bytes(buffer.getvalue())

        from_uri = load_capture(to_data_uri(buffer.getvalue()), size=200)
        from_path = load_capture(path, size=200)

        for capture in (from_uri, from_path):
            with Image.open(io.BytesIO(capture)) as img:
                assert img.size == (200, 200)

    def test_applies_exif_orientation(self):
        """Orientation 6 turns the stored left edge into the visual top."""
        stored = banded((200, 100), (255, 0, 0), (0, 0, 255), 100)
        exif = Image.Exif()
        exif[ORIENTATION_TAG] = 6
        buffer = io.BytesIO()
        stored.save(buffer, format='JPEG', exif=exif)

        capture = load_capture(buffer.getvalue(), size=100)

        with Image.open(io.BytesIO(capture)) as img:
            top = img.getpixel((50, 5))
            bottom = img.getpixel((50, 95))
        assert top[0] > top[2]
        assert bottom[2] > bottom[0]

    def test_garbage_raises(self):
        with pytest.raises(PhotoDecodeError):
            load_capture(b"not an image at all")
