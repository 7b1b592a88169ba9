"""Shared fixtures for INSTANZA tests."""

import io
import random
from datetime import datetime

import pytest
from PIL import Image

from instanza.compositor import PolaroidCompositor, compute_layout


def encode(img, fmt='JPEG'):
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def photo_bytes():
    """A square 1500x1500 capture."""
    return encode(Image.new('RGB', (1500, 1500), (200, 120, 80)))


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 5, 3, 9, 7)


@pytest.fixture
def missing_frame(tmp_path):
    return tmp_path / 'no-such-frame.png'


def make_frame(path, size=(1200, 1480), color=(240, 230, 210, 255)):
    """Opaque frame with a transparent photo window."""
    frame = Image.new('RGBA', size, color)
    frame.paste((0, 0, 0, 0), compute_layout(*size).photo_box)
    frame.save(path, format='PNG')
    return path


@pytest.fixture
def frame_path(tmp_path):
    return make_frame(tmp_path / 'polaroid.png')


@pytest.fixture
def compositor(missing_frame, fixed_clock):
    """Compositor without a frame asset, seeded and on a fixed clock."""
    return PolaroidCompositor(frame_source=missing_frame, rng=random.Random(42), clock=fixed_clock)


@pytest.fixture
def frame_factory(tmp_path):
    """Build frame assets of arbitrary size inside tmp_path."""
    def factory(size=(1200, 1480), color=(240, 230, 210, 255), name='frame.png'):
        return make_frame(tmp_path / name, size, color)
    return factory
