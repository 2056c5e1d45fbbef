"""
Pytest fixtures for imgopt tests.
"""

import os

import pytest
from PIL import Image

from imgopt.derivative import TargetFormat
from imgopt.encoders import Encoder


# Fixed source mtime (whole seconds, so every filesystem stores it exactly)
T0 = 1_700_000_000 * 10**9


class FakeEncoder(Encoder):
    """Encoder returning payloads of scripted sizes and recording qualities."""

    def __init__(
        self,
        target_format: TargetFormat = TargetFormat.WEBP,
        sizes=None,
        default_size: int = 10,
        available: bool = True,
        error: Exception = None
    ):
        super().__init__()
        self.target_format = target_format
        self.sizes = sizes or {}
        self.default_size = default_size
        self.available = available
        self.error = error
        self.qualities = []

    def is_available(self) -> bool:
        return self.available

    def save_options(self, quality: int) -> dict:
        return {'quality': quality}

    def encode(self, img, quality: int) -> bytes:
        self.qualities.append(quality)
        if self.error is not None:
            raise self.error
        return b'x' * self.sizes.get(quality, self.default_size)


def write_image(path, size=(1200, 860), mode='RGB', fmt='PNG', mtime_ns=T0, **save_kwargs):
    """Write a smooth gradient image and pin its mtime."""
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    img = Image.linear_gradient('L').resize(size).convert(mode)
    if fmt == 'PNG':
        save_kwargs.setdefault('compress_level', 0)
    img.save(str(path), format=fmt, **save_kwargs)
    if mtime_ns is not None:
        os.utime(str(path), ns=(mtime_ns, mtime_ns))
    return str(path)


@pytest.fixture
def fake_encoder():
    """Fixture providing the FakeEncoder class."""
    return FakeEncoder


@pytest.fixture
def image_writer():
    """Fixture providing the write_image helper."""
    return write_image


@pytest.fixture
def source_mtime_ns():
    """Fixture providing the mtime pinned on generated sources."""
    return T0


@pytest.fixture
def web_root(tmp_path):
    """Fixture providing an empty web root directory."""
    root = tmp_path / 'www'
    root.mkdir()
    return str(root)


@pytest.fixture
def extra_png(web_root):
    """Fixture providing /images/product/extra.png (1200x860, uncompressed)."""
    return write_image(os.path.join(web_root, 'images', 'product', 'extra.png'))


@pytest.fixture
def small_png(tmp_path):
    """Fixture providing a small uncompressed PNG at an absolute path."""
    return write_image(tmp_path / 'img' / 'small.png', size=(40, 30))


@pytest.fixture
def sample_jpeg(tmp_path):
    """Fixture providing a JPEG source."""
    return write_image(tmp_path / 'img' / 'photo.JPG', size=(300, 200), fmt='JPEG', quality=95)


@pytest.fixture
def palette_png(tmp_path):
    """Fixture providing a palette PNG with a transparent colour."""
    path = tmp_path / 'img' / 'icon.png'
    os.makedirs(str(path.parent), exist_ok=True)
    img = Image.new('P', (32, 32), 0)
    img.putpalette([0, 0, 0, 255, 0, 0] + [0] * (254 * 3))
    img.paste(1, (8, 8, 24, 24))
    img.save(str(path), transparency=0)
    return str(path)


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
