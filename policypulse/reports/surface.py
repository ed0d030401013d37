"""Raster surfaces and their scoped release.

A ``Surface`` is a rendered bitmap (chart snapshot, composed report, or
page image) backed by a Pillow image. Surfaces hold real memory, so every
one acquired during an export is registered with a ``SurfaceScope`` and
released when the scope exits, whatever the exit path.
"""

import io
import logging
from contextlib import ExitStack
from dataclasses import dataclass, field

from PIL import Image

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)


@dataclass(eq=False)
class Surface:
    """An RGB bitmap. ``release()`` frees it; a released surface is unusable."""

    image: Image.Image
    label: str = ""
    released: bool = field(default=False, init=False)

    @classmethod
    def blank(cls, width: int, height: int, label: str = "") -> "Surface":
        """White RGB surface of the given pixel size."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        return cls(Image.new("RGB", (width, height), WHITE), label=label)

    @classmethod
    def from_png(cls, data: bytes, label: str = "") -> "Surface":
        """Decode PNG bytes into an RGB surface (alpha flattened onto white)."""
        with Image.open(io.BytesIO(data)) as decoded:
            decoded.load()
            if decoded.mode in ("RGBA", "LA", "P"):
                rgba = decoded.convert("RGBA")
                image = Image.new("RGB", rgba.size, WHITE)
                image.paste(rgba, mask=rgba.getchannel("A"))
            else:
                image = decoded.convert("RGB")
        return cls(image, label=label)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def release(self) -> None:
        if self.released:
            return
        self.image.close()
        self.released = True
        logger.debug("Released surface %s", self.label or id(self))


class SurfaceScope:
    """Owns every surface acquired during one operation.

    Use as a context manager; on exit (normal, exception, or cancellation)
    every acquired surface is released in reverse acquisition order.
    """

    def __init__(self):
        self._stack = ExitStack()
        self._surfaces: list[Surface] = []

    def __enter__(self) -> "SurfaceScope":
        self._stack.__enter__()
        return self

    def __exit__(self, *exc_info):
        return self._stack.__exit__(*exc_info)

    def acquire(self, surface: Surface) -> Surface:
        """Register ``surface`` for release when the scope closes."""
        self._stack.callback(surface.release)
        self._surfaces.append(surface)
        return surface

    def close(self) -> None:
        self._stack.close()

    @property
    def surfaces(self) -> list[Surface]:
        return list(self._surfaces)

    @property
    def live_count(self) -> int:
        """Number of acquired surfaces not yet released."""
        return sum(1 for s in self._surfaces if not s.released)
