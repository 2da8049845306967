"""Decode map images into Qt bitmaps and produce rotated copies."""

from __future__ import annotations

from concurrent.futures import Executor, Future
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import logging

from PIL import Image, ImageOps, UnidentifiedImageError
from PIL.ImageQt import ImageQt
from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage, QImageReader, QTransform

from ..errors import ImageDecodeError, InvalidRotationError
from ..viewport.geometry import is_valid_rotation, rotated_dimensions

_LOGGER = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, Path]


@dataclass
class ImageRef:
    """The decoded, unrotated source image held by one engine."""

    image: Optional[QImage]
    source_format: Optional[str] = None

    @property
    def native_width(self) -> int:
        return 0 if self.image is None else self.image.width()

    @property
    def native_height(self) -> int:
        return 0 if self.image is None else self.image.height()

    @property
    def is_null(self) -> bool:
        return self.image is None or self.image.isNull()

    def release(self) -> None:
        """Drop the pixel buffer so it can be reclaimed immediately."""

        self.image = None


@dataclass(frozen=True)
class RotatedBitmap:
    """Drawable copy of an :class:`ImageRef` turned by a quarter-turn multiple."""

    image: QImage
    rotation: int

    @property
    def width(self) -> int:
        return self.image.width()

    @property
    def height(self) -> int:
        return self.image.height()


class ImageDecoder:
    """Turn raw bytes or files into :class:`ImageRef` objects.

    Qt's reader is tried first because it honours EXIF orientation and is
    fast for common formats; Pillow covers everything Qt's plugins cannot
    read.  Failures raise :class:`ImageDecodeError`.
    """

    def decode(self, source: ImageSource) -> ImageRef:
        if isinstance(source, (str, Path)):
            path = Path(source)
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise ImageDecodeError(f"Cannot read image file {path}: {exc}") from exc
        elif isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
        else:
            raise ImageDecodeError(
                f"Invalid image source: expected bytes or a path, got {type(source).__name__}"
            )
        if not data:
            raise ImageDecodeError("Invalid image source: empty payload")

        ref = self._decode_with_qt(data)
        if ref is None:
            ref = self._decode_with_pillow(data)
        if ref is None or ref.is_null:
            raise ImageDecodeError("Failed to load map image")
        return ref

    def decode_async(self, source: ImageSource, executor: Executor) -> Future:
        """Decode on *executor*; the future resolves to an :class:`ImageRef`."""

        return executor.submit(self.decode, source)

    def _decode_with_qt(self, data: bytes) -> Optional[ImageRef]:
        buffer = QBuffer()
        buffer.setData(QByteArray(data))
        if not buffer.open(QIODevice.OpenModeFlag.ReadOnly):
            return None
        try:
            reader = QImageReader(buffer)
            reader.setAutoTransform(True)
            fmt = reader.format().data().decode("ascii", "ignore") or None
            image = reader.read()
        finally:
            buffer.close()
        if image.isNull():
            _LOGGER.debug("Qt could not decode image payload; trying Pillow")
            return None
        return ImageRef(image=image, source_format=fmt)

    def _decode_with_pillow(self, data: bytes) -> Optional[ImageRef]:
        try:
            with Image.open(BytesIO(data)) as img:
                fmt = (img.format or "").lower() or None
                img = ImageOps.exif_transpose(img)
                qt_image = ImageQt(img.convert("RGBA")).copy()
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            _LOGGER.debug("Pillow failed to decode image payload: %s", exc)
            return None
        if qt_image.isNull():
            return None
        return ImageRef(image=qt_image, source_format=fmt)


def rotate_image(ref: ImageRef, degrees: int) -> RotatedBitmap:
    """Return a clockwise-rotated copy of *ref* for drawing."""

    if not is_valid_rotation(degrees):
        raise InvalidRotationError(f"Unsupported rotation {degrees!r}")
    if ref.is_null:
        raise ImageDecodeError("Cannot rotate an empty image")
    degrees = int(degrees)
    if degrees == 0:
        return RotatedBitmap(image=ref.image, rotation=0)
    rotated = ref.image.transformed(QTransform().rotate(degrees))
    expected = rotated_dimensions(ref.native_width, ref.native_height, degrees)
    if (rotated.width(), rotated.height()) != expected:
        raise ImageDecodeError(
            f"Rotated bitmap has unexpected size {rotated.width()}x{rotated.height()}, "
            f"expected {expected[0]}x{expected[1]}"
        )
    return RotatedBitmap(image=rotated, rotation=degrees)


__all__ = ["ImageDecoder", "ImageRef", "ImageSource", "RotatedBitmap", "rotate_image"]
