from .loader import ImageDecoder, ImageRef, RotatedBitmap, rotate_image

__all__ = ["ImageDecoder", "ImageRef", "RotatedBitmap", "rotate_image"]
