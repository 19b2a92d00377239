"""Test helpers shared across test modules."""

import io

from PIL import Image, features

USER1 = ("user1@email.com", "password1")
USER2 = ("user2@email.com", "password2")

AVIF_SUPPORTED = bool(features.check("avif"))


def make_image(image_format: str, size=(8, 8), color=(200, 30, 30), mode: str = "RGB") -> bytes:
    """
    Encode a solid-color image in the given Pillow format.
    """
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def make_oversized_gif() -> bytes:
    """
    A tiny GIF whose header claims a 65535x65535 canvas.
    """
    data = bytearray(make_image("GIF", size=(1, 1)))
    data[6:10] = b"\xff\xff\xff\xff"
    return bytes(data)
