"""Payload codecs used by the typed accessors.

Each codec is a pair of pure functions between a Python value and the bytes
stored on disk. The engine calls them at its boundary and is otherwise
payload-agnostic.
"""

from __future__ import annotations

import io
import pickle
import plistlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from xml.parsers.expat import ExpatError

from PIL import Image, UnidentifiedImageError

from tiercache.errors.exceptions import DecodeError, EncodeError


@dataclass(frozen=True)
class Codec:
    """Named encode/decode pair.

    ``name`` is also the ``kind`` tag stored alongside decoded values in the
    memory tier.
    """

    name: str
    _encode: Callable[[Any], bytes]
    _decode: Callable[[bytes], Any]
    decode_errors: tuple[type[Exception], ...] = (ValueError,)

    def encode(self, value: Any) -> bytes:
        try:
            return self._encode(value)
        except (TypeError, ValueError, AttributeError, OSError, pickle.PicklingError) as e:
            raise EncodeError(
                f"Cannot encode {type(value).__name__} as {self.name}: {e}",
                codec=self.name,
                original=e,
            ) from e

    def decode(self, data: bytes) -> Any:
        try:
            return self._decode(data)
        except self.decode_errors as e:
            raise DecodeError(
                f"Cannot decode {len(data)} bytes as {self.name}: {e}",
                codec=self.name,
                original=e,
            ) from e


def _encode_bytes(value: bytes | bytearray | memoryview) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected bytes-like object, got {type(value).__name__}")
    return bytes(value)


def _encode_text(value: str) -> bytes:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value.encode("utf-8")


def _encode_plist(value: Any) -> bytes:
    return plistlib.dumps(value, fmt=plistlib.FMT_BINARY)


def _encode_image(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=image.format or "PNG")
    return buf.getvalue()


def _decode_image(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    # Force pixel data in now so the BytesIO can be dropped
    img.load()
    return img


def _encode_object(value: Any) -> bytes:
    return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)


BYTES = Codec("bytes", _encode_bytes, bytes)
TEXT = Codec("text", _encode_text, lambda data: data.decode("utf-8"), (UnicodeDecodeError,))
PLIST = Codec(
    "plist",
    _encode_plist,
    plistlib.loads,
    (plistlib.InvalidFileException, ExpatError, ValueError, TypeError, KeyError, IndexError),
)
IMAGE = Codec("image", _encode_image, _decode_image, (UnidentifiedImageError, OSError, ValueError))
# Only ever reads back what this process family wrote into its private cache dir.
# Unpickling arbitrary bytes can fail with almost any exception type.
OBJECT = Codec("object", _encode_object, pickle.loads, (Exception,))
