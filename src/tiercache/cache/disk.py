"""L2 disk cache — one file per key, expiration header + raw payload."""

from __future__ import annotations

import contextlib
import logging
import math
import os
import shutil
import struct
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import BinaryIO

from tiercache.config.defaults import DEFAULT_CACHE_DIR
from tiercache.errors.exceptions import (
    CorruptEntryError,
    DiskWriteError,
    EntryNotFoundError,
    InvalidKeyError,
)

logger = logging.getLogger(__name__)

_HEADER = struct.Struct(">d")
_TEMP_PREFIX = ".tmp-"
_MAX_KEY_BYTES = 255

HEADER_SIZE = _HEADER.size  # 8 bytes
NEVER_EXPIRES = math.inf


def pack_header(expiration: float) -> bytes:
    """Encode an absolute expiration timestamp as the 8-byte file header."""
    return _HEADER.pack(expiration)


def unpack_header(header: bytes) -> float:
    return _HEADER.unpack(header[:HEADER_SIZE])[0]


def validate_key(key: str) -> str:
    """Reject keys that cannot be used as a plain file name."""
    if not key:
        raise InvalidKeyError(key, "empty")
    if key.startswith("."):
        raise InvalidKeyError(key, "must not start with '.'")
    if "/" in key or "\\" in key or "\0" in key or (os.altsep and os.altsep in key):
        raise InvalidKeyError(key, "contains a path separator or NUL")
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise InvalidKeyError(key, f"longer than {_MAX_KEY_BYTES} bytes")
    return key


class DiskStore:
    """Path-addressed persistent byte store.

    Each entry is the file ``<directory>/<key>`` holding an 8-byte big-endian
    double (absolute expiration, seconds since the epoch) followed by the
    payload. Reads are safe from any thread. Mutations are expected to come
    from a single writer (see ``WriteQueue``).
    """

    def __init__(self, directory: Path | str | None = None) -> None:
        self._directory = Path(directory) if directory else Path(DEFAULT_CACHE_DIR)
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / validate_key(key)

    def read(self, key: str) -> tuple[float, bytes]:
        """Return ``(expiration, payload)`` for a key."""
        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise EntryNotFoundError(key) from None
        if len(raw) < HEADER_SIZE:
            raise CorruptEntryError(key, len(raw))
        return unpack_header(raw), raw[HEADER_SIZE:]

    def read_expiration(self, key: str) -> float:
        """Read only the header of an entry."""
        path = self.path_for(key)
        try:
            with open(path, "rb") as f:
                header = f.read(HEADER_SIZE)
        except FileNotFoundError:
            raise EntryNotFoundError(key) from None
        if len(header) < HEADER_SIZE:
            raise CorruptEntryError(key, len(header))
        return unpack_header(header)

    def write(self, key: str, expiration: float, payload: bytes) -> None:
        """Atomically replace the entry: write a temp file, then rename it."""
        self._replace(key, expiration, lambda f: f.write(payload))

    def write_from_file(self, key: str, expiration: float, source: Path | str) -> None:
        """Like ``write``, but stream the payload from an existing file."""

        def copy(f: BinaryIO) -> None:
            with open(source, "rb") as src:
                shutil.copyfileobj(src, f)

        self._replace(key, expiration, copy, operation="copy")

    def _replace(
        self,
        key: str,
        expiration: float,
        write_payload: Callable[[BinaryIO], object],
        operation: str = "write",
    ) -> None:
        path = self.path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=self._directory)
        except OSError as e:
            raise DiskWriteError(
                f"Cannot create temp file for {key}: {e}",
                operation=operation,
                key=key,
                original=e,
            ) from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(pack_header(expiration))
                write_payload(f)
            os.replace(tmp_name, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise DiskWriteError(
                f"Failed to {operation} {key}: {e}", operation=operation, key=key, original=e
            ) from e

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DiskWriteError(
                f"Failed to remove {key}: {e}", operation="remove", key=key, original=e
            ) from e

    def remove_if_expired(self, key: str, now: float) -> bool:
        """Remove the entry only if it is expired at ``now`` or corrupt.

        Re-reads the header first, so an entry rewritten since the caller saw
        the stale one is kept. Returns True if a file was removed.
        """
        try:
            expiration = self.read_expiration(key)
        except EntryNotFoundError:
            return False
        except CorruptEntryError:
            expiration = -math.inf
        if now < expiration:
            logger.debug("Entry %s was rewritten; skipping purge", key)
            return False
        self.remove(key)
        return True

    def clear(self) -> None:
        """Delete every file in the cache directory, temp files included."""
        failures: list[str] = []
        for path in self._iter_files():
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not delete %s: %s", path, e)
                failures.append(path.name)
        if failures:
            raise DiskWriteError(
                f"Failed to clear {len(failures)} entries", operation="clear"
            )

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def keys(self) -> Iterator[str]:
        """Keys of all stored entries (in-flight temp files excluded)."""
        for path in self._iter_files():
            if not path.name.startswith(_TEMP_PREFIX):
                yield path.name

    @property
    def entry_count(self) -> int:
        return sum(1 for _ in self.keys())

    @property
    def size_bytes(self) -> int:
        total = 0
        for key in self.keys():
            try:
                total += (self._directory / key).stat().st_size
            except FileNotFoundError:
                continue
        return total

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    def _iter_files(self) -> Iterator[Path]:
        try:
            children = list(self._directory.iterdir())
        except FileNotFoundError:
            return
        for path in children:
            if path.is_file():
                yield path

