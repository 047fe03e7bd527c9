from __future__ import annotations

import asyncio
import gzip
from pathlib import Path
from typing import Callable

import brotli

from sizetrack.config import CompressionMethod

GZIP_LEVEL = 9
BROTLI_QUALITY = 11


def gzip_size(data: bytes) -> int:
    return len(gzip.compress(data, compresslevel=GZIP_LEVEL))


def brotli_size(data: bytes) -> int:
    return len(brotli.compress(data, quality=BROTLI_QUALITY))


_SIZERS: dict[str, Callable[[bytes], int]] = {
    "gzip": gzip_size,
    "brotli": brotli_size,
}


def get_sizer(method: CompressionMethod) -> Callable[[bytes], int]:
    try:
        return _SIZERS[method]
    except KeyError:
        raise ValueError(f"Unsupported compression method: {method!r}") from None


def to_bytes(source: bytes | str | Callable[[], bytes | str]) -> bytes:
    if callable(source):
        source = source()
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    raise TypeError(f"Asset source must be bytes or str, got {type(source).__name__}")


async def compressed_size(source, method: CompressionMethod = "gzip") -> int:
    sizer = get_sizer(method)
    return await asyncio.to_thread(sizer, to_bytes(source))


async def compressed_file_size(path: Path, method: CompressionMethod = "gzip") -> int:
    sizer = get_sizer(method)
    data = await asyncio.to_thread(path.read_bytes)
    return await asyncio.to_thread(sizer, data)
