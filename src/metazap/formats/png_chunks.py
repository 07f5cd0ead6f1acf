"""PNG chunk walking and ancillary chunk removal.

Kept chunks are copied byte-for-byte, so their CRCs never need recomputing
and a second pass over the output is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
import binascii

from metazap.util.errors import CorruptImageError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Ancillary chunks needed to reconstruct pixels: transparency and APNG frames.
PIXEL_CHUNKS = {"tRNS", "acTL", "fcTL", "fdAT"}

# Ancillary chunks that only affect colour rendering.
COLOR_CHUNKS = {"gAMA", "cHRM", "sRGB", "iCCP", "sBIT"}


@dataclass(frozen=True)
class PNGChunk:
    type: str
    data: bytes
    raw: bytes  # length + type + data + crc

    @property
    def is_critical(self) -> bool:
        return self.type[0].isupper()

    def __repr__(self) -> str:
        return f"<Chunk {self.type} len={len(self.data)}>"


def read_chunks(data: bytes) -> list[PNGChunk]:
    """Parse every chunk up to and including IEND, verifying CRCs.

    Bytes after IEND are ignored.
    """
    if not data.startswith(PNG_SIGNATURE):
        raise CorruptImageError("missing PNG signature")

    chunks: list[PNGChunk] = []
    pos = len(PNG_SIGNATURE)
    n = len(data)
    while True:
        if pos + 8 > n:
            raise CorruptImageError(f"truncated chunk header at offset {pos}")
        length = int.from_bytes(data[pos:pos + 4], "big")
        type_bytes = data[pos + 4:pos + 8]
        if not type_bytes.isalpha():
            raise CorruptImageError(f"invalid chunk type {type_bytes!r} at offset {pos}")
        chunk_type = type_bytes.decode("ascii")

        end = pos + 12 + length
        if end > n:
            raise CorruptImageError(f"truncated {chunk_type} chunk at offset {pos}")
        body = data[pos + 8:pos + 8 + length]
        crc = int.from_bytes(data[end - 4:end], "big")
        expected = binascii.crc32(type_bytes + body) & 0xFFFFFFFF
        if crc != expected:
            raise CorruptImageError(
                f"CRC mismatch for {chunk_type}: expected 0x{expected:08X}, got 0x{crc:08X}"
            )

        chunks.append(PNGChunk(type=chunk_type, data=body, raw=data[pos:end]))
        pos = end
        if chunk_type == "IEND":
            break

    if chunks[0].type != "IHDR":
        raise CorruptImageError("first chunk is not IHDR")
    if not any(c.type == "IDAT" for c in chunks):
        raise CorruptImageError("no IDAT chunk")
    return chunks


def keep_chunk(chunk: PNGChunk, keep_color_profile: bool = False) -> bool:
    if chunk.is_critical or chunk.type in PIXEL_CHUNKS:
        return True
    return keep_color_profile and chunk.type in COLOR_CHUNKS


def strip_png(data: bytes, keep_color_profile: bool = False) -> tuple[bytes, list[str]]:
    """Return (cleaned bytes, removed chunk types)."""
    chunks = read_chunks(data)
    kept: list[bytes] = [PNG_SIGNATURE]
    removed: list[str] = []
    for ch in chunks:
        if keep_chunk(ch, keep_color_profile):
            kept.append(ch.raw)
        else:
            removed.append(ch.type)
    return b"".join(kept), removed
