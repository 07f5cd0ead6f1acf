"""JPEG marker walking and metadata segment removal.

Segments needed for decoding (SOFn, DHT, DQT, DRI, SOS and the entropy-coded
data that follows each SOS) are copied verbatim. APPn and COM segments are
dropped, with these exceptions:

- APP0 "JFIF" is kept, minus its embedded thumbnail.
- APP14 "Adobe" is kept; it selects the colour transform used when decoding.
- APP2 "ICC_PROFILE" is kept only when the colour profile is requested.

Anything after EOI is dropped.
"""

from __future__ import annotations

from metazap.util.errors import CorruptImageError

SOI = 0xD8
EOI = 0xD9
SOS = 0xDA
COM = 0xFE
APP0 = 0xE0
APP2 = 0xE2
APP14 = 0xEE

# SOF0..SOF15 minus DHT (C4), JPG (C8) and DAC (CC).
SOF_MARKERS = {0xC0, 0xC1, 0xC2, 0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF}

JFIF_ID = b"JFIF\x00"
JFIF_HEADER_LEN = 14  # identifier, version, units, densities, thumbnail size
ADOBE_ID = b"Adobe"
ICC_ID = b"ICC_PROFILE\x00"


def _is_standalone(marker: int) -> bool:
    return marker == 0x01 or 0xD0 <= marker <= 0xD7


def _segment(marker: int, payload: bytes) -> bytes:
    return bytes((0xFF, marker)) + (len(payload) + 2).to_bytes(2, "big") + payload


def _segment_name(marker: int) -> str:
    if marker == COM:
        return "COM"
    return f"APP{marker - APP0}"


def _filter_segment(marker: int, payload: bytes, keep_color_profile: bool) -> tuple[bytes | None, str]:
    """Return (bytes to emit or None to drop, name of what was removed or "")."""
    if marker == COM:
        return None, "COM"
    if not APP0 <= marker <= 0xEF:
        return _segment(marker, payload), ""

    if marker == APP0 and payload.startswith(JFIF_ID):
        if len(payload) <= JFIF_HEADER_LEN and payload[12:14] in (b"\x00\x00", b""):
            return _segment(marker, payload), ""
        trimmed = payload[:12] + b"\x00\x00"
        return _segment(marker, trimmed), "APP0 thumbnail"
    if marker == APP14 and payload.startswith(ADOBE_ID):
        return _segment(marker, payload), ""
    if marker == APP2 and keep_color_profile and payload.startswith(ICC_ID):
        return _segment(marker, payload), ""
    return None, _segment_name(marker)


def _scan_end(data: bytes, pos: int) -> int:
    """Return the offset of the first real marker after entropy-coded data."""
    n = len(data)
    while True:
        idx = data.find(b"\xff", pos)
        if idx == -1 or idx + 1 >= n:
            raise CorruptImageError("truncated scan data")
        nxt = data[idx + 1]
        if nxt == 0x00 or 0xD0 <= nxt <= 0xD7:
            pos = idx + 2
            continue
        if nxt == 0xFF:
            pos = idx + 1
            continue
        return idx


def strip_jpeg(data: bytes, keep_color_profile: bool = False) -> tuple[bytes, list[str]]:
    """Return (cleaned bytes, removed segment names)."""
    if len(data) < 4 or data[0] != 0xFF or data[1] != SOI:
        raise CorruptImageError("missing JPEG SOI marker")

    out = bytearray(b"\xff\xd8")
    removed: list[str] = []
    seen_sof = False
    seen_sos = False
    pos = 2
    n = len(data)

    while True:
        if pos >= n:
            raise CorruptImageError("missing EOI marker")
        if data[pos] != 0xFF:
            raise CorruptImageError(f"expected marker at offset {pos}")
        while pos < n and data[pos] == 0xFF:
            pos += 1
        if pos >= n:
            raise CorruptImageError("missing EOI marker")
        marker = data[pos]
        pos += 1

        if marker == EOI:
            out += b"\xff\xd9"
            break
        if _is_standalone(marker):
            out += bytes((0xFF, marker))
            continue
        if marker in (0x00, SOI):
            raise CorruptImageError(f"unexpected marker 0x{marker:02X} at offset {pos - 1}")

        if pos + 2 > n:
            raise CorruptImageError(f"truncated segment 0x{marker:02X}")
        length = int.from_bytes(data[pos:pos + 2], "big")
        end = pos + length
        if length < 2 or end > n:
            raise CorruptImageError(f"truncated segment 0x{marker:02X} at offset {pos - 2}")
        payload = data[pos + 2:end]
        pos = end

        if marker in SOF_MARKERS:
            seen_sof = True

        if marker == SOS:
            if not seen_sof:
                raise CorruptImageError("SOS before any SOF segment")
            out += _segment(marker, payload)
            scan_end = _scan_end(data, pos)
            out += data[pos:scan_end]
            pos = scan_end
            seen_sos = True
            continue

        segment, name = _filter_segment(marker, payload, keep_color_profile)
        if segment is not None:
            out += segment
        if name:
            removed.append(name)

    if not seen_sos:
        raise CorruptImageError("no image scan found")
    if pos < n:
        removed.append("trailing data")
    return bytes(out), removed
