# SPDX-License-Identifier: Apache-2.0
"""ctypes conversions for pypdfium2's raw PDFium API."""

import ctypes


def to_widestring(text: str) -> ctypes.Array:
    """Convert a string to FPDF_WIDESTRING (null-terminated UTF-16LE).

    Args:
        text: String to convert

    Returns:
        ctypes array of c_ushort, suitable for FPDFText_SetText
    """
    encoded = text.encode("utf-16-le") + b"\x00\x00"
    return (ctypes.c_ushort * (len(encoded) // 2)).from_buffer_copy(encoded)


def to_byte_array(data: bytes) -> ctypes.Array:
    """Convert bytes to a ctypes array of c_ubyte.

    The caller must keep the array alive as long as PDFium uses it
    (font data passed to FPDFText_LoadFont is not copied).
    """
    return (ctypes.c_ubyte * len(data)).from_buffer_copy(data)


def from_utf16_buffer(buffer: ctypes.Array, length: int) -> str:
    """Decode a UTF-16LE c_ushort buffer filled by PDFium.

    Args:
        buffer: Buffer of c_ushort
        length: Number of units written, including the null terminator

    Returns:
        Decoded string without the terminator; surrogate pairs are joined.
    """
    raw = bytes(buffer)[: max(0, length - 1) * 2]
    text = raw.decode("utf-16-le", errors="replace")
    end = text.find("\x00")
    return text if end < 0 else text[:end]
