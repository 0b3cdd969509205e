import io
import struct
import zlib

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.upload.models import DocumentTypeSlot, SourceFile


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    body = kind + data
    return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body) & 0xFFFFFFFF)


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Income Tax Return AY 2024-25")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_png_bytes() -> bytes:
    """A valid 1x1 white PNG."""
    header = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    pixels = zlib.compress(b"\x00\xff\xff\xff")
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", pixels)
        + _png_chunk(b"IEND", b"")
    )


@pytest.fixture()
def png_file(sample_png_bytes: bytes) -> SourceFile:
    return SourceFile(filename="pan.png", content=sample_png_bytes, mime_type="image/png")


@pytest.fixture()
def pdf_file(sample_pdf_bytes: bytes) -> SourceFile:
    return SourceFile(filename="itr.pdf", content=sample_pdf_bytes, mime_type="application/pdf")


@pytest.fixture()
def slots() -> list[DocumentTypeSlot]:
    return [
        DocumentTypeSlot(id="dt-pan", name="PAN Card", category="KYC", required=True),
        DocumentTypeSlot(id="dt-passport", name="Passport", category="KYC", required=True),
        DocumentTypeSlot(id="dt-bank", name="Bank Statement", category="Financial"),
        DocumentTypeSlot(id="dt-deed", name="Property Deed", category="Collateral"),
    ]
