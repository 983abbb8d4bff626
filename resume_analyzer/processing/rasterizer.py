"""PDF first-page preview rendering."""

import asyncio
import io
import logging
import re
from typing import Tuple

import fitz  # PyMuPDF
from PIL import Image

from resume_analyzer.pipeline.contracts import RasterImage, RasterResult, Rasterizer
from resume_analyzer.pipeline.models import ResumeFile

logger = logging.getLogger(__name__)

# PDF user space is 72 DPI; a scale of 1.0 renders at 72 DPI.
DEFAULT_SCALE = 4.0
DEFAULT_MAX_DIMENSION = 4096


def render_first_page(
    pdf_bytes: bytes,
    scale: float = DEFAULT_SCALE,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> Image.Image:
    """Render page 1 of a PDF as an RGB image, capped at ``max_dimension`` px."""
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        if doc.page_count == 0:
            raise ValueError("PDF has no pages")
        pix = doc[0].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    w, h = image.size
    factor = min(1.0, max_dimension / max(w, h))
    if factor < 1.0:
        new_size = (max(1, int(w * factor)), max(1, int(h * factor)))
        image = image.resize(new_size, Image.LANCZOS)
        logger.debug(f"Preview downsampled {w}x{h} -> {new_size[0]}x{new_size[1]}")
    return image


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def png_filename(pdf_filename: str) -> str:
    """``resume.pdf`` -> ``resume.png``."""
    stem = re.sub(r"\.pdf$", "", pdf_filename or "", flags=re.IGNORECASE)
    return f"{stem or 'resume'}.png"


class PdfRasterizer(Rasterizer):
    """Renders page 1 with PyMuPDF and encodes it as PNG.

    Rendering is CPU bound, so it runs in a thread executor to keep the
    event loop free.
    """

    def __init__(
        self,
        scale: float = DEFAULT_SCALE,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
    ):
        self.scale = scale
        self.max_dimension = max_dimension

    def _render(self, pdf_bytes: bytes) -> Tuple[bytes, int, int]:
        image = render_first_page(pdf_bytes, self.scale, self.max_dimension)
        return encode_png(image), image.width, image.height

    async def convert(self, pdf: ResumeFile) -> RasterResult:
        try:
            loop = asyncio.get_event_loop()
            data, width, height = await loop.run_in_executor(
                None, self._render, pdf.data
            )
        except Exception as e:
            logger.warning(f"PDF conversion failed for {pdf.filename}: {e}")
            return RasterResult(error=f"{type(e).__name__}: {e}")

        return RasterResult(
            image=RasterImage(
                filename=png_filename(pdf.filename),
                data=data,
                content_type="image/png",
                width=width,
                height=height,
            )
        )
