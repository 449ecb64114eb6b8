from __future__ import annotations

import io
import json
import logging
import os
from typing import Optional

import pymupdf as fitz
from PIL import Image, UnidentifiedImageError

from .core.config import AppConfig
from .core.errors import LoadError
from .core.model import BackgroundImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: tuple[str, ...] = ('.jpg', '.jpeg', '.png', '.gif', '.webp')
PDF_EXTENSION: str = '.pdf'
MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024


def _pdf_page_to_image(data: bytes, zoom: float = 2.0, page_number: int = 0) -> Image.Image:
    """Render one page of an in-memory PDF to a PIL Image."""
    with fitz.open(stream=data, filetype='pdf') as doc:
        if page_number < 0 or page_number >= len(doc):
            raise LoadError(f"Invalid page number {page_number} for PDF with {len(doc)} pages")
        page = doc.load_page(page_number)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
        mode = 'RGB' if pix.alpha == 0 else 'RGBA'
        return Image.frombytes(mode, [pix.width, pix.height], pix.samples)


def load_document(
    data: bytes,
    filename: str,
    max_bytes: int = MAX_UPLOAD_BYTES,
    pdf_zoom: float = 2.0,
) -> BackgroundImage:
    """Decode an uploaded drawing (raster image or first PDF page)."""
    ext = os.path.splitext(filename)[1].lower()
    if ext not in IMAGE_EXTENSIONS and ext != PDF_EXTENSION:
        raise LoadError(f"Unsupported file type: {ext or filename}")
    if not data:
        raise LoadError("File is empty")
    if len(data) > max_bytes:
        raise LoadError(f"File is too large ({len(data) / (1024 * 1024):.1f} MB, limit {max_bytes // (1024 * 1024)} MB)")
    try:
        if ext == PDF_EXTENSION:
            img = _pdf_page_to_image(data, pdf_zoom)
        else:
            img = Image.open(io.BytesIO(data))
            img.load()
    except LoadError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, RuntimeError) as e:
        raise LoadError(f"Failed to load {filename}: {e}") from e
    logger.info("loaded %s (%dx%d)", filename, img.width, img.height)
    return BackgroundImage(width=img.width, height=img.height, source=img)


def load_document_file(path: str, config: Optional[AppConfig] = None) -> BackgroundImage:
    config = config or AppConfig()
    try:
        size = os.path.getsize(path)
        if size > config.max_upload_bytes:
            raise LoadError(f"File is too large ({size / (1024 * 1024):.1f} MB)")
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise LoadError(f"Failed to read {path}: {e}") from e
    return load_document(data, os.path.basename(path), config.max_upload_bytes, config.pdf_render_zoom)


def load_config(path: str) -> AppConfig:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            cfg = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise LoadError(f"Failed to load configuration: {e}") from e
    return AppConfig.from_dict(cfg)


def save_config(config: AppConfig, path: str) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
    except OSError as e:
        raise LoadError(f"Failed to save configuration: {e}") from e
