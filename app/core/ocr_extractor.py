"""
Document text extraction for HealthSpeak API.

Gets prescription text out of uploaded files:
- plain text files are decoded directly
- PDFs use pdfplumber for native text, falling back to OCR of the
  rendered pages (pdf2image + pytesseract) for scans
- photos and scans of prescriptions are OCR'd with pytesseract
"""

import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import pdfplumber
from PIL import Image, ImageOps

from app.config import settings
from app.models.schemas import ExtractionMethod
from app.utils.logger import get_logger

logger = get_logger("ocr_extractor")


class OCRExtractionError(Exception):
    """No text could be extracted from a document."""

    def __init__(self, message: str, warnings: Optional[List[str]] = None):
        self.message = message
        self.warnings = warnings or []
        super().__init__(self.message)


@dataclass
class OCRResult:
    """Result of text extraction."""

    text: str
    method: ExtractionMethod
    confidence: float  # 0.0 to 1.0
    page_count: int = 1
    warnings: List[str] = field(default_factory=list)


def clean_text(text: str) -> str:
    """Normalize whitespace: collapse runs, trim lines, drop outer blank lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    lines = [line.strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


class OCRExtractor:
    """
    Extracts prescription text from uploaded documents.

    Tesseract availability is checked once; without it only text files
    and PDFs with a native text layer can be read.
    """

    # Minimum native PDF text to skip OCR
    MIN_TEXT_LENGTH = 20

    def __init__(self):
        self._ocr_available = None

    @property
    def ocr_available(self) -> bool:
        """Whether the tesseract binary can be used."""
        if self._ocr_available is None:
            try:
                import pytesseract
                pytesseract.get_tesseract_version()
                self._ocr_available = True
                logger.info("OCR (Tesseract) is available")
            except Exception as e:
                self._ocr_available = False
                logger.warning("OCR (Tesseract) not available", error=str(e))
        return self._ocr_available

    def extract(self, file_content: bytes, filename: str) -> OCRResult:
        """
        Extract text from an uploaded file.

        Args:
            file_content: Raw file bytes
            filename: Original filename, used to pick the extraction path

        Returns:
            OCRResult with cleaned text

        Raises:
            OCRExtractionError: When no text could be found
        """
        ext = Path(filename).suffix.lower()

        logger.info("Starting text extraction", filename=filename, size_bytes=len(file_content))

        if ext in settings.text_extensions:
            result = self.extract_plain_text(file_content)
        elif ext in settings.pdf_extensions:
            result = self.extract_pdf(file_content)
        else:
            result = self.extract_image(file_content)

        if not result.text:
            raise OCRExtractionError("No text detected in document", result.warnings)

        logger.info(
            "Text extraction complete",
            filename=filename,
            method=result.method.value,
            text_length=len(result.text),
            page_count=result.page_count
        )
        return result

    def extract_plain_text(self, file_content: bytes) -> OCRResult:
        """Decode a text file (utf-8, then latin-1)."""
        try:
            text = file_content.decode("utf-8")
        except UnicodeDecodeError:
            text = file_content.decode("latin-1")

        return OCRResult(
            text=clean_text(text),
            method=ExtractionMethod.TEXT,
            confidence=1.0
        )

    def extract_image(self, file_content: bytes) -> OCRResult:
        """OCR a photo or scan of a prescription."""
        if not self.ocr_available:
            raise OCRExtractionError("OCR is not available on this server")

        import pytesseract

        image = Image.open(io.BytesIO(file_content))
        text = pytesseract.image_to_string(
            self._prepare(image),
            lang=settings.ocr_language,
            config="--psm 6"  # Assume uniform block of text
        )

        return OCRResult(
            text=clean_text(text),
            method=ExtractionMethod.OCR,
            confidence=0.7
        )

    def extract_pdf(self, file_content: bytes) -> OCRResult:
        """
        Extract text from a PDF.

        Native text first; pages are OCR'd when the text layer is
        missing or too short.
        """
        warnings = []
        text, page_count = "", 0

        try:
            text, page_count = self._extract_native(file_content)
            if len(text) >= self.MIN_TEXT_LENGTH:
                return OCRResult(
                    text=text,
                    method=ExtractionMethod.NATIVE,
                    confidence=0.9,
                    page_count=page_count,
                    warnings=warnings
                )
            warnings.append("Native extraction yielded minimal text, attempting OCR")
        except Exception as e:
            warnings.append(f"Native extraction failed: {str(e)}")
            logger.warning("Native PDF extraction failed", error=str(e))

        if not self.ocr_available:
            warnings.append("OCR not available for fallback")
            return OCRResult(
                text=text,
                method=ExtractionMethod.NATIVE,
                confidence=0.2,
                page_count=page_count,
                warnings=warnings
            )

        ocr_text, page_count = self._extract_ocr(file_content)
        return OCRResult(
            text=ocr_text or text,
            method=ExtractionMethod.OCR,
            confidence=0.7 if ocr_text else 0.2,
            page_count=page_count,
            warnings=warnings
        )

    def _extract_native(self, file_content: bytes) -> Tuple[str, int]:
        """Text layer of every page, via pdfplumber."""
        pages = []

        with pdfplumber.open(io.BytesIO(file_content)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                page_text = page.extract_text() or ""
                if page_text.strip():
                    pages.append(page_text)

        return clean_text("\n\n".join(pages)), page_count

    def _extract_ocr(self, file_content: bytes) -> Tuple[str, int]:
        """OCR of every rendered page."""
        import pytesseract
        from pdf2image import convert_from_bytes

        images = convert_from_bytes(file_content, dpi=settings.ocr_dpi, fmt="PNG")
        pages = []

        for i, image in enumerate(images):
            try:
                page_text = pytesseract.image_to_string(
                    self._prepare(image),
                    lang=settings.ocr_language,
                    config="--psm 6"
                )
            except Exception as e:
                logger.warning("OCR error on page", page=i + 1, error=str(e))
                continue
            if page_text.strip():
                pages.append(page_text)

        return clean_text("\n\n".join(pages)), len(images)

    def _prepare(self, image: Image.Image) -> Image.Image:
        """Upright, grayscale, contrast-stretched copy for OCR."""
        image = ImageOps.exif_transpose(image)
        return ImageOps.autocontrast(ImageOps.grayscale(image))


# Singleton instance
ocr_extractor = OCRExtractor()
