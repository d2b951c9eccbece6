"""
Tests for upload validation and document text extraction.
"""

import io

import pytest
from PIL import Image

from app.core.ocr_extractor import OCRExtractionError, OCRExtractor, clean_text
from app.models.schemas import ExtractionMethod
from app.utils.file_validators import FileValidationError, FileValidator


def png_bytes(width, height):
    buffer = io.BytesIO()
    Image.new("L", (width, height), 255).save(buffer, format="PNG")
    return buffer.getvalue()


class TestCleanText:
    """Test whitespace cleanup."""

    def test_collapses_spaces_and_trims_lines(self):
        assert clean_text("  Tab   Amoxicillin\t500mg  \r\n  TDS ") == "Tab Amoxicillin 500mg\nTDS"

    def test_limits_blank_lines(self):
        assert clean_text("Line one\n\n\n\n\nLine two") == "Line one\n\nLine two"

    def test_blank(self):
        assert clean_text(" \n \n") == ""


class TestFileValidator:
    """Test suite for FileValidator."""

    @pytest.fixture
    def validator(self):
        return FileValidator()

    @pytest.mark.parametrize("filename,file_type", [
        ("scan.PNG", "image"),
        ("photo.jpeg", "image"),
        ("report.pdf", "pdf"),
        ("notes.txt", "text"),
        ("archive.zip", "unknown"),
    ])
    def test_file_type(self, validator, filename, file_type):
        assert validator.get_file_type(filename) == file_type

    def test_extension_checked_first(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(b"", "script.exe")
        assert exc_info.value.error_code == "INVALID_EXTENSION"

    def test_empty_file(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(b"", "notes.txt")
        assert exc_info.value.error_code == "EMPTY_FILE"

    def test_too_large(self, validator):
        validator.max_file_size = 4
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(b"12345", "notes.txt")
        assert exc_info.value.error_code == "FILE_TOO_LARGE"

    def test_valid_image(self, validator):
        assert validator.validate(png_bytes(64, 64), "scan.png") == "image"

    def test_small_image(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(png_bytes(10, 64), "scan.png")
        assert exc_info.value.error_code == "IMAGE_TOO_SMALL"

    def test_corrupt_image(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(b"\x89PNG broken", "scan.png")
        assert exc_info.value.error_code == "INVALID_IMAGE"

    def test_corrupt_pdf(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(b"%PDF-1.4 garbage", "report.pdf")
        assert exc_info.value.error_code == "INVALID_PDF"


class TestOCRExtractor:
    """Test text extraction paths that need no tesseract binary."""

    @pytest.fixture
    def extractor(self):
        return OCRExtractor()

    def test_utf8_text(self, extractor):
        result = extractor.extract("Tab Paracetamol 500mg – SOS".encode("utf-8"), "rx.txt")

        assert result.text == "Tab Paracetamol 500mg – SOS"
        assert result.method == ExtractionMethod.TEXT
        assert result.confidence == 1.0

    def test_latin1_text(self, extractor):
        result = extractor.extract("Crème BD".encode("latin-1"), "rx.txt")
        assert result.text == "Crème BD"

    def test_blank_text_raises(self, extractor):
        with pytest.raises(OCRExtractionError):
            extractor.extract(b"   \n", "rx.txt")

    def test_image_without_tesseract(self, extractor):
        extractor._ocr_available = False

        with pytest.raises(OCRExtractionError) as exc_info:
            extractor.extract(png_bytes(64, 64), "scan.png")
        assert "not available" in exc_info.value.message
