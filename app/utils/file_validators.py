"""
File validation utilities for HealthSpeak API.

Handles validation of uploaded prescriptions including:
- File size limits
- File extension validation
- Corruption detection for images and PDFs
"""

import io
from pathlib import Path
from typing import List

import pdfplumber
from PIL import Image

from app.config import settings


class FileValidationError(Exception):
    """Raised when file validation fails."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class FileValidator:
    """
    Validates uploaded prescription files.

    Ensures files are:
    - Not empty and within size limits
    - Have allowed extensions
    - Are not corrupt
    """

    # Smallest image that can hold legible text
    MIN_IMAGE_SIDE = 32
    MAX_IMAGE_SIDE = 10000

    def __init__(self):
        self.max_file_size = settings.max_file_size_bytes
        self.image_extensions = settings.image_extensions
        self.pdf_extensions = settings.pdf_extensions
        self.text_extensions = settings.text_extensions

    @property
    def allowed_extensions(self) -> List[str]:
        return self.image_extensions + self.pdf_extensions + self.text_extensions

    def get_file_type(self, filename: str) -> str:
        """
        Determine the type of file based on extension.

        Returns:
            One of: 'image', 'pdf', 'text', 'unknown'
        """
        ext = Path(filename).suffix.lower()

        if ext in self.image_extensions:
            return "image"
        if ext in self.pdf_extensions:
            return "pdf"
        if ext in self.text_extensions:
            return "text"
        return "unknown"

    def validate_file_size(self, file_content: bytes, filename: str) -> None:
        """
        Raises:
            FileValidationError: If the file is empty or exceeds the size limit
        """
        if not file_content:
            raise FileValidationError(
                f"File '{filename}' is empty",
                error_code="EMPTY_FILE"
            )
        if len(file_content) > self.max_file_size:
            raise FileValidationError(
                f"File '{filename}' exceeds maximum size of {settings.max_file_size_mb}MB",
                error_code="FILE_TOO_LARGE"
            )

    def validate_image(self, file_content: bytes) -> None:
        """Check the image opens and has sensible dimensions."""
        try:
            Image.open(io.BytesIO(file_content)).verify()
            # verify() leaves the image unusable, reopen for the size
            width, height = Image.open(io.BytesIO(file_content)).size
        except Exception as e:
            raise FileValidationError(
                f"Image could not be read: {str(e)}",
                error_code="INVALID_IMAGE"
            ) from e

        if min(width, height) < self.MIN_IMAGE_SIDE:
            raise FileValidationError(
                "Image dimensions too small to read",
                error_code="IMAGE_TOO_SMALL"
            )
        if max(width, height) > self.MAX_IMAGE_SIDE:
            raise FileValidationError(
                "Image dimensions too large",
                error_code="IMAGE_TOO_LARGE"
            )

    def validate_pdf(self, file_content: bytes) -> None:
        """Check the PDF opens and has at least one page."""
        try:
            with pdfplumber.open(io.BytesIO(file_content)) as pdf:
                page_count = len(pdf.pages)
        except Exception as e:
            raise FileValidationError(
                f"PDF could not be read: {str(e)}",
                error_code="INVALID_PDF"
            ) from e

        if page_count == 0:
            raise FileValidationError("PDF has no pages", error_code="EMPTY_PDF")

    def validate(self, file_content: bytes, filename: str) -> str:
        """
        Validate an uploaded prescription.

        Args:
            file_content: Raw file bytes
            filename: Original filename

        Returns:
            Detected file type ('image', 'pdf' or 'text')

        Raises:
            FileValidationError: If any check fails
        """
        file_type = self.get_file_type(filename)

        if file_type == "unknown":
            raise FileValidationError(
                f"File extension '{Path(filename).suffix.lower()}' not allowed. "
                f"Allowed: {', '.join(self.allowed_extensions)}",
                error_code="INVALID_EXTENSION"
            )

        self.validate_file_size(file_content, filename)

        if file_type == "image":
            self.validate_image(file_content)
        elif file_type == "pdf":
            self.validate_pdf(file_content)

        return file_type


# Singleton instance for easy access
file_validator = FileValidator()
