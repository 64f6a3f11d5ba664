"""
Plain-text extraction from uploaded resumes
"""

import io
from typing import Optional

from pypdf import PdfReader

from utils.bedrock_client import document_format_for
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class DocumentTextExtractor:
    """Extract text from PDF and plain-text documents"""

    @staticmethod
    def extract_pdf_text(pdf_bytes: bytes) -> str:
        """
        Extract text from PDF bytes

        Args:
            pdf_bytes: PDF file as bytes

        Returns:
            Extracted text content

        Raises:
            ValueError: If the PDF cannot be read
        """
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))

            text_parts = []
            for page in reader.pages:
                text = page.extract_text()
                if text:
                    text_parts.append(text)

            return "\n\n".join(text_parts)
        except Exception as e:
            raise ValueError(f"Failed to extract text from PDF: {str(e)}")

    @staticmethod
    def extract_text(data: bytes, media_type: Optional[str]) -> Optional[str]:
        """
        Best-effort text for a document

        Word documents are read by the model directly and return None here.

        Args:
            data: Document bytes
            media_type: Declared media type

        Returns:
            Document text, or None if it cannot be read locally
        """
        doc_format = document_format_for(media_type)
        if not data or doc_format is None:
            return None
        if doc_format == "txt":
            return data.decode("utf-8", errors="replace")
        if doc_format == "pdf":
            try:
                return DocumentTextExtractor.extract_pdf_text(data)
            except ValueError as e:
                logger.warning(f"⚠️ {e}")
                return None
        return None
