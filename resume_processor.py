"""
resume processor module for extracting text from pdf, docx and text files
also holds the checks a resume upload or profile edit has to pass before
anything is sent to the store
"""

import io
import logging
import re
from typing import Callable, Dict, Optional

import pdfplumber
from docx import Document
from PyPDF2 import PdfReader

from errors import ExtractionFailure, UnsupportedFormat, UploadValidationError

logger = logging.getLogger(__name__)

PDF = "pdf"
DOCX = "docx"
PLAINTEXT = "plaintext"

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_MIME_TYPES = ("application/pdf", DOCX_MIME_TYPE, "text/plain")

# source-like files are read as plain text too
PLAINTEXT_EXTENSIONS = ("txt", "md", "js", "ts", "py", "json", "html", "css")

GITHUB_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.)?github\.com/[a-zA-Z0-9_-]+(/[a-zA-Z0-9_-]+)*/?$"
)


def kind_for_filename(filename: str) -> str:
    """
    maps a file name onto the document kind used to pick an extractor
    raises UnsupportedFormat when the extension isnt one we can read
    """
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension == "pdf":
        return PDF
    if extension == "docx":
        return DOCX
    if extension in PLAINTEXT_EXTENSIONS:
        return PLAINTEXT
    raise UnsupportedFormat(f"Unsupported file type: .{extension}")


def extract_text_from_pdf(file_bytes: bytes) -> str:
    """
    pulls text content out of a pdf file page by page
    the positioned word runs on a page are joined with single spaces and
    pages are separated by a blank line, in page order
    tries pdfplumber first and falls back to pypdf2 if it has issues
    """
    try:
        pages = []
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                words = page.extract_words()
                pages.append(" ".join(word["text"] for word in words))
        return "\n\n".join(pages)
    except Exception as e:
        logger.warning("pdfplumber could not read the pdf, trying pypdf2: %s", e)
        # pdfplumber failed so try pypdf2 as backup
        try:
            reader = PdfReader(io.BytesIO(file_bytes))
            pages = []
            for page in reader.pages:
                page_text = page.extract_text() or ""
                pages.append(" ".join(page_text.split()))
            return "\n\n".join(pages)
        except Exception as e2:
            raise ExtractionFailure(
                f"Failed to parse PDF. The file may be damaged or unsupported ({e}; {e2})"
            ) from e2


def extract_text_from_docx(file_bytes: bytes) -> str:
    """
    pulls the raw text body out of a docx word document
    paragraphs first, then any table cells, styling is thrown away
    """
    try:
        doc = Document(io.BytesIO(file_bytes))
    except Exception as e:
        raise ExtractionFailure(
            f"Failed to parse DOCX. The file may be damaged or unsupported ({e})"
        ) from e

    text_parts = [paragraph.text for paragraph in doc.paragraphs if paragraph.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text.strip():
                    text_parts.append(cell.text)
    return "\n\n".join(text_parts)


def extract_text_from_txt(file_bytes: bytes) -> str:
    """
    reads text content from a plain text file
    tries utf-8 encoding first then falls back to latin-1
    """
    try:
        return file_bytes.decode("utf-8")
    except UnicodeDecodeError:
        return file_bytes.decode("latin-1")


DEFAULT_EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    PDF: extract_text_from_pdf,
    DOCX: extract_text_from_docx,
    PLAINTEXT: extract_text_from_txt,
}


class ResumeProcessor:
    """
    turns an uploaded resume into plain text
    holds one extraction strategy per document kind and no other state,
    so a single instance can be shared across every context refresh
    """

    def __init__(self, extractors: Optional[Dict[str, Callable[[bytes], str]]] = None):
        self.extractors = dict(DEFAULT_EXTRACTORS if extractors is None else extractors)

    def extract_text(self, file_bytes: bytes, kind: str) -> str:
        """
        extracts text using the strategy registered for the declared kind
        raises UnsupportedFormat for unknown kinds and ExtractionFailure
        when the underlying parser blows up
        """
        extractor = self.extractors.get(kind)
        if extractor is None:
            raise UnsupportedFormat(
                f"Unsupported document kind: {kind} - supported kinds are pdf, docx, plaintext"
            )
        try:
            return extractor(file_bytes)
        except (ExtractionFailure, UnsupportedFormat):
            raise
        except Exception as e:
            raise ExtractionFailure(f"Failed to extract text from {kind} file: {e}") from e

    def extract_file(self, file_bytes: bytes, filename: str) -> str:
        """same as extract_text but works the kind out from the file name"""
        return self.extract_text(file_bytes, kind_for_filename(filename))


def validate_upload(filename: str, size: int, mime_type: str, max_bytes: int) -> None:
    """
    checks a resume upload before it goes anywhere
    a file of exactly max_bytes is fine, one byte more is not
    the mime type is checked on its own, the extension doesnt rescue it
    """
    if size > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        raise UploadValidationError(f"File is too large. Maximum size is {max_mb:g}MB.")
    if mime_type not in ALLOWED_MIME_TYPES:
        raise UploadValidationError(
            f"Invalid file type detected for {filename}. Please upload a valid PDF, DOCX, or TXT file."
        )


def is_valid_github_url(url: str) -> bool:
    return bool(GITHUB_URL_PATTERN.match(url))


def validate_github_url(url: str) -> None:
    """an empty url is allowed since the field is optional"""
    if url and not is_valid_github_url(url):
        raise UploadValidationError("Invalid format. E.g: https://github.com/username")
