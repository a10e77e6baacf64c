"""
Shared text extraction used by every storage provider.

Handles .txt, .vtt, .docx, .pdf, .eml, exported Google formats, and a
printable-text fallback for anything else.  Providers download the
bytes; this module classifies and decodes them.
"""

from __future__ import annotations

import io
import re
from email import policy
from email.parser import BytesParser

import docx
import pdfplumber
from openpyxl import load_workbook

from storage_import.core.config import settings
from storage_import.core.constants import ContentCategory
from storage_import.pipeline.errors import FileTooLargeError, UnsupportedFileTypeError

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"
EML_MIME = "message/rfc822"

GOOGLE_DOC_MIME = "application/vnd.google-apps.document"
GOOGLE_SLIDES_MIME = "application/vnd.google-apps.presentation"
GOOGLE_SHEET_MIME = "application/vnd.google-apps.spreadsheet"
GOOGLE_FOLDER_MIME = "application/vnd.google-apps.folder"

FOLDER_CATEGORY = "folder"

# Canonical MIME type → category, shared by all providers
MIME_CATEGORY_MAP: dict[str, ContentCategory] = {
    # Plain text / transcripts
    "text/plain": ContentCategory.TRANSCRIPT,
    "text/vtt": ContentCategory.TRANSCRIPT,

    # Documents
    DOCX_MIME: ContentCategory.DOCUMENT,
    PDF_MIME: ContentCategory.DOCUMENT,
    "application/msword": ContentCategory.DOCUMENT,
    XLSX_MIME: ContentCategory.DOCUMENT,

    # Google native formats (exported before extraction)
    GOOGLE_DOC_MIME: ContentCategory.DOCUMENT,
    GOOGLE_SLIDES_MIME: ContentCategory.DOCUMENT,
    GOOGLE_SHEET_MIME: ContentCategory.DOCUMENT,

    # Email
    EML_MIME: ContentCategory.EMAIL,
    "application/vnd.ms-outlook": ContentCategory.EMAIL,
}

# Google native type → export format we can extract
GOOGLE_NATIVE_EXPORT_MAP: dict[str, str] = {
    GOOGLE_DOC_MIME: DOCX_MIME,
    GOOGLE_SLIDES_MIME: "text/plain",
    GOOGLE_SHEET_MIME: XLSX_MIME,
}

_VTT_CUE_NUMBER = re.compile(r"^\d+$")
_HTML_TAG = re.compile(r"<[^>]+>")


def resolve_category(mime_type: str | None) -> ContentCategory:
    if not mime_type:
        return ContentCategory.OTHER
    return MIME_CATEGORY_MAP.get(mime_type, ContentCategory.OTHER)


def assert_size_allowed(size_bytes: int, file_name: str, limit: int | None = None) -> None:
    """Raise FileTooLargeError when a file is over the processing limit."""
    limit = limit or settings.MAX_FILE_SIZE_BYTES
    if size_bytes > limit:
        raise FileTooLargeError(
            f'File "{file_name}" is {size_bytes / 1024 / 1024:.1f}MB, '
            f"over the {limit // (1024 * 1024)}MB processing limit.",
            details={"file_size": size_bytes, "limit": limit},
        )


def extract_text_from_bytes(data: bytes, mime_type: str | None, file_name: str) -> str:
    """
    Decode raw file bytes into plain text.

    Blocking (parsers are synchronous); providers call it through
    ``asyncio.to_thread``.
    """
    if mime_type in ("text/plain", "text/vtt"):
        return clean_vtt_text(data.decode("utf-8", errors="replace"))
    if mime_type in (DOCX_MIME, "application/msword"):
        return _extract_docx(data)
    if mime_type == PDF_MIME:
        return _extract_pdf(data)
    if mime_type == XLSX_MIME:
        return _extract_xlsx(data)
    if mime_type == EML_MIME:
        return extract_email_body(data)

    # Unknown type: accept it only if it reads as text
    text = data.decode("utf-8", errors="replace")
    if text and is_printable_text(text):
        return text
    raise UnsupportedFileTypeError(
        f"Unsupported file type: {mime_type} ({file_name})",
        details={"mime_type": mime_type, "file_name": file_name},
    )


def clean_vtt_text(raw: str) -> str:
    """
    Strip WebVTT header, cue numbers and timing lines, keeping the spoken text.

    ``"WEBVTT\\n\\n1\\n00:01.000 --> 00:04.000\\nJohn: Hello\\n"`` → ``"John: Hello"``
    """
    kept = []
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped == "WEBVTT":
            continue
        if _VTT_CUE_NUMBER.match(stripped) or "-->" in stripped:
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def extract_email_body(data: bytes) -> str:
    """Subject/sender header lines plus the plain-text body of an .eml message."""
    message = BytesParser(policy=policy.default).parsebytes(data)

    body_part = message.get_body(preferencelist=("plain", "html"))
    if body_part is None:
        body = ""
    else:
        body = body_part.get_content()
        if body_part.get_content_subtype() == "html":
            body = _HTML_TAG.sub(" ", body)

    header_lines = [
        f"{name}: {message[name]}"
        for name in ("Subject", "From", "To", "Date")
        if message[name]
    ]
    return "\n".join([*header_lines, "", body.strip()]).strip()


def is_printable_text(text: str) -> bool:
    """Heuristic: fewer than 10% control characters in the first 500 chars."""
    sample = text[:500]
    if not sample:
        return False
    control = sum(1 for ch in sample if ord(ch) < 9 or 13 < ord(ch) < 32)
    return control / len(sample) < 0.1


# ── Format-specific extractors ──────────────────────────

def _extract_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                paragraphs.append(" | ".join(cells))
    return "\n".join(paragraphs)


def _extract_pdf(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    return "\n\n".join(pages)


def _extract_xlsx(data: bytes) -> str:
    """All sheets, one ``header: value`` line per row."""
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    parts = []
    try:
        for sheet_name in workbook.sheetnames:
            rows = list(workbook[sheet_name].iter_rows(values_only=True))
            if not rows:
                continue
            headers = [str(h) if h is not None else "" for h in rows[0]]
            lines = [f"[Sheet: {sheet_name}]"]
            for row in rows[1:]:
                pairs = [
                    f"{h}: {v}" for h, v in zip(headers, row)
                    if v is not None and str(v).strip()
                ]
                if pairs:
                    lines.append("; ".join(pairs))
            parts.append("\n".join(lines))
    finally:
        workbook.close()
    return "\n\n".join(parts)
