"""
Document context assembly.

Turns a list of uploaded files into one bounded text block for the system
prompt: every file is read, clamped to its own budget, wrapped with a
header naming the file, and the joined result is clamped again to a global
ceiling.
"""
import logging
from typing import Iterable, List, Optional

from config import settings
from functions.readers import ExtractedContent, FileReference, read_files

logger = logging.getLogger(__name__)


def _clamp(text: str, limit: int, notice: str) -> str:
    # The notice counts against the limit so the result never exceeds it.
    if len(notice) >= limit:
        return text[:limit]
    return text[:limit - len(notice)] + notice


def truncate_file_text(text: str, max_chars: Optional[int] = None) -> str:
    """Clamp one file's text, noting the original length when it was cut."""
    max_chars = max_chars if max_chars is not None else settings.max_chars_per_file
    if len(text) <= max_chars:
        return text
    notice = f"\n\n[... conteúdo truncado: {len(text)} caracteres no original]"
    return _clamp(text, max_chars, notice)


def format_block(content: ExtractedContent) -> str:
    return f"=== {content.filename} ===\n{content.text}\n\n"


def aggregate(contents: Iterable[ExtractedContent]) -> str:
    """Join file blocks in input order. Duplicate filenames stay separate blocks."""
    return "".join(format_block(content) for content in contents)


def truncate_context(context: str, limit: Optional[int] = None) -> str:
    limit = limit if limit is not None else settings.global_char_limit
    if len(context) <= limit:
        return context
    logger.info("Document context truncated from %d to %d characters", len(context), limit)
    return _clamp(context, limit, "\n\n[... contexto truncado por exceder o limite]")


async def build_document_context(
    files: List[FileReference],
    max_chars_per_file: Optional[int] = None,
    global_char_limit: Optional[int] = None,
) -> str:
    """Read, clamp and join the given files. Returns "" when there are none."""
    if not files:
        return ""
    contents = await read_files(files)
    clamped = [
        ExtractedContent(filename=c.filename, text=truncate_file_text(c.text, max_chars_per_file))
        for c in contents
    ]
    context = aggregate(clamped)
    logger.debug("Aggregated %d file(s) into %d characters", len(clamped), len(context))
    return truncate_context(context, global_char_limit)
