"""
Format readers for uploaded reference files.

Each supported extension maps to one member of ``FileFormat`` and every
reader turns a file on disk into an ``ExtractedContent``. Readers never
raise: a file that cannot be read or parsed yields a placeholder text
describing the problem so the other files of the request still make it
into the prompt.
"""
import asyncio
import csv
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import docx
from PyPDF2 import PdfReader

from config import CSV_PREVIEW_ROWS

logger = logging.getLogger(__name__)


class FileFormat(Enum):
    """Supported reference file formats."""
    TXT = ".txt"
    CSV = ".csv"
    JSON = ".json"
    DOCX = ".docx"
    DOC = ".doc"
    PDF = ".pdf"
    UNKNOWN = ""

    @classmethod
    def from_extension(cls, extension: str) -> "FileFormat":
        extension = (extension or "").lower()
        if extension and not extension.startswith("."):
            extension = "." + extension
        for member in cls:
            if member is not cls.UNKNOWN and member.value == extension:
                return member
        return cls.UNKNOWN


@dataclass
class FileReference:
    path: Path
    filename: str
    extension: str

    @classmethod
    def from_path(cls, path: Union[str, Path], filename: Optional[str] = None) -> "FileReference":
        path = Path(path)
        name = filename or path.name
        return cls(path=path, filename=name, extension=path.suffix.lower())

    @property
    def file_format(self) -> FileFormat:
        return FileFormat.from_extension(self.extension)


@dataclass
class ExtractedContent:
    filename: str
    text: str


def _describe_file(path: Path) -> str:
    """Size and modification time, used by the formats we do not parse."""
    stat = path.stat()
    modified = datetime.fromtimestamp(stat.st_mtime).strftime("%d/%m/%Y %H:%M:%S")
    return f"Tamanho: {stat.st_size} bytes ({stat.st_size / 1024:.2f} KB) - Modificado em: {modified}"


def read_text(path: Path, filename: str) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except Exception as e:
        logger.warning("Failed to read %s: %s", filename, e)
        return f"[Erro ao ler o arquivo {filename}: {e}]"


def read_csv(path: Path, filename: str, max_rows: int = CSV_PREVIEW_ROWS) -> str:
    """Serialize the first ``max_rows`` rows as indented JSON records."""
    try:
        with path.open(newline="", encoding="utf-8", errors="replace") as f:
            rows = list(csv.DictReader(f))
    except Exception as e:
        logger.warning("Failed to parse CSV %s: %s", filename, e)
        return f"[Erro ao processar o arquivo CSV {filename}: {e}]"

    text = json.dumps(rows[:max_rows], indent=2, ensure_ascii=False)
    if len(rows) > max_rows:
        text += f"\n\n... (mostrando {max_rows} de {len(rows)} linhas)"
    return text


def read_json(path: Path, filename: str) -> str:
    try:
        raw = path.read_text(encoding="utf-8", errors="replace")
    except Exception as e:
        logger.warning("Failed to read JSON %s: %s", filename, e)
        return f"[Erro ao ler o arquivo JSON {filename}: {e}]"
    try:
        return json.dumps(json.loads(raw), indent=2, ensure_ascii=False)
    except (ValueError, RecursionError):
        # Not valid JSON or nested too deep, keep what the user uploaded
        return raw


def read_docx(path: Path, filename: str) -> str:
    try:
        document = docx.Document(str(path))
        return "\n".join(p.text for p in document.paragraphs)
    except Exception as e:
        logger.warning("DOCX extraction failed for %s: %s", filename, e)
        return f"[Arquivo DOCX: {filename} - Falha ao extrair o texto: {e}]"


def describe_doc(path: Path, filename: str) -> str:
    # Legacy binary .doc extraction is unreliable, only describe the file.
    try:
        details = _describe_file(path)
    except Exception as e:
        logger.warning("Failed to stat %s: %s", filename, e)
        return f"[Arquivo DOC: {filename} - Erro ao acessar o arquivo: {e}]"
    return (
        f"[Arquivo DOC: {filename} - {details}. "
        "O conteúdo de arquivos .doc não é extraído automaticamente. "
        "Para melhor análise, converta o documento para .docx ou .txt.]"
    )


def _pdf_page_count(path: Path) -> Optional[int]:
    try:
        return len(PdfReader(str(path)).pages)
    except Exception as e:
        logger.debug("Could not count pages of %s: %s", path, e)
        return None


def describe_pdf(path: Path, filename: str) -> str:
    """Describe a PDF without extracting its body text."""
    try:
        details = _describe_file(path)
    except Exception as e:
        logger.warning("Failed to stat %s: %s", filename, e)
        return f"[Arquivo PDF: {filename} - Erro ao acessar o arquivo: {e}]"
    pages = _pdf_page_count(path)
    if pages is not None:
        details += f" - Páginas: {pages}"
    return (
        f"[Arquivo PDF: {filename} - {details}. "
        "O documento está disponível como contexto, mas seu texto não foi pesquisado integralmente.]"
    )


_READERS = {
    FileFormat.TXT: read_text,
    FileFormat.CSV: read_csv,
    FileFormat.JSON: read_json,
    FileFormat.DOCX: read_docx,
    FileFormat.DOC: describe_doc,
    FileFormat.PDF: describe_pdf,
    FileFormat.UNKNOWN: read_text,
}


def extract(file_format: FileFormat, path: Union[str, Path], filename: Optional[str] = None) -> ExtractedContent:
    path = Path(path)
    filename = filename or path.name
    try:
        text = _READERS[file_format](path, filename)
    except Exception as e:
        logger.warning("Unexpected failure reading %s: %s", filename, e)
        text = f"[Erro ao processar o arquivo {filename}: {e}]"
    if not text:
        text = f"[Arquivo {filename} sem conteúdo]"
    return ExtractedContent(filename=filename, text=text)


async def read_file(ref: FileReference) -> ExtractedContent:
    return await asyncio.to_thread(extract, ref.file_format, ref.path, ref.filename)


async def read_files(refs: List[FileReference]) -> List[ExtractedContent]:
    """Read all files concurrently; results keep the input order."""
    return list(await asyncio.gather(*(read_file(ref) for ref in refs)))
