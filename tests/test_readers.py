"""Tests for the per-format file readers."""

import csv
import json

import docx
from PyPDF2 import PdfWriter

from functions import readers
from functions.readers import FileFormat, FileReference, extract, read_files


class TestFileFormat:

    def test_known_extensions(self):
        assert FileFormat.from_extension(".csv") is FileFormat.CSV
        assert FileFormat.from_extension(".PDF") is FileFormat.PDF
        assert FileFormat.from_extension("docx") is FileFormat.DOCX

    def test_unknown_extensions(self):
        assert FileFormat.from_extension(".md") is FileFormat.UNKNOWN
        assert FileFormat.from_extension("") is FileFormat.UNKNOWN

    def test_reference_from_path(self, tmp_path):
        ref = FileReference.from_path(tmp_path / "Relatorio.JSON")
        assert ref.filename == "Relatorio.JSON"
        assert ref.extension == ".json"
        assert ref.file_format is FileFormat.JSON


class TestTextAndUnknown:

    def test_reads_plain_text(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        content = extract(FileFormat.TXT, path)
        assert content.filename == "notes.txt"
        assert content.text == "hello"

    def test_unknown_extension_read_as_text(self, tmp_path):
        path = tmp_path / "README.md"
        path.write_text("# Título", encoding="utf-8")
        assert extract(FileFormat.UNKNOWN, path).text == "# Título"

    def test_missing_file_gives_placeholder(self, tmp_path):
        content = extract(FileFormat.TXT, tmp_path / "missing.txt")
        assert "missing.txt" in content.text
        assert content.text.startswith("[Erro ao ler o arquivo")

    def test_empty_file_is_never_empty_text(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("", encoding="utf-8")
        assert extract(FileFormat.TXT, path).text


class TestCsv:

    def _write_rows(self, path, count):
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["id", "nome"])
            for i in range(count):
                writer.writerow([i, f"linha {i}"])

    def test_small_csv_has_all_rows(self, tmp_path):
        path = tmp_path / "small.csv"
        self._write_rows(path, 3)
        text = extract(FileFormat.CSV, path).text
        assert json.loads(text) == [
            {"id": "0", "nome": "linha 0"},
            {"id": "1", "nome": "linha 1"},
            {"id": "2", "nome": "linha 2"},
        ]

    def test_large_csv_keeps_first_50_rows(self, tmp_path):
        path = tmp_path / "big.csv"
        self._write_rows(path, 120)
        text = extract(FileFormat.CSV, path).text
        body, note = text.split("\n\n... ")
        rows = json.loads(body)
        assert len(rows) == 50
        assert rows[-1]["id"] == "49"
        assert "120" in note

    def test_missing_csv_gives_placeholder(self, tmp_path):
        text = extract(FileFormat.CSV, tmp_path / "gone.csv").text
        assert "gone.csv" in text
        assert "CSV" in text


class TestJson:

    def test_pretty_prints(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"a":1,"b":[1,2]}', encoding="utf-8")
        assert extract(FileFormat.JSON, path).text == json.dumps({"a": 1, "b": [1, 2]}, indent=2)

    def test_invalid_json_falls_back_to_raw_text(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert extract(FileFormat.JSON, path).text == "{not json"

    def test_unreadable_json_gives_placeholder(self, tmp_path):
        text = extract(FileFormat.JSON, tmp_path / "gone.json").text
        assert "gone.json" in text

    def test_deeply_nested_json_falls_back_to_raw_text(self, tmp_path):
        path = tmp_path / "deep.json"
        path.write_text("[" * 200000, encoding="utf-8")
        assert extract(FileFormat.JSON, path).text == "[" * 200000


class TestExtractFailures:

    def test_reader_crash_becomes_placeholder(self, tmp_path, monkeypatch):
        def explode(path, filename):
            raise RuntimeError("too big")

        monkeypatch.setitem(readers._READERS, FileFormat.TXT, explode)
        path = tmp_path / "notas.txt"
        path.write_text("ok", encoding="utf-8")
        result = extract(FileFormat.TXT, path)
        assert result.filename == "notas.txt"
        assert result.text == "[Erro ao processar o arquivo notas.txt: too big]"


class TestDocx:

    def test_extracts_paragraphs(self, tmp_path):
        path = tmp_path / "peticao.docx"
        document = docx.Document()
        document.add_paragraph("Primeiro parágrafo")
        document.add_paragraph("Segundo parágrafo")
        document.save(str(path))
        text = extract(FileFormat.DOCX, path).text
        assert "Primeiro parágrafo" in text
        assert "Segundo parágrafo" in text

    def test_corrupt_docx_gives_placeholder(self, tmp_path):
        path = tmp_path / "corrupt.docx"
        path.write_bytes(b"this is not a zip archive")
        text = extract(FileFormat.DOCX, path).text
        assert "corrupt.docx" in text
        assert "Falha ao extrair" in text


class TestDocAndPdf:

    def test_doc_is_described_not_parsed(self, tmp_path):
        path = tmp_path / "antigo.doc"
        path.write_bytes(b"BINARY-DOC-BODY" * 10)
        text = extract(FileFormat.DOC, path).text
        assert "BINARY-DOC-BODY" not in text
        assert "150 bytes" in text
        assert "Modificado em" in text
        assert ".docx" in text

    def test_pdf_is_described_not_parsed(self, tmp_path):
        path = tmp_path / "laudo.pdf"
        path.write_bytes(b"%PDF-1.4 SECRET BODY TEXT")
        text = extract(FileFormat.PDF, path).text
        assert "SECRET BODY TEXT" not in text
        assert f"{path.stat().st_size} bytes" in text
        assert "Modificado em" in text
        assert "laudo.pdf" in text

    def test_pdf_page_count_when_readable(self, tmp_path):
        path = tmp_path / "blank.pdf"
        writer = PdfWriter()
        writer.add_blank_page(width=72, height=72)
        writer.add_blank_page(width=72, height=72)
        with path.open("wb") as f:
            writer.write(f)
        assert "Páginas: 2" in extract(FileFormat.PDF, path).text

    def test_missing_pdf_gives_placeholder(self, tmp_path):
        text = extract(FileFormat.PDF, tmp_path / "gone.pdf").text
        assert "gone.pdf" in text
        assert "Erro ao acessar" in text


class TestReadFiles:

    async def test_keeps_input_order_and_survives_failures(self, tmp_path):
        a = tmp_path / "a.txt"
        a.write_text("AAA", encoding="utf-8")
        c = tmp_path / "c.txt"
        c.write_text("CCC", encoding="utf-8")
        refs = [FileReference.from_path(p) for p in (a, tmp_path / "b.txt", c)]

        contents = await read_files(refs)

        assert [content.filename for content in contents] == ["a.txt", "b.txt", "c.txt"]
        assert contents[0].text == "AAA"
        assert "b.txt" in contents[1].text
        assert contents[2].text == "CCC"
