"""
Leitura dos arquivos enviados (CSV, Excel e JSON).

Todos os formatos são convertidos para a mesma representação: um cabeçalho
(lista de nomes de colunas) e uma grade retangular de células em texto.
O profiling depende dessa representação única para inferir os tipos.

Limitação conhecida: o CSV é lido de forma simples (quebra por linha e por
vírgula). Vírgulas entre aspas e quebras de linha dentro de células não são
suportadas.
"""
import io
import json
import math
from pathlib import Path
from typing import Any, NamedTuple

import pandas as pd

from pbi_wizard.exceptions import ParseError


class ParsedTable(NamedTuple):
    """Tabela lida de um arquivo: cabeçalho e linhas alinhadas a ele."""
    header: list[str]
    rows: list[list[str]]


def parse_file(content: bytes, filename: str) -> ParsedTable:
    """
    Lê o conteúdo bruto de um arquivo e devolve cabeçalho e linhas em texto.

    Parâmetros:
        content: Bytes do arquivo.
        filename: Nome do arquivo (a extensão define o formato).

    Retorna:
        ParsedTable com o cabeçalho e as linhas normalizadas.

    Levanta:
        ParseError: extensão não suportada, arquivo vazio ou estrutura inválida.
    """
    extension = Path(filename).suffix.lower()

    if extension == ".csv":
        header, rows = _parse_csv(content)
    elif extension in (".xlsx", ".xls"):
        header, rows = _parse_spreadsheet(content)
    elif extension == ".json":
        header, rows = _parse_json(content)
    else:
        raise ParseError(f"Tipo de arquivo não suportado: {extension or '(sem extensão)'}")

    if not header and not rows:
        raise ParseError("Arquivo vazio ou não pôde ser lido.")

    header = _dedupe_header(header)
    width = len(header)
    normalized = [
        [_stringify_cell(row[i]) if i < len(row) else "" for i in range(width)]
        for row in rows
    ]
    return ParsedTable(header=header, rows=normalized)


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"Arquivo não está em UTF-8: {e}") from e


def _parse_csv(content: bytes) -> tuple[list[str], list[list[Any]]]:
    lines = [line for line in _decode(content).split("\n") if line.strip() != ""]
    if not lines:
        return [], []

    def split(line: str) -> list[str]:
        return [cell.strip().replace('"', "") for cell in line.split(",")]

    header = split(lines[0])
    rows = [split(line) for line in lines[1:]]
    return header, rows


def _parse_spreadsheet(content: bytes) -> tuple[list[str], list[list[Any]]]:
    # Apenas a primeira planilha; a primeira linha é o cabeçalho
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise ParseError(f"Erro ao ler planilha: {e}") from e

    if df.empty:
        return [], []

    grid = [[None if _is_blank(v) else v for v in row] for row in df.itertuples(index=False)]

    # O pandas estende todas as linhas até a maior largura da planilha;
    # o cabeçalho vale até a sua última célula preenchida.
    header_cells = grid[0]
    while header_cells and header_cells[-1] is None:
        header_cells = header_cells[:-1]

    header = [_stringify_cell(v) for v in header_cells]
    return header, grid[1:]


def _parse_json(content: bytes) -> tuple[list[str], list[list[Any]]]:
    try:
        data = json.loads(_decode(content))
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON inválido: {e.msg} (linha {e.lineno})") from e

    if not isinstance(data, list) or len(data) == 0:
        raise ParseError("O arquivo JSON deve ser um array não vazio de objetos.")
    if not all(isinstance(item, dict) for item in data):
        raise ParseError("O arquivo JSON deve ser um array de objetos.")

    header = [str(key) for key in data[0].keys()]
    rows = [[item.get(key) for key in data[0].keys()] for item in data]
    return header, rows


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def _stringify_cell(value: Any) -> str:
    """Converte qualquer valor de célula para texto."""
    if _is_blank(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _dedupe_header(header: list[str]) -> list[str]:
    # Nomes repetidos recebem sufixo (.1, .2...) como no pandas
    seen: dict[str, int] = {}
    result = []
    for name in header:
        if name in seen:
            seen[name] += 1
            candidate = f"{name}.{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}.{seen[name]}"
            seen[candidate] = 0
            result.append(candidate)
        else:
            seen[name] = 0
            result.append(name)
    return result
