"""Conversion between spreadsheet rows and per-language translation sets."""
import json
import logging
import re
from typing import Any, Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)

# Label written into cell A1 on push. Ignored on pull.
HEADER_KEY_LABEL = 'Key'

_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')


def escape_newlines(value: str) -> str:
    """Replace literal line breaks with the two-character sequence backslash-n."""
    return _LINE_BREAK_RE.sub(r'\\n', value)


def unescape_newlines(value: str) -> str:
    """Turn backslash-n sequences back into real line breaks."""
    return value.replace('\\n', '\n')


def stringify_cell(value: Any) -> str:
    """
    Coerce a translation value to the text stored in a sheet cell.

    None becomes an empty string, mappings and lists become compact JSON,
    booleans are lower-cased the way they are spelled in JSON and JS files.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'))
    return str(value)


def decode_sheet(rows: Sequence[Sequence[Any]]) -> Dict[str, Dict[str, str]]:
    """
    Split a sheet into one flat translation set per language column.

    Args:
        rows: Sheet content. Row 0 is the header ``[Key, lang1, lang2, ...]``,
            every following row is ``[key, value1, value2, ...]``.

    Returns:
        Dict[str, Dict[str, str]]: Language code to ``{key: value}``, in
        header column order. Empty when the sheet has no data row.
    """
    if not rows or len(rows) < 2:
        logger.info("Insufficient data for processing (minimum 2 rows required)")
        return {}

    headers = list(rows[0])
    languages: List[Tuple[int, str]] = []
    translations: Dict[str, Dict[str, str]] = {}
    for col_index in range(1, len(headers)):
        lang_code = stringify_cell(headers[col_index]).strip()
        if not lang_code:
            logger.warning("Ignoring column %d: empty language code in header row", col_index + 1)
            continue
        languages.append((col_index, lang_code))
        translations[lang_code] = {}

    for row in rows[1:]:
        key = stringify_cell(row[0]) if row else ''
        if not key:
            continue
        for col_index, lang_code in languages:
            value = row[col_index] if col_index < len(row) else ''
            # Later rows overwrite earlier ones with the same key.
            translations[lang_code][key] = escape_newlines(stringify_cell(value))

    return translations


def encode_sheet(
        languages: Sequence[Tuple[str, Dict[str, Any]]],
        ordered_keys: Sequence[str]
) -> List[List[str]]:
    """
    Build sheet rows from per-language flat translation sets.

    Args:
        languages: ``(lang_code, flat_set)`` pairs in the desired column order.
        ordered_keys: Keys in the desired row order.

    Returns:
        List[List[str]]: Header row followed by one row per key; every cell is a string.
    """
    header = [HEADER_KEY_LABEL] + [lang_code for lang_code, _ in languages]
    rows = [header]
    for key in ordered_keys:
        row = [stringify_cell(key)]
        for _, translations in languages:
            value = translations.get(key, '')
            row.append(unescape_newlines(stringify_cell(value)))
        rows.append(row)
    return rows
