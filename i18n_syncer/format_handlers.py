"""
Translation file formats.

Each handler knows its file extension, how to turn a translation set into
file content and how to parse file content back into a translation set.
"""
import json
import logging
import os
import re
from typing import Any, Dict, Mapping, Optional, Type

import jsonschema

from i18n_syncer.errors import ParseError
from i18n_syncer.js_literal_parser import LiteralSyntaxError, extract_export_default, parse_js_literal

logger = logging.getLogger(__name__)

# A translation file must hold one object at the top level.
TRANSLATION_FILE_SCHEMA = {"type": "object"}

DEFAULT_FORMAT = 'json'


class BaseFormatHandler:
    """Common behaviour of all translation file formats."""

    name: str = ''
    extension: str = ''
    # Whether pulled translations are written as nested objects instead of dotted keys.
    nested: bool = False

    def serialize(self, translations: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def parse(self, content: str, label: str) -> Dict[str, Any]:
        raise NotImplementedError

    def file_path_for(self, directory: str, lang_code: str) -> str:
        """Return ``<directory>/<lang_code><extension>``."""
        return os.path.join(directory, f"{lang_code}{self.extension}")

    def language_code_for(self, filename: str) -> Optional[str]:
        """Return the language code encoded in a file name, or None if the file is not in this format."""
        if not filename.endswith(self.extension):
            return None
        lang_code = filename[:-len(self.extension)]
        return lang_code or None

    def _validate(self, data: Any, label: str) -> Dict[str, Any]:
        try:
            jsonschema.validate(instance=data, schema=TRANSLATION_FILE_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ParseError(label, f"top-level value must be an object ({e.message})") from e
        return data


class JsonFormatHandler(BaseFormatHandler):
    """Plain JSON files, indented by two spaces."""

    name = 'json'
    extension = '.json'

    def serialize(self, translations: Mapping[str, Any]) -> str:
        return json.dumps(translations, ensure_ascii=False, indent=2) + '\n'

    def parse(self, content: str, label: str) -> Dict[str, Any]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(label, f"invalid JSON: {e}") from e
        return self._validate(data, label)


class JsFormatHandler(BaseFormatHandler):
    """
    JavaScript modules of the form ``export default { ... };``.

    Keys are written bare unless they contain a space, all values are
    written as single-quoted strings. Pulled translations are written as
    nested objects rebuilt from the dotted keys.
    """

    name = 'js'
    extension = '.js'
    nested = True

    def serialize(self, translations: Mapping[str, Any]) -> str:
        return f"export default {self._serialize_object(translations, 0)};\n"

    def _serialize_object(self, obj: Mapping[str, Any], level: int) -> str:
        if not obj:
            return '{}'
        indent = '  ' * (level + 1)
        closing = '  ' * level
        lines = []
        for key, value in obj.items():
            if isinstance(value, Mapping):
                value_str = self._serialize_object(value, level + 1)
            else:
                value_str = quote_js_string(js_string(value))
            lines.append(f"{indent}{format_js_key(str(key))}: {value_str},")
        return '{\n' + '\n'.join(lines) + '\n' + closing + '}'

    def parse(self, content: str, label: str) -> Dict[str, Any]:
        literal = extract_export_default(content)
        if literal is None:
            raise ParseError(label, "could not find a valid 'export default' statement")
        try:
            data = parse_js_literal(literal)
        except LiteralSyntaxError as e:
            raise ParseError(label, f"invalid JS object literal: {e}") from e
        return self._validate(data, label)


def escape_js_string(value: str) -> str:
    """Escape backslashes, single quotes and line breaks for a single-quoted JS string."""
    value = value.replace('\\', '\\\\').replace("'", "\\'")
    return re.sub(r'\r?\n', r'\\n', value)


def quote_js_string(value: str) -> str:
    return f"'{escape_js_string(value)}'"


def format_js_key(key: str) -> str:
    """Keys are written bare; only keys containing a space are quoted."""
    return quote_js_string(key) if ' ' in key else key


def js_string(value: Any) -> str:
    """Coerce a leaf value to text the way JavaScript's String() does."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ','.join('' if item is None else js_string(item) for item in value)
    if isinstance(value, Mapping):
        return '[object Object]'
    return str(value)


FORMAT_HANDLERS: Dict[str, Type[BaseFormatHandler]] = {
    JsonFormatHandler.name: JsonFormatHandler,
    JsFormatHandler.name: JsFormatHandler,
}


def get_format_handler(format_name: Optional[str] = DEFAULT_FORMAT) -> BaseFormatHandler:
    """
    Look up a format handler by name, ignoring case.

    Unknown names log a warning and fall back to JSON.
    """
    if not format_name:
        return JsonFormatHandler()
    handler_class = FORMAT_HANDLERS.get(format_name.strip().lower())
    if handler_class is None:
        logger.warning('Invalid format "%s", using "%s" as default', format_name, DEFAULT_FORMAT)
        return JsonFormatHandler()
    return handler_class()
