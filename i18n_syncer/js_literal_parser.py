"""
Parser for the object literals found in ``export default { ... };`` modules.

Only literal data is understood: objects, arrays, strings, numbers,
``true``/``false``/``null`` and comments. Keys may be bare or quoted.
Nothing is ever evaluated, so a translation file cannot run code.
"""
import re
from typing import Any, Dict, List, Optional

# Both patterns are tried in order, the first one stops at a closing brace
# at the start of a line, which is what the JS serializer writes.
_EXPORT_DEFAULT_PATTERNS = (
    re.compile(r'export\s+default\s+(\{.*?\n\};?)', re.DOTALL),
    re.compile(r'export\s+default\s+(\{.*\};?)', re.DOTALL),
)
_TRAILING_SEMICOLONS_RE = re.compile(r';+\s*$')
_NUMBER_RE = re.compile(r'-?(?:0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

_SIMPLE_ESCAPES = {
    'n': '\n',
    'r': '\r',
    't': '\t',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '0': '\0',
}
_KEYWORDS = {'true': True, 'false': False, 'null': None}
_BARE_WORD_STOP = set(':,{}[]\'"') | set(' \t\r\n')


class LiteralSyntaxError(ValueError):
    """Raised when the text is not a supported literal."""

    def __init__(self, message: str, text: str, pos: int):
        self.pos = pos
        self.lineno = text.count('\n', 0, pos) + 1
        self.colno = pos - text.rfind('\n', 0, pos)
        super().__init__(f"{message} at line {self.lineno}, column {self.colno}")


def extract_export_default(content: str) -> Optional[str]:
    """
    Return the object literal following ``export default``, without the trailing ``;``.

    Returns None when the module has no ``export default {`` statement.
    """
    for pattern in _EXPORT_DEFAULT_PATTERNS:
        match = pattern.search(content)
        if match:
            return _TRAILING_SEMICOLONS_RE.sub('', match.group(1))
    return None


def parse_js_literal(text: str) -> Any:
    """
    Parse a single JS literal expression.

    Args:
        text: Source of the literal, e.g. ``{ greet: 'Hi', nav: { home: 'Home' } }``.

    Returns:
        Any: dicts for objects (insertion ordered), lists, strings, ints/floats, bools or None.

    Raises:
        LiteralSyntaxError: If the text contains anything besides one literal.
    """
    parser = _LiteralParser(text)
    value = parser.parse_value()
    parser.skip_insignificant()
    if parser.pos != len(text):
        parser.fail("Unexpected trailing content")
    return value


class _LiteralParser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def fail(self, message: str):
        raise LiteralSyntaxError(message, self.text, self.pos)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def expect(self, char: str):
        self.skip_insignificant()
        if self.peek() != char:
            found = repr(self.peek()) if self.peek() else 'end of input'
            self.fail(f"Expected {char!r} but found {found}")
        self.pos += 1

    def skip_insignificant(self):
        """Skip whitespace, line comments and block comments."""
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith('//', self.pos):
                end = text.find('\n', self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith('/*', self.pos):
                end = text.find('*/', self.pos + 2)
                if end == -1:
                    self.fail("Unterminated comment")
                self.pos = end + 2
            else:
                break

    def parse_value(self) -> Any:
        self.skip_insignificant()
        char = self.peek()
        if not char:
            self.fail("Unexpected end of input")
        if char == '{':
            return self.parse_object()
        if char == '[':
            return self.parse_array()
        if char in ('"', "'"):
            return self.parse_string()
        if char == '`':
            self.fail("Template literals are not supported")
        match = _NUMBER_RE.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            return _to_number(match.group(0))
        word = self.read_bare_word()
        if word in _KEYWORDS:
            return _KEYWORDS[word]
        self.pos -= len(word)
        self.fail(f"Unsupported expression {word or char!r}")

    def parse_object(self) -> Dict[str, Any]:
        self.expect('{')
        result: Dict[str, Any] = {}
        while True:
            self.skip_insignificant()
            if self.peek() == '}':
                self.pos += 1
                return result
            key = self.parse_key()
            self.expect(':')
            result[key] = self.parse_value()
            self.skip_insignificant()
            if self.peek() == ',':
                self.pos += 1
            elif self.peek() != '}':
                self.fail("Expected ',' or '}' in object")

    def parse_array(self) -> List[Any]:
        self.expect('[')
        items: List[Any] = []
        while True:
            self.skip_insignificant()
            if self.peek() == ']':
                self.pos += 1
                return items
            items.append(self.parse_value())
            self.skip_insignificant()
            if self.peek() == ',':
                self.pos += 1
            elif self.peek() != ']':
                self.fail("Expected ',' or ']' in array")

    def parse_key(self) -> str:
        if self.peek() in ('"', "'"):
            return self.parse_string()
        key = self.read_bare_key()
        if not key:
            self.fail("Expected an object key")
        return key

    def read_bare_key(self) -> str:
        """
        Read an unquoted key such as ``zh-TW``, ``menu.title`` or ``common:title``.

        Written modules put ``: `` after every key, so a key is the run of
        non-whitespace characters up to a trailing colon. In compact text
        like ``{a:'x'}`` the first colon ends the key instead.
        """
        start = self.pos
        text = self.text
        end = start
        while end < len(text) and not text[end].isspace():
            end += 1
        token = text[start:end]
        if token.endswith(':'):
            key = token[:-1]
        else:
            colon = token.find(':')
            key = token if colon == -1 else token[:colon]
        self.pos = start + len(key)
        return key

    def read_bare_word(self) -> str:
        start = self.pos
        text = self.text
        while self.pos < len(text) and text[self.pos] not in _BARE_WORD_STOP:
            self.pos += 1
        return text[start:self.pos]

    def parse_string(self) -> str:
        quote = self.peek()
        self.pos += 1
        text = self.text
        chunks = []
        while True:
            if self.pos >= len(text):
                self.fail("Unterminated string")
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return ''.join(chunks)
            if char in '\r\n':
                self.fail("Line break inside string")
            if char != '\\':
                chunks.append(char)
                self.pos += 1
                continue

            self.pos += 1
            if self.pos >= len(text):
                self.fail("Unterminated string")
            escaped = text[self.pos]
            self.pos += 1
            if escaped in _SIMPLE_ESCAPES:
                chunks.append(_SIMPLE_ESCAPES[escaped])
            elif escaped == 'u':
                chunks.append(self.read_unicode_escape())
            elif escaped == 'x':
                chunks.append(self.read_hex(2))
            elif escaped == '\r':
                # Line continuation; swallow an optional \n after \r.
                if self.peek() == '\n':
                    self.pos += 1
            elif escaped == '\n':
                pass
            else:
                chunks.append(escaped)

    def read_unicode_escape(self) -> str:
        if self.peek() == '{':
            end = self.text.find('}', self.pos)
            if end == -1:
                self.fail("Unterminated unicode escape")
            digits = self.text[self.pos + 1:end]
            self.pos = end + 1
            try:
                return chr(int(digits, 16))
            except ValueError:
                self.fail(f"Invalid unicode escape {digits!r}")
        char = self.read_hex(4)
        # Join an escaped UTF-16 surrogate pair into one code point.
        if '\ud800' <= char <= '\udbff' and self.text.startswith('\\u', self.pos):
            saved = self.pos
            self.pos += 2
            low = self.read_hex(4)
            if '\udc00' <= low <= '\udfff':
                return chr(0x10000 + ((ord(char) - 0xD800) << 10) + (ord(low) - 0xDC00))
            self.pos = saved
        return char

    def read_hex(self, length: int) -> str:
        digits = self.text[self.pos:self.pos + length]
        if len(digits) != length or not all(c in '0123456789abcdefABCDEF' for c in digits):
            self.fail(f"Invalid escape sequence {digits!r}")
        self.pos += length
        return chr(int(digits, 16))


def _to_number(literal: str):
    sign = -1 if literal.startswith('-') else 1
    body = literal.lstrip('-')
    if body[:2].lower() == '0x':
        return sign * int(body, 16)
    if any(c in body for c in '.eE'):
        return float(literal)
    return int(literal)
