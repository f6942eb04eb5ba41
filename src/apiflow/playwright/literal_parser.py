"""
Restricted parser for JavaScript literal values.

Reads object/array literals as written in Playwright request options
(quoted or bare keys, single/double/back-quoted strings, numbers,
booleans, null, nested objects and arrays, trailing commas, comments).
Template-literal interpolations such as ${authToken.token} are kept as
opaque text inside the resulting string. Anything that would need
evaluation (identifiers, calls, operators, spreads) is rejected.

Also provides the lexical helpers the script parser uses to step over
string literals and comments while scanning for delimiters.
"""

import re
from typing import Any, Dict, List, Tuple


class LiteralParseError(ValueError):
    """Raised when text is not a supported literal."""

    def __init__(self, message: str, position: int = -1):
        if position >= 0:
            message = f"{message} (at offset {position})"
        super().__init__(message)
        self.position = position


QUOTES = ('"', "'", '`')

SIMPLE_ESCAPES = {
    'n': '\n',
    'r': '\r',
    't': '\t',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}

IDENTIFIER_RE = re.compile(r'[A-Za-z_$][\w$]*')
NUMBER_RE = re.compile(
    r'[+-]?(?:0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)'
)

KEYWORDS = {
    'true': True,
    'false': False,
    'null': None,
}

# Marks an `undefined` value; dropped from objects, null in arrays
_UNDEFINED = object()


def skip_trivia(text: str, pos: int) -> int:
    """Skip whitespace and // or /* */ comments starting at pos."""
    length = len(text)
    while pos < length:
        ch = text[pos]
        if ch.isspace():
            pos += 1
        elif text.startswith('//', pos):
            newline = text.find('\n', pos)
            pos = length if newline == -1 else newline + 1
        elif text.startswith('/*', pos):
            close = text.find('*/', pos + 2)
            if close == -1:
                raise LiteralParseError("Unterminated block comment", pos)
            pos = close + 2
        else:
            break
    return pos


def skip_string(text: str, pos: int) -> int:
    """
    Step over a string literal.

    Args:
        text: Source text
        pos: Index of the opening quote

    Returns:
        Index just past the closing quote

    Raises:
        LiteralParseError: If the literal is not terminated
    """
    return read_string(text, pos)[1]


def find_matching_delimiter(text: str, open_pos: int, open_ch: str = '{', close_ch: str = '}') -> int:
    """
    Balanced-delimiter scan.

    Counts open_ch/close_ch starting at open_pos, ignoring occurrences
    inside string literals and comments. A quote or comment that never
    closes (e.g. the apostrophe in a regex literal like /it's/) is not
    treated as a string; from there on delimiters are counted plainly.

    Args:
        text: Source text
        open_pos: Index of the opening delimiter
        open_ch: Opening delimiter character
        close_ch: Closing delimiter character

    Returns:
        Index of the matching closing delimiter, or -1 if it never closes
    """
    depth = 0
    pos = open_pos
    length = len(text)
    plain = False

    while pos < length:
        ch = text[pos]
        if not plain and (ch in QUOTES or (ch == '/' and text.startswith(('//', '/*'), pos))):
            try:
                pos = skip_string(text, pos) if ch in QUOTES else skip_trivia(text, pos)
                continue
            except LiteralParseError:
                plain = True
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return pos
        pos += 1

    return -1


def _read_escape(text: str, pos: int) -> Tuple[str, int]:
    """Decode the escape sequence whose backslash is at pos."""
    if pos + 1 >= len(text):
        raise LiteralParseError("Dangling escape", pos)

    ch = text[pos + 1]
    if ch in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[ch], pos + 2
    if ch == '0' and not (pos + 2 < len(text) and text[pos + 2].isdigit()):
        return '\0', pos + 2
    if ch == 'x':
        digits = text[pos + 2:pos + 4]
        if not re.fullmatch(r'[0-9a-fA-F]{2}', digits):
            raise LiteralParseError("Invalid \\x escape", pos)
        return chr(int(digits, 16)), pos + 4
    if ch == 'u':
        if text.startswith('{', pos + 2):
            close = text.find('}', pos + 3)
            digits = text[pos + 3:close] if close != -1 else ''
            if not re.fullmatch(r'[0-9a-fA-F]{1,6}', digits):
                raise LiteralParseError("Invalid \\u{} escape", pos)
            return chr(int(digits, 16)), close + 1
        digits = text[pos + 2:pos + 6]
        if not re.fullmatch(r'[0-9a-fA-F]{4}', digits):
            raise LiteralParseError("Invalid \\u escape", pos)
        return chr(int(digits, 16)), pos + 6
    if ch == '\r' and text.startswith('\n', pos + 2):
        return '', pos + 3
    if ch in '\n\r\u2028\u2029':
        # Line continuation
        return '', pos + 2
    return ch, pos + 2


def read_string(text: str, pos: int) -> Tuple[str, int]:
    """
    Read and decode a string literal.

    Interpolations in template literals are copied through verbatim,
    so `Bearer ${token}` decodes to the text "Bearer ${token}".

    Args:
        text: Source text
        pos: Index of the opening quote

    Returns:
        Tuple of (decoded value, index just past the closing quote)
    """
    quote = text[pos]
    if quote not in QUOTES:
        raise LiteralParseError("Expected a string literal", pos)

    chunks: List[str] = []
    i = pos + 1
    length = len(text)

    while i < length:
        ch = text[i]
        if ch == quote:
            return ''.join(chunks), i + 1
        if ch == '\\':
            decoded, i = _read_escape(text, i)
            chunks.append(decoded)
            continue
        if quote == '`' and text.startswith('${', i):
            close = find_matching_delimiter(text, i + 1)
            if close == -1:
                raise LiteralParseError("Unterminated template interpolation", i)
            chunks.append(text[i:close + 1])
            i = close + 1
            continue
        if ch == '\n' and quote != '`':
            raise LiteralParseError("Newline in string literal", i)
        chunks.append(ch)
        i += 1

    raise LiteralParseError("Unterminated string literal", pos)


class LiteralParser:
    """Recursive-descent parser over a single literal value."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> Any:
        """
        Parse the whole text as one literal.

        Returns:
            Python value (dict, list, str, int, float, bool or None)

        Raises:
            LiteralParseError: On anything outside the supported grammar
        """
        self.pos = skip_trivia(self.text, 0)
        value = self._parse_value()
        self.pos = skip_trivia(self.text, self.pos)
        if self.pos != len(self.text):
            raise LiteralParseError("Unexpected trailing content", self.pos)
        return None if value is _UNDEFINED else value

    def _peek(self) -> str:
        self.pos = skip_trivia(self.text, self.pos)
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _expect(self, ch: str):
        if self._peek() != ch:
            raise LiteralParseError(f"Expected {ch!r}", self.pos)
        self.pos += 1

    def _parse_value(self) -> Any:
        ch = self._peek()
        if ch == '{':
            return self._parse_object()
        if ch == '[':
            return self._parse_array()
        if ch in QUOTES:
            value, self.pos = read_string(self.text, self.pos)
            return value
        if ch and (ch.isdigit() or ch in '+-.'):
            return self._parse_number()

        match = IDENTIFIER_RE.match(self.text, self.pos)
        if match:
            word = match.group()
            if word in KEYWORDS:
                self.pos = match.end()
                return KEYWORDS[word]
            if word == 'undefined':
                self.pos = match.end()
                return _UNDEFINED
            raise LiteralParseError(f"Unsupported expression {word!r}", self.pos)

        if not ch:
            raise LiteralParseError("Unexpected end of input", self.pos)
        raise LiteralParseError(f"Unexpected character {ch!r}", self.pos)

    def _parse_number(self) -> Any:
        match = NUMBER_RE.match(self.text, self.pos)
        if not match:
            raise LiteralParseError("Invalid number", self.pos)
        token = match.group()
        self.pos = match.end()

        sign = -1 if token.startswith('-') else 1
        digits = token.lstrip('+-')
        prefix = digits[:2].lower()
        if prefix == '0x':
            return sign * int(digits[2:], 16)
        if prefix == '0o':
            return sign * int(digits[2:], 8)
        if prefix == '0b':
            return sign * int(digits[2:], 2)
        if any(c in digits for c in '.eE'):
            return sign * float(digits)
        return sign * int(digits)

    def _parse_key(self) -> str:
        ch = self._peek()
        if ch in QUOTES:
            if ch == '`':
                raise LiteralParseError("Template literal cannot be a key", self.pos)
            key, self.pos = read_string(self.text, self.pos)
            return key
        if ch.isdigit():
            value = self._parse_number()
            return str(value)
        match = IDENTIFIER_RE.match(self.text, self.pos)
        if not match:
            raise LiteralParseError("Expected a property name", self.pos)
        self.pos = match.end()
        return match.group()

    def _parse_object(self) -> Dict[str, Any]:
        self._expect('{')
        result: Dict[str, Any] = {}

        while True:
            if self._peek() == '}':
                self.pos += 1
                return result

            key = self._parse_key()
            self._expect(':')
            value = self._parse_value()
            if value is not _UNDEFINED:
                result[key] = value

            ch = self._peek()
            if ch == ',':
                self.pos += 1
            elif ch != '}':
                raise LiteralParseError("Expected ',' or '}'", self.pos)

    def _parse_array(self) -> List[Any]:
        self._expect('[')
        result: List[Any] = []

        while True:
            if self._peek() == ']':
                self.pos += 1
                return result

            value = self._parse_value()
            result.append(None if value is _UNDEFINED else value)

            ch = self._peek()
            if ch == ',':
                self.pos += 1
            elif ch != ']':
                raise LiteralParseError("Expected ',' or ']'", self.pos)


def parse_literal(text: str) -> Any:
    """
    Parse a JavaScript literal value.

    Example:
        parse_literal("{ name: 'x', tags: [1, 2], } ")
        # {'name': 'x', 'tags': [1, 2]}
    """
    return LiteralParser(text).parse()
