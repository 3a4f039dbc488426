"""
Lexer for fnCalc scripts.

Converts source text into a stream of tokens for the parser.
Supports:
- Significant newlines (NEWLINE tokens), suppressed inside parentheses
- Single-line comments (#)
- Decimal number literals (digits with an optional fractional part)
- Keywords, built-in math names and user identifiers
- A built-in name glued to digits is split: ``sind90`` scans as ``sind 90``
"""

from typing import Iterator, List, Optional

from .errors import CalcError, error_invalid_number, error_syntax
from .runtime.numeric import ArithmeticFailure, parse_literal
from .tokens import (
    BUILTIN_FUNCTIONS,
    KEYWORDS,
    SourceLocation,
    SourceSpan,
    Token,
    TokenType,
)


SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '^': TokenType.CARET,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '=': TokenType.ASSIGN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


class Lexer:
    """
    Tokenizer for fnCalc source.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None

        # Parenthesis nesting for implicit line continuation
        self.paren_depth = 0

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> str:
        """Get a specific line of source (1-indexed); empty past the end."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return ""

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_comment(self) -> None:
        """Skip a single-line comment (# to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_whitespace_within_line(self) -> None:
        while self._peek() in ' \t\r':
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, self._span(start))

    def _error(self, start: SourceLocation) -> CalcError:
        return error_syntax(self.get_source_line(start.line), start.column - 1)

    def _scan_number(self) -> Token:
        """Scan a decimal literal: digits with an optional fractional part."""
        start = self._location()

        while _is_digit(self._peek()):
            self._advance()

        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()  # consume '.'
            while _is_digit(self._peek()):
                self._advance()

        lexeme = self.source[start.offset:self.pos]
        try:
            value = parse_literal(lexeme)
        except ArithmeticFailure as exc:
            raise error_invalid_number(
                self.get_source_line(start.line), start.column - 1
            ) from exc
        return self._make_token(TokenType.NUMBER, value, start, lexeme)

    def _scan_word(self) -> Token:
        """Scan an identifier, keyword or built-in name."""
        start = self._location()

        end = self.pos
        while end < len(self.source) and _is_word_char(self.source[end]):
            end += 1
        word = self.source[self.pos:end]

        if word not in KEYWORDS and word not in BUILTIN_FUNCTIONS:
            prefix = _builtin_prefix(word)
            if prefix is not None:
                word = prefix

        for _ in word:
            self._advance()

        if word in KEYWORDS:
            return self._make_token(KEYWORDS[word], word, start)
        if word in BUILTIN_FUNCTIONS:
            return self._make_token(TokenType.BUILTIN, word, start)
        return self._make_token(TokenType.IDENTIFIER, word, start)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_within_line()

        while self._peek() == '#':
            self._skip_comment()
            self._skip_whitespace_within_line()

        if self._peek() == '\n':
            start = self._location()
            self._advance()
            # Only emit NEWLINE outside parentheses
            if self.paren_depth == 0:
                return self._make_token(TokenType.NEWLINE, None, start, "\\n")
            return self._scan_token()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if _is_digit(ch):
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_word()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)

        if ch == '(':
            self.paren_depth += 1
            return self._make_token(TokenType.LPAREN, ch, start)
        if ch == ')':
            self.paren_depth = max(0, self.paren_depth - 1)
            return self._make_token(TokenType.RPAREN, ch, start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        raise self._error(start)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def _builtin_prefix(word: str) -> Optional[str]:
    """Return the built-in name `word` starts with when only digits follow."""
    for name in sorted(BUILTIN_FUNCTIONS, key=len, reverse=True):
        rest = word[len(name):]
        if word.startswith(name) and rest and all(_is_digit(c) for c in rest):
            return name
    return None


def tokenize(source: str) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize

    Returns:
        List of tokens, ending with EOF

    Raises:
        CalcError: On an unknown character or an out-of-range number
    """
    return Lexer(source).tokenize()
