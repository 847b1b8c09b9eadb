"""
Build File Lexer (Tokenizer)

Converts BUILD / .bzl source text into a stream of tokens.
Handles: identifiers, keywords, operators, brackets, strings, numbers, comments.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional

from buildlint.errors import BuildLintError


class TokenType(Enum):
    """Types of tokens in build files."""
    IDENTIFIER = auto()      # cc_library, native, name
    KEYWORD = auto()         # and, or, not, in, load-free keywords
    STRING = auto()          # "quoted", 'quoted', """triple"""
    NUMBER = auto()          # 123, 0.5, 0x1f
    EQUALS = auto()          # =
    PLUS_EQUALS = auto()     # +=
    LPAREN = auto()          # (
    RPAREN = auto()          # )
    LBRACKET = auto()        # [
    RBRACKET = auto()        # ]
    LBRACE = auto()          # {
    RBRACE = auto()          # }
    COMMA = auto()           # ,
    COLON = auto()           # :
    SEMICOLON = auto()       # ;
    DOT = auto()             # .
    STAR = auto()            # *
    DOUBLE_STAR = auto()     # **
    PLUS = auto()            # +
    MINUS = auto()           # -
    SLASH = auto()           # /
    DOUBLE_SLASH = auto()    # //
    PERCENT = auto()         # %
    PIPE = auto()            # |
    COMPARE = auto()         # == != < > <= >=
    COMMENT = auto()         # # comment to end of line
    NEWLINE = auto()         # \n outside brackets
    EOF = auto()             # End of file


KEYWORDS = frozenset({"and", "or", "not", "in"})

# Single-character escapes inside string literals and the characters they stand for.
STRING_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v",
    '"': '"', "'": "'", "\\": "\\",
}

OCTAL_DIGITS = "01234567"
HEX_DIGITS = "0123456789abcdefABCDEF"

# Keywords we recognise but do not parse; reported as parse errors.
UNSUPPORTED_KEYWORDS = frozenset({
    "def", "if", "elif", "else", "for", "while", "return", "lambda",
    "break", "continue", "pass",
})


@dataclass
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __repr__(self):
        if self.type == TokenType.NEWLINE:
            return f"Token({self.type.name}, '\\n', L{self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


class LexerError(BuildLintError):
    """Error during lexical analysis."""
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Lexer error at line {line}, column {column}: {message}")


class Lexer:
    """
    Tokenizer for build files.

    Newlines are significant only outside of (), [] and {}; inside brackets
    they are skipped like any other whitespace.

    Usage:
        lexer = Lexer(source_text)
        tokens = list(lexer.tokenize())
    """

    SINGLE_CHARS = {
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        '[': TokenType.LBRACKET,
        ']': TokenType.RBRACKET,
        '{': TokenType.LBRACE,
        '}': TokenType.RBRACE,
        ',': TokenType.COMMA,
        ':': TokenType.COLON,
        ';': TokenType.SEMICOLON,
        '.': TokenType.DOT,
        '-': TokenType.MINUS,
        '%': TokenType.PERCENT,
        '|': TokenType.PIPE,
    }

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        return ch == '_' or ch.isalpha()

    @staticmethod
    def _is_ident_cont(ch: str) -> bool:
        return ch == '_' or ch.isalnum()

    def __init__(self, source: str, filename: str = "<unknown>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.length = len(source)
        self.depth = 0  # bracket nesting

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return ch

    def _token(self, token_type: TokenType, value: str, line: int, column: int) -> Token:
        """Build a token ending at the current position (exclusive)."""
        return Token(token_type, value, line, column, self.line, self.column)

    def _skip_whitespace(self) -> None:
        """Skip spaces, tabs and line continuations (but not newlines)."""
        while True:
            ch = self._current()
            if ch in (' ', '\t', '\r'):
                self._advance()
            elif ch == '\\' and self._peek() == '\n':
                self._advance()
                self._advance()
            else:
                break

    def _read_string(self, quote_char: str, raw: bool = False) -> str:
        """
        Read a quoted string, handling escapes and triple quotes.

        In a raw string a backslash is kept together with the character after
        it, so r"\\"" is a two-character string.
        """
        start_line = self.line
        start_col = self.column

        triple = self._peek() == quote_char and self._peek(2) == quote_char
        quote_len = 3 if triple else 1
        for _ in range(quote_len):
            self._advance()

        result = []
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated string", start_line, start_col)
            if ch == '\n' and not triple:
                raise LexerError("Unterminated string", start_line, start_col)
            if ch == quote_char:
                if not triple:
                    self._advance()
                    break
                if self._peek() == quote_char and self._peek(2) == quote_char:
                    for _ in range(3):
                        self._advance()
                    break
            if ch == '\\' and raw:
                result.append(ch)
                self._advance()
                if self._current() is not None:
                    result.append(self._current())
                    self._advance()
            elif ch == '\\':
                self._advance()
                esc = self._current()
                if esc in STRING_ESCAPES:
                    result.append(STRING_ESCAPES[esc])
                    self._advance()
                elif esc == '\n':
                    self._advance()  # escaped newline joins lines
                elif esc is not None and esc in OCTAL_DIGITS:
                    result.append(self._read_octal_escape())
                elif esc == 'x':
                    self._advance()
                    result.append(self._read_hex_escape())
                else:
                    # Unknown escape, keep as-is
                    result.append('\\')
                    if esc:
                        result.append(esc)
                        self._advance()
            else:
                result.append(ch)
                self._advance()

        return ''.join(result)

    def _read_octal_escape(self) -> str:
        """\\N, \\NN or \\NNN with octal digits."""
        digits = ''
        while len(digits) < 3 and self._current() is not None and self._current() in OCTAL_DIGITS:
            digits += self._advance()
        return chr(int(digits, 8))

    def _read_hex_escape(self) -> str:
        """\\xHH with exactly two hex digits (the 'x' already consumed)."""
        digits = ''
        for _ in range(2):
            ch = self._current()
            if ch is None or ch not in HEX_DIGITS:
                raise LexerError("Invalid \\x escape in string", self.line, self.column)
            digits += ch
            self._advance()
        return chr(int(digits, 16))

    def _read_identifier(self) -> str:
        result = []
        while True:
            ch = self._current()
            if ch is not None and self._is_ident_cont(ch):
                result.append(ch)
                self._advance()
            else:
                break
        return ''.join(result)

    def _read_number(self) -> str:
        """Read an integer, hex/octal literal or decimal."""
        result = []
        while True:
            ch = self._current()
            if ch is None:
                break
            if ch.isalnum() or ch == '_':
                result.append(ch)
                self._advance()
            elif ch == '.' and self._peek() is not None and self._peek().isdigit():
                result.append(ch)
                self._advance()
            else:
                break
        return ''.join(result)

    def _read_comment(self) -> str:
        """Read a comment from # to end of line."""
        result = []
        self._advance()
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                break
            result.append(ch)
            self._advance()
        return ''.join(result)

    def tokenize(self, include_comments: bool = False) -> Iterator[Token]:
        """
        Generate tokens from the source.

        Args:
            include_comments: If True, emit COMMENT tokens. Otherwise skip them.
        """
        while True:
            self._skip_whitespace()

            ch = self._current()
            start_line = self.line
            start_col = self.column

            if ch is None:
                yield self._token(TokenType.EOF, '', start_line, start_col)
                break

            if ch == '\n':
                self._advance()
                if self.depth == 0:
                    yield self._token(TokenType.NEWLINE, '\n', start_line, start_col)
                continue

            if ch == '#':
                comment = self._read_comment()
                if include_comments:
                    yield self._token(TokenType.COMMENT, comment, start_line, start_col)
                continue

            if ch in ('"', "'"):
                value = self._read_string(ch)
                yield self._token(TokenType.STRING, value, start_line, start_col)
                continue

            # Raw string: r"..." or R'...'
            if ch in ('r', 'R') and self._peek() in ('"', "'"):
                self._advance()
                value = self._read_string(self._current(), raw=True)
                yield self._token(TokenType.STRING, value, start_line, start_col)
                continue

            # Operators (multi-char first)
            if ch == '*':
                self._advance()
                if self._current() == '*':
                    self._advance()
                    yield self._token(TokenType.DOUBLE_STAR, '**', start_line, start_col)
                else:
                    yield self._token(TokenType.STAR, '*', start_line, start_col)
                continue

            if ch == '/':
                self._advance()
                if self._current() == '/':
                    self._advance()
                    yield self._token(TokenType.DOUBLE_SLASH, '//', start_line, start_col)
                else:
                    yield self._token(TokenType.SLASH, '/', start_line, start_col)
                continue

            if ch == '+':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._token(TokenType.PLUS_EQUALS, '+=', start_line, start_col)
                else:
                    yield self._token(TokenType.PLUS, '+', start_line, start_col)
                continue

            if ch == '=':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._token(TokenType.COMPARE, '==', start_line, start_col)
                else:
                    yield self._token(TokenType.EQUALS, '=', start_line, start_col)
                continue

            if ch in ('<', '>', '!'):
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._token(TokenType.COMPARE, ch + '=', start_line, start_col)
                elif ch == '!':
                    raise LexerError("Unexpected character '!'", start_line, start_col)
                else:
                    yield self._token(TokenType.COMPARE, ch, start_line, start_col)
                continue

            if ch.isdigit() or (ch == '.' and self._peek() is not None and self._peek().isdigit()):
                value = self._read_number()
                yield self._token(TokenType.NUMBER, value, start_line, start_col)
                continue

            if ch in self.SINGLE_CHARS:
                self._advance()
                if ch in '([{':
                    self.depth += 1
                elif ch in ')]}':
                    self.depth = max(0, self.depth - 1)
                yield self._token(self.SINGLE_CHARS[ch], ch, start_line, start_col)
                continue

            if self._is_ident_start(ch):
                value = self._read_identifier()
                if value in KEYWORDS:
                    yield self._token(TokenType.KEYWORD, value, start_line, start_col)
                else:
                    yield self._token(TokenType.IDENTIFIER, value, start_line, start_col)
                continue

            raise LexerError(f"Unexpected character {ch!r}", start_line, start_col)

    def tokenize_all(self, include_comments: bool = False) -> List[Token]:
        """Convenience method to get all tokens as a list."""
        return list(self.tokenize(include_comments))


def tokenize_file(filepath: str, **kwargs) -> List[Token]:
    """Tokenize a file and return all tokens. Handles encoding fallback."""
    lexer = Lexer(read_source(filepath), filename=filepath)
    return lexer.tokenize_all(**kwargs)


def read_source(filepath: str) -> str:
    """Read a source file, trying UTF-8 with BOM, then UTF-8, then latin-1."""
    for encoding in ['utf-8-sig', 'utf-8', 'latin-1']:
        try:
            with open(filepath, 'r', encoding=encoding) as f:
                return f.read()
        except UnicodeDecodeError:
            continue
    raise LexerError(f"Cannot decode {filepath}", 0, 0)
