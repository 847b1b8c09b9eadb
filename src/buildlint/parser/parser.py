"""
Build File Parser

Converts a token stream from the lexer into a File syntax tree.
Recursive descent over the Starlark subset found in BUILD and .bzl files:
calls, dotted access, literals, unary/binary operators, keyword arguments,
top-level assignments and load statements.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from buildlint.errors import BuildLintError
from buildlint.parser.lexer import Lexer, Token, TokenType, UNSUPPORTED_KEYWORDS, read_source
from buildlint.parser.nodes import (
    AssignExpr,
    BinaryExpr,
    CallExpr,
    DictExpr,
    DotExpr,
    Expr,
    File,
    FileType,
    Ident,
    KeyValueExpr,
    ListExpr,
    LoadStmt,
    NumberExpr,
    Position,
    StringExpr,
    UnaryExpr,
)

logger = logging.getLogger(__name__)


class ParseError(BuildLintError):
    """Error during parsing."""
    def __init__(self, message: str, token: Token = None, line: int = None, column: int = None):
        self.token = token
        self.line = line or (token.line if token else 0)
        self.column = column or (token.column if token else 0)
        self.message = message
        if token:
            super().__init__(f"Parse error at line {token.line}, column {token.column}: {message}")
        elif line:
            super().__init__(f"Parse error at line {line}, column {column or 0}: {message}")
        else:
            super().__init__(f"Parse error: {message}")


def _start(token: Token) -> Position:
    return Position(token.line, token.column)


def _end(token: Token) -> Position:
    return Position(token.end_line, token.end_column)


class Parser:
    """
    Parser for build files.

    Usage:
        parser = Parser(tokens, "BUILD", FileType.BUILD)
        f = parser.parse()
    """

    # Binary operators by precedence level, loosest first.
    BINARY_LEVELS = [
        {"or"},
        {"and"},
        # "not" (unary) sits here
        {"==", "!=", "<", ">", "<=", ">=", "in", "not in"},
        {"|"},
        {"+", "-"},
        {"*", "/", "//", "%"},
    ]

    def __init__(self, tokens: List[Token], filename: str = "<unknown>",
                 file_type: FileType = FileType.DEFAULT):
        self.tokens = tokens
        self.filename = filename
        self.file_type = file_type
        self.pos = 0
        self.length = len(tokens)
        self.last: Optional[Token] = None

    def _current(self) -> Optional[Token]:
        """Get current token or None if at end."""
        if self.pos >= self.length:
            return None
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Optional[Token]:
        """Peek ahead by offset tokens."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.tokens[pos]

    def _advance(self) -> Optional[Token]:
        """Advance one token and return it."""
        token = self._current()
        if token is not None:
            self.pos += 1
            self.last = token
        return token

    def _check(self, token_type: TokenType, value: str = None) -> bool:
        token = self._current()
        if token is None or token.type != token_type:
            return False
        return value is None or token.value == value

    def _expect(self, token_type: TokenType, message: str = None) -> Token:
        """Expect a specific token type, raise error if not found."""
        token = self._current()
        if token is None:
            raise ParseError(message or f"Expected {token_type.name}, got end of file")
        if token.type != token_type:
            raise ParseError(
                message or f"Expected {token_type.name}, got {token.type.name}",
                token
            )
        return self._advance()

    def parse(self) -> File:
        """Parse the token stream into a File."""
        f = File(path=self.filename, type=self.file_type, start=Position(1, 1))

        while True:
            self._skip_separators()
            token = self._current()
            if token is None or token.type == TokenType.EOF:
                f.end = _end(token) if token else f.start
                break

            f.stmts.append(self._parse_statement())

            token = self._current()
            if token is not None and token.type not in (
                    TokenType.NEWLINE, TokenType.SEMICOLON, TokenType.EOF):
                raise ParseError(f"Unexpected token {token.value!r} after statement", token)

        logger.debug(f"Parsed {self.filename}: {len(f.stmts)} statements")
        return f

    def _skip_separators(self) -> None:
        while self._check(TokenType.NEWLINE) or self._check(TokenType.SEMICOLON):
            self._advance()

    def _parse_statement(self) -> Expr:
        token = self._current()

        if token.type == TokenType.IDENTIFIER and token.value in UNSUPPORTED_KEYWORDS:
            raise ParseError(f"Unsupported statement '{token.value}'", token)

        if (token.type == TokenType.IDENTIFIER and token.value == "load"
                and self._peek() is not None and self._peek().type == TokenType.LPAREN):
            return self._parse_load()

        expr = self._parse_expression()

        if self._check(TokenType.EQUALS) or self._check(TokenType.PLUS_EQUALS):
            op = self._advance().value
            rhs = self._parse_expression()
            return AssignExpr(lhs=expr, op=op, rhs=rhs, start=expr.start, end=rhs.end)

        return expr

    def _parse_load(self) -> LoadStmt:
        load_token = self._advance()
        self._expect(TokenType.LPAREN)
        module_token = self._expect(TokenType.STRING, "load() requires a module string")
        module = StringExpr(value=module_token.value, start=_start(module_token), end=_end(module_token))

        args = []
        while self._check(TokenType.COMMA):
            self._advance()
            if self._check(TokenType.RPAREN):
                break
            args.append(self._parse_argument())

        close = self._expect(TokenType.RPAREN, "Expected ')' to close load()")
        return LoadStmt(module=module, args=args, start=_start(load_token), end=_end(close))

    def _parse_expression(self, level: int = 0) -> Expr:
        """Parse a binary expression at the given precedence level."""
        if level == 2 and self._check(TokenType.KEYWORD, "not"):
            op_token = self._advance()
            operand = self._parse_expression(level)
            return UnaryExpr(op="not", x=operand, start=_start(op_token), end=operand.end)

        if level >= len(self.BINARY_LEVELS):
            return self._parse_unary()

        x = self._parse_expression(level + 1)
        while True:
            op = self._binary_operator()
            if op is None or op not in self.BINARY_LEVELS[level]:
                return x
            self._advance()
            if op == "not in":
                self._advance()
            y = self._parse_expression(level + 1)
            x = BinaryExpr(op=op, x=x, y=y, start=x.start, end=y.end)

    def _binary_operator(self) -> Optional[str]:
        token = self._current()
        if token is None:
            return None
        if token.type == TokenType.KEYWORD:
            if token.value == "not":
                following = self._peek()
                if following is not None and following.type == TokenType.KEYWORD and following.value == "in":
                    return "not in"
                return None
            if token.value in ("and", "or", "in"):
                return token.value
            return None
        if token.type in (TokenType.COMPARE, TokenType.PLUS, TokenType.MINUS, TokenType.STAR,
                          TokenType.SLASH, TokenType.DOUBLE_SLASH, TokenType.PERCENT, TokenType.PIPE):
            return token.value
        return None

    def _parse_unary(self) -> Expr:
        if self._check(TokenType.MINUS) or self._check(TokenType.PLUS):
            op_token = self._advance()
            operand = self._parse_unary()
            return UnaryExpr(op=op_token.value, x=operand, start=_start(op_token), end=operand.end)
        return self._parse_postfix(self._parse_primary())

    def _parse_postfix(self, expr: Expr) -> Expr:
        """Parse any chain of .name and (...) after a primary expression."""
        while True:
            if self._check(TokenType.DOT):
                self._advance()
                name = self._expect(TokenType.IDENTIFIER, "Expected member name after '.'")
                expr = DotExpr(x=expr, name=name.value, start=expr.start, end=_end(name))
            elif self._check(TokenType.LPAREN):
                self._advance()
                args = self._parse_sequence(TokenType.RPAREN, self._parse_argument)
                close = self._expect(TokenType.RPAREN, "Expected ')' to close call")
                expr = CallExpr(func=expr, args=args, start=expr.start, end=_end(close))
            else:
                return expr

    def _parse_argument(self) -> Expr:
        """A call argument: value, name = value, *args or **kwargs."""
        token = self._current()
        if token is not None and token.type in (TokenType.STAR, TokenType.DOUBLE_STAR):
            self._advance()
            operand = self._parse_expression()
            return UnaryExpr(op=token.value, x=operand, start=_start(token), end=operand.end)

        if (token is not None and token.type == TokenType.IDENTIFIER
                and self._peek() is not None and self._peek().type == TokenType.EQUALS):
            self._advance()
            self._advance()
            name = Ident(name=token.value, start=_start(token), end=_end(token))
            value = self._parse_expression()
            return AssignExpr(lhs=name, op="=", rhs=value, start=name.start, end=value.end)

        return self._parse_expression()

    def _parse_sequence(self, closer: TokenType, parse_item) -> List[Expr]:
        """Comma-separated items up to (not including) closer; trailing comma allowed."""
        items = []
        while not self._check(closer):
            if self._current() is None or self._check(TokenType.EOF):
                raise ParseError(f"Expected {closer.name}, got end of file")
            items.append(parse_item())
            if self._check(TokenType.COMMA):
                self._advance()
            elif not self._check(closer):
                token = self._current()
                raise ParseError(f"Expected ',' or {closer.name}, got {token.value!r}", token)
        return items

    def _parse_dict_entry(self) -> KeyValueExpr:
        key = self._parse_expression()
        self._expect(TokenType.COLON, "Expected ':' in dict entry")
        value = self._parse_expression()
        return KeyValueExpr(key=key, value=value, start=key.start, end=value.end)

    def _parse_primary(self) -> Expr:
        token = self._current()
        if token is None:
            raise ParseError("Unexpected end of input")

        if token.type == TokenType.IDENTIFIER:
            if token.value in UNSUPPORTED_KEYWORDS:
                raise ParseError(f"Unsupported expression '{token.value}'", token)
            self._advance()
            return Ident(name=token.value, start=_start(token), end=_end(token))

        if token.type == TokenType.STRING:
            self._advance()
            # Adjacent string literals are concatenated
            value = token.value
            last = token
            while self._check(TokenType.STRING):
                last = self._advance()
                value += last.value
            return StringExpr(value=value, start=_start(token), end=_end(last))

        if token.type == TokenType.NUMBER:
            self._advance()
            return NumberExpr(value=token.value, start=_start(token), end=_end(token))

        if token.type == TokenType.LBRACKET:
            self._advance()
            items = self._parse_sequence(TokenType.RBRACKET, self._parse_expression)
            close = self._expect(TokenType.RBRACKET, "Expected ']' to close list")
            return ListExpr(items=items, start=_start(token), end=_end(close))

        if token.type == TokenType.LBRACE:
            self._advance()
            entries = self._parse_sequence(TokenType.RBRACE, self._parse_dict_entry)
            close = self._expect(TokenType.RBRACE, "Expected '}' to close dict")
            return DictExpr(entries=entries, start=_start(token), end=_end(close))

        if token.type == TokenType.LPAREN:
            self._advance()
            inner = self._parse_expression()
            close = self._expect(TokenType.RPAREN, "Expected ')'")
            # Parentheses widen the span but do not create a node
            inner.start, inner.end = _start(token), _end(close)
            return inner

        raise ParseError(f"Unexpected token {token.value!r}", token)


def file_type_for_path(path: Union[str, Path]) -> FileType:
    """Infer the dialect from a file name."""
    name = Path(path).name
    if name in ("BUILD", "BUILD.bazel") or name.endswith(".BUILD"):
        return FileType.BUILD
    if name.endswith(".bzl"):
        return FileType.BZL
    return FileType.DEFAULT


def parse_source(source: str, filename: str = "<unknown>",
                 file_type: Optional[FileType] = None) -> File:
    """Parse source code string into a File."""
    if file_type is None:
        file_type = file_type_for_path(filename)
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize_all()
    parser = Parser(tokens, filename, file_type)
    return parser.parse()


def parse_file(filepath: Union[str, Path], file_type: Optional[FileType] = None) -> File:
    """Parse a file into a File tree. Handles encoding fallback."""
    filepath = str(filepath)
    return parse_source(read_source(filepath), filepath, file_type)
