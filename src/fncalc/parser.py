"""
Recursive descent parser for fnCalc scripts.

Turns a token stream into a Program: the top-level instructions in source
order plus the function definitions of the input. Every expression is
compiled as soon as it is parsed, against its own source slice; positions
inside compiled expressions are offsets into that slice.

Grammar:

    program    := (statement | function)* EOF
    function   := 'fn' IDENT '(' [IDENT (',' IDENT)*] ')' block
    statement  := 'if' expr block ['else' (block | if-statement)]
                | 'while' expr block
                | 'return' expr | 'print' expr | 'break' | expr
    block      := '{' statement* '}'
    expr       := operand (binop operand)*
    operand    := prefix* primary
    prefix     := '-' | 'not' | builtin
    primary    := NUMBER | 'pi' | IDENT | IDENT '(' [expr (',' expr)*] ')'
                | '(' expr ')'
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import CalcError, error_syntax
from .lexer import tokenize
from .runtime import numeric
from .runtime import operators as ops
from .runtime.compiler import compile_expression
from .runtime.instructions import (
    Branch,
    Break,
    Expression,
    ExpressionStatement,
    Function,
    FunctionCall,
    Instruction,
    Print,
    Return,
    WhileLoop,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)


BINARY_OPERATORS = {
    TokenType.PLUS: ops.Operator.ADD,
    TokenType.MINUS: ops.Operator.SUB,
    TokenType.STAR: ops.Operator.MULT,
    TokenType.SLASH: ops.Operator.DIV,
    TokenType.PERCENT: ops.Operator.MOD,
    TokenType.CARET: ops.Operator.POW,
    TokenType.AND: ops.Operator.AND,
    TokenType.OR: ops.Operator.OR,
    TokenType.LT: ops.Operator.LESS_THAN,
    TokenType.GT: ops.Operator.GREATER_THAN,
    TokenType.EQ: ops.Operator.EQUAL,
    TokenType.NE: ops.Operator.NOT_EQUAL,
    TokenType.ASSIGN: ops.Operator.ASSIGN,
}


@dataclass(frozen=True)
class Program:
    """Parsed input: top-level instructions and function definitions."""
    instructions: Tuple[Instruction, ...]
    functions: Tuple[Function, ...]


class Parser:
    """
    Parser for fnCalc scripts.

    Usage:
        parser = Parser(tokens, source)
        program = parser.parse_program()
    """

    def __init__(self, tokens: List[Token], source: str):
        self.tokens = tokens
        self.source = source
        self.pos = 0
        self._lines = source.splitlines()

    # =========================================================================
    # Token navigation
    # =========================================================================

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[max(0, self.pos - 1)]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType) -> Token:
        """Consume token of expected type, or raise a syntax error."""
        if self._check(token_type):
            return self._advance()
        raise self._error()

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _skip_newlines(self) -> None:
        while self._check(TokenType.NEWLINE):
            self._advance()

    def _skip_separators(self) -> None:
        while self._check_any(TokenType.NEWLINE, TokenType.SEMICOLON):
            self._advance()

    def _end_statement(self) -> None:
        """A simple statement ends with a newline, ';', '}' or end of input."""
        if self._match(TokenType.NEWLINE, TokenType.SEMICOLON):
            return
        if self._check_any(TokenType.RBRACE, TokenType.EOF):
            return
        raise self._error()

    def _error(self, token: Optional[Token] = None) -> CalcError:
        """Syntax error at `token` (default: the current token)."""
        token = token or self._current()
        location = token.span.start
        line = self._lines[location.line - 1] if location.line <= len(self._lines) else ""
        return error_syntax(line, location.column - 1)

    def _text_from(self, start: Token) -> str:
        """Source text from `start` through the last consumed token."""
        return self.source[start.span.start.offset:self._previous().span.end.offset]

    # =========================================================================
    # Program structure
    # =========================================================================

    def parse_program(self) -> Program:
        instructions: List[Instruction] = []
        functions: List[Function] = []

        while True:
            self._skip_separators()
            if self._is_at_end():
                break
            if self._check(TokenType.FN):
                functions.append(self._parse_function())
            else:
                instructions.append(self._parse_statement(allow_break=False))

        return Program(tuple(instructions), tuple(functions))

    def _parse_function(self) -> Function:
        start = self._consume(TokenType.FN)
        name = self._consume(TokenType.IDENTIFIER).value
        self._consume(TokenType.LPAREN)

        parameters: List[str] = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._consume(TokenType.IDENTIFIER).value)
            while self._match(TokenType.COMMA):
                parameters.append(self._consume(TokenType.IDENTIFIER).value)
        self._consume(TokenType.RPAREN)

        body = self._parse_block(allow_break=False)
        return Function(name, self._text_from(start), tuple(parameters), body)

    def _parse_block(self, allow_break: bool = True) -> Tuple[Instruction, ...]:
        """Parse '{' statement* '}'."""
        self._consume(TokenType.LBRACE)
        body: List[Instruction] = []
        while True:
            self._skip_separators()
            if self._match(TokenType.RBRACE):
                break
            if self._is_at_end():
                raise self._error()
            body.append(self._parse_statement(allow_break))
        return tuple(body)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self, allow_break: bool) -> Instruction:
        token = self._current()

        if token.type == TokenType.IF:
            return self._parse_if()

        if token.type == TokenType.WHILE:
            return self._parse_while()

        if token.type == TokenType.RETURN:
            self._advance()
            expression = self._parse_expression()
            self._end_statement()
            return Return(expression)

        if token.type == TokenType.PRINT:
            self._advance()
            expression = self._parse_expression()
            self._end_statement()
            return Print(expression)

        if token.type == TokenType.BREAK:
            if not allow_break:
                raise self._error()
            self._advance()
            self._end_statement()
            return Break()

        if token.type == TokenType.FN:
            # definitions are only allowed at top level
            raise self._error()

        expression = self._parse_expression()
        self._end_statement()
        return ExpressionStatement(expression)

    def _parse_if(self) -> Branch:
        self._consume(TokenType.IF)
        condition = self._parse_expression()
        body = self._parse_block()

        else_body = None
        mark = self.pos
        self._skip_newlines()
        if self._match(TokenType.ELSE):
            if self._check(TokenType.IF):
                else_body = (self._parse_if(),)
            else:
                else_body = self._parse_block()
        else:
            self.pos = mark

        return Branch(condition, body, else_body)

    def _parse_while(self) -> WhileLoop:
        start = self._consume(TokenType.WHILE)
        condition = self._parse_expression()
        body = self._parse_block()
        return WhileLoop(self._text_from(start), condition, body)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse and compile an expression over its own source slice."""
        start = self._current()
        base = start.span.start.offset
        tokens: List[ops.Token] = []
        self._collect_expression(tokens, base)
        context = self.source[base:self._previous().span.end.offset]
        return compile_expression(tokens, context)

    def _collect_expression(self, tokens: List[ops.Token], base: int) -> None:
        """Append syntax-ordered tokens for operand (binop operand)*."""
        self._collect_operand(tokens, base)
        while self._current().type in BINARY_OPERATORS:
            token = self._advance()
            tokens.append(ops.Token.operator(
                token.span.start.offset - base, BINARY_OPERATORS[token.type]
            ))
            self._collect_operand(tokens, base)

    def _collect_operand(self, tokens: List[ops.Token], base: int) -> None:
        while True:
            token = self._current()
            if token.type == TokenType.MINUS:
                op = ops.Operator.NEG
            elif token.type == TokenType.NOT:
                op = ops.Operator.NOT
            elif token.type == TokenType.BUILTIN:
                op = ops.BUILTIN_OPERATORS[token.value]
            else:
                break
            self._advance()
            tokens.append(ops.Token.operator(token.span.start.offset - base, op))

        self._collect_primary(tokens, base)

    def _collect_primary(self, tokens: List[ops.Token], base: int) -> None:
        token = self._current()
        position = token.span.start.offset - base

        if token.type == TokenType.NUMBER:
            self._advance()
            tokens.append(ops.Token.number(position, token.value))

        elif token.type == TokenType.PI:
            self._advance()
            tokens.append(ops.Token.number(position, numeric.PI))

        elif token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                tokens.append(ops.Token.call(position, self._parse_call(token)))
            else:
                tokens.append(ops.Token.identifier(position, token.value))

        elif token.type == TokenType.LPAREN:
            self._advance()
            tokens.append(ops.Token.parenthesis(position, ops.Parenthesis.LEFT))
            self._collect_expression(tokens, base)
            closing = self._consume(TokenType.RPAREN)
            tokens.append(ops.Token.parenthesis(
                closing.span.start.offset - base, ops.Parenthesis.RIGHT
            ))

        else:
            raise self._error()

    def _parse_call(self, name: Token) -> FunctionCall:
        self._consume(TokenType.LPAREN)
        arguments: List[Expression] = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_expression())
        self._consume(TokenType.RPAREN)
        return FunctionCall(name.value, self._text_from(name), tuple(arguments))


def parse(source: str) -> Program:
    """
    Parse fnCalc source into a Program.

    Raises:
        CalcError: SYNTAX_ERROR or INVALID_NUMBER_LITERAL
    """
    tokens = tokenize(source)
    program = Parser(tokens, source).parse_program()
    logger.debug(
        "Parsed %d instruction(s) and %d function(s)",
        len(program.instructions), len(program.functions),
    )
    return program
