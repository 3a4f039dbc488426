"""
Expression compiler.

Reorders syntax-ordered tokens into postfix with an operator stack
(shunting yard):

- operands go straight to the output;
- an incoming operator first pops every stacked operator of greater
  precedence, then at most one operator of equal precedence when it is
  itself left associative, and is then pushed;
- parentheses group; a left parenthesis on the stack stops popping.

Unary operators and assignment are right associative, so ``-2 ^ 8`` is
``(-2) ^ 8`` after the prefix binds and ``a = b = 1`` assigns ``b`` first.
"""

from typing import Iterable, List

from .instructions import Expression
from .operators import Parenthesis, Token, TokenKind


def compile_expression(tokens: Iterable[Token], context: str) -> Expression:
    """Compile syntax-ordered tokens into an Expression over `context`."""
    output: List[Token] = []
    stack: List[Token] = []

    for token in tokens:
        if token.kind is TokenKind.OPERATOR:
            _push_operator(token, output, stack)
        elif token.kind is TokenKind.PARENTHESIS:
            if token.value is Parenthesis.LEFT:
                stack.append(token)
            else:
                while stack and stack[-1].kind is not TokenKind.PARENTHESIS:
                    output.append(stack.pop())
                if stack:
                    stack.pop()
        else:
            output.append(token)

    while stack:
        top = stack.pop()
        if top.kind is not TokenKind.PARENTHESIS:
            output.append(top)

    return Expression(context, tuple(output))


def _push_operator(token: Token, output: List[Token], stack: List[Token]) -> None:
    incoming = token.value
    while stack and stack[-1].kind is TokenKind.OPERATOR:
        top = stack[-1].value
        if top.precedence > incoming.precedence:
            output.append(stack.pop())
        else:
            break
    if (
        stack
        and stack[-1].kind is TokenKind.OPERATOR
        and stack[-1].value.precedence == incoming.precedence
        and incoming.left_associative
    ):
        output.append(stack.pop())
    stack.append(token)
