"""
Statement Parser Context
========================

Token cursor shared by the statement parsers of one line.

Statement parsers consume keywords and punctuation themselves and call
parse_expression() wherever an expression may appear. The expression is
collected from the cursor up to the first token that cannot belong to
it at nesting depth zero:

- a separator: , ; ) ] }
- a clause keyword such as TO, STEP, THEN, WITH, FROM (see
  keywords.EXPRESSION_TERMINATORS)

The collected slice is then handed to the ExpressionParser, which must
consume all of it.
"""

from typing import Callable, Optional
import functools

from edubasic.expression_parser import parse_expression_tokens
from edubasic.expressions import Expression
from edubasic.keywords import EXPRESSION_TERMINATORS
from edubasic.lexer import Token, TokenType
from edubasic.parse_result import ParseResult
from edubasic.statements.base import Statement


STOP_TOKENS = frozenset({
    TokenType.COMMA,
    TokenType.SEMICOLON,
    TokenType.RPAREN,
    TokenType.RBRACKET,
    TokenType.RBRACE,
})

OPENING = frozenset({TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE})
CLOSING = frozenset({TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE})


class ParserContext:
    """
    Cursor over the tokens of a single line.

    Attributes:
        tokens: Token list, terminated by EOF
        position: Index of the current token
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.position = 0

    # =========================================================================
    # Cursor Operations
    # =========================================================================

    def peek(self, offset: int = 0) -> Token:
        index = self.position + offset
        if index >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if not self.is_at_end():
            self.position += 1
        return token

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def check(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def check_keyword(self, *words: str) -> bool:
        return self.peek().is_keyword(*words)

    def match(self, *types: TokenType) -> Optional[Token]:
        """Consume and return the current token if it has one of types."""
        if self.check(*types):
            return self.advance()
        return None

    def match_keyword(self, word: str) -> bool:
        """Consume the current token if it is the keyword word."""
        if self.check_keyword(word):
            self.advance()
            return True
        return False

    def _found(self) -> str:
        return "end of input" if self.is_at_end() else self.peek().value

    def consume(self, token_type: TokenType, description: str) -> ParseResult[Token]:
        """Consume a token of token_type, or fail with "Expected <description>"."""
        if self.check(token_type):
            return ParseResult.success(self.advance())
        return ParseResult.failure(f"Expected {description}, got: {self._found()}")

    def consume_keyword(self, word: str) -> ParseResult[Token]:
        if self.check_keyword(word):
            return ParseResult.success(self.advance())
        return ParseResult.failure(f"Expected {word}, got: {self._found()}")

    # =========================================================================
    # Embedded Expressions
    # =========================================================================

    def parse_expression(
        self,
        terminators: frozenset = EXPRESSION_TERMINATORS,
    ) -> ParseResult[Expression]:
        """
        Collect and parse one expression starting at the cursor.

        Args:
            terminators: Keywords that end the expression at depth zero.
                Statements with no trailing clause pass an empty set so
                operators such as s$ MID a TO b are collected whole.
        """
        start = self.position
        depth = 0
        while not self.is_at_end():
            token = self.peek()
            if depth == 0:
                if token.type in STOP_TOKENS:
                    break
                if token.type == TokenType.KEYWORD and token.value in terminators:
                    break
            if token.type in OPENING:
                depth += 1
            elif token.type in CLOSING:
                depth -= 1
            self.advance()

        if self.position == start:
            return ParseResult.failure("Expected expression")
        return parse_expression_tokens(self.tokens[start:self.position])

    # =========================================================================
    # Raising Variants
    # =========================================================================
    #
    # Used inside functions decorated with @statement_parser; the first
    # failure unwinds to the decorator and becomes the ParseResult error.

    def expect(self, token_type: TokenType, description: str) -> Token:
        result = self.consume(token_type, description)
        if not result:
            raise ParseFailure(result.error)
        return result.value

    def expect_keyword(self, word: str) -> Token:
        result = self.consume_keyword(word)
        if not result:
            raise ParseFailure(result.error)
        return result.value

    def expect_identifier(self, description: str) -> str:
        return self.expect(TokenType.IDENTIFIER, description).value

    def expression(self, terminators: frozenset = EXPRESSION_TERMINATORS) -> Expression:
        result = self.parse_expression(terminators)
        if not result:
            raise ParseFailure(result.error)
        return result.value

    def point(self) -> tuple[Expression, Expression]:
        """Parse a coordinate pair: ( x , y )."""
        self.expect(TokenType.LPAREN, "(")
        x = self.expression()
        self.expect(TokenType.COMMA, ",")
        y = self.expression()
        self.expect(TokenType.RPAREN, ")")
        return x, y


class ParseFailure(Exception):
    """Internal signal carrying a statement parse error message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def statement_parser(parse: Callable[[ParserContext], Statement]) -> Callable[[ParserContext], ParseResult[Statement]]:
    """
    Decorate a parse function that raises ParseFailure so that it
    returns a ParseResult instead.
    """
    @functools.wraps(parse)
    def wrapper(context: ParserContext) -> ParseResult[Statement]:
        try:
            return ParseResult.success(parse(context))
        except ParseFailure as e:
            return ParseResult.failure(e.message)
    return wrapper
