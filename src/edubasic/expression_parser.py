"""
EduBASIC Expression Parser
==========================

Recursive descent parser that turns a token slice into an expression tree.

Statement parsers do not call this directly: they collect the tokens of
one expression (see parsers.context.ParserContext.parse_expression) and
hand the slice here. The slice must form exactly one expression.

Expression Precedence (lowest to highest)
-----------------------------------------
1.  implication    IMP
2.  exclusive or   XOR XNOR
3.  disjunction    OR NOR
4.  conjunction    AND NAND
5.  negation       NOT (prefix)
6.  comparison     = <> < > <= >=
7.  string ops     LEFT RIGHT MID..TO INSTR REPLACE..WITH JOIN STARTSWITH ENDSWITH
8.  array search   FIND INDEXOF INCLUDES
9.  additive       + -
10. multiplicative * / MOD
11. unary          - +
12. power          ^ ** (right associative)
13. postfix        ! DEG RAD .member [index] [i, j] [a TO b]
14. primary        literal, [array], { structure }, constant, variable,
                   keyword function, |abs|, ( expr )

Example Usage
-------------
>>> from edubasic.expression_parser import parse_expression_text
>>> result = parse_expression_text("2 + 3 * x%")
>>> str(result.value)
'2 + 3 * x%'
"""

from typing import Callable, Optional
import cmath
import math

from edubasic.errors import TokenizeError
from edubasic.expressions import (
    AbsBars,
    ArrayLiteral,
    BinaryOp,
    Constant,
    Expression,
    FunctionCall,
    IndexAccess,
    InstrOp,
    Literal,
    MemberAccess,
    MidOp,
    Parenthesized,
    PostfixOp,
    ReplaceOp,
    SliceAccess,
    StructureLiteral,
    UnaryOp,
    VariableRef,
)
from edubasic.keywords import (
    ARRAY_SEARCH_OPERATORS,
    CONSTANTS,
    POSTFIX_OPERATORS,
    STRING_OPERATORS,
    UNARY_FUNCTIONS,
)
from edubasic.lexer import Token, TokenType, tokenize
from edubasic.parse_result import ParseResult


class ExpressionSyntaxError(Exception):
    """Raised inside the parser; converted to a ParseResult failure at the boundary."""
    pass


COMPARISON_TOKENS = {
    TokenType.EQUAL: "=",
    TokenType.NOT_EQUAL: "<>",
    TokenType.LESS: "<",
    TokenType.GREATER: ">",
    TokenType.LESS_EQUAL: "<=",
    TokenType.GREATER_EQUAL: ">=",
}

ADDITIVE_TOKENS = {TokenType.PLUS: "+", TokenType.MINUS: "-"}

MULTIPLICATIVE_TOKENS = {TokenType.STAR: "*", TokenType.SLASH: "/"}

POWER_TOKENS = {TokenType.CARET: "^", TokenType.STAR_STAR: "**"}


def complex_from_text(text: str) -> complex:
    """
    Convert COMPLEX token text ("4i", "3+4i", "1.5E2-2i") to a complex.
    """
    body = text[:-1]
    split = -1
    for i in range(len(body) - 1, 0, -1):
        if body[i] in "+-" and body[i - 1] not in "Ee":
            split = i
            break
    if split < 0:
        return complex(0.0, float(body))
    return complex(float(body[:split]), float(body[split:]))


class ExpressionParser:
    """
    Parses one complete expression from a token list.

    Usage:
        result = ExpressionParser(tokens).parse()
        if result.ok:
            tree = result.value

    The token list may or may not end with EOF; anything left over after
    the expression is an error.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            last = self.tokens[-1] if self.tokens else None
            self.tokens.append(
                Token(TokenType.EOF, "", last.line if last else 1, last.column if last else 1)
            )
        self._pos = 0

    def parse(self) -> ParseResult[Expression]:
        """Parse the whole token list as a single expression."""
        try:
            if self._at_end():
                raise ExpressionSyntaxError("Expected expression")
            expr = self.parse_expression()
            if not self._at_end():
                token = self._peek()
                raise ExpressionSyntaxError(f"Unexpected token: {token.value} at line {token.line}")
            return ParseResult.success(expr)
        except ExpressionSyntaxError as e:
            return ParseResult.failure(str(e))

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self, offset: int = 0) -> Token:
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> Token:
        token = self._peek()
        if not self._at_end():
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _check_keyword(self, *words: str) -> bool:
        return self._peek().is_keyword(*words)

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, description: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._unexpected(description)

    def _expect_keyword(self, word: str) -> Token:
        if self._check_keyword(word):
            return self._advance()
        raise self._unexpected(word)

    def _unexpected(self, expected: str) -> ExpressionSyntaxError:
        token = self._peek()
        found = token.value if token.type != TokenType.EOF else "end of input"
        return ExpressionSyntaxError(f"Expected {expected}, got: {found}")

    # =========================================================================
    # Binary Levels
    # =========================================================================

    def parse_expression(self) -> Expression:
        return self._parse_imp()

    def _parse_keyword_binary(
        self,
        operand_parser: Callable[[], Expression],
        keywords: frozenset | tuple,
    ) -> Expression:
        """Left-associative binary level whose operators are keywords."""
        expr = operand_parser()
        while self._peek().type == TokenType.KEYWORD and self._peek().value in keywords:
            op = self._advance().value
            expr = BinaryOp(expr, op, operand_parser())
        return expr

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[TokenType, str],
        keywords: tuple = (),
    ) -> Expression:
        """Left-associative binary level for punctuation (and keyword) operators."""
        expr = operand_parser()
        while True:
            token = self._peek()
            if token.type in operators:
                op = operators[token.type]
            elif token.type == TokenType.KEYWORD and token.value in keywords:
                op = token.value
            else:
                return expr
            self._advance()
            expr = BinaryOp(expr, op, operand_parser())

    def _parse_imp(self) -> Expression:
        return self._parse_keyword_binary(self._parse_xor, ("IMP",))

    def _parse_xor(self) -> Expression:
        return self._parse_keyword_binary(self._parse_or, ("XOR", "XNOR"))

    def _parse_or(self) -> Expression:
        return self._parse_keyword_binary(self._parse_and, ("OR", "NOR"))

    def _parse_and(self) -> Expression:
        return self._parse_keyword_binary(self._parse_not, ("AND", "NAND"))

    def _parse_not(self) -> Expression:
        if self._check_keyword("NOT"):
            self._advance()
            return UnaryOp("NOT", self._parse_not())
        return self._parse_comparison()

    def _parse_comparison(self) -> Expression:
        return self._parse_binary(self._parse_string_operators, COMPARISON_TOKENS)

    def _parse_string_operators(self) -> Expression:
        expr = self._parse_array_search()
        while self._peek().type == TokenType.KEYWORD and self._peek().value in STRING_OPERATORS:
            op = self._advance().value
            if op == "MID":
                start = self._parse_array_search()
                self._expect_keyword("TO")
                expr = MidOp(expr, start, self._parse_array_search())
            elif op == "REPLACE":
                search = self._parse_array_search()
                self._expect_keyword("WITH")
                expr = ReplaceOp(expr, search, self._parse_array_search())
            elif op == "INSTR":
                needle = self._parse_array_search()
                start = None
                if self._check_keyword("FROM"):
                    self._advance()
                    start = self._parse_array_search()
                expr = InstrOp(expr, needle, start)
            else:
                expr = BinaryOp(expr, op, self._parse_array_search())
        return expr

    def _parse_array_search(self) -> Expression:
        return self._parse_keyword_binary(self._parse_additive, ARRAY_SEARCH_OPERATORS)

    def _parse_additive(self) -> Expression:
        return self._parse_binary(self._parse_multiplicative, ADDITIVE_TOKENS)

    def _parse_multiplicative(self) -> Expression:
        return self._parse_binary(self._parse_unary, MULTIPLICATIVE_TOKENS, ("MOD",))

    # =========================================================================
    # Unary, Power and Postfix
    # =========================================================================

    def _parse_unary(self) -> Expression:
        if self._check(TokenType.MINUS, TokenType.PLUS):
            op = self._advance().value
            return UnaryOp(op, self._parse_unary())
        return self._parse_power()

    def _parse_power(self) -> Expression:
        base = self._parse_postfix()
        if self._check(*POWER_TOKENS):
            op = POWER_TOKENS[self._advance().type]
            # right associative; the exponent may carry its own sign
            return BinaryOp(base, op, self._parse_unary())
        return base

    def _parse_postfix(self) -> Expression:
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.EXCLAMATION):
                expr = PostfixOp(expr, "!")
            elif self._peek().type == TokenType.KEYWORD and self._peek().value in POSTFIX_OPERATORS:
                expr = PostfixOp(expr, self._advance().value)
            elif self._match(TokenType.DOT):
                member = self._peek()
                if member.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
                    raise self._unexpected("member name")
                self._advance()
                expr = MemberAccess(expr, member.value)
            elif self._match(TokenType.LBRACKET):
                expr = self._parse_bracket_suffix(expr)
            else:
                return expr

    def _parse_bracket_suffix(self, base: Expression) -> Expression:
        """After '[': index list, or slice bounds separated by TO."""
        start: Optional[Expression] = None
        if self._match(TokenType.ELLIPSIS) is None:
            start = self.parse_expression()

        if self._check_keyword("TO"):
            self._advance()
            end: Optional[Expression] = None
            if self._match(TokenType.ELLIPSIS) is None:
                end = self.parse_expression()
            self._expect(TokenType.RBRACKET, "]")
            return SliceAccess(base, start, end)

        if start is None:
            raise self._unexpected("TO")

        indices = [start]
        while self._match(TokenType.COMMA):
            indices.append(self.parse_expression())
        self._expect(TokenType.RBRACKET, "]")
        return IndexAccess(base, indices)

    # =========================================================================
    # Primary
    # =========================================================================

    def _parse_primary(self) -> Expression:
        token = self._peek()

        if token.type == TokenType.INTEGER:
            self._advance()
            return Literal(int(token.value))

        if token.type == TokenType.REAL:
            self._advance()
            value = float(token.value)
            if not math.isfinite(value):
                raise ExpressionSyntaxError(f"Number out of range: {token.value}")
            return Literal(value)

        if token.type == TokenType.COMPLEX:
            self._advance()
            value = complex_from_text(token.value)
            if not cmath.isfinite(value):
                raise ExpressionSyntaxError(f"Number out of range: {token.value}")
            return Literal(value)

        if token.type == TokenType.STRING:
            self._advance()
            return Literal(token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return VariableRef(token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            inner = self.parse_expression()
            self._expect(TokenType.RPAREN, ")")
            return Parenthesized(inner)

        if token.type == TokenType.LBRACKET:
            self._advance()
            return self._parse_array_literal()

        if token.type == TokenType.LBRACE:
            self._advance()
            return self._parse_structure_literal()

        if token.type == TokenType.PIPE:
            self._advance()
            inner = self.parse_expression()
            self._expect(TokenType.PIPE, "|")
            return AbsBars(inner)

        if token.type == TokenType.KEYWORD:
            if token.value in CONSTANTS:
                self._advance()
                return Constant(token.value)
            if token.value in UNARY_FUNCTIONS:
                self._advance()
                return FunctionCall(token.value, self._parse_unary())

        if token.type == TokenType.EOF:
            raise ExpressionSyntaxError("Expected expression")
        raise ExpressionSyntaxError(f"Unexpected token: {token.value} at line {token.line}")

    def _parse_array_literal(self) -> Expression:
        elements: list[Expression] = []
        if self._match(TokenType.RBRACKET):
            return ArrayLiteral(elements)
        elements.append(self.parse_expression())
        while self._match(TokenType.COMMA):
            elements.append(self.parse_expression())
        self._expect(TokenType.RBRACKET, "]")
        return ArrayLiteral(elements)

    def _parse_structure_literal(self) -> Expression:
        members: list[tuple[str, Expression]] = []
        if self._match(TokenType.RBRACE):
            return StructureLiteral(members)
        while True:
            name = self._peek()
            if name.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
                raise self._unexpected("member name")
            self._advance()
            self._expect(TokenType.COLON, ":")
            members.append((name.value, self.parse_expression()))
            if not self._match(TokenType.COMMA):
                break
        self._expect(TokenType.RBRACE, "}")
        return StructureLiteral(members)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_expression_tokens(tokens: list[Token]) -> ParseResult[Expression]:
    """Parse a token slice as exactly one expression."""
    return ExpressionParser(tokens).parse()


def parse_expression_text(source: str) -> ParseResult[Expression]:
    """Tokenize and parse source text as exactly one expression."""
    try:
        tokens = tokenize(source)
    except TokenizeError as e:
        return ParseResult.failure(e.message)
    return ExpressionParser(tokens).parse()
