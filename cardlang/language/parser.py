"""
Parser - token stream to Program.

Recursive descent over this grammar:

    program     := (declaration | function)* EOF
    declaration := 'name' IDENT | 'deck' expr | 'players' INT
                 | 'current_player' INT | 'stack' IDENT | 'stack' 'player' ':' IDENT
    function    := 'def' IDENT '(' [IDENT (',' IDENT)*] ')' block
    block       := '{' statement* '}'
    statement   := 'check' '(' expr ')'
                 | 'return' '(' [expr] ')'
                 | 'if' '(' expr ')' block
                 | expr '>' expr [INT | 'end' | '-' expr]
                 | expr
    expr        := and ('|' and)*
    and         := not ('&' not)*
    not         := 'not' not | compare
    compare     := postfix ['is' ['not'] postfix]
    postfix     := primary (':' IDENT)*
    primary     := INT | 'true' | 'false' | IDENT ['(' args ')']
                 | 'deck' | 'players' | 'current_player' | '(' expr ')'

Any violation raises ParseError; a Program is only returned once the whole
token stream has been consumed and bind-time validation has passed.
"""

from __future__ import annotations

from ..errors import ParseError
from . import ast
from .tokens import Token, TokenType
from .validation import validate_program

_CONTAINER_NODES = (ast.Identifier, ast.Keyword, ast.Attribute, ast.Call)
_VALUE_KEYWORDS = {TokenType.DECK, TokenType.PLAYERS, TokenType.CURRENT_PLAYER}


class Parser:
    """
    Usage:
        program = Parser(tokens).parse()
    """

    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            tokens = list(tokens) + [
                Token(TokenType.EOF, "", last.line if last else 1, last.col if last else 1)
            ]
        self.tokens = tokens
        self.pos = 0

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _advance(self) -> Token:
        token = self._peek()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _match(self, token_type: TokenType) -> Token | None:
        if self._check(token_type):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, expected: str | None = None) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise ParseError(
                token.line, token.col, expected or f"'{token_type.value}'", token.describe()
            )
        return self._advance()

    def _error(self, expected: str, token: Token | None = None) -> ParseError:
        token = token or self._peek()
        return ParseError(token.line, token.col, expected, token.describe())

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> ast.Program:
        """Parse the whole stream into a validated Program."""
        declared: dict[str, object] = {}
        stacks: list[str] = []
        player_stacks: list[str] = []
        functions: dict[str, ast.FunctionDef] = {}

        while not self._check(TokenType.EOF):
            token = self._peek()

            if token.type == TokenType.NAME:
                self._advance()
                value = self._expect(TokenType.IDENTIFIER, "game name").value
                self._declare_once(declared, "name", value, token)

            elif token.type == TokenType.DECK:
                self._advance()
                self._declare_once(declared, "deck", self._expression(), token)

            elif token.type == TokenType.PLAYERS:
                self._advance()
                count = self._integer("player count")
                if count < 1:
                    raise ParseError(token.line, token.col, "at least 1 player", str(count))
                self._declare_once(declared, "players", count, token)

            elif token.type == TokenType.CURRENT_PLAYER:
                self._advance()
                self._declare_once(declared, "current_player", self._integer("player id"), token)

            elif token.type == TokenType.STACK:
                self._advance()
                self._stack_declaration(stacks, player_stacks)

            elif token.type == TokenType.DEF:
                function = self._function()
                if function.name in functions:
                    raise ParseError(
                        function.line, function.col,
                        f"a single definition of '{function.name}'",
                        f"second 'def {function.name}'",
                    )
                functions[function.name] = function

            else:
                raise self._error("declaration or 'def'")

        eof = self._peek()
        for required in ("name", "deck", "players"):
            if required not in declared:
                raise ParseError(eof.line, eof.col, f"'{required}' declaration", "end of input")

        program = ast.Program(
            name=declared["name"],
            deck=declared["deck"],
            players=declared["players"],
            current_player=declared.get("current_player", 1),
            stacks=tuple(stacks),
            player_stacks=tuple(player_stacks),
            functions=functions,
        )

        result = validate_program(program)
        if not result.valid:
            raise result.errors[0]
        return program

    def _declare_once(self, declared: dict[str, object], key: str, value: object, token: Token):
        if key in declared:
            raise ParseError(
                token.line, token.col, f"a single '{key}' declaration", f"second '{key}'"
            )
        declared[key] = value

    def _integer(self, expected: str) -> int:
        return int(self._expect(TokenType.INTEGER, expected).value)

    def _stack_declaration(self, stacks: list[str], player_stacks: list[str]):
        """`stack middle` or `stack player:hand`."""
        name_token = self._expect(TokenType.IDENTIFIER, "stack name")
        target = stacks
        if name_token.value == "player" and self._match(TokenType.COLON):
            name_token = self._expect(TokenType.IDENTIFIER, "player stack name")
            target = player_stacks

        name = name_token.value
        if name in stacks or name in player_stacks:
            raise ParseError(
                name_token.line, name_token.col,
                f"a single declaration of stack '{name}'",
                f"second 'stack {name}'",
            )
        target.append(name)

    def _function(self) -> ast.FunctionDef:
        def_token = self._expect(TokenType.DEF)
        name = self._expect(TokenType.IDENTIFIER, "function name").value

        self._expect(TokenType.LPAREN)
        params: list[str] = []
        if not self._check(TokenType.RPAREN):
            while True:
                param = self._expect(TokenType.IDENTIFIER, "parameter name")
                if param.value in params:
                    raise ParseError(
                        param.line, param.col, "distinct parameter names", f"'{param.value}' twice"
                    )
                params.append(param.value)
                if not self._match(TokenType.COMMA):
                    break
        self._expect(TokenType.RPAREN)

        body = self._block()
        return ast.FunctionDef(
            name=name,
            params=tuple(params),
            body=body,
            line=def_token.line,
            col=def_token.col,
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _block(self) -> tuple[ast.Statement, ...]:
        self._expect(TokenType.LBRACE)
        statements = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise self._error("'}'")
            statements.append(self._statement())
        self._expect(TokenType.RBRACE)
        return tuple(statements)

    def _statement(self) -> ast.Statement:
        token = self._peek()

        if self._match(TokenType.CHECK):
            self._expect(TokenType.LPAREN)
            condition = self._expression()
            self._expect(TokenType.RPAREN)
            return ast.Check(condition, line=token.line, col=token.col)

        if self._match(TokenType.RETURN):
            self._expect(TokenType.LPAREN)
            value = None
            if not self._check(TokenType.RPAREN):
                value = self._expression()
            self._expect(TokenType.RPAREN)
            return ast.Return(value, line=token.line, col=token.col)

        if self._match(TokenType.IF):
            self._expect(TokenType.LPAREN)
            condition = self._expression()
            self._expect(TokenType.RPAREN)
            return ast.If(condition, self._block(), line=token.line, col=token.col)

        if token.type in (TokenType.RBRACE, TokenType.EOF, TokenType.DEF):
            raise self._error("statement")

        expression = self._expression()
        if self._check(TokenType.TRANSFER):
            return self._transfer(expression, token)
        return ast.ExpressionStatement(expression, line=token.line, col=token.col)

    def _transfer(self, source: ast.Expression, start: Token) -> ast.Transfer:
        if not isinstance(source, _CONTAINER_NODES):
            raise self._error("a stack before '>'", start)
        self._expect(TokenType.TRANSFER)

        dest_token = self._peek()
        destination = self._postfix()
        if not isinstance(destination, _CONTAINER_NODES):
            raise self._error("a stack after '>'", dest_token)

        count_token = self._peek()
        if count_token.type == TokenType.INTEGER:
            self._advance()
            return ast.Transfer(
                source, destination,
                count=ast.Literal(int(count_token.value), line=count_token.line, col=count_token.col),
                line=start.line, col=start.col,
            )

        if (
            count_token.type == TokenType.IDENTIFIER
            and count_token.value == "end"
            and self._peek(1).type != TokenType.LPAREN
        ):
            self._advance()
            return ast.Transfer(source, destination, take_all=True, line=start.line, col=start.col)

        if self._match(TokenType.MINUS):
            selection = self._expression()
            return ast.Transfer(source, destination, selection=selection, line=start.line, col=start.col)

        return ast.Transfer(
            source, destination, count=ast.Literal(1), line=start.line, col=start.col
        )

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> ast.Expression:
        left = self._and()
        while True:
            token = self._match(TokenType.OR)
            if not token:
                return left
            left = ast.BoolOp("|", left, self._and(), line=token.line, col=token.col)

    def _and(self) -> ast.Expression:
        left = self._not()
        while True:
            token = self._match(TokenType.AND)
            if not token:
                return left
            left = ast.BoolOp("&", left, self._not(), line=token.line, col=token.col)

    def _not(self) -> ast.Expression:
        token = self._match(TokenType.NOT)
        if token:
            return ast.Not(self._not(), line=token.line, col=token.col)
        return self._compare()

    def _compare(self) -> ast.Expression:
        left = self._postfix()
        token = self._match(TokenType.IS)
        if not token:
            return left
        negated = self._match(TokenType.NOT) is not None
        right = self._postfix()
        return ast.Compare(left, right, negated, line=token.line, col=token.col)

    def _postfix(self) -> ast.Expression:
        expression = self._primary()
        while self._check(TokenType.COLON):
            colon = self._advance()
            attr = self._expect(TokenType.IDENTIFIER, "field name after ':'")
            expression = ast.Attribute(expression, attr.value, line=colon.line, col=colon.col)
        return expression

    def _primary(self) -> ast.Expression:
        token = self._peek()

        if token.type == TokenType.INTEGER:
            self._advance()
            return ast.Literal(int(token.value), line=token.line, col=token.col)

        if token.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return ast.Literal(token.type == TokenType.TRUE, line=token.line, col=token.col)

        if token.type in _VALUE_KEYWORDS:
            self._advance()
            return ast.Keyword(token.value, line=token.line, col=token.col)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._match(TokenType.LPAREN):
                return ast.Call(token.value, self._arguments(), line=token.line, col=token.col)
            return ast.Identifier(token.value, line=token.line, col=token.col)

        if self._match(TokenType.LPAREN):
            expression = self._expression()
            self._expect(TokenType.RPAREN)
            return expression

        raise self._error("expression")

    def _arguments(self) -> tuple[ast.Expression, ...]:
        """Arguments after an already consumed '('."""
        args = []
        if not self._check(TokenType.RPAREN):
            while True:
                args.append(self._expression())
                if not self._match(TokenType.COMMA):
                    break
        self._expect(TokenType.RPAREN)
        return tuple(args)


def parse_tokens(tokens: list[Token]) -> ast.Program:
    """Parse a token list produced by the lexer."""
    return Parser(tokens).parse()
