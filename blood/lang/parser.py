"""Recursive-descent parser for the blood language. Pulls tokens from a Lexer one at a time and keeps a single token of
lookahead (self.current). See blood/grammar/nodes.py for the grammar.

Any mismatch against the grammar raises a SyntaxException; there is no error recovery.
"""

from blood.grammar.nodes import (
    AssignStmt, BinaryOp, Boolean, BreakStmt, Call, ContinueStmt, ExprStmt, FnStmt, IfStmt, LetStmt, LoopStmt, Nil,
    Number, PrintStmt, ReturnStmt, UnaryOp, Variable, WhileStmt,
)
from blood.lang.error import SyntaxException
from blood.lang.lexical import EOF, IDENTIFIER, NUMBER, Lexer


class Parser:
    """Builds a program (list of Stmt nodes) from source text or a Lexer."""
    BLOCK_END = ("end", "else", "elseif", EOF)
    STMT_START = ("let", "print", "if", "while", "loop", "break", "continue", "fn", "return")

    # binary operator levels, lowest to highest precedence
    OR = ("or",)
    AND = ("and",)
    EQUALITY = ("==", "!=")
    RELATIONAL = ("<", "<=", ">", ">=")
    ADDITIVE = ("+", "-")
    MULTIPLICATIVE = ("*", "/", "%")
    UNARY = ("not", "-")

    def __init__(self, lexer):
        if isinstance(lexer, str):
            lexer = Lexer(lexer)
        self.lexer = lexer
        self.current = self.lexer.next_token()

    def eat(self, kind):
        """Consumes the current token if it is of kind (payload is not compared), else raises a SyntaxException.
        Returns the consumed token.
        """
        token = self.current
        if token.kind != kind:
            raise SyntaxException("expected {}, found {}", (self._describe(kind), token))
        self.current = self.lexer.next_token()
        return token

    @staticmethod
    def _describe(kind):
        if kind in (IDENTIFIER, NUMBER):
            return kind
        elif kind == EOF:
            return "end of input"
        return f"'{kind}'"

    def parse_program(self):
        """Consumes every token and returns the ordered list of top-level statements."""
        statements = []
        try:
            while self.current.kind != EOF:
                statements.append(self.parse_statement())
        except RecursionError:
            raise SyntaxException("program nested too deeply")
        return statements

    # --- Statements ---

    def parse_statement(self):
        kind = self.current.kind

        if kind == "let":
            return self._parse_let()
        elif kind == "print":
            return self._parse_print()
        elif kind == "if":
            self.eat("if")
            return self._parse_conditional()
        elif kind == "while":
            return self._parse_while()
        elif kind == "loop":
            return self._parse_loop()
        elif kind == "break":
            self.eat("break")
            return BreakStmt()
        elif kind == "continue":
            self.eat("continue")
            return ContinueStmt()
        elif kind == "return":
            return self._parse_return()
        elif kind == "fn":
            return self._parse_fn()
        elif kind == IDENTIFIER:
            return self._parse_identifier_stmt()

        raise SyntaxException("unexpected token {} in statement", self.current)

    def _parse_block(self):
        """Parses statements until a block terminator. The terminator itself is left for the caller to eat."""
        statements = []
        while self.current.kind not in Parser.BLOCK_END:
            statements.append(self.parse_statement())
        return statements

    def _parse_let(self):
        self.eat("let")

        mutable = self.current.kind == "mod"
        if mutable:
            self.eat("mod")

        name = self.eat(IDENTIFIER).value
        self.eat("=")
        return LetStmt(name, mutable, self.parse_expr())

    def _parse_identifier_stmt(self):
        """Either an assignment or a call statement, told apart by the token after the name."""
        name = self.eat(IDENTIFIER).value

        if self.current.kind == "=":
            self.eat("=")
            return AssignStmt(name, self.parse_expr())
        elif self.current.kind == "(":
            return ExprStmt(Call(name, self._parse_arguments()))

        raise SyntaxException("unexpected token {} after identifier '{}'", (self.current, name))

    def _parse_print(self):
        self.eat("print")
        self.eat("(")
        expr = self.parse_expr()
        self.eat(")")
        return PrintStmt(expr)

    def _parse_conditional(self):
        """Parses everything after "if"/"elseif". An elseif desugars to an IfStmt nested in the else branch; the single
        closing "end" is eaten by the innermost one.
        """
        condition = self.parse_expr()
        self.eat("then")
        then_branch = self._parse_block()

        if self.current.kind == "elseif":
            self.eat("elseif")
            return IfStmt(condition, then_branch, [self._parse_conditional()])

        else_branch = None
        if self.current.kind == "else":
            self.eat("else")
            else_branch = self._parse_block()

        self.eat("end")
        return IfStmt(condition, then_branch, else_branch)

    def _parse_while(self):
        self.eat("while")
        condition = self.parse_expr()
        self.eat("do")
        body = self._parse_block()
        self.eat("end")
        return WhileStmt(condition, body)

    def _parse_loop(self):
        self.eat("loop")
        self.eat("do")
        body = self._parse_block()
        self.eat("end")
        return LoopStmt(body)

    def _parse_return(self):
        self.eat("return")
        if self.current.kind in Parser.BLOCK_END or self.current.kind in Parser.STMT_START:
            return ReturnStmt(Nil())
        return ReturnStmt(self.parse_expr())

    def _parse_fn(self):
        self.eat("fn")
        name = self.eat(IDENTIFIER).value

        self.eat("(")
        params = []
        if self.current.kind != ")":
            params.append(self.eat(IDENTIFIER).value)
            while self.current.kind == ",":
                self.eat(",")
                params.append(self.eat(IDENTIFIER).value)
        self.eat(")")

        self.eat("do")
        body = self._parse_block()
        self.eat("end")
        return FnStmt(name, params, body)

    def _parse_arguments(self):
        """Parses "(" [<expr> ("," <expr>)*] ")"."""
        self.eat("(")
        args = []
        if self.current.kind != ")":
            args.append(self.parse_expr())
            while self.current.kind == ",":
                self.eat(",")
                args.append(self.parse_expr())
        self.eat(")")
        return args

    # --- Expressions ---

    def parse_expr(self):
        return self._parse_or()

    def _parse_binary(self, operators, operand):
        """Parses one left-associative precedence level: operand (op operand)*, folding to the left."""
        left = operand()
        while self.current.kind in operators:
            op = self.eat(self.current.kind).kind
            left = BinaryOp(left, op, operand())
        return left

    def _parse_or(self):
        return self._parse_binary(Parser.OR, self._parse_and)

    def _parse_and(self):
        return self._parse_binary(Parser.AND, self._parse_equality)

    def _parse_equality(self):
        return self._parse_binary(Parser.EQUALITY, self._parse_relational)

    def _parse_relational(self):
        return self._parse_binary(Parser.RELATIONAL, self._parse_additive)

    def _parse_additive(self):
        return self._parse_binary(Parser.ADDITIVE, self._parse_multiplicative)

    def _parse_multiplicative(self):
        return self._parse_binary(Parser.MULTIPLICATIVE, self._parse_unary)

    def _parse_unary(self):
        if self.current.kind in Parser.UNARY:
            op = self.eat(self.current.kind).kind
            return UnaryOp(op, self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self):
        token = self.current

        if token.kind == NUMBER:
            self.eat(NUMBER)
            return Number(token.value)
        elif token.kind in ("true", "false"):
            self.eat(token.kind)
            return Boolean(token.kind == "true")
        elif token.kind == "nil":
            self.eat("nil")
            return Nil()
        elif token.kind == IDENTIFIER:
            self.eat(IDENTIFIER)
            if self.current.kind == "(":
                return Call(token.value, self._parse_arguments())
            return Variable(token.value)
        elif token.kind == "(":
            self.eat("(")
            expr = self.parse_expr()
            self.eat(")")
            return expr

        raise SyntaxException("unexpected token {} in expression", token)


def parse(src, error_handler=None):
    """Parses blood source text into a program."""
    return Parser(Lexer(src, error_handler)).parse_program()
