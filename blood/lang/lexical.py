"""Lexical analysis for the blood language. The Lexer is pull-based: the parser asks for one Token at a time and no
lookahead buffer is kept beyond the current character.

Token kinds are plain strings:

```
<keyword>     ::= "let" | "mod" | "print" | "if" | "then" | "else" | "elseif" | "end" | "while" | "do" | "loop"
                | "break" | "continue" | "fn" | "return" | "nil" | "true" | "false" | "and" | "or" | "not"
<symbol>      ::= "+" | "-" | "*" | "/" | "%" | "=" | "==" | "!=" | "<" | "<=" | ">" | ">=" | "(" | ")" | ","
<identifier>  ::= (<letter> | "_") (<letter> | <digit> | "_")*     ; kind "identifier", value is the text
<number>      ::= <digit>+                                          ; kind "number", value is the int
<eof>                                                               ; kind "eof", end of input

<comment>     ::= "//" <char>* <newline> | "/*" <char>* "*/"        ; skipped, never emitted
```
"""

from dataclasses import dataclass
from typing import Any

from blood.lang.error import SyntaxException
from blood.lang.numerical import parse_literal


IDENTIFIER = "identifier"
NUMBER = "number"
EOF = "eof"


@dataclass(frozen=True)
class Token:
    """One lexical unit. Only identifiers and numbers carry a value."""
    kind: str
    value: Any = None

    def __str__(self):
        if self.kind == IDENTIFIER:
            return f"identifier '{self.value}'"
        elif self.kind == NUMBER:
            return f"number {self.value}"
        elif self.kind == EOF:
            return "end of input"
        return f"'{self.kind}'"


class Lexer:
    """Converts source text into Tokens, one per next_token call."""
    KEYWORDS = frozenset([
        "let", "mod", "print", "if", "then", "else", "elseif", "end", "while", "do", "loop", "break", "continue",
        "fn", "return", "nil", "true", "false", "and", "or", "not",
    ])
    SYMBOLS = frozenset(["+", "-", "*", "/", "%", "(", ")", ","])  # "//" and "/*" are consumed as comments first
    COMPOUND = {"=": "==", "!": "!=", "<": "<=", ">": ">="}  # first char: two-char operator ending in "="

    def __init__(self, src, error_handler=None):
        self.src = src
        self.pos = 0
        self.error_handler = error_handler  # only used for warnings

    def _peek(self):
        return self.src[self.pos] if self.pos < len(self.src) else ""

    def _match(self, expected):
        """Consumes the current char if it is expected."""
        if self._peek() == expected:
            self.pos += 1
            return True
        return False

    def _skip_whitespace(self):
        while self.pos < len(self.src) and self.src[self.pos].isspace():
            self.pos += 1

    def _skip_comment(self):
        """Skips a comment starting at self.pos, if there is one. Returns whether anything was skipped."""
        if self.src.startswith("//", self.pos):
            end = self.src.find("\n", self.pos)
            self.pos = len(self.src) if end == -1 else end
            return True

        if self.src.startswith("/*", self.pos):
            end = self.src.find("*/", self.pos + 2)
            if end == -1:
                self.pos = len(self.src)
                if self.error_handler is not None:
                    self.error_handler.warn("unterminated block comment")
            else:
                self.pos = end + 2
            return True

        return False

    def next_token(self):
        """Returns the next Token and advances past it. Raises a SyntaxException on an unrecognized character."""
        self._skip_whitespace()
        while self._skip_comment():
            self._skip_whitespace()

        if self.pos >= len(self.src):
            return Token(EOF)

        char = self.src[self.pos]

        if "0" <= char <= "9":
            return self._read_number()
        elif char.isalpha() or char == "_":
            return self._read_identifier()

        self.pos += 1
        if char in Lexer.SYMBOLS:
            return Token(char)
        elif char in Lexer.COMPOUND:
            if self._match("="):
                return Token(Lexer.COMPOUND[char])
            elif char != "!":
                return Token(char)

        raise SyntaxException("unexpected character '{}'", char)

    def _read_number(self):
        start = self.pos
        while "0" <= self._peek() <= "9":
            self.pos += 1
        return Token(NUMBER, parse_literal(self.src[start:self.pos]))

    def _read_identifier(self):
        start = self.pos
        while self._peek() and (self._peek().isalnum() or self._peek() == "_"):
            self.pos += 1

        text = self.src[start:self.pos]
        if text in Lexer.KEYWORDS:
            return Token(text)
        return Token(IDENTIFIER, text)

    def __iter__(self):
        """Yields every remaining Token, ending with the eof Token."""
        while True:
            token = self.next_token()
            yield token
            if token.kind == EOF:
                return
