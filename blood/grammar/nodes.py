"""Abstract syntax tree for the blood language. The parser produces a list of Stmt nodes (the program); each node owns
its children outright, so trees never share subtrees and never contain cycles.

Formally, the grammar the nodes are built from can be defined as

```
<program>  ::= <stmt>*
<block>    ::= <stmt>*                                  ; ends at "end", "else", "elseif" or end of input

<stmt>     ::= "let" ["mod"] <name> "=" <expr>          ; LetStmt, "mod" marks the binding mutable
             | <name> "=" <expr>                        ; AssignStmt
             | <name> "(" <args> ")"                    ; ExprStmt wrapping a Call
             | "print" "(" <expr> ")"                   ; PrintStmt
             | "if" <expr> "then" <block>
               ("elseif" <expr> "then" <block>)*
               ["else" <block>] "end"                   ; IfStmt, elseif nests another IfStmt in else_branch
             | "while" <expr> "do" <block> "end"        ; WhileStmt
             | "loop" "do" <block> "end"                ; LoopStmt
             | "break" | "continue"                     ; BreakStmt, ContinueStmt
             | "return" [<expr>]                        ; ReturnStmt, value defaults to nil
             | "fn" <name> "(" <params> ")" "do" <block> "end"   ; FnStmt

<expr>     ::= <or>
<or>       ::= <and> ("or" <and>)*
<and>      ::= <eq> ("and" <eq>)*
<eq>       ::= <rel> (("==" | "!=") <rel>)*
<rel>      ::= <add> (("<" | "<=" | ">" | ">=") <add>)*
<add>      ::= <mul> (("+" | "-") <mul>)*
<mul>      ::= <unary> (("*" | "/" | "%") <unary>)*
<unary>    ::= ("not" | "-") <unary> | <primary>
<primary>  ::= <number> | "true" | "false" | "nil" | "(" <expr> ")" | <name> | <name> "(" <args> ")"
```
"""

from dataclasses import dataclass, field, fields
from typing import List, Optional


class Node:
    """Superclass of every AST node."""

    def display(self, indents=0):
        """Recursively displays the tree with readable format.

        Format:
        <Node>(<field>=<value>, <field>=[
            <Node>(...),
            ...
        ])
        """
        pad = "    " * indents
        parts = []
        for node_field in fields(self):
            value = getattr(self, node_field.name)
            children = [value] if isinstance(value, Node) else value

            if isinstance(children, list) and children and all(isinstance(child, Node) for child in children):
                nested = ",\n".join(child.display(indents + 1) for child in children)
                parts.append(f"{node_field.name}=[\n{nested}\n{pad}]")
            else:
                parts.append(f"{node_field.name}={value!r}")

        return f"{pad}{type(self).__name__}(" + ", ".join(parts) + ")"


class Expr(Node):
    """Superclass of expression nodes."""


class Stmt(Node):
    """Superclass of statement nodes."""


# --- Expressions ---

@dataclass
class Number(Expr):
    value: int


@dataclass
class Boolean(Expr):
    value: bool


@dataclass
class Nil(Expr):
    pass


@dataclass
class Variable(Expr):
    name: str


@dataclass
class BinaryOp(Expr):
    """Binary operation. op is the operator's token kind, e.g. "+" or "and"."""
    left: Expr
    op: str
    right: Expr


@dataclass
class UnaryOp(Expr):
    op: str
    operand: Expr


@dataclass
class Call(Expr):
    callee: str
    args: List[Expr] = field(default_factory=list)


# --- Statements ---

@dataclass
class LetStmt(Stmt):
    name: str
    mutable: bool
    value: Expr


@dataclass
class AssignStmt(Stmt):
    name: str
    value: Expr


@dataclass
class PrintStmt(Stmt):
    expr: Expr


@dataclass
class IfStmt(Stmt):
    """An elseif chain is an IfStmt whose else_branch holds exactly one nested IfStmt."""
    condition: Expr
    then_branch: List[Stmt]
    else_branch: Optional[List[Stmt]] = None


@dataclass
class WhileStmt(Stmt):
    condition: Expr
    body: List[Stmt]


@dataclass
class LoopStmt(Stmt):
    body: List[Stmt]


@dataclass
class BreakStmt(Stmt):
    pass


@dataclass
class ContinueStmt(Stmt):
    pass


@dataclass
class ReturnStmt(Stmt):
    value: Expr = field(default_factory=Nil)


@dataclass
class FnStmt(Stmt):
    name: str
    params: List[str]
    body: List[Stmt]


@dataclass
class ExprStmt(Stmt):
    expr: Expr
