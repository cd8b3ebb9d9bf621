"""Tree-walking interpreter for the blood language.

Name resolution works on an Environment: a single global scope plus a call stack of frames, each frame being a stack of
block scopes (innermost last). Lookups search the current frame innermost-to-outermost, then the globals.

Executing a statement returns a Signal. break, continue and return are ordinary Signals threaded back through every
enclosing block, never Python exceptions: exceptions are reserved for fatal errors (see blood/lang/error.py).
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from blood.grammar.nodes import (
    AssignStmt, BinaryOp, Boolean, BreakStmt, Call, ContinueStmt, ExprStmt, FnStmt, IfStmt, LetStmt, LoopStmt, Nil,
    Number, PrintStmt, ReturnStmt, UnaryOp, Variable, WhileStmt,
)
from blood.lang import numerical
from blood.lang.error import GenericException, RuntimeException
from blood.lang.value import Function, equals, is_bool, is_int, render, type_name

logger = logging.getLogger(__name__)


@dataclass
class Binding:
    value: Any
    mutable: bool


class Environment:
    """Global scope plus call stack. The bottom frame belongs to top-level code and starts without any scope, so
    top-level declarations land in the globals until a block is entered.
    """

    def __init__(self):
        self.globals = {}
        self.frames = [[]]

    @property
    def frame(self):
        return self.frames[-1]

    @contextmanager
    def scope(self):
        """Pushes a fresh block scope onto the current frame, popping it on every exit path."""
        self.frame.append({})
        try:
            yield
        finally:
            self.frame.pop()

    @contextmanager
    def call_frame(self, bindings):
        """Pushes a new frame whose only scope holds bindings, popping it on every exit path."""
        self.frames.append([bindings])
        try:
            yield
        finally:
            self.frames.pop()

    def define(self, name, value, mutable):
        """Binds name in the innermost scope of the current frame, or in the globals if that frame has no scope."""
        if not self.frame:
            self.define_global(name, value, mutable)
            return

        scope = self.frame[-1]
        if name in scope:
            raise RuntimeException("variable '{}' already declared in this scope", name)
        scope[name] = Binding(value, mutable)

    def define_global(self, name, value, mutable):
        if name in self.globals:
            raise RuntimeException("global variable '{}' already declared", name)
        self.globals[name] = Binding(value, mutable)

    def _resolve(self, name):
        """Returns the visible Binding for name, or None."""
        for scope in reversed(self.frame):
            if name in scope:
                return scope[name]
        return self.globals.get(name)

    def lookup(self, name):
        binding = self._resolve(name)
        if binding is None:
            raise RuntimeException("variable '{}' not defined", name)
        return binding.value

    def assign(self, name, value):
        binding = self._resolve(name)
        if binding is None:
            raise RuntimeException("variable '{}' not found", name)
        elif not binding.mutable:
            raise RuntimeException("cannot reassign immutable variable '{}'", name)
        binding.value = value


class Flow(Enum):
    NORMAL = "normal"
    BREAK = "break"
    CONTINUE = "continue"
    RETURN = "return"


@dataclass(frozen=True)
class Signal:
    """Outcome of executing one statement. value is only meaningful for Flow.RETURN."""
    flow: Flow
    value: Any = None


NORMAL = Signal(Flow.NORMAL)
BREAK = Signal(Flow.BREAK)
CONTINUE = Signal(Flow.CONTINUE)


class Interpreter:
    """Executes programs against its own Environment. Output of print goes to out (sys.stdout by default)."""
    MAX_CALL_DEPTH = 512
    FRAMES_PER_CALL = 32  # Python frames budgeted for one nested blood call
    RECURSION_CEILING = 200000

    ARITHMETIC = {
        "+": numerical.add,
        "-": numerical.sub,
        "*": numerical.mul,
        "/": numerical.div,
        "%": numerical.mod,
    }
    RELATIONAL = {
        "<": lambda a, b: a < b,
        "<=": lambda a, b: a <= b,
        ">": lambda a, b: a > b,
        ">=": lambda a, b: a >= b,
    }
    LOGICAL = {
        "and": lambda a, b: a and b,
        "or": lambda a, b: a or b,
    }

    def __init__(self, out=None, max_call_depth=None):
        self.env = Environment()
        self.out = out
        self.max_call_depth = max_call_depth if max_call_depth is not None else Interpreter.MAX_CALL_DEPTH

        self.loop_depth = 0
        self.function_depth = 0

    def interpret(self, program):
        """Executes every top-level statement in order. Raises a GenericException on the first error.

        The host recursion limit is raised to fit max_call_depth for the duration of the run and restored afterwards.
        A call chain that still exhausts it is reported as exceeding the call depth.
        """
        limit = sys.getrecursionlimit()
        wanted = min(limit + self.max_call_depth * Interpreter.FRAMES_PER_CALL, Interpreter.RECURSION_CEILING)
        sys.setrecursionlimit(max(limit, wanted))
        try:
            for stmt in program:
                signal = self.execute(stmt)
                if signal.flow is Flow.BREAK:
                    raise RuntimeException("'break' used outside of loop")
                elif signal.flow is Flow.CONTINUE:
                    raise RuntimeException("'continue' used outside of loop")
                elif signal.flow is Flow.RETURN:
                    raise RuntimeException("'return' used outside of function")
        except RecursionError:
            raise RuntimeException("maximum call depth exceeded")
        finally:
            sys.setrecursionlimit(limit)

    # --- Statements ---

    def execute(self, stmt):
        """Executes a single statement and returns its Signal."""
        if isinstance(stmt, LetStmt):
            self.env.define(stmt.name, self.evaluate(stmt.value), stmt.mutable)

        elif isinstance(stmt, AssignStmt):
            self.env.assign(stmt.name, self.evaluate(stmt.value))

        elif isinstance(stmt, PrintStmt):
            print(render(self.evaluate(stmt.expr)), file=self.out if self.out is not None else sys.stdout)

        elif isinstance(stmt, ExprStmt):
            self.evaluate(stmt.expr)

        elif isinstance(stmt, IfStmt):
            if self._condition(stmt.condition, "if"):
                return self.execute_block(stmt.then_branch)
            elif stmt.else_branch is not None:
                return self.execute_block(stmt.else_branch)

        elif isinstance(stmt, WhileStmt):
            return self._run_loop(stmt.body, lambda: self._condition(stmt.condition, "while"))

        elif isinstance(stmt, LoopStmt):
            return self._run_loop(stmt.body, lambda: True)

        elif isinstance(stmt, BreakStmt):
            if not self.loop_depth:
                raise RuntimeException("'break' used outside of loop")
            return BREAK

        elif isinstance(stmt, ContinueStmt):
            if not self.loop_depth:
                raise RuntimeException("'continue' used outside of loop")
            return CONTINUE

        elif isinstance(stmt, ReturnStmt):
            if not self.function_depth:
                raise RuntimeException("'return' used outside of function")
            return Signal(Flow.RETURN, self.evaluate(stmt.value))

        elif isinstance(stmt, FnStmt):
            self.env.define_global(stmt.name, Function(stmt.name, stmt.params, stmt.body), False)

        else:
            raise GenericException("unknown statement '{}'", type(stmt).__name__, internal=True)

        return NORMAL

    def execute_block(self, statements):
        """Executes statements in a fresh scope, stopping at (and returning) the first non-NORMAL Signal."""
        with self.env.scope():
            for stmt in statements:
                signal = self.execute(stmt)
                if signal.flow is not Flow.NORMAL:
                    return signal
        return NORMAL

    def _run_loop(self, body, should_continue):
        """Shared by while and loop. BREAK ends the loop, CONTINUE ends the iteration, RETURN propagates."""
        self.loop_depth += 1
        try:
            while should_continue():
                signal = self.execute_block(body)
                if signal.flow is Flow.BREAK:
                    break
                elif signal.flow is Flow.RETURN:
                    return signal
        finally:
            self.loop_depth -= 1
        return NORMAL

    def _condition(self, expr, construct):
        value = self.evaluate(expr)
        if not is_bool(value):
            raise RuntimeException("{} condition must be a boolean, got {}", (construct, type_name(value)))
        return value

    # --- Expressions ---

    def evaluate(self, expr):
        """Evaluates a single expression and returns its value."""
        if isinstance(expr, Number):
            return expr.value
        elif isinstance(expr, Boolean):
            return expr.value
        elif isinstance(expr, Nil):
            return None
        elif isinstance(expr, Variable):
            return self.env.lookup(expr.name)
        elif isinstance(expr, UnaryOp):
            return self._unary(expr.op, self.evaluate(expr.operand))
        elif isinstance(expr, BinaryOp):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._binary(expr.op, left, right)
        elif isinstance(expr, Call):
            return self._call(expr)

        raise GenericException("unknown expression '{}'", type(expr).__name__, internal=True)

    @staticmethod
    def _unary(op, operand):
        if op == "not":
            if not is_bool(operand):
                raise RuntimeException("'not' expects a boolean, got {}", type_name(operand))
            return not operand
        elif op == "-":
            if not is_int(operand):
                raise RuntimeException("'-' expects an integer, got {}", type_name(operand))
            return numerical.neg(operand)

        raise GenericException("unknown unary operator '{}'", op, internal=True)

    @staticmethod
    def _binary(op, left, right):
        if op == "==":
            return equals(left, right)
        elif op == "!=":
            return not equals(left, right)

        elif op in Interpreter.ARITHMETIC or op in Interpreter.RELATIONAL:
            if not (is_int(left) and is_int(right)):
                msg = "operands of '{}' must be integers, got {} and {}"
                raise RuntimeException(msg, (op, type_name(left), type_name(right)))
            if op in Interpreter.ARITHMETIC:
                return Interpreter.ARITHMETIC[op](left, right)
            return Interpreter.RELATIONAL[op](left, right)

        elif op in Interpreter.LOGICAL:
            if not (is_bool(left) and is_bool(right)):
                raise RuntimeException("'{}' expects booleans, got {} and {}", (op, type_name(left), type_name(right)))
            return Interpreter.LOGICAL[op](left, right)

        raise GenericException("unknown binary operator '{}'", op, internal=True)

    def _call(self, expr):
        """Calls a function. Arguments are evaluated in the caller's scope before the callee's frame is pushed; loops
        never span a call boundary, so loop_depth is reset for the duration of the call.
        """
        function = self.env.lookup(expr.callee)
        if not isinstance(function, Function):
            raise RuntimeException("'{}' is not a function", expr.callee)

        if len(expr.args) != len(function.params):
            msg = "'{}' expects {} argument(s), got {}"
            raise RuntimeException(msg, (expr.callee, len(function.params), len(expr.args)))

        args = [self.evaluate(arg) for arg in expr.args]

        if self.function_depth >= self.max_call_depth:
            raise RuntimeException("maximum call depth exceeded")

        logger.debug("calling %s with %d argument(s) at depth %d", function, len(args), self.function_depth + 1)

        bindings = {param: Binding(arg, False) for param, arg in zip(function.params, args)}
        prev_loop_depth = self.loop_depth

        self.loop_depth = 0
        self.function_depth += 1
        try:
            with self.env.call_frame(bindings):
                for stmt in function.body:
                    signal = self.execute(stmt)
                    if signal.flow is Flow.RETURN:
                        return signal.value
            return None
        finally:
            self.function_depth -= 1
            self.loop_depth = prev_loop_depth
