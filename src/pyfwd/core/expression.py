"""
Custom stock-recruitment models from arithmetic expressions.

Expressions are parsed with the ``ast`` module and compiled into a
closure over jax.numpy operations, so custom models can be
differentiated like the built-in ones. Only a small arithmetic subset is
accepted:

- numbers
- ``srp``
- single-letter parameters ``a``, ``b``, ``c``, ... (slot 1, 2, 3, ...)
  or ``params[i]`` with a 0-based integer index
- ``+ - * / **`` and unary minus / plus
- ``exp``, ``log``, ``sqrt``, ``abs`` with a single argument

Example
-------
>>> sr_model_from_expression('shepherd', 'a * srp / (1 + (srp / b) ** c)')
"""

import ast
import operator
import string
from typing import Callable

import jax.numpy as jnp

from pyfwd.core.errors import ConfigurationError
from pyfwd.core.sr import register_sr_model

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_FUNCTIONS = {
    "exp": jnp.exp,
    "log": jnp.log,
    "sqrt": jnp.sqrt,
    "abs": jnp.abs,
}

# a -> params[0], b -> params[1], ...
_PARAM_LETTERS = {letter: i for i, letter in enumerate(string.ascii_lowercase)}


def _compile(node: ast.AST, expression: str) -> Callable:
    if isinstance(node, ast.Expression):
        return _compile(node.body, expression)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ConfigurationError(f"Only numeric constants are allowed in '{expression}'")
        value = float(node.value)
        return lambda srp, params: value

    if isinstance(node, ast.Name):
        if node.id == "srp":
            return lambda srp, params: srp
        if node.id in _PARAM_LETTERS:
            slot = _PARAM_LETTERS[node.id]
            return lambda srp, params: params[slot]
        raise ConfigurationError(f"Unknown name '{node.id}' in '{expression}'")

    if isinstance(node, ast.Subscript):
        if not (isinstance(node.value, ast.Name) and node.value.id == "params"):
            raise ConfigurationError(f"Only params[i] may be subscripted in '{expression}'")
        index = node.slice
        if not (
            isinstance(index, ast.Constant)
            and isinstance(index.value, int)
            and not isinstance(index.value, bool)
            and index.value >= 0
        ):
            raise ConfigurationError(f"params index must be a non-negative integer in '{expression}'")
        slot = index.value
        return lambda srp, params: params[slot]

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise ConfigurationError(
                f"Operator {type(node.op).__name__} is not allowed in '{expression}'"
            )
        left = _compile(node.left, expression)
        right = _compile(node.right, expression)
        return lambda srp, params: op(left(srp, params), right(srp, params))

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ConfigurationError(
                f"Operator {type(node.op).__name__} is not allowed in '{expression}'"
            )
        operand = _compile(node.operand, expression)
        return lambda srp, params: op(operand(srp, params))

    if isinstance(node, ast.Call):
        if not (isinstance(node.func, ast.Name) and node.func.id in _FUNCTIONS):
            raise ConfigurationError(
                f"Only {', '.join(_FUNCTIONS)} may be called in '{expression}'"
            )
        if len(node.args) != 1 or node.keywords:
            raise ConfigurationError(f"{node.func.id}() takes exactly one argument")
        func = _FUNCTIONS[node.func.id]
        argument = _compile(node.args[0], expression)
        return lambda srp, params: func(argument(srp, params))

    raise ConfigurationError(f"{type(node).__name__} is not allowed in '{expression}'")


def compile_sr_expression(expression: str) -> Callable:
    """Compile an expression into a ``func(srp, params)`` callable."""
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ConfigurationError(f"Cannot parse '{expression}': {e.msg}") from e
    return _compile(tree, expression)


def sr_model_from_expression(name: str, expression: str) -> Callable:
    """Compile an expression and register it as a stock-recruitment model.

    Parameters
    ----------
    name : str
        Model id to register under
    expression : str
        Arithmetic expression over srp and the parameters

    Returns
    -------
    callable
        The compiled ``func(srp, params)``
    """
    func = compile_sr_expression(expression)
    register_sr_model(name, func)
    return func
