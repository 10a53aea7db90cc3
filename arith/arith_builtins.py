"""
The default symbol table: arithmetic operators, sign and percent unaries,
a few elementary functions and the constants pi and e.

Nothing here is global state. `install_builtins` registers the table into
a registry the caller owns, and `build_default_registry` returns a fresh
one.
"""

import math
import operator

from arith.arith_datatypes import (
    Associativity, ConstantInfo, OperatorInfo, UnaryInfo, FunctionInfo
)
from arith.arith_registry import Registry


# --- Validators ---

def _divisor_nonzero(a, b):
    return b != 0


def _arg_non_negative(args):
    return args[0] >= 0


def _arg_positive(args):
    return args[0] > 0


def _pow_in_domain(args):
    base, exponent = args
    if base == 0 and exponent < 0:
        return False
    return base >= 0 or float(exponent).is_integer()


# --- Operations ---

def _percent(x):
    return x / 100.0


def _sqrt(args):
    return math.sqrt(args[0])


def _exp(args):
    return math.exp(args[0])


def _log(args):
    return math.log(args[0])


def _pow(args):
    return math.pow(args[0], args[1])


def _abs(args):
    return abs(args[0])


OPERATORS = (
    OperatorInfo('+', 2, operator.add),
    OperatorInfo('-', 2, operator.sub),
    OperatorInfo('*', 3, operator.mul),
    OperatorInfo('/', 3, operator.truediv, Associativity.LEFT, _divisor_nonzero),
)

UNARIES = (
    UnaryInfo('+', operator.pos),
    UnaryInfo('-', operator.neg),
    UnaryInfo('%', _percent, Associativity.LEFT),
)

FUNCTIONS = (
    FunctionInfo('sqrt', 1, _sqrt, _arg_non_negative),
    FunctionInfo('exp', 1, _exp),
    FunctionInfo('log', 1, _log, _arg_positive),
    FunctionInfo('pow', 2, _pow, _pow_in_domain),
    FunctionInfo('abs', 1, _abs),
)

CONSTANTS = (
    ConstantInfo('pi', math.pi),
    ConstantInfo('e', math.e),
)


def install_builtins(registry: Registry) -> Registry:
    for info in OPERATORS:
        registry.add_operator(info)
    for info in UNARIES:
        registry.add_unary(info)
    for info in FUNCTIONS:
        registry.add_function(info)
    for info in CONSTANTS:
        registry.add_constant(info)
    return registry


def build_default_registry() -> Registry:
    return install_builtins(Registry())
