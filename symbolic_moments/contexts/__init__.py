"""
Context variants: plain free algebra, algebraic rules, locality, inflation,
and contexts derived from another system.
"""

from .context import Context
from .algebraic import AlgebraicContext, MonomialRule, RuleBook
from .locality import LocalityContext, Measurement, Party
from .inflation import CausalNetwork, InflationContext
from .derived import DerivedContext

__all__ = [
    "Context",
    "AlgebraicContext",
    "MonomialRule",
    "RuleBook",
    "LocalityContext",
    "Measurement",
    "Party",
    "CausalNetwork",
    "InflationContext",
    "DerivedContext",
]
