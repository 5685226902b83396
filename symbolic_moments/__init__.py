"""
Symbolic Moments - Moment Matrices for Noncommutative Polynomial Optimization

Builds moment and localizing matrices over operator algebras, assigns every
distinct moment a symbol, and imposes linear constraints between moments
through substitution rules.
"""

__version__ = "0.1.0"

from .config import MatrixSystemConfig
from .errors import (HashOverflowError, InternalConsistencyError, InvalidMomentRuleError,
                     LockNotHeldError, LogicError, MissingComponentError, MomentError,
                     NonorientableRuleError, NotAMonomialError, OperatorOutOfRangeError,
                     SymbolParseError, UnknownBasisElementError)
from .hashing import ShortlexHasher
from .operator_sequence import OperatorSequence
from .generator import OperatorSequenceGenerator
from .contexts import (AlgebraicContext, CausalNetwork, Context, DerivedContext,
                       InflationContext, LocalityContext, Measurement, MonomialRule, Party,
                       RuleBook)
from .monomial import Monomial
from .polynomial import ByHashPolynomialFactory, ByIdPolynomialFactory, Polynomial
from .raw_polynomial import RawPolynomial
from .symbols import Symbol, SymbolTable
from .operator_matrix import LocalizingMatrix, LocalizingMatrixIndex, MomentMatrix
from .symbolic_matrix import MonomialMatrix, PolynomialMatrix
from .substitution import MomentRulebook, MomentSubstitutionRule, RuleDifficulty
from .basis import basis_to_polynomial, polynomial_to_basis
from .matrix_system import MatrixSystem
from .logging_config import setup_logging

__all__ = [
    "MatrixSystemConfig",
    "ShortlexHasher",
    "OperatorSequence",
    "OperatorSequenceGenerator",
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
    "Monomial",
    "Polynomial",
    "ByIdPolynomialFactory",
    "ByHashPolynomialFactory",
    "RawPolynomial",
    "Symbol",
    "SymbolTable",
    "MomentMatrix",
    "LocalizingMatrix",
    "LocalizingMatrixIndex",
    "MonomialMatrix",
    "PolynomialMatrix",
    "MomentSubstitutionRule",
    "MomentRulebook",
    "RuleDifficulty",
    "polynomial_to_basis",
    "basis_to_polynomial",
    "MatrixSystem",
    "setup_logging",
    "LogicError",
    "OperatorOutOfRangeError",
    "HashOverflowError",
    "InternalConsistencyError",
    "LockNotHeldError",
    "MomentError",
    "SymbolParseError",
    "InvalidMomentRuleError",
    "NonorientableRuleError",
    "NotAMonomialError",
    "MissingComponentError",
    "UnknownBasisElementError",
]
