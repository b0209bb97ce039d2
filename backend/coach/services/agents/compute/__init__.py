"""Compute agents implementing the deterministic analyzers."""

from .offer import OfferAnalyzerAgent
from .money_model import MoneyModelArchitectAgent
from .financial import FinancialCalculatorAgent
from .psychology import PsychologyOptimizerAgent
from .implementation import ImplementationPlannerAgent
from .constraint import ConstraintAnalyzerAgent
from .coaching import CoachingMethodologyAgent

__all__ = [
    "OfferAnalyzerAgent",
    "MoneyModelArchitectAgent",
    "FinancialCalculatorAgent",
    "PsychologyOptimizerAgent",
    "ImplementationPlannerAgent",
    "ConstraintAnalyzerAgent",
    "CoachingMethodologyAgent",
]
