"""Formula module — restricted arithmetic for man-hour targets."""

from safetyboard.formula.evaluator import FormulaError, evaluate, format_number

__all__ = [
    "FormulaError",
    "evaluate",
    "format_number",
]
