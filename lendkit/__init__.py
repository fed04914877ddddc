"""Fixed-point fractions, borrow rate curves and oracle price checks for lending markets."""

__version__ = "0.1.0"
__all__ = ["borrow_rate_curve", "consts", "fraction", "oracles", "prices", "slots", "validation"]