"""
DSV line tokenizer.

Exports the public API:
- tokenize
- DsvTokenizer
"""
from .tokenize import DEFAULT_DELIMITER, DsvTokenizer, tokenize

__all__ = ["tokenize", "DsvTokenizer", "DEFAULT_DELIMITER"]
