"""Exam question prediction from study documents."""

__version__ = "0.1.0"
