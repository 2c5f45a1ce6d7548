"""Diagnostic rendering exports."""

from patterncheck.diagnostics.renderer import DiagnosticRenderer

__all__ = ["DiagnosticRenderer"]
