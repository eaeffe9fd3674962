"""Importable target classes woven by the test-suite."""
