"""Model parts package.

Split from ``base/models.py`` so each DTO lives in its own small module; the
facade re-exports everything.
"""
