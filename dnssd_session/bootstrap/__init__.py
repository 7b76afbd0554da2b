"""Composition root helpers."""
