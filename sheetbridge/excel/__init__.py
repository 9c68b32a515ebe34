"""Workbook reading and the per-variant sheet strategies."""
