"""Hierarchical, de-duplicated resolution logs for turn-based strategy games."""
