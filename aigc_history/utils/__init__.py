"""Helpers for lineage arithmetic and identifier validation."""