"""Bundled data files (sample feature table)."""
