"""Orchestration core for a PARA-aware personal assistant."""
