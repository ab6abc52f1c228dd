"""Shared test doubles for FitBot."""
