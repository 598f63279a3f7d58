"""Utility helpers for the smart test pipeline."""
