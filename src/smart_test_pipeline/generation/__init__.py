"""LLM-backed generation of test plans and test code."""
