"""Core orchestration and processing modules."""
