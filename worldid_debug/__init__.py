"""Debugging tools for World ID / Semaphore proofs."""

__version__ = "0.1.0"
