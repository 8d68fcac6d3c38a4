"""Prompting package.

Deterministic prompt-construction helpers and the static schema descriptors.
It does not perform history retrieval, persistence, or model invocation.
"""
