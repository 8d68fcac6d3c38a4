"""LLM access package.

Module split:
    - `provider_config`: provider endpoint map and credential lookup.
    - `service`: prompt-to-payload adapter.
    - `client`: provider-specific HTTP transport and response parsing.
"""
