"""Core orchestration package.

Composition:
    - `engine`: request handlers (chat, query generation).
    - `context`: dependency container built once per process.
    - `envelope`: uniform response shapes.
    - `errors`: failure taxonomy.
    - `settings`: environment-driven configuration.
    - `turns`: conversation turn data contract.
"""
