"""querychat API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level parsing and status mapping.
- Delegates validation and orchestration to the core layer.
"""
