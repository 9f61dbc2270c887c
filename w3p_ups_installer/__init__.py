"""w3p-ups installer (Python-first, state-aware).

Core design goals:
- Installed state is detected fresh on every run, never cached
- Idempotent steps (re-running is the recovery path, there is no rollback)
- Operator configuration is never overwritten or removed
- Architecture-gated: one supported artifact family
- Centralized logging
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
