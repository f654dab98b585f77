"""
Directive execution for Surf.

Invariants:
    - Execution order matches emission order
    - Per-directive failures never abort the remaining directives
"""

from .executor import ActionExecutor, DirectiveOutcome

__all__ = ["ActionExecutor", "DirectiveOutcome"]
