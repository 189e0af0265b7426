"""
Rethread

Slack add-on that watches channel traffic and moves stray top-level messages
into the thread they belong to.

Philosophy:
- Structural pattern checks only, no language models
- Every heuristic is independent and can be tested against a fake store
- Relocation is best-effort: a failed step is logged, never retried

Usage:
    from rethread.common import load_config, DbClient, MessageStore, InstallationStore
    from rethread.threader import ThreadingEngine, Relocator, EventRouter
"""

__version__ = "0.1.0"
