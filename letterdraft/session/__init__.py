"""
Creation-session boundary for letterdraft.

Design intent:
- One explicit state record per card-creation session.
- Named operations only; every change is announced to observers.
"""
