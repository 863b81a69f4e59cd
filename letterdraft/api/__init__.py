"""
API boundary for letterdraft.

Design intent:
- Stand in for the remote draft store with thin, typed endpoints.
- Keep failure modes predictable: 400 bad input, 404 unknown draft, 409 finalized.
"""
