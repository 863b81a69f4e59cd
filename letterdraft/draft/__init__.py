"""
Draft persistence boundary for letterdraft.

Design intent:
- Flatten session state into one canonical, comparable payload.
- Coalesce frequent edits into few writes; never send an unchanged payload.
- Keep exactly one write in flight; a newer write cancels the older one.
"""
