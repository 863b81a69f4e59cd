"""
letterdraft package.

Design intent:
- Keep the multi-page letter model and its remote draft consistent.
- Separate pure text transforms from stateful session and autosave layers.
"""
