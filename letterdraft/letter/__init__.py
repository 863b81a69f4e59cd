"""
Letter document boundary for letterdraft.

Design intent:
- Keep page text as opaque strings; never parse rich-text markup.
- Keep display projection (salutation/closing) pure and reversible.
- Hold saved vs in-progress page content without touching the network.
"""
