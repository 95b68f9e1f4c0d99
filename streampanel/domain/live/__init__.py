"""
Live streaming domain logic.

Includes:
- session: Per-panel preview acquisition, playback and broadcast lifecycle.
"""
