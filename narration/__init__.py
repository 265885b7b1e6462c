"""
Voice-command recipe narration.

Speaks a recipe segment by segment and waits for a spoken command between
segments ("continue", "repeat", "start over", "stop").

- Speech output and command listening never overlap for the same turn
- Transient recognition errors recover on their own
- Each segment is spoken once per play/restart cycle unless repeated
- All state changes are observable via structured events
"""
