"""Model backends and prompt assembly."""
