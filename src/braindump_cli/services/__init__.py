"""Service layer: persistence, history, the active plan and its lifecycle."""
