"""Core taxonomy, view, preview and routing logic."""
