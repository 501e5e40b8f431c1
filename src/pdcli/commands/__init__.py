"""Command groups for pd."""
