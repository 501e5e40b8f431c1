"""OAuth credential acquisition and token lifecycle."""
