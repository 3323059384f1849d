"""Data synchronization and moderation core for the Venus Dialogics site."""
