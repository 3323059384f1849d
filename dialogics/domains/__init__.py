"""Domain layer (models, seed document, pure state operations).

Domain modules should not depend on UI or IO. Every operation takes a snapshot
and returns a new one; persistence is the state controller's job.
"""
