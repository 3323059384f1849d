"""Application services layer (state controller, admin access).

Services coordinate work across domains and infrastructure. They should avoid
UI concerns.
"""
