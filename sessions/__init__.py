"""
Sessions Module

Access-session endpoints backing the approval gate.
"""
