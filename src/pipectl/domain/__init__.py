"""Domain layer — stage names, policies, and status rules.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
