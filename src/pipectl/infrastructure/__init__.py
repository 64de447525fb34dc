"""Infrastructure layer — subprocess runner, database, filesystem artifacts.

This layer depends on stdlib and third-party libs (SQLAlchemy, Jinja2).
It must never import from services, stages, commands, or output.
"""
