"""pipectl — sequential CI pipeline runner for two-tier (JVM + JavaScript) projects."""

__version__ = "0.1.0"
