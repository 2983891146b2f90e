"""Scaffolding and customization engine for hybrid Helm/Go operator projects."""

__version__ = "0.1.0"
