"""Repolens - GitHub repository and project archive deployment analyzer."""

__version__ = "0.1.0"
