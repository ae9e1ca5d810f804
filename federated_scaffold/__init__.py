"""Scaffold an ng-terminal feature module into an Angular workspace and wire
the workspace into a Module Federation build."""

__version__ = "0.1.0"
