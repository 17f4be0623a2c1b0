"""Render Mermaid, Graphviz and PlantUML diagram sources under a docs tree."""

__version__ = "0.1.0"
