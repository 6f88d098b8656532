"""
paperwright - incremental builds of papers and slide decks from Markdown sources

A small, dependency-aware build orchestrator layered on top of pandoc.

Architecture:
- Resolving Context: Source discovery and target classification
- Composing Context: Layered rendering option composition
- Inspecting Context: Document structure analysis (TOC depth)
- Caching Context: Externally fetched reference data
- Building Context: Staleness evaluation, scheduling and rendering
"""

__version__ = "0.1.0"
