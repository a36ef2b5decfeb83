"""
inkpress - host-side control layer for an HTML/XML to PDF rendering engine

Drives an external engine subprocess in two modes: one process per job with
results reported on stderr, or one persistent control process exchanging
framed chunks for many jobs.

Architecture:
- Configuration Context: Immutable option snapshot, YAML loading, argv mapping
- Protocol Context: Chunk framing, job descriptor JSON, structured log parsing
- Rendering Context: One-shot converter and persistent control session
"""

__version__ = "0.1.0"
