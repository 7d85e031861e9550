"""Core conversion modules: chunking, cleanup, balancing, reassembly.

WHY: The core package contains the algorithmic part of the converter:
paragraph chunking, best-effort SSML repair, and order-preserving
reassembly. Everything here except converter.py is a pure string
transform with no I/O.

HOW: chunker.py splits markdown, normalizer.py (with tokens.py,
balancer.py, validator.py) repairs one generated document, combiner.py
joins several, converter.py drives the whole pipeline.

RULES:
- No network access outside converter.py (and only through the injected service)
- Repair passes never raise on malformed input
"""
