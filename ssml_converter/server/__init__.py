"""HTTP API package: FastAPI surface over the converter.

RULES:
- The converter is injected through the get_converter dependency
"""
