"""
Persistence adapters.

These modules encapsulate how data is stored/retrieved (one JSON file per
collection). Services depend on Repository instances rather than touching the
files directly.
"""
