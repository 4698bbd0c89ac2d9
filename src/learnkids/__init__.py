from __future__ import annotations

__version__ = "2.6.0"

__all__: list[str] = ["__version__"]
