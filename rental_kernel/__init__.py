"""
Rental Kernel

Shared foundation for the plate rental billing engine:
- Structured JSON logging
- Typed exception hierarchy with machine-readable codes
- Currency registry and Money value objects with minor-unit arithmetic
"""

__version__ = "0.1.0"
