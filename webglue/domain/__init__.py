"""Pure domain utilities: status codes, host matching, collaborator contracts.

These modules are free of FastAPI/HTTP framework concerns so they can be
unit-tested and reused by any binding.
"""
__all__ = ["contracts", "envelope", "hosts", "status"]
