"""Plugin manifests, receipts, validation, and verified archive download and extraction."""

__version__ = "0.1.0"