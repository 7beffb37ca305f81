"""Equipark: workstation-inventory ingestion and technical-compliance scoring."""

__version__ = "1.0.0"
