"""FHIR-Bridge: bidirectional translation between a clinical domain model and FHIR R4."""

__version__ = "0.1.0"
