"""Infrastructure for FHIR-Bridge: configuration, settings and logging."""
