"""Shared fixtures for the translator, adapter and service tests."""

import os
from datetime import date, datetime, timezone
from unittest.mock import Mock

import pytest

from fhir_bridge.domain import models
from fhir_bridge.domain.enums import Gender
from fhir_bridge.domain.ports import EntityLookupPort
from fhir_bridge.infrastructure.config_manager import LookupConfig
from fhir_bridge.registry import TranslatorRegistry, create_lookup_ports

# Wide console so Rich does not wrap CLI messages containing long tmp paths.
os.environ.setdefault("COLUMNS", "300")


@pytest.fixture
def patient():
    return models.Patient(
        uuid="patient-uuid",
        name=models.PersonName(given_name="Jane", family_name="Doe"),
        gender=Gender.FEMALE,
        birthdate=date(1980, 4, 12),
        identifier="MRN-1001",
        identifier_type="OpenMRS ID",
    )


@pytest.fixture
def practitioner():
    return models.Practitioner(
        uuid="practitioner-uuid",
        name=models.PersonName(given_name="Gregory", family_name="House"),
    )


@pytest.fixture
def location():
    return models.Location(uuid="location-uuid", name="Outpatient Clinic")


@pytest.fixture
def visit(patient, location):
    return models.Visit(
        uuid="visit-uuid",
        patient=patient,
        location=location,
        start_datetime=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def encounter(patient, practitioner, location, visit):
    return models.Encounter(
        uuid="encounter-uuid",
        patient=patient,
        location=location,
        visit=visit,
        providers=[practitioner],
        encounter_datetime=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def ports(patient, practitioner, location, visit, encounter):
    """In-memory lookup ports seeded with the fixture entities."""
    lookup_ports = create_lookup_ports(LookupConfig(backend="memory"))
    lookup_ports.patients.create(patient)
    lookup_ports.practitioners.create(practitioner)
    lookup_ports.locations.create(location)
    lookup_ports.visits.create(visit)
    lookup_ports.encounters.create(encounter)
    return lookup_ports


@pytest.fixture
def registry(ports):
    return TranslatorRegistry(ports)


@pytest.fixture
def mock_lookup():
    """Lookup port that knows nothing unless a test configures it."""
    port = Mock(spec=EntityLookupPort)
    port.get.return_value = None
    return port
