"""Translator Registry - Composition Root.

Builds one lookup store per entity kind, closes a ReferenceTranslator over
each, and injects those into the composite translators. Nothing here is
global: every registry owns its own ports and translators.
"""

import logging
from dataclasses import dataclass, fields
from typing import Optional

import duckdb

from fhir_bridge.adapters.lookup import DuckDBEntityStore, InMemoryEntityStore
from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.constants import (
    ALLERGY_INTOLERANCE,
    CONDITION,
    ENCOUNTER,
    LOCATION,
    MEDICATION,
    OBSERVATION,
    PATIENT,
    PRACTITIONER,
)
from fhir_bridge.domain.ports import (
    EntityStorePort,
    LookupPortError,
    UnsupportedResourceError,
    UpdatableTranslator,
)
from fhir_bridge.infrastructure.config_manager import LookupConfig
from fhir_bridge.infrastructure.settings import settings
from fhir_bridge.translators.allergy import AllergyIntoleranceTranslator
from fhir_bridge.translators.diagnosis import DiagnosisTranslator
from fhir_bridge.translators.encounter import EncounterTranslator, VisitTranslator, is_visit
from fhir_bridge.translators.fields import ConceptTranslator, PersonNameTranslator
from fhir_bridge.translators.medication import MedicationTranslator
from fhir_bridge.translators.observation import ObservationTranslator
from fhir_bridge.translators.patient import PatientTranslator
from fhir_bridge.translators.reference import (
    ReferenceTranslator,
    name_display,
    patient_display,
    practitioner_display,
)

logger = logging.getLogger(__name__)


@dataclass
class LookupPorts:
    """One lookup store per entity kind."""

    patients: EntityStorePort[models.Patient]
    practitioners: EntityStorePort[models.Practitioner]
    locations: EntityStorePort[models.Location]
    encounters: EntityStorePort[models.Encounter]
    visits: EntityStorePort[models.Visit]
    medications: EntityStorePort[models.Medication]
    observations: EntityStorePort[models.Observation]
    diagnoses: EntityStorePort[models.Diagnosis]
    allergies: EntityStorePort[models.Allergy]
    connection: Optional[duckdb.DuckDBPyConnection] = None

    def stores(self) -> list[EntityStorePort]:
        return [getattr(self, f.name) for f in fields(self) if f.name != "connection"]

    def close(self) -> None:
        """Close every store that holds a backend connection."""
        for store in self.stores():
            close = getattr(store, "close", None)
            if close is not None:
                close()
        if self.connection is not None:
            self.connection.close()
            self.connection = None


_STORE_KINDS = (
    ("patients", models.Patient),
    ("practitioners", models.Practitioner),
    ("locations", models.Location),
    ("encounters", models.Encounter),
    ("visits", models.Visit),
    ("medications", models.Medication),
    ("observations", models.Observation),
    ("diagnoses", models.Diagnosis),
    ("allergies", models.Allergy),
)


def create_lookup_ports(config: Optional[LookupConfig] = None) -> LookupPorts:
    """Create lookup stores for every entity kind.

    Parameters:
        config: Backend configuration (defaults to the environment's)

    Returns:
        LookupPorts backed by in-memory dictionaries or by a single DuckDB
        database shared by all kinds

    Raises:
        LookupPortError: If the DuckDB database cannot be opened
    """
    config = config or settings.lookup_config

    if config.backend == "memory":
        return LookupPorts(**{
            attr: InMemoryEntityStore(name=entity_type.kind) for attr, entity_type in _STORE_KINDS
        })

    try:
        connection = duckdb.connect(config.db_path)
    except duckdb.Error as e:
        raise LookupPortError(
            f"Failed to connect to DuckDB: {str(e)}",
            operation="connect",
            details={"db_path": config.db_path}
        )
    logger.info(f"Connected to DuckDB database: {config.db_path}")

    stores = {
        attr: DuckDBEntityStore(entity_type, db_path=config.db_path, connection=connection)
        for attr, entity_type in _STORE_KINDS
    }
    return LookupPorts(connection=connection, **stores)


class TranslatorRegistry:
    """Wires lookup ports into reference translators and composites.

    Parameters:
        ports: Lookup stores, one per entity kind

    Example Usage:
        ```python
        registry = TranslatorRegistry(create_lookup_ports())
        resource = registry.patient.to_wire(patient)
        translator = registry.for_resource_type("Condition")
        ```
    """

    def __init__(self, ports: LookupPorts):
        self.ports = ports

        self.concept_translator = ConceptTranslator()
        self.name_translator = PersonNameTranslator()

        self.patient_reference = ReferenceTranslator(
            PATIENT, ports.patients, display=patient_display
        )
        self.practitioner_reference = ReferenceTranslator(
            PRACTITIONER, ports.practitioners, display=practitioner_display
        )
        self.location_reference = ReferenceTranslator(
            LOCATION, ports.locations, display=name_display
        )
        self.encounter_reference = ReferenceTranslator(ENCOUNTER, ports.encounters)
        self.visit_reference = ReferenceTranslator(ENCOUNTER, ports.visits)
        self.observation_reference = ReferenceTranslator(OBSERVATION, ports.observations)

        self.patient = PatientTranslator(self.name_translator)
        self.encounter = EncounterTranslator(
            self.patient_reference,
            self.practitioner_reference,
            self.location_reference,
            self.visit_reference,
            self.concept_translator,
        )
        self.visit = VisitTranslator(
            self.patient_reference, self.location_reference, self.concept_translator
        )
        self.diagnosis = DiagnosisTranslator(
            self.patient_reference,
            self.encounter_reference,
            self.practitioner_reference,
            self.concept_translator,
        )
        self.observation = ObservationTranslator(
            self.patient_reference,
            self.encounter_reference,
            self.observation_reference,
            self.concept_translator,
        )
        self.allergy = AllergyIntoleranceTranslator(
            self.patient_reference, self.practitioner_reference, self.concept_translator
        )
        self.medication = MedicationTranslator(self.concept_translator)

        self._by_entity_type: dict[type, tuple[UpdatableTranslator, EntityStorePort]] = {
            models.Patient: (self.patient, ports.patients),
            models.Encounter: (self.encounter, ports.encounters),
            models.Visit: (self.visit, ports.visits),
            models.Diagnosis: (self.diagnosis, ports.diagnoses),
            models.Observation: (self.observation, ports.observations),
            models.Allergy: (self.allergy, ports.allergies),
            models.Medication: (self.medication, ports.medications),
        }
        self._by_resource_type: dict[str, tuple[UpdatableTranslator, EntityStorePort]] = {
            PATIENT: (self.patient, ports.patients),
            ENCOUNTER: (self.encounter, ports.encounters),
            CONDITION: (self.diagnosis, ports.diagnoses),
            OBSERVATION: (self.observation, ports.observations),
            ALLERGY_INTOLERANCE: (self.allergy, ports.allergies),
            MEDICATION: (self.medication, ports.medications),
        }

    @property
    def reference_translators(self) -> list[ReferenceTranslator]:
        return [
            self.patient_reference,
            self.practitioner_reference,
            self.location_reference,
            self.encounter_reference,
            self.visit_reference,
            self.observation_reference,
        ]

    def for_resource_type(self, resource_type: str) -> UpdatableTranslator:
        """Composite translator for a wire resource-type tag.

        ``Encounter`` yields the encounter translator; use ``for_resource``
        to have visit-tagged encounters routed to the visit translator.

        Raises:
            UnsupportedResourceError: If no composite handles the tag
        """
        return self._resource_entry(resource_type)[0]

    def _resource_entry(self, resource_type: str) -> tuple[UpdatableTranslator, EntityStorePort]:
        entry = self._by_resource_type.get(resource_type)
        if entry is None:
            raise UnsupportedResourceError(
                f"No translator registered for resource type {resource_type}",
                resource_type=resource_type,
            )
        return entry

    def for_resource(self, resource: fhir.FhirResource) -> tuple[UpdatableTranslator, EntityStorePort]:
        """Composite translator and store for an inbound wire resource."""
        if isinstance(resource, fhir.Encounter) and is_visit(resource):
            return self.visit, self.ports.visits
        return self._resource_entry(resource.get_resource_type())

    def for_entity(self, entity: models.DomainEntity) -> tuple[UpdatableTranslator, EntityStorePort]:
        """Composite translator and store for a domain entity.

        Raises:
            UnsupportedResourceError: If the entity kind has no wire resource
        """
        entry = self._by_entity_type.get(type(entity))
        if entry is None:
            raise UnsupportedResourceError(
                f"No translator registered for {type(entity).__name__}",
                resource_type=type(entity).__name__,
            )
        return entry


def build_registry(config: Optional[LookupConfig] = None) -> TranslatorRegistry:
    """Create lookup ports from ``config`` and wire a registry over them."""
    return TranslatorRegistry(create_lookup_ports(config))
