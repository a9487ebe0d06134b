"""Translators between the clinical domain model and FHIR wire resources.

Reference translators resolve cross-entity links through lookup ports;
composite translators assemble whole resources from field and reference
translators.
"""

from fhir_bridge.translators.allergy import AllergyIntoleranceTranslator
from fhir_bridge.translators.diagnosis import DiagnosisTranslator
from fhir_bridge.translators.encounter import EncounterTranslator, VisitTranslator
from fhir_bridge.translators.fields import ConceptTranslator, PersonNameTranslator
from fhir_bridge.translators.medication import MedicationTranslator
from fhir_bridge.translators.observation import ObservationTranslator
from fhir_bridge.translators.patient import PatientTranslator
from fhir_bridge.translators.reference import ReferenceTranslator

__all__ = [
    "AllergyIntoleranceTranslator",
    "ConceptTranslator",
    "DiagnosisTranslator",
    "EncounterTranslator",
    "MedicationTranslator",
    "ObservationTranslator",
    "PatientTranslator",
    "PersonNameTranslator",
    "ReferenceTranslator",
    "VisitTranslator",
]
