"""Wire-level constants for the FHIR interchange format.

Resource-type tags, code system URIs and extension URLs used on the wire.
These strings are part of the external schema and must be emitted verbatim
for interoperability; they are never derived or configurable.
"""

# ============================================================================
# Resource Type Tags
# ============================================================================

PATIENT = "Patient"
PRACTITIONER = "Practitioner"
LOCATION = "Location"
ENCOUNTER = "Encounter"
MEDICATION = "Medication"
OBSERVATION = "Observation"
CONDITION = "Condition"
ALLERGY_INTOLERANCE = "AllergyIntolerance"

KNOWN_RESOURCE_TYPES = frozenset({
    PATIENT,
    PRACTITIONER,
    LOCATION,
    ENCOUNTER,
    MEDICATION,
    OBSERVATION,
    CONDITION,
    ALLERGY_INTOLERANCE,
})

# ============================================================================
# Code Systems
# ============================================================================

ADMINISTRATIVE_GENDER_SYSTEM_URI = "http://hl7.org/fhir/administrative-gender"
CONDITION_CLINICAL_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/condition-clinical"
CONDITION_VER_STATUS_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/condition-ver-status"
CONDITION_CATEGORY_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/condition-category"
CONDITION_CATEGORY_CODE_DIAGNOSIS = "encounter-diagnosis"

ALLERGY_INTOLERANCE_CLINICAL_STATUS_SYSTEM_URI = (
    "http://terminology.hl7.org/CodeSystem/allergyintolerance-clinical"
)
CLINICAL_FINDINGS_SYSTEM_URI = "http://hl7.org/fhir/ValueSet/clinical-findings"

OBSERVATION_CATEGORY_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/observation-category"
OBSERVATION_INTERPRETATION_SYSTEM_URI = (
    "http://terminology.hl7.org/CodeSystem/v3-ObservationInterpretation"
)
OBSERVATION_REFERENCE_RANGE_SYSTEM_URI = (
    "http://terminology.hl7.org/CodeSystem/referencerange-meaning"
)
OBSERVATION_REFERENCE_NORMAL = "normal"
OBSERVATION_REFERENCE_TREATMENT = "treatment"
OBSERVATION_REFERENCE_ABSOLUTE = "absolute"

ENCOUNTER_TAG_SYSTEM_URI = "http://fhir.openmrs.org/ext/encounter-tag"
ENCOUNTER_CLASS_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/v3-ActCode"
ENCOUNTER_CLASS_AMBULATORY = "AMB"

# ============================================================================
# Extension URLs
# ============================================================================

EXTENSION_BASE_URL = "http://openmrs.org/fhir/StructureDefinition"

DIAGNOSIS_RANK_EXTENSION_URL = f"{EXTENSION_BASE_URL}/diagnosis-rank"
DIAGNOSIS_CERTAINTY_EXTENSION_URL = f"{EXTENSION_BASE_URL}/diagnosis-certainty"
NON_CODED_CONDITION_EXTENSION_URL = f"{EXTENSION_BASE_URL}/non-coded-condition"
PERSON_NAME_EXTENSION_URL = f"{EXTENSION_BASE_URL}/name"
REFERENCE_RANGE_ABSOLUTE_SYSTEM_URI = f"{EXTENSION_BASE_URL}/obs/reference-range"

# Core FHIR extension marking a required element the record cannot supply
DATA_ABSENT_REASON_EXTENSION_URL = "http://hl7.org/fhir/StructureDefinition/data-absent-reason"
DATA_ABSENT_REASON_UNKNOWN = "unknown"
