"""FHIR Wire Resources.

The wire side is the FHIR R4B model set from ``fhir.resources``. This module
gathers the datatypes and resources the translators produce and consume in
one namespace and adds the few helpers the translators need on top of them.

Field names are the FHIR element names (``birthDate``, ``valueQuantity``,
``partOf``); the one Python keyword clash, ``Encounter.class``, is ``class_fhir``.
Repeating elements default to None rather than an empty list, and the models
enforce FHIR cardinality: a required element cannot be left out.

Architecture:
    - Datatypes and resources come straight from ``fhir.resources.R4B``
    - ``to_fhir_json()`` produces FHIR JSON without nulls or empty lists
    - ``parse_resource()`` dispatches inbound JSON on ``resourceType``
    - Extension helpers look up and append extensions on any element
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from fhir.resources.R4B.allergyintolerance import (
    AllergyIntolerance,
    AllergyIntoleranceReaction,
)
from fhir.resources.R4B.annotation import Annotation
from fhir.resources.R4B.codeableconcept import CodeableConcept
from fhir.resources.R4B.coding import Coding
from fhir.resources.R4B.condition import Condition
from fhir.resources.R4B.domainresource import DomainResource
from fhir.resources.R4B.encounter import (
    Encounter,
    EncounterLocation,
    EncounterParticipant,
)
from fhir.resources.R4B.extension import Extension
from fhir.resources.R4B.humanname import HumanName
from fhir.resources.R4B.identifier import Identifier
from fhir.resources.R4B.medication import Medication
from fhir.resources.R4B.meta import Meta
from fhir.resources.R4B.observation import Observation, ObservationReferenceRange
from fhir.resources.R4B.patient import Patient
from fhir.resources.R4B.period import Period
from fhir.resources.R4B.quantity import Quantity
from fhir.resources.R4B.reference import Reference
from fhir.resources.R4B.resource import Resource

__all__ = [
    "AllergyIntolerance",
    "AllergyIntoleranceReaction",
    "Annotation",
    "CodeableConcept",
    "Coding",
    "Condition",
    "Encounter",
    "EncounterLocation",
    "EncounterParticipant",
    "Extension",
    "FhirResource",
    "HumanName",
    "Identifier",
    "Medication",
    "Meta",
    "Observation",
    "ObservationReferenceRange",
    "Patient",
    "Period",
    "Quantity",
    "Reference",
    "RESOURCE_MODELS",
    "add_extension",
    "first_coding",
    "get_extension_by_url",
    "parse_resource",
    "to_fhir_json",
]

# Every resource the translators emit is a DomainResource
FhirResource = DomainResource

RESOURCE_MODELS: dict[str, type[DomainResource]] = {
    model.get_resource_type(): model
    for model in (Patient, Encounter, Condition, Observation, AllergyIntolerance, Medication)
}


def _json_value(value: Any) -> Any:
    """Convert dumped model data to JSON types, dropping empty lists.

    Decimals become numbers (integers when they carry no fraction) and
    temporal values their ISO form.
    """
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items() if v != []}
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if isinstance(value, Decimal):
        return int(value) if value.as_tuple().exponent >= 0 else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def to_fhir_json(element) -> dict:
    """Serialise a resource or datatype to FHIR JSON (no nulls, no empty lists)."""
    data = _json_value(element.model_dump(by_alias=True, exclude_none=True))
    if isinstance(element, Resource):
        data["resourceType"] = element.get_resource_type()
    return data


def parse_resource(data: dict) -> DomainResource:
    """Parse FHIR JSON into the matching R4B resource model.

    Raises:
        ValueError: If ``resourceType`` is missing or not supported
        pydantic.ValidationError: If the JSON does not conform to the
            resource schema (a ValueError subclass)
    """
    resource_type = data.get("resourceType")
    model = RESOURCE_MODELS.get(resource_type)
    if model is None:
        raise ValueError(f"Unsupported resourceType: {resource_type!r}")
    return model.model_validate(data)


# ============================================================================
# Element helpers
# ============================================================================

def get_extension_by_url(element, url: str) -> Optional[Extension]:
    """Return the first extension on ``element`` with the given URL, if any."""
    if element is None:
        return None
    return next((e for e in element.extension or [] if e.url == url), None)


def add_extension(element, extension: Extension) -> None:
    element.extension = [*(element.extension or []), extension]


def first_coding(codeable: Optional[CodeableConcept]) -> Optional[Coding]:
    if codeable is None or not codeable.coding:
        return None
    return codeable.coding[0]
