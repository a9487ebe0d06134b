"""Patient Translator.

Translates the Patient demographic record to and from the wire Patient
resource.
"""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators.code_mappings import GENDER
from fhir_bridge.translators.fields import PersonNameTranslator
from fhir_bridge.translators.common import apply_resource_id, build_meta, copy_or_create

logger = logging.getLogger(__name__)


class PatientTranslator(UpdatableTranslator[models.Patient, fhir.Patient]):
    """Translates a Patient to and from the wire Patient resource.

    ``active`` is derived from the voided flag. The preferred name and
    preferred identifier are the only ones carried.

    Parameters:
        name_translator: Translator for the preferred name
    """

    def __init__(self, name_translator: Optional[PersonNameTranslator] = None):
        self.name_translator = name_translator or PersonNameTranslator()

    def to_wire(self, patient: Optional[models.Patient]) -> Optional[fhir.Patient]:
        if patient is None:
            return None

        resource = fhir.Patient(
            id=patient.uuid,
            active=not patient.voided,
            gender=GENDER.to_code(patient.gender),
            birthDate=patient.birthdate,
            deceasedBoolean=patient.dead,
            meta=build_meta(patient),
        )

        name = self.name_translator.to_wire(patient.name)
        if name is not None:
            resource.name = [name]

        if patient.identifier:
            resource.identifier = [
                fhir.Identifier(
                    use="official",
                    value=patient.identifier,
                    type=fhir.CodeableConcept(text=patient.identifier_type)
                    if patient.identifier_type else None,
                )
            ]

        return resource

    def to_domain(
        self,
        resource: Optional[fhir.Patient],
        existing: Optional[models.Patient] = None
    ) -> Optional[models.Patient]:
        if resource is None:
            return None

        patient = copy_or_create(models.Patient, existing)
        apply_resource_id(patient, resource)

        if resource.active is not None:
            patient.voided = not resource.active

        if resource.name:
            patient.name = self.name_translator.to_domain(resource.name[0])

        if resource.gender is not None:
            patient.gender = GENDER.from_code(resource.gender)

        if resource.birthDate is not None:
            patient.birthdate = resource.birthDate

        if resource.deceasedBoolean is not None:
            patient.dead = resource.deceasedBoolean

        if resource.identifier:
            identifier = resource.identifier[0]
            patient.identifier = identifier.value
            if identifier.type is not None and identifier.type.text:
                patient.identifier_type = identifier.type.text

        return patient
