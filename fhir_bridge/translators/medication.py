"""Medication Translator."""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators import fields
from fhir_bridge.translators.common import apply_resource_id, build_meta, copy_or_create
from fhir_bridge.translators.fields import ConceptTranslator

logger = logging.getLogger(__name__)


class MedicationTranslator(UpdatableTranslator[models.Medication, fhir.Medication]):
    """Translates a Medication to and from the wire Medication resource.

    The status is ``inactive`` when the medication is retired or voided and
    ``active`` otherwise. Inbound, the status drives the retired flag.

    The medication name travels as the code text, on its own when there is
    no concept; a code without codings only updates the name.
    """

    def __init__(self, concept_translator: Optional[ConceptTranslator] = None):
        self.concept_translator = concept_translator or ConceptTranslator()

    def to_wire(self, medication: Optional[models.Medication]) -> Optional[fhir.Medication]:
        if medication is None:
            return None

        code = self.concept_translator.to_wire(medication.concept)
        if code is None and medication.name:
            code = fhir.CodeableConcept(text=medication.name)
        elif code is not None and medication.name and not code.text:
            code.text = medication.name

        return fhir.Medication(
            id=medication.uuid,
            code=code,
            status=fields.medication_status_to_wire(medication.voided, medication.retired),
            form=self.concept_translator.to_wire(medication.dosage_form),
            meta=build_meta(medication),
        )

    def to_domain(
        self,
        resource: Optional[fhir.Medication],
        existing: Optional[models.Medication] = None
    ) -> Optional[models.Medication]:
        if resource is None:
            return None

        medication = copy_or_create(models.Medication, existing)
        apply_resource_id(medication, resource)

        if resource.code is not None:
            if fhir.first_coding(resource.code) is not None:
                medication.concept = self.concept_translator.to_domain(resource.code)
            if resource.code.text:
                medication.name = resource.code.text

        if resource.form is not None:
            medication.dosage_form = self.concept_translator.to_domain(resource.form)

        if resource.status == fields.ACTIVE:
            medication.retired = False
        elif resource.status == fields.INACTIVE:
            medication.retired = True

        return medication
