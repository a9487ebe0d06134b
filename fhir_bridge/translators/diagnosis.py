"""Diagnosis Translator.

Encounter diagnoses travel as wire Condition resources in the
``encounter-diagnosis`` category. Rank, certainty and free-text diagnoses
have no first-class Condition field and are carried in extensions.
"""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.constants import (
    CONDITION_CATEGORY_CODE_DIAGNOSIS,
    CONDITION_CATEGORY_SYSTEM_URI,
    CONDITION_CLINICAL_SYSTEM_URI,
    DIAGNOSIS_CERTAINTY_EXTENSION_URL,
    DIAGNOSIS_RANK_EXTENSION_URL,
    NON_CODED_CONDITION_EXTENSION_URL,
)
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators import fields
from fhir_bridge.translators.code_mappings import DIAGNOSIS_CERTAINTY
from fhir_bridge.translators.common import (
    apply_resource_id,
    build_meta,
    copy_or_create,
    reference_or_absent,
    resolve,
)
from fhir_bridge.translators.fields import ConceptTranslator
from fhir_bridge.translators.reference import ReferenceTranslator

logger = logging.getLogger(__name__)


def diagnosis_category() -> fhir.CodeableConcept:
    return fhir.CodeableConcept(coding=[
        fhir.Coding(
            system=CONDITION_CATEGORY_SYSTEM_URI,
            code=CONDITION_CATEGORY_CODE_DIAGNOSIS,
            display="Encounter Diagnosis",
        )
    ])


class DiagnosisTranslator(UpdatableTranslator[models.Diagnosis, fhir.Condition]):
    """Translates a Diagnosis to and from a wire Condition.

    Outbound:
        - clinicalStatus is ``inactive`` for a voided diagnosis, else ``active``
        - verificationStatus and the certainty extension carry the certainty
        - the rank extension carries the rank as ``valueInteger``
        - a free-text diagnosis goes into the non-coded extension
        - recordedDate is the encounter time
        - a diagnosis without a patient gets a data-absent subject, since
          Condition.subject is required

    Inbound, extensions are looked up by URL; a missing extension or one with
    a value of the wrong type leaves the field unset.

    Parameters:
        patient_reference: Resolves ``subject``
        encounter_reference: Resolves ``encounter``
        practitioner_reference: Resolves ``recorder``
        concept_translator: Translates the coded diagnosis
    """

    def __init__(
        self,
        patient_reference: ReferenceTranslator[models.Patient],
        encounter_reference: ReferenceTranslator[models.Encounter],
        practitioner_reference: ReferenceTranslator[models.Practitioner],
        concept_translator: Optional[ConceptTranslator] = None
    ):
        self.patient_reference = patient_reference
        self.encounter_reference = encounter_reference
        self.practitioner_reference = practitioner_reference
        self.concept_translator = concept_translator or ConceptTranslator()

    def to_wire(self, diagnosis: Optional[models.Diagnosis]) -> Optional[fhir.Condition]:
        if diagnosis is None:
            return None

        condition = fhir.Condition(
            id=diagnosis.uuid,
            category=[diagnosis_category()],
            clinicalStatus=fields.clinical_status_to_wire(
                diagnosis.voided, CONDITION_CLINICAL_SYSTEM_URI
            ),
            verificationStatus=DIAGNOSIS_CERTAINTY.to_codeable_concept(diagnosis.certainty),
            subject=reference_or_absent(self.patient_reference.to_wire(diagnosis.patient)),
            encounter=self.encounter_reference.to_wire(diagnosis.encounter),
            recorder=self.practitioner_reference.to_wire(diagnosis.creator),
            meta=build_meta(diagnosis),
        )

        if diagnosis.diagnosis is not None:
            condition.code = self.concept_translator.to_wire(diagnosis.diagnosis.coded)
            if diagnosis.diagnosis.non_coded:
                fhir.add_extension(
                    condition,
                    fhir.Extension(
                        url=NON_CODED_CONDITION_EXTENSION_URL,
                        valueString=diagnosis.diagnosis.non_coded,
                    ),
                )

        if diagnosis.rank is not None:
            fhir.add_extension(
                condition,
                fhir.Extension(url=DIAGNOSIS_RANK_EXTENSION_URL, valueInteger=diagnosis.rank),
            )

        certainty_code = DIAGNOSIS_CERTAINTY.to_code(diagnosis.certainty)
        if certainty_code is not None:
            fhir.add_extension(
                condition,
                fhir.Extension(url=DIAGNOSIS_CERTAINTY_EXTENSION_URL, valueCode=certainty_code),
            )

        if diagnosis.encounter is not None:
            condition.recordedDate = diagnosis.encounter.encounter_datetime

        return condition

    def to_domain(
        self,
        condition: Optional[fhir.Condition],
        existing: Optional[models.Diagnosis] = None
    ) -> Optional[models.Diagnosis]:
        if condition is None:
            return None

        diagnosis = copy_or_create(models.Diagnosis, existing)
        apply_resource_id(diagnosis, condition)

        diagnosis.patient = resolve(self.patient_reference, condition.subject, diagnosis.patient)
        diagnosis.encounter = resolve(
            self.encounter_reference, condition.encounter, diagnosis.encounter
        )
        diagnosis.creator = resolve(
            self.practitioner_reference, condition.recorder, diagnosis.creator
        )

        non_coded = fhir.get_extension_by_url(condition, NON_CODED_CONDITION_EXTENSION_URL)
        if condition.code is not None or non_coded is not None:
            diagnosis.diagnosis = models.CodedOrFreeText(
                coded=self.concept_translator.to_domain(condition.code),
                non_coded=non_coded.valueString if non_coded is not None else None,
            )

        if condition.verificationStatus is not None:
            diagnosis.certainty = DIAGNOSIS_CERTAINTY.from_codeable_concept(
                condition.verificationStatus
            )
        else:
            certainty = fhir.get_extension_by_url(condition, DIAGNOSIS_CERTAINTY_EXTENSION_URL)
            if certainty is not None:
                diagnosis.certainty = DIAGNOSIS_CERTAINTY.from_code(certainty.valueCode)

        rank = fhir.get_extension_by_url(condition, DIAGNOSIS_RANK_EXTENSION_URL)
        if rank is not None:
            if rank.valueInteger is not None:
                diagnosis.rank = rank.valueInteger
            else:
                logger.debug(f"Ignoring non-integer diagnosis rank on Condition {condition.id}")

        diagnosis.voided = fields.clinical_status_to_voided(
            condition.clinicalStatus, diagnosis.voided
        )

        return diagnosis
