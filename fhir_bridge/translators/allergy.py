"""Allergy Translator.

Translates recorded allergies to and from the wire AllergyIntolerance
resource. All reactions are carried in a single reaction component whose
substance is the allergen and whose manifestations are the reactions.
"""

import logging
from typing import Optional

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.domain.constants import (
    ALLERGY_INTOLERANCE_CLINICAL_STATUS_SYSTEM_URI,
    CLINICAL_FINDINGS_SYSTEM_URI,
)
from fhir_bridge.domain.ports import UpdatableTranslator
from fhir_bridge.translators import fields
from fhir_bridge.translators.code_mappings import (
    ALLERGY_CATEGORY,
    ALLERGY_SEVERITY,
    SEVERITY_TO_CRITICALITY,
)
from fhir_bridge.translators.common import (
    apply_resource_id,
    build_meta,
    concept_or_absent,
    copy_or_create,
    reference_or_absent,
    resolve,
)
from fhir_bridge.translators.fields import ConceptTranslator
from fhir_bridge.translators.reference import ReferenceTranslator

logger = logging.getLogger(__name__)

ALLERGY_TYPE = "allergy"


class AllergyIntoleranceTranslator(UpdatableTranslator[models.Allergy, fhir.AllergyIntolerance]):
    """Translates an Allergy to and from a wire AllergyIntolerance.

    The clinical status is ``inactive`` for a voided allergy and ``active``
    otherwise; criticality is derived from severity and is outbound only.
    A reaction component always carries at least one manifestation; without
    recorded reactions it holds a data-absent placeholder, which is skipped
    on the way back in.

    Parameters:
        patient_reference: Resolves ``patient``
        practitioner_reference: Resolves ``recorder``
        concept_translator: Translates allergens and reactions
    """

    def __init__(
        self,
        patient_reference: ReferenceTranslator[models.Patient],
        practitioner_reference: ReferenceTranslator[models.Practitioner],
        concept_translator: Optional[ConceptTranslator] = None
    ):
        self.patient_reference = patient_reference
        self.practitioner_reference = practitioner_reference
        self.concept_translator = concept_translator or ConceptTranslator()

    def _substance(self, allergen: Optional[models.Allergen]) -> Optional[fhir.CodeableConcept]:
        if allergen is None:
            return None

        substance = self.concept_translator.to_wire(allergen.coded_allergen)
        if allergen.non_coded_allergen:
            if substance is None:
                return fhir.CodeableConcept(text=allergen.non_coded_allergen)
            substance.text = allergen.non_coded_allergen
        return substance

    def _manifestation(self, reaction: models.AllergyReaction) -> fhir.CodeableConcept:
        manifestation = self.concept_translator.to_wire(reaction.reaction)
        if manifestation is None:
            manifestation = fhir.CodeableConcept(coding=[
                fhir.Coding(
                    system=CLINICAL_FINDINGS_SYSTEM_URI,
                    code=reaction.uuid,
                    display=reaction.reaction_non_coded,
                )
            ])
        if reaction.reaction_non_coded:
            manifestation.text = reaction.reaction_non_coded
        return manifestation

    def to_wire(self, allergy: Optional[models.Allergy]) -> Optional[fhir.AllergyIntolerance]:
        if allergy is None:
            return None

        resource = fhir.AllergyIntolerance(
            id=allergy.uuid,
            type=ALLERGY_TYPE,
            clinicalStatus=fields.clinical_status_to_wire(
                allergy.voided, ALLERGY_INTOLERANCE_CLINICAL_STATUS_SYSTEM_URI
            ),
            patient=reference_or_absent(self.patient_reference.to_wire(allergy.patient)),
            recorder=self.practitioner_reference.to_wire(allergy.creator),
            recordedDate=allergy.date_created,
            code=self._substance(allergy.allergen),
            meta=build_meta(allergy),
        )

        if allergy.allergen is not None:
            category = ALLERGY_CATEGORY.to_code(allergy.allergen.allergen_type)
            if category is not None:
                resource.category = [category]

        if allergy.severity is not None:
            resource.criticality = SEVERITY_TO_CRITICALITY.get(allergy.severity)

        if allergy.comment:
            resource.note = [fhir.Annotation(text=allergy.comment)]

        if allergy.reactions or allergy.severity is not None or allergy.reaction_non_coded:
            manifestations = [self._manifestation(r) for r in allergy.reactions]
            resource.reaction = [
                fhir.AllergyIntoleranceReaction(
                    substance=self._substance(allergy.allergen),
                    manifestation=manifestations or [concept_or_absent(None)],
                    description=allergy.reaction_non_coded,
                    severity=ALLERGY_SEVERITY.to_code(allergy.severity),
                )
            ]

        return resource

    def to_domain(
        self,
        resource: Optional[fhir.AllergyIntolerance],
        existing: Optional[models.Allergy] = None
    ) -> Optional[models.Allergy]:
        if resource is None:
            return None

        allergy = copy_or_create(models.Allergy, existing)
        apply_resource_id(allergy, resource)

        if resource.code is not None:
            coded = self.concept_translator.to_domain(resource.code) if resource.code.coding else None
            text = resource.code.text
            if coded is not None and text == coded.display:
                text = None
            allergen = allergy.allergen or models.Allergen()
            allergen.coded_allergen = coded
            allergen.non_coded_allergen = text
            allergy.allergen = allergen

        if resource.category:
            allergen = allergy.allergen or models.Allergen()
            allergen.allergen_type = ALLERGY_CATEGORY.from_code(resource.category[0])
            allergy.allergen = allergen

        allergy.voided = fields.clinical_status_to_voided(resource.clinicalStatus, allergy.voided)
        allergy.patient = resolve(self.patient_reference, resource.patient, allergy.patient)
        allergy.creator = resolve(self.practitioner_reference, resource.recorder, allergy.creator)

        if resource.reaction:
            first = resource.reaction[0]
            if first.severity is not None:
                allergy.severity = ALLERGY_SEVERITY.from_code(first.severity)
            if first.description is not None:
                allergy.reaction_non_coded = first.description

            reactions = []
            for component in resource.reaction:
                for manifestation in component.manifestation:
                    if fhir.first_coding(manifestation) is None and not manifestation.text:
                        continue
                    reactions.append(self._reaction_to_domain(manifestation))
            allergy.reactions = reactions

        if resource.note:
            allergy.comment = resource.note[0].text

        return allergy

    def _reaction_to_domain(self, manifestation: fhir.CodeableConcept) -> models.AllergyReaction:
        coding = fhir.first_coding(manifestation)
        if coding is None:
            return models.AllergyReaction(reaction_non_coded=manifestation.text)

        if coding.system == CLINICAL_FINDINGS_SYSTEM_URI:
            reaction = models.AllergyReaction(
                reaction_non_coded=manifestation.text or coding.display
            )
            if coding.code:
                reaction.uuid = coding.code
            return reaction

        return models.AllergyReaction(
            reaction=self.concept_translator.to_domain(manifestation),
            reaction_non_coded=manifestation.text
            if manifestation.text != coding.display else None,
        )
