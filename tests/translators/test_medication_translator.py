"""Tests for Medication translation."""

from fhir_bridge.domain import models
from fhir_bridge.domain import resources as fhir
from fhir_bridge.translators.medication import MedicationTranslator


class TestMedicationTranslator:
    """Test medication translation in both directions."""

    def setup_method(self):
        self.translator = MedicationTranslator()
        self.medication = models.Medication(
            uuid="medication-uuid",
            name="Aspirin 81mg",
            concept=models.Concept(code="1191", system="http://www.nlm.nih.gov/research/umls/rxnorm"),
            dosage_form=models.Concept(code="385055001", display="Tablet"),
        )

    def test_to_wire(self):
        """Test code text falls back to the medication name."""
        resource = self.translator.to_wire(self.medication)

        assert resource.id == "medication-uuid"
        assert resource.code.text == "Aspirin 81mg"
        assert resource.code.coding[0].code == "1191"
        assert resource.form.coding[0].display == "Tablet"
        assert resource.status == "active"

    def test_retired_is_inactive(self):
        """Test retired medications are emitted as inactive."""
        self.medication.retired = True

        assert self.translator.to_wire(self.medication).status == "inactive"

    def test_to_domain_status_drives_retired(self):
        """Test the wire status sets and clears the retired flag."""
        retired = self.translator.to_domain(fhir.Medication(status="inactive"), self.medication)
        active = self.translator.to_domain(fhir.Medication(status="active"), retired)
        untouched = self.translator.to_domain(fhir.Medication(status="entered-in-error"), retired)

        assert retired.retired is True
        assert active.retired is False
        assert untouched.retired is True

    def test_name_without_concept(self):
        """Test a medication known only by name still carries a code."""
        self.medication.concept = None

        resource = self.translator.to_wire(self.medication)

        assert resource.code.text == "Aspirin 81mg"
        assert resource.code.coding is None

    def test_name_only_code_keeps_concept(self):
        """Test a code without codings updates the name and leaves the concept."""
        updated = self.translator.to_domain(
            fhir.Medication(code=fhir.CodeableConcept(text="Aspirin 75mg")), self.medication
        )

        assert updated.name == "Aspirin 75mg"
        assert updated.concept.code == "1191"

    def test_round_trip(self):
        """Test a medication survives a trip to the wire and back."""
        back = self.translator.to_domain(self.translator.to_wire(self.medication))

        assert back.uuid == "medication-uuid"
        assert back.name == "Aspirin 81mg"
        assert back.concept.code == "1191"
        assert back.dosage_form.code == "385055001"
        assert back.retired is False

    def test_name_only_round_trip(self):
        """Test a name-only medication comes back without a concept."""
        self.medication.concept = None

        back = self.translator.to_domain(self.translator.to_wire(self.medication))

        assert back.name == "Aspirin 81mg"
        assert back.concept is None

    def test_none(self):
        """Test None translates to None."""
        assert self.translator.to_wire(None) is None
        assert self.translator.to_domain(None) is None
