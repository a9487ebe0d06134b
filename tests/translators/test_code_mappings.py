"""Tests for the closed enum <-> wire code tables."""

import pytest

from fhir_bridge.domain.enums import (
    AllergenType,
    AllergySeverity,
    DiagnosisCertainty,
    Gender,
    Interpretation,
    ObservationStatus,
)
from fhir_bridge.domain.resources import CodeableConcept, Coding
from fhir_bridge.translators.code_mappings import (
    ALL_MAPPINGS,
    ALLERGY_CATEGORY,
    ALLERGY_SEVERITY,
    DIAGNOSIS_CERTAINTY,
    GENDER,
    INTERPRETATION,
    OBSERVATION_STATUS,
    SEVERITY_TO_CRITICALITY,
    CodeMapping,
)


class TestExhaustiveness:
    """Test that every domain member is accounted for in every table."""

    @pytest.mark.parametrize("mapping", ALL_MAPPINGS, ids=repr)
    def test_every_member_mapped_or_unmapped(self, mapping):
        """Test each member has a wire code or is deliberately unmapped."""
        for member in mapping.enum_type:
            assert (member in mapping.mapped_values) != (member in mapping.unmapped)

    @pytest.mark.parametrize("mapping", ALL_MAPPINGS, ids=repr)
    def test_mapped_members_round_trip(self, mapping):
        """Test every mapped member survives code and coding round trips."""
        for member in mapping.mapped_values:
            assert mapping.from_code(mapping.to_code(member)) is member
            assert mapping.from_coding(mapping.to_coding(member)) is member
            assert mapping.from_codeable_concept(mapping.to_codeable_concept(member)) is member

    @pytest.mark.parametrize("mapping", ALL_MAPPINGS, ids=repr)
    def test_unmapped_members_translate_to_none(self, mapping):
        """Test deliberately unmapped members have no wire code."""
        for member in mapping.unmapped:
            assert mapping.to_code(member) is None
            assert mapping.to_coding(member) is None

    @pytest.mark.parametrize("mapping", ALL_MAPPINGS, ids=repr)
    def test_none_and_unknown_codes(self, mapping):
        """Test None and unrecognised codes map to None in both directions."""
        assert mapping.to_code(None) is None
        assert mapping.to_codeable_concept(None) is None
        assert mapping.from_code(None) is None
        assert mapping.from_code("") is None
        assert mapping.from_code("definitely-not-a-code") is None
        assert mapping.from_coding(None) is None
        assert mapping.from_codeable_concept(None) is None

    def test_criticality_covers_every_severity(self):
        """Test criticality is defined for every severity member."""
        assert set(SEVERITY_TO_CRITICALITY) == set(AllergySeverity)

    def test_incomplete_table_rejected(self):
        """Test a table that forgets a member cannot be built."""
        with pytest.raises(ValueError) as exc_info:
            CodeMapping(Gender, "urn:test", {Gender.MALE: ("m", None)})

        assert "FEMALE" in str(exc_info.value)

    def test_duplicate_wire_codes_rejected(self):
        """Test two members cannot share a wire code."""
        with pytest.raises(ValueError):
            CodeMapping(
                DiagnosisCertainty,
                "urn:test",
                {
                    DiagnosisCertainty.CONFIRMED: ("same", None),
                    DiagnosisCertainty.PROVISIONAL: ("same", None),
                },
            )


class TestTables:
    """Test the concrete code values of each table."""

    def test_gender_codes(self):
        """Test administrative gender codes."""
        assert GENDER.to_code(Gender.MALE) == "male"
        assert GENDER.to_code(Gender.FEMALE) == "female"
        assert GENDER.to_code(Gender.OTHER) == "other"
        assert GENDER.to_code(Gender.UNKNOWN) == "unknown"

    def test_certainty_alias(self):
        """Test 'unconfirmed' is accepted inbound as provisional."""
        assert DIAGNOSIS_CERTAINTY.from_code("unconfirmed") is DiagnosisCertainty.PROVISIONAL
        assert DIAGNOSIS_CERTAINTY.to_code(DiagnosisCertainty.PROVISIONAL) == "provisional"

    def test_observation_status_codes(self):
        """Test observation status codes."""
        assert OBSERVATION_STATUS.to_code(ObservationStatus.FINAL) == "final"
        assert OBSERVATION_STATUS.from_code("amended") is ObservationStatus.AMENDED
        assert OBSERVATION_STATUS.from_code("cancelled") is None

    def test_interpretation_codes(self):
        """Test interpretation codes use the v3 abbreviations."""
        assert INTERPRETATION.to_code(Interpretation.CRITICALLY_HIGH) == "HH"
        assert INTERPRETATION.from_code("LL") is Interpretation.CRITICALLY_LOW
        assert len(INTERPRETATION.mapped_values) == len(Interpretation)

    def test_allergy_category_other_is_unmapped(self):
        """Test the OTHER allergen type has no category code."""
        assert ALLERGY_CATEGORY.to_code(AllergenType.DRUG) == "medication"
        assert ALLERGY_CATEGORY.to_code(AllergenType.OTHER) is None
        assert ALLERGY_CATEGORY.from_code("biologic") is None

    def test_allergy_severity(self):
        """Test severity codes and the unmapped OTHER member."""
        assert ALLERGY_SEVERITY.to_code(AllergySeverity.SEVERE) == "severe"
        assert ALLERGY_SEVERITY.to_code(AllergySeverity.OTHER) is None

    def test_criticality_values(self):
        """Test the derived criticality codes."""
        assert SEVERITY_TO_CRITICALITY[AllergySeverity.MILD] == "low"
        assert SEVERITY_TO_CRITICALITY[AllergySeverity.MODERATE] == "low"
        assert SEVERITY_TO_CRITICALITY[AllergySeverity.SEVERE] == "high"
        assert SEVERITY_TO_CRITICALITY[AllergySeverity.OTHER] == "unable-to-assess"


class TestCodings:
    """Test coding and codeable concept handling."""

    def test_coding_carries_system_and_display(self):
        """Test outbound codings name their system."""
        coding = GENDER.to_coding(Gender.FEMALE)

        assert coding.system == GENDER.system
        assert coding.code == "female"
        assert coding.display == "Female"

    def test_coding_from_other_system_ignored(self):
        """Test codes from a foreign system do not map."""
        coding = Coding(system="http://example.org/other", code="male")

        assert GENDER.from_coding(coding) is None

    def test_coding_without_system_accepted(self):
        """Test a bare code is matched against the table."""
        assert GENDER.from_coding(Coding(code="male")) is Gender.MALE

    def test_first_mappable_coding_wins(self):
        """Test codeable concepts are scanned for the first mappable coding."""
        concept = CodeableConcept(coding=[
            Coding(system="http://snomed.info/sct", code="410605003"),
            Coding(system=DIAGNOSIS_CERTAINTY.system, code="confirmed"),
            Coding(system=DIAGNOSIS_CERTAINTY.system, code="provisional"),
        ])

        assert DIAGNOSIS_CERTAINTY.from_codeable_concept(concept) is DiagnosisCertainty.CONFIRMED

    def test_tables_are_read_only(self):
        """Test the underlying tables cannot be mutated."""
        with pytest.raises(TypeError):
            GENDER._outbound[Gender.MALE] = ("x", None)
