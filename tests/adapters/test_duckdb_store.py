"""Tests for the DuckDB-backed entity store."""

from datetime import datetime, timezone

import duckdb
import pytest

from fhir_bridge.adapters.lookup import DuckDBEntityStore
from fhir_bridge.domain import models
from fhir_bridge.domain.enums import Gender
from fhir_bridge.domain.ports import LookupPortError
from fhir_bridge.infrastructure.config_manager import LookupConfig


@pytest.fixture
def patient_store():
    store = DuckDBEntityStore(models.Patient, db_path=":memory:")
    yield store
    store.close()


class TestDuckDBEntityStore:
    """Test persistence of entities as JSON documents in DuckDB."""

    def test_initialize_schema(self, patient_store):
        """Test schema creation reports success."""
        result = patient_store.initialize_schema()

        assert result.is_success()

    def test_create_and_get(self, patient_store, patient):
        """Test a created entity is rehydrated with its fields intact."""
        patient_store.create(patient)

        loaded = patient_store.get("patient-uuid")

        assert loaded == patient
        assert loaded.gender is Gender.FEMALE
        assert loaded.name.family_name == "Doe"

    def test_missing_is_none(self, patient_store):
        """Test an unknown uuid is a miss, not an error."""
        assert patient_store.get("unknown") is None
        assert "unknown" not in patient_store
        assert len(patient_store) == 0

    def test_duplicate_create_rejected(self, patient_store, patient):
        """Test creating an existing uuid fails."""
        patient_store.create(patient)

        with pytest.raises(LookupPortError) as exc_info:
            patient_store.create(patient)

        assert exc_info.value.operation == "create"

    def test_update(self, patient_store, patient):
        """Test updates overwrite the stored document."""
        patient_store.create(patient)
        patient_store.update(patient.model_copy(update={"dead": True}))

        assert patient_store.get("patient-uuid").dead is True
        assert len(patient_store) == 1

    def test_update_unknown_rejected(self, patient_store, patient):
        """Test updating an unknown uuid fails."""
        with pytest.raises(LookupPortError) as exc_info:
            patient_store.update(patient)

        assert exc_info.value.operation == "update"

    def test_nested_entities_are_snapshots(self, encounter):
        """Test nested entities are stored and rehydrated inline."""
        store = DuckDBEntityStore(models.Encounter)
        store.create(encounter)

        loaded = store.get("encounter-uuid")

        assert loaded.patient.uuid == "patient-uuid"
        assert loaded.visit.location.name == "Outpatient Clinic"
        assert loaded.providers[0].name.family_name == "House"
        assert loaded.encounter_datetime == datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        store.close()

    def test_kinds_share_a_connection_without_collisions(self, patient, location):
        """Test stores on one connection are partitioned by kind."""
        connection = duckdb.connect(":memory:")
        patients = DuckDBEntityStore(models.Patient, connection=connection)
        locations = DuckDBEntityStore(models.Location, connection=connection)
        clash = models.Location(uuid="patient-uuid", name="Same id, other kind")

        patients.create(patient)
        locations.create(location)
        locations.create(clash)

        assert len(patients) == 1
        assert len(locations) == 2
        assert patients.get("patient-uuid").name.given_name == "Jane"
        assert locations.get("patient-uuid").name == "Same id, other kind"

        patients.close()
        locations.close()
        connection.close()

    def test_file_database_persists(self, tmp_path, location):
        """Test entities survive closing and reopening a file database."""
        db_path = str(tmp_path / "entities.duckdb")

        store = DuckDBEntityStore(models.Location, db_path=db_path)
        store.create(location)
        store.close()

        reopened = DuckDBEntityStore(models.Location, db_path=db_path)
        assert reopened.get("location-uuid").name == "Outpatient Clinic"
        reopened.close()

    def test_lookup_config(self, tmp_path):
        """Test the database path is taken from a DuckDB lookup config."""
        config = LookupConfig(backend="duckdb", db_path=str(tmp_path / "config.duckdb"))

        store = DuckDBEntityStore(models.Location, lookup_config=config)

        assert store.db_path == config.db_path

    def test_memory_config_rejected(self):
        """Test a non-DuckDB lookup config cannot be used."""
        with pytest.raises(LookupPortError):
            DuckDBEntityStore(models.Location, lookup_config=LookupConfig(backend="memory"))

    def test_missing_directory_rejected(self, tmp_path):
        """Test a database path in a missing directory is rejected."""
        with pytest.raises(LookupPortError) as exc_info:
            DuckDBEntityStore(models.Location, db_path=str(tmp_path / "missing" / "db.duckdb"))

        assert "does not exist" in str(exc_info.value)

    def test_corrupt_payload_raises(self, patient_store):
        """Test a payload that no longer validates surfaces as a port error."""
        patient_store.initialize_schema()
        patient_store._get_connection().execute(
            "INSERT INTO entities VALUES ('patient', 'broken', '{\"gender\": \"robot\"}')"
        )

        with pytest.raises(LookupPortError) as exc_info:
            patient_store.get("broken")

        assert exc_info.value.operation == "get"
