#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from validate_yaml import load_schema, main, validate_fleet_file

MINIMAL = """
models:
  - id: m1
    make: Toyota
    model: Axio
    year: 2018
    dailyRate: 4500

vehicles:
  - id: u1
    publicId: AX-01
    plate: KDA 100A
    modelId: m1
    hubLocation: JKIA
"""


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "models" in schema["properties"]
        assert "vehicles" in schema["properties"]
        assert "reservations" in schema["properties"]


class TestValidateFleetFile:
    """Tests for validate_fleet_file function."""

    def test_valid_minimal_returns_no_errors(self, tmp_path):
        """Valid minimal fleet file returns empty error list."""
        path = tmp_path / "valid.yaml"
        path.write_text(MINIMAL)
        assert validate_fleet_file(path, load_schema()) == []

    def test_sample_fleet_is_valid(self, fleet_file):
        assert validate_fleet_file(fleet_file, load_schema()) == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        """Missing dailyRate returns schema validation errors."""
        path = tmp_path / "invalid.yaml"
        path.write_text(MINIMAL.replace("    dailyRate: 4500\n", ""))
        errors = validate_fleet_file(path, load_schema())
        assert len(errors) >= 1
        assert any("dailyRate" in e for e in errors)

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(MINIMAL + "    colour: red\n")
        errors = validate_fleet_file(path, load_schema())
        assert errors and errors[0].startswith("Schema validation error")

    def test_bad_lifecycle_state(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(MINIMAL + "    lifecycleState: stolen\n")
        assert validate_fleet_file(path, load_schema())

    def test_unknown_model_reference(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(MINIMAL.replace("modelId: m1", "modelId: m2"))
        errors = validate_fleet_file(path, load_schema())
        assert errors[0].startswith("Invalid fleet data")

    def test_overlapping_reservations(self, tmp_path):
        path = tmp_path / "overlap.yaml"
        path.write_text(
            MINIMAL
            + """
reservations:
  - id: R00001
    vehicleId: u1
    start: '2026-11-01T10:00:00'
    end: '2026-11-05T10:00:00'
    status: confirmed
    customerRef: C-1
    createdAt: '2026-10-01T10:00:00'
  - id: R00002
    vehicleId: u1
    start: '2026-11-04T10:00:00'
    end: '2026-11-06T10:00:00'
    status: pending
    customerRef: C-2
    createdAt: '2026-10-02T10:00:00'
"""
        )
        errors = validate_fleet_file(path, load_schema())
        assert errors == ["Overlapping reservations: Reservations R00001 and R00002 overlap on u1"]

    def test_yaml_syntax_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("models: [unclosed\n")
        errors = validate_fleet_file(path, load_schema())
        assert errors[0].startswith("YAML parse error")


class TestMain:
    """Tests for the command-line entry point."""

    def test_ok(self, fleet_file, capsys):
        assert main([str(fleet_file)]) == 0
        assert "OK: fleet.yaml" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml")]) == 1
        assert "File not found" in capsys.readouterr().out
