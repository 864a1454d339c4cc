#!/usr/bin/env python3
"""Validate fleet YAML files against the schema and the booking rules."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from fleet.errors import ConflictError
from fleet.loader import check_no_overlaps, parse_fleet


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        fleet = parse_fleet(data)
        check_no_overlaps(fleet.reservations)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except ConflictError as e:
        errors.append(f"Overlapping reservations: {e}")
    except (KeyError, ValueError) as e:
        errors.append(f"Invalid fleet data: {e}")
    return errors


def main(argv=None):
    """Validate the given fleet files (default: fleet.yaml next to this script)."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()
    paths = [Path(p) for p in argv] or [Path(__file__).parent / "fleet.yaml"]

    all_valid = True
    for filepath in paths:
        if not filepath.exists():
            print(f"Error: File not found: {filepath}")
            all_valid = False
            continue
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
