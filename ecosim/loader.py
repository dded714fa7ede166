"""
YAML data loader with schema validation.

Loads world and species definitions from YAML files and validates them
against JSON schemas.
"""

import yaml
import json
from pathlib import Path
from typing import Dict, Optional
import jsonschema

from .data_types import (
    Species, EntityKind, SpeciesConfig, VitalRates, FeedingConfig,
    MovementProperties, PlantConfig, WorldConfig, SimulationConfig,
    TerrainConfig, PopulationConfig
)


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        # Schemas are optional; a data pack may ship without them
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def parse_species_tag(value: str, source: Path) -> Species:
    """Map a lowercase species name to its enum member"""
    try:
        return Species(value)
    except ValueError:
        raise DataLoadError(f"Unknown species '{value}' in {source}")


def load_species(file_path: Path, schema_dir: Optional[Path] = None) -> SpeciesConfig:
    """Load species definition from YAML"""
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = schema_dir / "species.schema.json"
        validate_against_schema(data, schema_path, file_path)

    try:
        kind = EntityKind(data['kind'])
        diet = {parse_species_tag(s, file_path) for s in data.get('diet', [])}

        return SpeciesConfig(
            species=parse_species_tag(data['species'], file_path),
            name=data['name'],
            kind=kind,
            diet=diet,
            vitals=VitalRates(**data.get('vitals', {})),
            feeding=FeedingConfig(**data.get('feeding', {})),
            movement=MovementProperties(**data.get('movement', {})),
            plant=PlantConfig(**data.get('plant', {})),
            flees_predators=data.get('flees_predators', False),
            description=data.get('description')
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataLoadError(f"Malformed species definition {file_path}: {e}")


def load_world(file_path: Path, schema_dir: Optional[Path] = None) -> WorldConfig:
    """Load world configuration from YAML"""
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = schema_dir / "world.schema.json"
        validate_against_schema(data, schema_path, file_path)

    try:
        simulation = SimulationConfig(**data.get('simulation', {}))
        terrain = TerrainConfig(**data['terrain'])
        populations = [
            PopulationConfig(species=parse_species_tag(p['species'], file_path), count=p['count'])
            for p in data.get('populations', [])
        ]

        return WorldConfig(
            world_id=data['world_id'],
            name=data['name'],
            seed=data['seed'],
            simulation=simulation,
            terrain=terrain,
            populations=populations,
            description=data.get('description')
        )
    except (KeyError, TypeError) as e:
        raise DataLoadError(f"Malformed world definition {file_path}: {e}")


def load_species_registry(species_dir: Path, schema_dir: Optional[Path] = None) -> Dict[Species, SpeciesConfig]:
    """Load all species from directory"""
    species_dir = Path(species_dir)
    if not species_dir.exists():
        raise DataLoadError(f"Species directory not found: {species_dir}")

    registry = {}
    for yaml_file in sorted(species_dir.glob("*.yaml")):
        config = load_species(yaml_file, schema_dir)
        if config.species in registry:
            raise DataLoadError(f"Duplicate species '{config.species.value}' in {yaml_file}")
        registry[config.species] = config

    if not registry:
        raise DataLoadError(f"No species files found in {species_dir}")

    return registry


def load_all_data(
    data_root: Path,
    schema_dir: Optional[Path] = None,
    world_file: str = "world/meadow.yaml"
) -> dict:
    """Load all simulation data from data directory

    Returns dict with keys: world, species
    """
    data_root = Path(data_root)

    world = load_world(data_root / world_file, schema_dir)
    species = load_species_registry(data_root / "species", schema_dir)

    for population in world.populations:
        if population.species not in species:
            raise DataLoadError(
                f"World {world.world_id} populates '{population.species.value}' "
                f"but no species file defines it"
            )

    return {
        'world': world,
        'species': species
    }
