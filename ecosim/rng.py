"""
Deterministic RNG utilities for the ecosystem simulation.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(world_seed, purpose, entity_id). All randomness uses
numpy.random.Generator(PCG64) for reproducible cross-session results.
"""

import hashlib
import numpy as np
from typing import Any

from .data_types import Genes


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Uses SHA256 to hash components into stable seed value.

    Args:
        *components: Seed components (world_seed, purpose, entity index, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        spawn_seed = make_seed(world_seed, "spawn")
        genes_seed = make_seed(world_seed, "genes", instance_id)
    """
    # Join all components with colon separator
    hash_input = ":".join(str(c) for c in components)

    # SHA256 hash and extract 64-bit integer
    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


def make_rng(*components: Any) -> np.random.Generator:
    """
    Create a PCG64 generator seeded from hierarchical components.

    Args:
        *components: Passed to make_seed()

    Returns:
        Fresh numpy Generator
    """
    return np.random.Generator(np.random.PCG64(make_seed(*components)))


def random_genes(rng: np.random.Generator) -> Genes:
    """
    Draw random genes (sex is a fair coin).

    Args:
        rng: Generator owned by the caller

    Returns:
        Genes instance
    """
    return Genes(is_male=bool(rng.random() < 0.5))
