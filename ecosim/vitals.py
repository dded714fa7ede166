"""
Agent vitals & drive model.

Per tick, every living animal's drives are integrated with per-species
rates, then the death condition is evaluated (hunger before thirst).
"""

from typing import Optional

from .data_types import CauseOfDeath, VitalRates


def integrate_vitals(animal, rates: VitalRates, dt: float):
    """
    Advance hunger, reproductive urge, size and thirst by dt seconds.

    hunger += dt / time_to_death_by_hunger
    reproduction_will += dt * 10 * size / time_to_death_by_hunger, clamped to [0, 1]
    size += dt / time_to_growth, clamped to [0, 1]
    thirst += dt / time_to_death_by_thirst

    Hunger and thirst are left unclamped so the death check sees overshoot.

    Args:
        animal: Animal to update in place
        rates: Species vital rates
        dt: Elapsed time in seconds
    """
    animal.hunger += dt / rates.time_to_death_by_hunger
    animal.reproduction_will += dt * 10.0 * animal.size / rates.time_to_death_by_hunger
    animal.reproduction_will = _clamp01(animal.reproduction_will)
    animal.size += dt / rates.time_to_growth
    animal.size = _clamp01(animal.size)
    animal.thirst += dt / rates.time_to_death_by_thirst


def check_death(animal) -> Optional[CauseOfDeath]:
    """
    Return the cause of death if a drive has reached 1, else None.

    Hunger is checked first.
    """
    if animal.hunger >= 1.0:
        return CauseOfDeath.HUNGER
    elif animal.thirst >= 1.0:
        return CauseOfDeath.THIRST
    return None


def _clamp01(value: float) -> float:
    return 0.0 if value < 0.0 else (1.0 if value > 1.0 else value)
