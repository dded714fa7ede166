"""
Central configuration constants for the ecosystem simulation.

Defines default values, thresholds, and configuration parameters
used across multiple modules.
"""

# ============================================================================
# Spatial Indexing Configuration
# ============================================================================

# Edge length (tiles) of one spatial index region
REGION_SIZE = 10

# Maximum distance (tiles) an animal can see
VIEW_DISTANCE = 10

# Mates are sensed within VIEW_DISTANCE / MATE_RADIUS_DIVISOR
MATE_RADIUS_DIVISOR = 2

# Predators are sensed within VIEW_DISTANCE / PREDATOR_RADIUS_DIVISOR
PREDATOR_RADIUS_DIVISOR = 5


# ============================================================================
# Decision Configuration
# ============================================================================

# Minimum time (seconds) between decisions while stationary
TIME_BETWEEN_ACTION_CHOICES = 1.0

# Drive level above which an animal acts on hunger, thirst or urge
DRIVE_THRESHOLD = 0.3

# An eating animal keeps eating until thirst reaches this level
CRITICAL_THIRST = 0.7

# Probability of resting when no drive is pressing
REST_PROBABILITY = 0.1

# Exploration step: chance of continuing straight, and random samples scored
FORWARD_PROBABILITY = 0.2
WEIGHTING_ITERATIONS = 3


# ============================================================================
# Per-Species Defaults (overridable in species YAML)
# ============================================================================

TIME_TO_DEATH_BY_HUNGER_DEFAULT = 256.0  # seconds from 0 to 1 hunger
TIME_TO_GROWTH_DEFAULT = 64.0            # seconds from 0 to full size
TIME_TO_DEATH_BY_THIRST_DEFAULT = 128.0  # seconds from 0 to 1 thirst

EAT_DURATION_DEFAULT = 10.0    # seconds to eat 1.0 hunger worth of plant
DRINK_DURATION_DEFAULT = 6.0   # seconds to drink 1.0 thirst
PREDATION_HUNGER_REDUCTION_DEFAULT = 0.2  # flat hunger reduction per kill

MOVE_SPEED_DEFAULT = 1.5       # straight tiles per second
MOVE_ARC_HEIGHT_DEFAULT = 0.2  # hop height (world units)

PLANT_INITIAL_AMOUNT_DEFAULT = 1.0
PLANT_REGROWTH_TIME_DEFAULT = 0.0  # 0 = plants never regrow


# ============================================================================
# Spawning Configuration
# ============================================================================

# Vitals for animals seeded at world setup
SPAWN_HUNGER = 0.1
SPAWN_THIRST = 0.1

# Size of every newborn or freshly spawned animal
INITIAL_SIZE = 0.3


# ============================================================================
# Performance Configuration
# ============================================================================

# Tick timing window for rolling average
TICK_TIME_WINDOW = 100  # Number of ticks to average

# Default tick summary interval (print every N ticks)
TICK_SUMMARY_INTERVAL = 100  # Print summary every 100 ticks
