# -----------------------
# Time stepping
# -----------------------
MAX_DT = 1.0          # cap on a single frame's elapsed time (model time units)
MAX_SUBSTEP = 0.02    # largest integration sub-step

# -----------------------
# Repulsion integrator
# -----------------------
STEP_GAIN = 12.5          # overdamped mobility: displacement = gain * h * force
SOFTENING = 0.5           # chord^2 softening, keeps the force finite at zero separation
MAX_ANGULAR_STEP = 0.25   # radians, per sub-step
COINCIDENT_EPS = 1e-6     # chord length below which two groups count as coincident
COINCIDENT_OFFSET = 1e-3  # radians, deterministic nudge applied to coincident groups
JITTER_SCALE = 1e-4       # tangential jitter per unit time (breaks planar symmetry)
SHAPE_ATTRACTION_GAIN = 5.0  # pull toward the ideal VSEPR arrangement, when one is given

# -----------------------
# Repulsion weights (lone pair > triple > double > single)
# -----------------------
LONE_PAIR_WEIGHT = 1.3
SINGLE_BOND_WEIGHT = 1.0
DOUBLE_BOND_WEIGHT = 1.1
TRIPLE_BOND_WEIGHT = 1.2

MAX_PAIRS = 6  # pair groups allowed around the interactive central atom

# -----------------------
# Distances (model units)
# -----------------------
BONDED_PAIR_DISTANCE = 10.0  # ideal atom-atom distance when a bond has no measured length
LONE_PAIR_DISTANCE = 7.0     # distance at which lone pairs are displayed
RADIAL_TIMESCALE = 0.05      # relaxation time of bond lengths toward their ideal value
REAL_LENGTH_SCALE = 5.5      # angstroms -> model units for real molecules

# -----------------------
# Real molecules
# -----------------------
ATTRACTION_GAIN = 3.0  # pull toward the measured configuration

# -----------------------
# Logging
# -----------------------
LOGGING_LEVEL = "INFO"  # options: DEBUG, INFO, WARNING, ERROR

# -----------------------
# Misc
# -----------------------
EPSILON = 1e-12  # small value to prevent div by zero or numerical issues
