# MIT License (see LICENSE)
"""
Physical constants and simulation-unit defaults.

The simulation works in arbitrary units by default (k = 1, electron charge
-1, unit mass), the way the interactive simulator this package serves was
tuned. The SI Coulomb constant is kept for callers who want SI units; pass
it as the ``coulomb_k`` parameter.
"""
from __future__ import annotations

# Coulomb's constant (electrostatic constant), k = 1/(4πε₀)
# Value: 8.9875517923 × 10⁹ N·m²/C²
# Reference: https://physics.nist.gov/cgi-bin/cuu/Value?k
K_COULOMB: float = 8.9875517923e9

# Coulomb constant in simulation units.
DEFAULT_K: float = 1.0

# Charge and mass of a spawned electron in simulation units.
ELECTRON_CHARGE: float = -1.0
ELECTRON_MASS: float = 1.0

# Default softening length. Forces use max(d², ε²) in the denominator,
# so separations below ε feel the force of a pair exactly ε apart.
DEFAULT_SOFTENING: float = 1.0

# Default capture radius of a placed wire.
DEFAULT_CAPTURE_RADIUS: float = 2.0
