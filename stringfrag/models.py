"""
Event record model for stringfrag.

The analysis only ever reads these objects. Generators and readers build
them; nothing downstream mutates a record once an event has been handed
over.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

# Floor for the transverse mass in rapidity, as in Pythia.
TINY = 1e-20


@dataclass
class ParticleRecord:
    """One entry of a generated event record.

    Attributes:
        index: Position in the event record. Defines production order
            along the string.
        pdg_id: PDG Monte Carlo particle ID.
        status: Signed generator status code. The magnitude encodes the
            origin of the particle (81-89 ordinary fragmentation, 1216
            string joining step); the sign marks whether it is still
            present in the final state.
        px, py, pz, energy: Four-momentum components in GeV.
        mass: Generated mass in GeV.
    """

    index: int
    pdg_id: int
    status: int
    px: float
    py: float
    pz: float
    energy: float
    mass: float = 0.0

    @property
    def status_abs(self) -> int:
        return abs(self.status)

    @property
    def pt(self) -> float:
        """Transverse momentum."""
        return math.sqrt(self.px**2 + self.py**2)

    @property
    def rapidity(self) -> float:
        """Rapidity along the string (beam) axis.

        Computed as sign(pz) * ln((E + |pz|) / mT) with mT floored at a tiny
        value, so lightlike and slightly unphysical (E < |pz|) records give a
        large finite rapidity instead of failing. A record with no energy
        sits at y = 0.
        """
        num = self.energy + abs(self.pz)
        if num <= 0.0:
            return 0.0
        mt = math.sqrt(max(self.energy**2 - self.pz**2, 0.0))
        y = math.log(num / max(TINY, mt))
        return y if self.pz > 0 else -y

    @property
    def forward_momentum(self) -> float:
        """Forward light-cone momentum E + pz."""
        return self.energy + self.pz

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "pdg_id": self.pdg_id,
            "status": self.status,
            "px": self.px,
            "py": self.py,
            "pz": self.pz,
            "energy": self.energy,
            "mass": self.mass,
        }


@dataclass
class Event:
    """A single generated event.

    Attributes:
        event_number: Sequential event number within the subrun.
        particles: Event record in generator order.
    """

    event_number: int = 0
    particles: list[ParticleRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self):
        return iter(self.particles)

    def __getitem__(self, idx):
        return self.particles[idx]
