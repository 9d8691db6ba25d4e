"""PDG helpers backed by scikit-hep `particle`."""

from __future__ import annotations

from functools import lru_cache

from particle import InvalidParticle, Particle, ParticleNotFound


@lru_cache(maxsize=None)
def name(pdg_id: int) -> str:
    """Display name, falling back to the numeric id for unknown codes."""
    try:
        return Particle.from_pdgid(pdg_id).name
    except (ParticleNotFound, InvalidParticle):
        return str(pdg_id)
