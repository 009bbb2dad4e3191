"""Physics/math helpers for pair kinematics and close-pair proxies."""

from __future__ import annotations

import math
from typing import Iterable

from .models import Candidate, LorentzVector

# 0.3 * B[T] * R[m] / (2 pT[GeV]) with B given in kGauss.
CURVATURE_COEFF = 0.3 * 0.1 / 2.0


def candidate_to_lorentz(candidate: Candidate, mass: float) -> LorentzVector:
    """Convert `(pt, eta, phi)` plus a mass hypothesis into a Lorentz 4-vector."""
    pt = candidate.pt
    px = pt * math.cos(candidate.phi)
    py = pt * math.sin(candidate.phi)
    pz = pt * math.sinh(candidate.eta)
    energy = math.sqrt(px * px + py * py + pz * pz + mass * mass)
    return LorentzVector(px=px, py=py, pz=pz, e=energy)


def sum_lorentz(vectors: Iterable[LorentzVector]) -> LorentzVector:
    """Sum an iterable of Lorentz vectors."""
    total = LorentzVector(0.0, 0.0, 0.0, 0.0)
    for vec in vectors:
        total = total + vec
    return total


def rapidity(p4: LorentzVector) -> float:
    """Longitudinal rapidity `0.5 ln((E + pz) / (E - pz))`."""
    if p4.e <= abs(p4.pz):
        return 1e9 if p4.pz >= 0 else -1e9
    return 0.5 * math.log((p4.e + p4.pz) / (p4.e - p4.pz))


def track_rapidity(candidate: Candidate, mass: float) -> float:
    """Rapidity of a single candidate under a mass hypothesis."""
    return rapidity(candidate_to_lorentz(candidate, mass))


def pair_kinematics(p4: LorentzVector) -> tuple[float, float, float]:
    """Return `(mass, pt, rapidity)` from a pair 4-vector."""
    return p4.mass, p4.pt, rapidity(p4)


def wrap_phi(phi: float) -> float:
    """Map an azimuthal difference into `[-pi, pi)`."""
    return (phi + math.pi) % (2.0 * math.pi) - math.pi


def phi_star(candidate: Candidate, mag_field: float, radius: float) -> float | None:
    """Azimuth of the track at transverse `radius` in a `mag_field` (kGauss).

    Returns `None` when the helix curls up before reaching `radius`.
    """
    if candidate.pt <= 0.0:
        return None
    arg = -CURVATURE_COEFF * mag_field * candidate.sign * radius / candidate.pt
    if abs(arg) > 1.0:
        return None
    return candidate.phi + math.asin(arg)


def delta_phi_star(
    first: Candidate,
    second: Candidate,
    mag_field_1: float,
    mag_field_2: float,
    radius: float,
) -> float:
    """Signed `phi*` separation of two legs, `inf` if either never reaches `radius`."""
    phi1 = phi_star(first, mag_field_1, radius)
    phi2 = phi_star(second, mag_field_2, radius)
    if phi1 is None or phi2 is None:
        return math.inf
    return wrap_phi(phi2 - phi1)
