"""Particle-hypothesis helpers and n-sigma PID decisions.

Supported species are the ones the selector has PID responses for: charged
pions, charged kaons, protons and deuterons. Hypotheses are addressed by
their unsigned PDG code; the charge sign is configured separately.
"""

from __future__ import annotations

from typing import Sequence

from .exceptions import ConfigurationError
from .models import Candidate, ParticleHypothesis

PDG_PION = 211
PDG_KAON = 321
PDG_PROTON = 2212
PDG_DEUTERON = 1000010020

_PION = ParticleHypothesis(name="pi", mass=0.13957039, pdg_id=PDG_PION)
_KAON = ParticleHypothesis(name="K", mass=0.493677, pdg_id=PDG_KAON)
_PROTON = ParticleHypothesis(name="p", mass=0.93827208816, pdg_id=PDG_PROTON)
_DEUTERON = ParticleHypothesis(name="d", mass=1.87561294257, pdg_id=PDG_DEUTERON)

_PDG_TO_HYPOTHESIS: dict[int, ParticleHypothesis] = {
    PDG_PION: _PION,
    PDG_KAON: _KAON,
    PDG_PROTON: _PROTON,
    PDG_DEUTERON: _DEUTERON,
}

_NAME_TO_HYPOTHESIS: dict[str, ParticleHypothesis] = {
    "pi": _PION,
    "pion": _PION,
    "k": _KAON,
    "kaon": _KAON,
    "p": _PROTON,
    "proton": _PROTON,
    "d": _DEUTERON,
    "deuteron": _DEUTERON,
}

# Candidate attribute suffix holding the n-sigma response of each species.
_PDG_TO_FIELD: dict[int, str] = {
    PDG_PION: "pi",
    PDG_KAON: "ka",
    PDG_PROTON: "pr",
    PDG_DEUTERON: "de",
}

SUPPORTED_PDG_CODES: frozenset[int] = frozenset(_PDG_TO_HYPOTHESIS)


def make_pion() -> ParticleHypothesis:
    """Return the standard charged-pion mass hypothesis."""
    return _PION


def make_kaon() -> ParticleHypothesis:
    """Return the standard charged-kaon mass hypothesis."""
    return _KAON


def make_proton() -> ParticleHypothesis:
    """Return the proton mass hypothesis."""
    return _PROTON


def make_deuteron() -> ParticleHypothesis:
    """Return the deuteron mass hypothesis."""
    return _DEUTERON


def is_supported_pdg(pdg: int) -> bool:
    """Return whether PID responses exist for the (unsigned) PDG code."""
    return abs(int(pdg)) in SUPPORTED_PDG_CODES


def particle_hypothesis_from_pdg(pdg: int) -> ParticleHypothesis:
    """Resolve an unsigned or signed PDG code into a supported hypothesis."""
    try:
        return _PDG_TO_HYPOTHESIS[abs(int(pdg))]
    except KeyError as exc:
        supported = ", ".join(str(x) for x in sorted(SUPPORTED_PDG_CODES))
        raise ConfigurationError(
            f"PDG code {pdg} is not supported. Supported codes: {supported}"
        ) from exc


def particle_hypothesis_from_name(name: str) -> ParticleHypothesis:
    """Resolve a short particle name (e.g. `pi`, `deuteron`) into a hypothesis."""
    key = name.strip().lower()
    try:
        return _NAME_TO_HYPOTHESIS[key]
    except KeyError as exc:
        supported = ", ".join(sorted(_NAME_TO_HYPOTHESIS))
        raise ConfigurationError(
            f"Unknown particle hypothesis name '{name}'. Supported names: {supported}"
        ) from exc


def pdg_symbol(pdg: int) -> str:
    """Short symbol for axis titles; `X` for anything unsupported."""
    hypothesis = _PDG_TO_HYPOTHESIS.get(abs(int(pdg)))
    return hypothesis.name if hypothesis is not None else "X"


def tpc_nsigma(candidate: Candidate, pdg: int) -> float:
    """TPC energy-loss n-sigma of `candidate` under the `pdg` hypothesis."""
    return getattr(candidate, f"tpc_nsigma_{_response_field(pdg)}")


def tof_nsigma(candidate: Candidate, pdg: int) -> float:
    """TOF arrival-time n-sigma of `candidate` under the `pdg` hypothesis."""
    return getattr(candidate, f"tof_nsigma_{_response_field(pdg)}")


def in_sigma_window(nsigma: float, window: Sequence[float]) -> bool:
    """Open-interval test `low < nsigma < high`."""
    low, high = window
    return low < nsigma < high


def tpc_selection(candidate: Candidate, pdg: int, window: Sequence[float]) -> bool:
    """TPC n-sigma compatibility with the `pdg` hypothesis."""
    if not is_supported_pdg(pdg):
        return False
    return in_sigma_window(tpc_nsigma(candidate, pdg), window)


def tof_selection(candidate: Candidate, pdg: int, window: Sequence[float]) -> bool:
    """TOF n-sigma compatibility with the `pdg` hypothesis."""
    if not is_supported_pdg(pdg):
        return False
    return in_sigma_window(tof_nsigma(candidate, pdg), window)


def _response_field(pdg: int) -> str:
    try:
        return _PDG_TO_FIELD[abs(int(pdg))]
    except KeyError as exc:
        raise ConfigurationError(f"No PID response stored for PDG code {pdg}.") from exc
