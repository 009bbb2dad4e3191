"""Public package exports for the event-mixing pair-correlation engine."""


from .config import (
    AxisSpec,
    EventCuts,
    HistogramBinning,
    MixingConfig,
    MixingSettings,
    PairCuts,
    RejectionHypothesis,
    SpeciesSelection,
    TrackCuts,
)
from .context import BatchContext
from .exceptions import ConfigurationError, MixingError
from .mixer import EventMixer
from .models import (
    BACKGROUND,
    SIGNAL,
    BatchResult,
    Candidate,
    Event,
    EventBatch,
    LorentzVector,
    Observation,
    ParticleHypothesis,
)
from .pairing import CandidatePair, PairEvaluator
from .pid import (
    make_deuteron,
    make_kaon,
    make_pion,
    make_proton,
    particle_hypothesis_from_name,
    particle_hypothesis_from_pdg,
)
from .sink import HistogramRegistry, ObservationSink

__all__ = [
    "EventMixer",
    "MixingConfig",
    "EventCuts",
    "TrackCuts",
    "SpeciesSelection",
    "RejectionHypothesis",
    "PairCuts",
    "MixingSettings",
    "HistogramBinning",
    "AxisSpec",
    "BatchContext",
    "Candidate",
    "Event",
    "EventBatch",
    "LorentzVector",
    "ParticleHypothesis",
    "Observation",
    "BatchResult",
    "SIGNAL",
    "BACKGROUND",
    "CandidatePair",
    "PairEvaluator",
    "HistogramRegistry",
    "ObservationSink",
    "MixingError",
    "ConfigurationError",
    "make_pion",
    "make_kaon",
    "make_proton",
    "make_deuteron",
    "particle_hypothesis_from_name",
    "particle_hypothesis_from_pdg",
]
