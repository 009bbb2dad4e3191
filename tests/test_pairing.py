"""Unit tests for pair kinematics, phi* propagation and pair acceptance."""

from __future__ import annotations

import dataclasses
import math
import unittest

from resomix import (
    BatchContext,
    Candidate,
    Event,
    LorentzVector,
    MixingConfig,
    PairCuts,
    PairEvaluator,
    SpeciesSelection,
)
from resomix.pairing import IdenticalPairing, NonIdenticalPairing, make_pairing_strategy
from resomix.physics import delta_phi_star, phi_star, rapidity, wrap_phi
from resomix.pid import PDG_KAON, make_kaon, make_pion, make_proton


def _candidate(
    track_id: str,
    pt: float,
    eta: float,
    phi: float,
    sign: int = 1,
    event_id: str = "e0",
) -> Candidate:
    return Candidate(
        track_id=track_id,
        event_id=event_id,
        sign=sign,
        p=pt * math.cosh(eta),
        pt=pt,
        eta=eta,
        phi=phi,
    )


class TestPhiStar(unittest.TestCase):
    """Validate track azimuth propagation to the reference radius."""

    def test_zero_field_keeps_straight_tracks(self) -> None:
        """Without a field phi* equals the emission azimuth."""
        cand = _candidate("a", pt=0.5, eta=0.0, phi=1.3)
        self.assertAlmostEqual(phi_star(cand, 0.0, 1.2), 1.3, places=12)

    def test_bending_depends_on_charge_and_field(self) -> None:
        """Opposite charges bend in opposite directions by the same amount."""
        pos = _candidate("pos", pt=1.0, eta=0.0, phi=0.0, sign=1)
        neg = _candidate("neg", pt=1.0, eta=0.0, phi=0.0, sign=-1)
        expected = math.asin(-0.015 * 5.0 * 1.2 / 1.0)
        self.assertAlmostEqual(phi_star(pos, 5.0, 1.2), expected, places=12)
        self.assertAlmostEqual(phi_star(neg, 5.0, 1.2), -expected, places=12)

    def test_curling_track_never_counts_as_close(self) -> None:
        """A track curling up before the radius gives an infinite separation."""
        soft = _candidate("soft", pt=0.01, eta=0.0, phi=0.0)
        hard = _candidate("hard", pt=1.0, eta=0.0, phi=0.0)
        self.assertIsNone(phi_star(soft, 5.0, 1.2))
        self.assertEqual(delta_phi_star(soft, hard, 5.0, 5.0, 1.2), math.inf)

    def test_wrap_phi_range(self) -> None:
        """Wrapped differences stay in [-pi, pi)."""
        for value in (0.0, 3.5, -3.5, 7.0, -7.0, math.pi):
            wrapped = wrap_phi(value)
            self.assertGreaterEqual(wrapped, -math.pi)
            self.assertLess(wrapped, math.pi)
            self.assertAlmostEqual(math.cos(wrapped), math.cos(value), places=12)


class TestPairEvaluator(unittest.TestCase):
    """Validate close-pair rejection, rapidity cut and mass symmetry."""

    def test_close_pair_rejected_and_separated_pair_accepted(self) -> None:
        """Small deta and dphi* rejects; a large deta is never close."""
        evaluator = PairEvaluator(make_proton(), make_proton(), PairCuts())
        a = _candidate("a", pt=1.0, eta=0.0, phi=1.0)
        close = _candidate("b", pt=1.0, eta=0.001, phi=1.001)
        apart = _candidate("c", pt=1.0, eta=1.0, phi=1.001)

        close_pair = evaluator.build(a, close, 5.0, 5.0)
        self.assertAlmostEqual(close_pair.delta_phi_star, 0.001, places=9)
        self.assertTrue(evaluator.is_close_pair(close_pair))
        self.assertFalse(evaluator.accepts(close_pair))

        apart_pair = evaluator.build(a, apart, 5.0, 5.0)
        self.assertFalse(evaluator.is_close_pair(apart_pair))
        self.assertTrue(evaluator.accepts(apart_pair))

    def test_pair_rapidity_window(self) -> None:
        """Back-to-back pions at eta 0.6 give |y| near 0.6 and are rejected."""
        evaluator = PairEvaluator(make_pion(), make_pion(), PairCuts(max_abs_rapidity=0.5))
        a = _candidate("a", pt=10.0, eta=0.6, phi=0.0)
        b = _candidate("b", pt=10.0, eta=0.6, phi=math.pi)
        pair = evaluator.build(a, b, 5.0, 5.0)
        self.assertAlmostEqual(pair.rapidity, 0.6, places=3)
        self.assertFalse(evaluator.is_close_pair(pair))
        self.assertFalse(evaluator.accepts(pair))

    def test_undefined_or_sentinel_rapidity_is_rejected(self) -> None:
        """NaN rapidity and the massless-limit sentinel both fail acceptance."""
        evaluator = PairEvaluator(make_proton(), make_proton(), PairCuts())
        a = _candidate("a", pt=1.0, eta=0.0, phi=0.0)
        b = _candidate("b", pt=1.0, eta=0.5, phi=2.0)
        pair = evaluator.build(a, b, 5.0, 5.0)
        self.assertTrue(evaluator.accepts(pair))

        self.assertFalse(evaluator.accepts(dataclasses.replace(pair, rapidity=math.nan)))

        sentinel = rapidity(LorentzVector(px=0.0, py=0.0, pz=2.0, e=2.0))
        self.assertEqual(sentinel, 1e9)
        self.assertFalse(evaluator.accepts(dataclasses.replace(pair, rapidity=sentinel)))

    def test_mass_is_symmetric_in_leg_order(self) -> None:
        """Swapping legs together with their hypotheses keeps the mass."""
        proton = _candidate("p", pt=1.2, eta=0.3, phi=0.5)
        kaon = _candidate("k", pt=0.7, eta=-0.4, phi=2.0, sign=-1)
        forward = PairEvaluator(make_proton(), make_kaon(), PairCuts()).build(proton, kaon, 5.0, 5.0)
        backward = PairEvaluator(make_kaon(), make_proton(), PairCuts()).build(kaon, proton, 5.0, 5.0)
        self.assertAlmostEqual(forward.mass, backward.mass, places=12)
        self.assertAlmostEqual(forward.pt, backward.pt, places=12)
        self.assertGreater(forward.mass, make_proton().mass + make_kaon().mass)

    def test_each_leg_uses_its_own_field(self) -> None:
        """Mixed-event legs are propagated with their own event's field."""
        evaluator = PairEvaluator(make_proton(), make_proton(), PairCuts())
        a = _candidate("a", pt=1.0, eta=0.0, phi=0.0, event_id="e0")
        b = _candidate("b", pt=1.0, eta=0.0, phi=0.0, event_id="e1")
        same_field = evaluator.build(a, b, 5.0, 5.0)
        flipped_field = evaluator.build(a, b, 5.0, -5.0)
        self.assertAlmostEqual(same_field.delta_phi_star, 0.0, places=12)
        self.assertAlmostEqual(
            flipped_field.delta_phi_star, -2.0 * math.asin(-0.015 * 5.0 * 1.2), places=12
        )


class TestPairingStrategies(unittest.TestCase):
    """Validate the enumeration of candidate pairs."""

    def setUp(self) -> None:
        self.event_0 = Event(event_id="e0", pos_z=0.0, mult_percentile=10.0, mag_field=5.0)
        self.event_1 = Event(event_id="e1", pos_z=0.0, mult_percentile=10.0, mag_field=5.0)
        self.context = BatchContext()
        for i in range(3):
            self.context.add_first(_candidate(f"a{i}", 1.0, 0.1 * i, 0.0, event_id="e0"))
        for i in range(2):
            self.context.add_second(_candidate(f"b{i}", 1.0, 0.1 * i, 0.0, event_id="e0"))
            self.context.add_first(_candidate(f"c{i}", 1.0, 0.1 * i, 0.0, event_id="e1"))

    def test_identical_same_event_unordered_pairs(self) -> None:
        """Three candidates give three unordered pairs with k < l."""
        pairs = list(IdenticalPairing().same_event_pairs(self.context, self.event_0))
        self.assertEqual(
            [(a.track_id, b.track_id) for a, b in pairs],
            [("a0", "a1"), ("a0", "a2"), ("a1", "a2")],
        )

    def test_non_identical_same_event_product(self) -> None:
        """Non-identical same-event pairs are the full first x second product."""
        pairs = list(NonIdenticalPairing().same_event_pairs(self.context, self.event_0))
        self.assertEqual(len(pairs), 6)
        self.assertTrue(all(a.track_id.startswith("a") and b.track_id.startswith("b") for a, b in pairs))

    def test_identical_mixed_event_product(self) -> None:
        """Mixed-event identical pairs take first leg from event i, second from event j."""
        pairs = list(IdenticalPairing().mixed_event_pairs(self.context, self.event_0, self.event_1))
        self.assertEqual(len(pairs), 6)
        self.assertTrue(all(a.event_id == "e0" and b.event_id == "e1" for a, b in pairs))

    def test_strategy_follows_species_configuration(self) -> None:
        """Identical signed PDG codes pick the identical strategy."""
        self.assertIsInstance(make_pairing_strategy(MixingConfig()), IdenticalPairing)
        non_identical = MixingConfig(second=SpeciesSelection(pdg_code=PDG_KAON, sign=-1))
        self.assertIsInstance(make_pairing_strategy(non_identical), NonIdenticalPairing)
        opposite_sign = MixingConfig(second=SpeciesSelection(sign=-1))
        self.assertIsInstance(make_pairing_strategy(opposite_sign), NonIdenticalPairing)


if __name__ == "__main__":
    unittest.main()
