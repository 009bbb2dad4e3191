"""Unit tests for JSON input loaders and tabular export helpers."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from resomix import BACKGROUND, SIGNAL, ConfigurationError, HistogramRegistry, Observation
from resomix.config import AxisSpec
from resomix.io import (
    config_from_dict,
    load_batches_json,
    load_config_json,
    write_histograms_table,
    write_observations_table,
)


def _write_json(tmpdir: str, name: str, payload) -> Path:
    path = Path(tmpdir) / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestBatchLoader(unittest.TestCase):
    """Validate parsing of event batches."""

    def test_load_batches_parses_events_and_candidates(self) -> None:
        """Batch loader should build events and candidates with PID fields."""
        payload = {
            "batches": [
                {
                    "events": [
                        {"event_id": "evt7", "pos_z": -1.5, "mult_percentile": 12.0, "mag_field": -5.0},
                        {"pos_z": 0.5, "mult_percentile": 40.0, "mag_field": 5.0, "multiplicity": 830},
                    ],
                    "candidates": [
                        {
                            "track_id": "t0",
                            "event_id": "evt7",
                            "sign": -1,
                            "p": 1.1,
                            "pt": 1.0,
                            "eta": 0.2,
                            "phi": 2.0,
                            "tpc_nsigma_pr": -0.4,
                            "tof_nsigma_ka": 1.2,
                            "tpc_n_cls_found": 120,
                            "dca_xy": 0.01,
                        }
                    ],
                },
                {"events": [], "tracks": []},
            ]
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            batches = load_batches_json(_write_json(tmpdir, "batches.json", payload))

        self.assertEqual(len(batches), 2)
        first = batches[0]
        self.assertEqual([e.event_id for e in first.events], ["evt7", "evt1"])
        self.assertEqual(first.events[0].mag_field, -5.0)
        self.assertIsNone(first.events[0].multiplicity)
        self.assertEqual(first.events[1].multiplicity, 830.0)
        [cand] = first.candidates
        self.assertEqual(cand.track_id, "t0")
        self.assertEqual(cand.sign, -1)
        self.assertAlmostEqual(cand.tpc_nsigma_pr, -0.4, places=12)
        self.assertAlmostEqual(cand.tof_nsigma_ka, 1.2, places=12)
        self.assertEqual(cand.tpc_nsigma_pi, 0.0)
        self.assertEqual(cand.tpc_n_cls_found, 120)
        self.assertEqual(batches[1].candidates, ())

    def test_single_batch_object(self) -> None:
        """A bare events/candidates object is read as one batch."""
        payload = {
            "events": [{"event_id": "e", "pos_z": 0.0, "mult_percentile": 1.0, "mag_field": 5.0}],
            "candidates": [{"event_id": "e", "sign": 1, "p": 1.0, "pt": 1.0, "eta": 0.0, "phi": 0.0}],
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            [batch] = load_batches_json(_write_json(tmpdir, "batch.json", payload))
        self.assertEqual(batch.candidates[0].track_id, "trk0")

    def test_malformed_candidates_are_reported(self) -> None:
        """Unknown or missing candidate fields raise ValueError."""
        event = {"event_id": "e", "pos_z": 0.0, "mult_percentile": 1.0, "mag_field": 5.0}
        unknown = {"events": [event], "candidates": [
            {"event_id": "e", "sign": 1, "p": 1.0, "pt": 1.0, "eta": 0.0, "phi": 0.0, "chi2": 3.0}
        ]}
        missing = {"events": [event], "candidates": [{"event_id": "e", "sign": 1, "p": 1.0}]}
        no_field = {"events": [{"pos_z": 0.0, "mult_percentile": 1.0}], "candidates": []}
        with tempfile.TemporaryDirectory() as tmpdir:
            for name, payload in (("unknown", unknown), ("missing", missing), ("no_field", no_field)):
                with self.subTest(name=name), self.assertRaises(ValueError):
                    load_batches_json(_write_json(tmpdir, f"{name}.json", payload))


class TestConfigLoader(unittest.TestCase):
    """Validate parsing of mixing configuration documents."""

    def test_load_config_overrides_sections(self) -> None:
        """Sections override defaults; lists become tuples; axes accept both shapes."""
        payload = {
            "first": {"pdg_code": 321, "sign": 1, "tpc_nsigma_range": [-2, 2]},
            "second": {"pdg_code": 2212, "sign": -1},
            "rejection": {"pdg_code": 211, "tof_nsigma_range": [-3, 3]},
            "mixing": {"enabled": True, "vertex_bin_width": 1.0},
            "binning": {"mass": [200, 1.4, 1.6], "pt": {"nbins": 50, "low": 0.0, "high": 5.0}},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            config = load_config_json(_write_json(tmpdir, "config.json", payload))
        self.assertEqual(config.first.pdg_code, 321)
        self.assertEqual(config.first.tpc_nsigma_range, (-2, 2))
        self.assertEqual(config.second.signed_pdg, -2212)
        self.assertFalse(config.is_identical)
        self.assertTrue(config.rejection.active)
        self.assertTrue(config.mixing.enabled)
        self.assertEqual(config.mixing.mult_bin_width, 50.0)
        self.assertEqual(config.binning.mass.nbins, 200)
        self.assertEqual(config.binning.pt.high, 5.0)
        self.assertEqual(config.binning.dca_xy.nbins, 100)
        config.validate()

    def test_unknown_sections_and_keys_are_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            config_from_dict({"trigger": {}})
        with self.assertRaises(ConfigurationError):
            config_from_dict({"pair_cuts": {"min_delta_theta": 0.1}})
        with self.assertRaises(ConfigurationError):
            config_from_dict({"binning": {"mass": [10, 0.0]}})


class TestHistogramRegistry(unittest.TestCase):
    """Validate the hist-backed registry used as the default sink."""

    def test_two_dimensional_fill_and_centers(self) -> None:
        """Weighted fills land in the right cell; flow values are dropped."""
        registry = HistogramRegistry()
        registry.add("mass_pt", [AxisSpec(2, 0.0, 2.0), AxisSpec(4, 0.0, 4.0, "pt")])
        registry.fill("mass_pt", 1.2, 3.5, weight=2.5)
        registry.fill("mass_pt", -0.1, 1.0)
        registry.fill("mass_pt", 0.5, 4.0)
        hist = registry.get("mass_pt")
        self.assertEqual(hist.counts.shape, (2, 4))
        self.assertEqual(hist.counts[1, 3], 2.5)
        self.assertEqual(hist.integral, 2.5)
        self.assertEqual(hist.entries, 3)
        self.assertEqual(hist.bin_centers(1).tolist(), [0.5, 1.5, 2.5, 3.5])

    def test_wrong_arity_and_unknown_channel(self) -> None:
        registry = HistogramRegistry()
        registry.add("p", [AxisSpec(10, 0.0, 5.0)])
        with self.assertRaises(ValueError):
            registry.fill("p", 1.0, 2.0)
        with self.assertRaises(KeyError):
            registry.fill("missing", 1.0)
        with self.assertRaises(ValueError):
            registry.add("p", [AxisSpec(10, 0.0, 5.0)])


class TestTableExport(unittest.TestCase):
    """Validate observation and histogram table writers."""

    def test_write_observations_csv(self) -> None:
        observations = [
            Observation(mass=1.02, pt=0.8, kind=SIGNAL, event_ids=("e0", "e0"), track_ids=("a", "b")),
            Observation(mass=1.05, pt=1.3, kind=BACKGROUND, event_ids=("e0", "e1"), track_ids=("a", "c")),
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pairs.csv"
            write_observations_table(path, observations)
            df = pd.read_csv(path)
        self.assertEqual(list(df.columns), [
            "kind", "mass", "pt", "event_id_1", "event_id_2", "track_id_1", "track_id_2",
        ])
        self.assertEqual(df["kind"].tolist(), [SIGNAL, BACKGROUND])
        self.assertEqual(df["event_id_2"].tolist(), ["e0", "e1"])

    def test_write_histograms_only_nonzero_bins(self) -> None:
        registry = HistogramRegistry()
        registry.add("mass", [AxisSpec(4, 0.0, 4.0)])
        registry.fill("mass", 1.5)
        registry.fill("mass", 1.7, weight=2.0)
        registry.fill("mass", 3.2)
        registry.fill("mass", 9.0)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "hists.csv"
            write_histograms_table(path, registry)
            df = pd.read_csv(path)
        self.assertEqual(df["bin0"].tolist(), [1, 3])
        self.assertEqual(df["content"].tolist(), [3.0, 1.0])
        self.assertEqual(df["center0"].tolist(), [1.5, 3.5])
        self.assertEqual(registry.get("mass").entries, 4)

    def test_unsupported_extension(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(ValueError):
                write_observations_table(Path(tmpdir) / "pairs.txt", [])


if __name__ == "__main__":
    unittest.main()
