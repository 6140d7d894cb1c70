from __future__ import annotations

import dataclasses
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from projected_pca import cli, pipeline, sim


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.inputs = sim.simulate_inputs(self.tmp / "in", n_pcs=4, seed=7)
        self.out_dir = self.tmp / "out"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _argv(self, **overrides) -> list:
        flags = {
            "--sscore": str(self.inputs.sscore),
            "--study": "Sim",
            "--ancestry": "EAS",
            "--reference-score-file": str(self.inputs.reference),
            "--out": str(self.out_dir / "sim"),
            "--plot-pc-num": "4",
        }
        flags.update(overrides)
        argv = []
        for k, v in flags.items():
            if v is not None:
                argv += [k, v]
        return argv

    def _resolve(self, argv) -> cli.PipelineConfig:
        return cli.resolve_config(cli._build_parser().parse_args(argv))

    def _assert_exits_without_output(self, argv, flag: str) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(argv)
        self.assertIn(flag, str(ctx.exception.code))
        self.assertFalse(self.out_dir.exists())

    def test_missing_required_flags(self) -> None:
        self._assert_exits_without_output(self._argv(**{"--sscore": None}), "--sscore")
        self._assert_exits_without_output(self._argv(**{"--study": None}), "--study")
        self._assert_exits_without_output(self._argv(**{"--out": None}), "--out")

    def test_missing_ancestry_specification(self) -> None:
        argv = self._argv(**{"--ancestry": None, "--ancestry-file": str(self.inputs.ancestry)})
        self._assert_exits_without_output(argv, "--ancestry-col")

    def test_missing_sscore_vars(self) -> None:
        lone = self.tmp / "lone.sscore"
        lone.write_text(self.inputs.sscore.read_text())
        self._assert_exits_without_output(self._argv(**{"--sscore": str(lone)}), "--sscore-vars")

    def test_sscore_vars_default(self) -> None:
        config = self._resolve(self._argv())
        self.assertEqual(config.sscore_vars, Path(f"{self.inputs.sscore}.vars"))
        self.assertEqual(config.sscore_vars, self.inputs.sscore_vars)

    def test_odd_pc_num_rounded_down(self) -> None:
        config = self._resolve(self._argv(**{"--plot-pc-num": "7"}))
        self.assertEqual(config.plot_pc_num, 6)
        self.assertEqual(config.plot_pcs[-1], "PC6")

    def test_pc_num_below_two(self) -> None:
        self._assert_exits_without_output(self._argv(**{"--plot-pc-num": "1"}), "--plot-pc-num")

    def test_defaults(self) -> None:
        config = self._resolve(self._argv(**{"--plot-pc-num": None}))
        self.assertEqual(config.plot_pc_num, 10)
        self.assertEqual(config.pc_prefix, "PC")
        self.assertFalse(config.disable_export)
        self.assertEqual(config.ancestry_mode, "fixed")
        self.assertEqual(config.export_path, Path(f"{self.out_dir / 'sim'}.projected.pca.tsv.gz"))


class TestPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.inputs = sim.simulate_inputs(
            self.tmp / "in", n_reference=50, n_projected=40, n_pcs=4, seed=11
        )
        self.out = str(self.tmp / "out" / "sim")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _config(self, **kwargs) -> cli.PipelineConfig:
        base = cli.PipelineConfig(
            sscore=self.inputs.sscore,
            sscore_vars=self.inputs.sscore_vars,
            study="Sim",
            out=self.out,
            reference_score_file=str(self.inputs.reference),
            ancestry="EAS",
            plot_pc_num=4,
            dpi=20,
        )
        return dataclasses.replace(base, **kwargs)

    def test_fixed_mode_ignores_ancestry_file(self) -> None:
        config = self._config(
            ancestry_file=self.tmp / "does-not-exist.tsv",
            ancestry_col="pop",
        )
        result = pipeline.run(config)
        projected = result.merged[result.merged["pop"] != "Reference"]
        self.assertEqual(projected.shape[0], 40)
        self.assertEqual(set(projected["pop"].astype(str)), {"EAS"})

    def test_lookup_mode_buckets_unlabelled(self) -> None:
        config = self._config(
            ancestry=None,
            ancestry_file=self.inputs.ancestry,
            ancestry_col="pop",
        )
        result = pipeline.run(config)
        merged = result.merged
        self.assertEqual(merged.shape[0], 50 + 40)
        projected = merged.iloc[50:]
        # Three samples are missing from the ancestry file, others carry "OTH".
        remaining = projected[projected["pop"] == "Remaining"]
        self.assertTrue(set(self.inputs.sample_ids[-3:]).issubset(set(remaining["IID"])))
        self.assertNotIn("OTH", set(merged["pop"].astype(str)))

    def test_sequenced_filter_keeps_intersection(self) -> None:
        config = self._config(sequenced=self.inputs.sequenced)
        result = pipeline.run(config)
        merged = result.merged
        self.assertEqual(int((merged["pop"] == "Reference").sum()), 50)
        projected_ids = merged.loc[merged["pop"] != "Reference", "IID"].tolist()
        self.assertEqual(projected_ids, self.inputs.sample_ids[::2])

    def test_normalized_against_raw_scores(self) -> None:
        result = pipeline.run(self._config())
        raw = pd.read_csv(self.inputs.sscore, sep="\t", dtype={"IID": str})
        projected = result.merged.iloc[50:].reset_index(drop=True)
        expected = raw["PC2_SUM"] / (self.inputs.n_variants ** 0.5)
        pd.testing.assert_series_equal(
            projected["PC2"], expected, check_names=False, rtol=1e-12
        )
        self.assertEqual(result.n_variants, 100)

    def test_outputs_and_export(self) -> None:
        result = pipeline.run(self._config())
        self.assertEqual(len(result.plot_paths), 4 * (1 + 2))
        self.assertTrue(all(p.exists() for p in result.plot_paths))

        exported = pd.read_csv(result.export_path, sep="\t")
        self.assertEqual(str(result.export_path), f"{self.out}.projected.pca.tsv.gz")
        self.assertNotIn("FID", exported.columns)
        self.assertNotIn("IID", exported.columns)
        # Reference rows are exported alongside projected samples.
        self.assertEqual(exported.shape[0], result.merged.shape[0])
        self.assertIn("ALLELE_CT", exported.columns)

    def test_disable_export(self) -> None:
        result = pipeline.run(self._config(disable_export=True))
        self.assertIsNone(result.export_path)
        self.assertFalse(Path(f"{self.out}.projected.pca.tsv.gz").exists())

    def test_rerun_is_identical(self) -> None:
        config = self._config(sequenced=self.inputs.sequenced)
        first = pipeline.run(config)
        first_bytes = first.export_path.read_bytes()
        second = pipeline.run(config)
        self.assertEqual(second.export_path.read_bytes(), first_bytes)
        pd.testing.assert_frame_equal(first.merged, second.merged)


if __name__ == "__main__":
    unittest.main()
