import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

_RIG = {
    "suggested_name": "Blues Breaker",
    "guitar_model": "Stratocaster",
    "tuning": "Standard",
    "chain": [{"type": "Amp", "name": "Amp", "settings": "Edge of breakup"}],
    "snapshots": [
        {"name": "Clean", "active_blocks": ["Amp"], "params": {"Amp": {"Drive": 0.3}}},
        {"name": "Lead", "active_blocks": ["Drive", "Amp"], "params": {"Amp": {"Drive": 0.7}}},
    ],
}

_BLOCKS = {
    "blocks": [
        {"name": "Drive", "model_name": "Scream 808", "params": {"Gain": 5}},
        {"name": "Amp", "model_name": "US Deluxe Nrm"},
        {"name": "Verb", "model_name": "Hall", "path": 1},
        {"name": "Variax", "model_name": "Variax"},
    ]
}


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]
        src_dir = str((repo_root / "src").resolve())
        self._original_pythonpath = os.environ.get("PYTHONPATH")
        os.environ["PYTHONPATH"] = (
            src_dir
            if not self._original_pythonpath
            else f"{src_dir}{os.pathsep}{self._original_pythonpath}"
        )
        self._temp_dir = tempfile.TemporaryDirectory()
        self.temp_path = Path(self._temp_dir.name)
        self.rig_path = self.temp_path / "rig.json"
        self.blocks_path = self.temp_path / "blocks.json"
        self.rig_path.write_text(json.dumps(_RIG), encoding="utf-8")
        self.blocks_path.write_text(json.dumps(_BLOCKS), encoding="utf-8")

    def tearDown(self) -> None:
        self._temp_dir.cleanup()
        if self._original_pythonpath is None:
            os.environ.pop("PYTHONPATH", None)
            return
        os.environ["PYTHONPATH"] = self._original_pythonpath

    def _python_cmd(self) -> str:
        return os.fspath(os.getenv("PYTHON", "") or sys.executable)

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self._python_cmd(), "-m", "helixforge", *args],
            check=False,
            capture_output=True,
            text=True,
        )

    def test_compile_to_stdout(self) -> None:
        result = self._run("compile", str(self.rig_path), str(self.blocks_path), "--validate")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        payload = json.loads(result.stdout)
        data = payload["data"]
        self.assertEqual(data["meta"]["name"], "Blues Breaker")
        self.assertEqual(data["@device"], 2)
        tone = data["tone"]
        self.assertEqual(tone["dsp0"]["block0"]["Gain"], 0.5)
        self.assertEqual(tone["dsp1"]["block0"]["@model"], "HD2_ReverbHall")
        self.assertNotIn("block2", tone["dsp0"])
        self.assertEqual(tone["snapshot0"]["@name"], "Clean")
        self.assertEqual(tone["snapshot1"]["controllers"]["dsp0"]["block1"]["Drive"]["@value"], 0.7)
        self.assertEqual(tone["variax"]["@variax_model"], 15)

    def test_compile_to_file_with_overrides(self) -> None:
        out_path = self.temp_path / "out" / "preset.hlx"
        result = self._run(
            "compile",
            str(self.rig_path),
            str(self.blocks_path),
            "--name",
            "Stomp Tone",
            "--hardware",
            "HX Stomp",
            "--out",
            str(out_path),
        )
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(result.stdout, "")
        self.assertIn("Single DSP (1 path, 100%)", result.stderr)
        payload = json.loads(out_path.read_text(encoding="utf-8"))
        self.assertEqual(payload["data"]["meta"]["name"], "Stomp Tone")
        self.assertEqual(payload["data"]["@device"], 6)
        self.assertIn("block2", payload["data"]["tone"]["dsp0"])

    def test_compile_with_config_file(self) -> None:
        config_path = self.temp_path / "settings.json"
        config_path.write_text(
            json.dumps(
                {
                    "schema_version": "0.1.0",
                    "hardware_target": "Helix LT",
                    "variax_hardware_model": "Shuriken",
                }
            ),
            encoding="utf-8",
        )
        result = self._run(
            "compile", str(self.rig_path), str(self.blocks_path), "--config", str(config_path)
        )
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        data = json.loads(result.stdout)["data"]
        self.assertEqual(data["@device"], 3)
        self.assertEqual(data["meta"]["variax_type"], "shuriken")
        self.assertEqual(data["tone"]["variax"]["@variax_model"], 19)

    def test_compile_rejects_bad_pedal(self) -> None:
        result = self._run(
            "compile", str(self.rig_path), str(self.blocks_path), "--exp-pedal", "5"
        )
        self.assertEqual(result.returncode, 1)
        self.assertIn("default_exp_pedal must be between 0 and 3.", result.stderr)

    def test_compile_rejects_invalid_rig(self) -> None:
        self.rig_path.write_text(json.dumps({"snapshots": "none"}), encoding="utf-8")
        result = self._run("compile", str(self.rig_path), str(self.blocks_path))
        self.assertEqual(result.returncode, 1)
        self.assertIn("Rig description schema validation failed", result.stderr)
        self.assertEqual(result.stdout, "")

    def test_models_list(self) -> None:
        result = self._run("models", "list")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertIn(
            "- US Deluxe Nrm (Based on: Fender Deluxe Reverb (Normal)) [DSP: 31.0%]",
            result.stdout.splitlines(),
        )

        result = self._run("models", "list", "--format", "json")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        models = json.loads(result.stdout)
        self.assertEqual(models[0]["internal_id"], "HD2_AmpUSDeluxe")
        self.assertEqual(
            sorted(models[0].keys()), ["based_on", "dsp_cost", "internal_id", "name"]
        )

    def test_models_show(self) -> None:
        result = self._run("models", "show", "scream 808", "--format", "json")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        payload = json.loads(result.stdout)
        self.assertEqual(payload["internal_id"], "HD2_DistScream808")
        self.assertEqual(payload["dsp_stereo"], 6.0)
        self.assertIsNone(payload["family"])
        self.assertEqual(payload["defaults"]["Gain"], 0.3)

        result = self._run("models", "show", "HD2_ReverbHall")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertIn("family: reverb", result.stdout)

    def test_models_show_unknown(self) -> None:
        result = self._run("models", "show", "Nope")
        self.assertEqual(result.returncode, 1)
        self.assertIn("Unknown model: Nope.", result.stderr)

    def test_variax_lookups(self) -> None:
        result = self._run("variax", "model", "Strat 2", "--hardware", "Shuriken")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        payload = json.loads(result.stdout)
        self.assertEqual(payload["model_code"], 18)
        self.assertEqual(payload["variax_type"], "shuriken")

        result = self._run("variax", "model", "Kazoo")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertFalse(json.loads(result.stdout)["mapped"])

        result = self._run("variax", "tuning", "Drop D")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        payload = json.loads(result.stdout)
        self.assertTrue(payload["mapped"])
        self.assertEqual(payload["offsets"], [-2, 0, 0, 0, 0, 0])

    def test_dsp_summary(self) -> None:
        out_path = self.temp_path / "preset.hlx"
        result = self._run(
            "compile",
            str(self.rig_path),
            str(self.blocks_path),
            "--hardware",
            "HX Stomp",
            "--out",
            str(out_path),
        )
        self.assertEqual(result.returncode, 0, msg=result.stderr)

        result = self._run("dsp", str(out_path), "--format", "json")
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        path0 = json.loads(result.stdout)["paths"][0]
        self.assertEqual(path0["block_count"], 3)
        self.assertEqual(path0["total_cost"], 48.0)

        result = self._run("dsp", str(out_path))
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertIn("dsp0: 3 block(s), 48.0% of 100%", result.stdout)

    def test_dsp_missing_file(self) -> None:
        result = self._run("dsp", str(self.temp_path / "missing.hlx"))
        self.assertEqual(result.returncode, 1)
        self.assertIn("Failed to read Preset JSON", result.stderr)


if __name__ == "__main__":
    unittest.main()
