import tempfile
import unittest
from pathlib import Path

from helixforge.core.registries.model_catalog import (
    DEFAULT_DSP_COST,
    ModelCatalog,
    load_model_catalog,
)
from helixforge.resources import ontology_dir

_MODELS_PATH = ontology_dir() / "models.yaml"


def _write(temp_dir: str, text: str) -> Path:
    path = Path(temp_dir) / "models.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestModelCatalogLoad(unittest.TestCase):
    def test_load_success_deterministic(self) -> None:
        first = load_model_catalog(_MODELS_PATH)
        second = load_model_catalog(_MODELS_PATH)
        self.assertEqual(first.list_model_ids(), second.list_model_ids())

    def test_default_path_is_packaged_dataset(self) -> None:
        self.assertEqual(load_model_catalog().list_model_ids(), load_model_catalog(_MODELS_PATH).list_model_ids())

    def test_catalog_is_populated(self) -> None:
        catalog = load_model_catalog(_MODELS_PATH)
        self.assertIsInstance(catalog, ModelCatalog)
        self.assertGreater(len(catalog), 30)
        self.assertIn("HD2_AmpUSDeluxe", catalog)

    def test_meta_present(self) -> None:
        meta = load_model_catalog(_MODELS_PATH).meta
        self.assertIsInstance(meta, dict)
        self.assertIn("catalog_version", meta)

    def test_internal_ids_unique(self) -> None:
        ids = load_model_catalog(_MODELS_PATH).list_model_ids()
        self.assertEqual(len(ids), len(set(ids)))


class TestModelCatalogLookup(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = load_model_catalog(_MODELS_PATH)

    def test_find_by_name_is_case_insensitive(self) -> None:
        entry = self.catalog.find_by_name("  scream 808 ")
        self.assertIsNotNone(entry)
        self.assertEqual(entry.internal_id, "HD2_DistScream808")

    def test_find_by_id_is_exact(self) -> None:
        self.assertIsNotNone(self.catalog.find_by_id("HD2_DistScream808"))
        self.assertIsNone(self.catalog.find_by_id("hd2_distscream808"))

    def test_resolve_prefers_display_name_then_id(self) -> None:
        self.assertEqual(self.catalog.resolve("Hall").internal_id, "HD2_ReverbHall")
        self.assertEqual(self.catalog.resolve("HD2_ReverbHall").name, "Hall")
        self.assertIsNone(self.catalog.resolve("Klon Mystery"))

    def test_get_entry_unknown_lists_known_ids(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            self.catalog.get_entry("Klon Mystery")
        self.assertIn("Unknown model: Klon Mystery", str(ctx.exception))
        self.assertIn("HD2_AmpUSDeluxe", str(ctx.exception))

    def test_get_entry_rejects_blank(self) -> None:
        with self.assertRaises(ValueError):
            self.catalog.get_entry("  ")

    def test_defaults_are_copies(self) -> None:
        entry = self.catalog.find_by_id("HD2_AmpUSDeluxe")
        defaults = entry.defaults()
        defaults["Drive"] = 99
        self.assertEqual(entry.defaults()["Drive"], 0.45)

    def test_is_valid_model(self) -> None:
        self.assertTrue(self.catalog.is_valid_model("HD2_ReverbPlate"))
        self.assertFalse(self.catalog.is_valid_model("Plate"))

    def test_enumeration_follows_dataset_order(self) -> None:
        ids = [entry.internal_id for entry in self.catalog]
        self.assertEqual(ids, self.catalog.list_model_ids())
        self.assertEqual(ids[0], "HD2_AmpUSDeluxe")


class TestModelCatalogCosts(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = load_model_catalog(_MODELS_PATH)

    def test_declared_cost(self) -> None:
        self.assertEqual(self.catalog.dsp_cost_map()["HD2_AmpUSDeluxe"], 31.0)

    def test_missing_cost_defaults(self) -> None:
        self.assertEqual(self.catalog.dsp_cost_map()["HD2_GateNoiseGate"], DEFAULT_DSP_COST)

    def test_zero_cost_defaults(self) -> None:
        self.assertEqual(self.catalog.dsp_cost_map()["HD2_EQGraphic10Band"], DEFAULT_DSP_COST)

    def test_cost_map_covers_every_entry(self) -> None:
        self.assertEqual(sorted(self.catalog.dsp_cost_map()), sorted(self.catalog.list_model_ids()))

    def test_format_catalog_text(self) -> None:
        text = self.catalog.format_catalog_text()
        lines = text.splitlines()
        self.assertEqual(len(lines), len(self.catalog))
        self.assertIn(
            "- Scream 808 (Based on: Ibanez TS808 Tube Screamer) [DSP: 3.0%]",
            lines,
        )
        self.assertIn("- Noise Gate (Based on: Line 6 Original) [DSP: 3.0%]", lines)

    def test_list_model_names(self) -> None:
        names = self.catalog.list_model_names()
        self.assertIn("US Deluxe Nrm", names)
        self.assertEqual(len(names), len(self.catalog))


class TestModelCatalogErrors(unittest.TestCase):
    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(ValueError) as ctx:
                load_model_catalog(Path(temp_dir) / "absent.yaml")
        self.assertIn("Failed to read Model catalog YAML", str(ctx.exception))

    def test_invalid_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = _write(temp_dir, "models: [unclosed\n")
            with self.assertRaises(ValueError) as ctx:
                load_model_catalog(path)
        self.assertIn("Model catalog YAML is not valid", str(ctx.exception))

    def test_schema_violation(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = _write(
                temp_dir,
                "models:\n  entries:\n    - internal_id: HD2_X\n      name: X\n",
            )
            with self.assertRaises(ValueError) as ctx:
                load_model_catalog(path)
        message = str(ctx.exception)
        self.assertIn("Model catalog schema validation failed", message)
        self.assertIn("'defaults' is a required property", message)

    def test_duplicate_internal_ids_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = _write(
                temp_dir,
                "models:\n"
                "  entries:\n"
                "    - internal_id: HD2_X\n"
                "      defaults: {}\n"
                "    - internal_id: HD2_X\n"
                "      defaults: {}\n",
            )
            with self.assertRaises(ValueError) as ctx:
                load_model_catalog(path)
        self.assertIn("duplicate internal_id(s): HD2_X", str(ctx.exception))

    def test_duplicate_display_names_first_wins(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = _write(
                temp_dir,
                "models:\n"
                "  entries:\n"
                "    - internal_id: HD2_A\n"
                "      name: Same\n"
                "      defaults: {}\n"
                "    - internal_id: HD2_B\n"
                "      name: same\n"
                "      defaults: {}\n",
            )
            catalog = load_model_catalog(path)
        self.assertEqual(catalog.find_by_name("SAME").internal_id, "HD2_A")
        self.assertEqual(len(catalog), 2)


if __name__ == "__main__":
    unittest.main()
