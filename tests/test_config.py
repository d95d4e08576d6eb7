import json
import tempfile
import unittest
from pathlib import Path

from doclayout_kit.config import DetectorConfig, load_detector_config


class TestDetectorConfig(unittest.TestCase):
    def _write(self, tmp: Path, payload) -> Path:
        path = tmp / "detector.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_load_detector_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(
                Path(tmp),
                {
                    "model_path": "models/pp_doclayout_l.onnx",
                    "input_size": 800,
                    "conf_threshold": 0.5,
                    "providers": "CUDAExecutionProvider, CPUExecutionProvider",
                    "serialize_runs": True,
                },
            )
            cfg = load_detector_config(path)
        self.assertEqual(cfg.model_path, "models/pp_doclayout_l.onnx")
        self.assertEqual(cfg.input_size, (800, 800))
        self.assertEqual(cfg.conf_threshold, 0.5)
        self.assertEqual(cfg.providers, ("CUDAExecutionProvider", "CPUExecutionProvider"))
        self.assertTrue(cfg.serialize_runs)
        self.assertIsNone(cfg.metadata_path)

    def test_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_detector_config(self._write(Path(tmp), {"model_path": "m.onnx"}))
        self.assertEqual(cfg, DetectorConfig(model_path="m.onnx"))
        self.assertEqual(cfg.input_size, (640, 640))
        self.assertEqual(cfg.conf_threshold, 0.3)

    def test_rejects_bad_payloads(self) -> None:
        bad = [
            {},
            {"model_path": ""},
            {"model_path": "m.onnx", "conf": 0.2},
            {"model_path": "m.onnx", "conf_threshold": "high"},
            {"model_path": "m.onnx", "conf_threshold": 1.5},
            {"model_path": "m.onnx", "input_size": [640]},
            {"model_path": "m.onnx", "serialize_runs": "yes"},
            {"model_path": "m.onnx", "providers": ["CPUExecutionProvider", " "]},
        ]
        with tempfile.TemporaryDirectory() as tmp:
            for payload in bad:
                with self.subTest(payload=payload):
                    with self.assertRaises(ValueError):
                        load_detector_config(self._write(Path(tmp), payload))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_config(Path("/nonexistent/detector.json"))


if __name__ == "__main__":
    unittest.main()
