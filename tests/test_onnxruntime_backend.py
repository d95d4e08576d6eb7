import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np

from doclayout_kit.backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig
from doclayout_kit.errors import InferenceError, ModelLoadError


class _Node:
    def __init__(self, name):
        self.name = name


class FakeSession:
    """Stands in for onnxruntime.InferenceSession."""

    inputs = ("image", "scale_factor")
    outputs = ("fetch_name_0", "fetch_name_1")
    fail_run = False

    def __init__(self, path, sess_options=None, providers=None):
        self.path = path
        self.runs = []

    def get_inputs(self):
        return [_Node(n) for n in self.inputs]

    def get_outputs(self):
        return [_Node(n) for n in self.outputs]

    def get_providers(self):
        return ["CPUExecutionProvider"]

    def run(self, output_names, feeds):
        if self.fail_run:
            raise RuntimeError("[ONNXRuntimeError] : 2 : INVALID_ARGUMENT")
        self.runs.append((list(output_names), sorted(feeds)))
        return [np.zeros((0, 6), dtype=np.float32)]


class TestOnnxRuntimeBackend(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.model_path = Path(self._tmp.name) / "model.onnx"
        self.model_path.write_bytes(b"fake")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_model_file(self) -> None:
        with self.assertRaises(ModelLoadError):
            OnnxRuntimeBackend(Path(self._tmp.name) / "missing.onnx")

    def test_malformed_model_file(self) -> None:
        with self.assertRaises(ModelLoadError):
            OnnxRuntimeBackend(self.model_path)

    def test_metadata_and_run(self) -> None:
        with mock.patch("onnxruntime.InferenceSession", FakeSession):
            backend = OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(serialize_runs=True))
            self.assertEqual(tuple(backend.input_names), ("image", "scale_factor"))
            self.assertEqual(backend.input_count, 2)
            self.assertEqual(backend.output_name, "fetch_name_0")
            self.assertEqual(tuple(backend.providers_in_use), ("CPUExecutionProvider",))

            outputs = backend.run({"image": np.zeros((1, 3, 8, 8), np.float32), "scale_factor": np.ones((1, 2), np.float32)})
            self.assertEqual(list(outputs), ["fetch_name_0"])
            self.assertEqual(backend.session.runs, [(["fetch_name_0"], ["image", "scale_factor"])])

    def test_unknown_output_name(self) -> None:
        with mock.patch("onnxruntime.InferenceSession", FakeSession):
            with self.assertRaises(ModelLoadError):
                OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(output_name="boxes"))

    def test_runtime_fault_is_wrapped(self) -> None:
        class FailingSession(FakeSession):
            fail_run = True

        with mock.patch("onnxruntime.InferenceSession", FailingSession):
            backend = OnnxRuntimeBackend(self.model_path)
            with self.assertRaises(InferenceError):
                backend.run({"image": np.zeros((1, 3, 8, 8), np.float32)})


if __name__ == "__main__":
    unittest.main()
