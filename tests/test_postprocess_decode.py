import unittest

import numpy as np

from doclayout_kit.errors import InferenceError
from doclayout_kit.postprocess import DocLayoutPostConfig, DocLayoutPostprocessor
from doclayout_kit.taxonomy import DOC_CLASSES
from doclayout_kit.types import ScaleFactor


def _rows(*rows):
    return np.array(rows, dtype=np.float32)


class TestDocLayoutPostprocessDecode(unittest.TestCase):
    def setUp(self) -> None:
        self.post = DocLayoutPostprocessor(DocLayoutPostConfig(conf_threshold=0.5))

    def test_two_input_row_is_unscaled_to_original_space(self) -> None:
        # 1280x960 page resized with scale (0.5, 0.5)
        preds = _rows([2, 0.87, 100, 50, 300, 200])
        dets = self.post.process(preds, orig_size=(1280, 960), scale=ScaleFactor(0.5, 0.5))
        self.assertEqual(len(dets), 1)
        d = dets[0]
        self.assertEqual(d.as_xyxy(), (200.0, 100.0, 600.0, 400.0))
        self.assertAlmostEqual(d.score, 0.87, places=5)
        self.assertEqual(d.class_id, 2)
        self.assertEqual(d.class_name, DOC_CLASSES[2])

    def test_row_below_threshold_is_dropped(self) -> None:
        preds = _rows([2, 0.87, 100, 50, 300, 200])
        dets = self.post.process(preds, orig_size=(1280, 960), scale=ScaleFactor(0.5, 0.5), conf_threshold=0.9)
        self.assertEqual(dets, [])

    def test_original_space_rows_pass_through(self) -> None:
        preds = _rows([0, 0.95, 10, 10, 50, 50])
        for size in [(100, 100), (2000, 3000)]:
            dets = self.post.process(preds, orig_size=size, scale=ScaleFactor(0.25, 0.1), outputs_original_space=True)
            self.assertEqual(dets[0].as_xyxy(), (10.0, 10.0, 50.0, 50.0))
            self.assertEqual(dets[0].class_name, "paragraph_title")

    def test_class_and_score_precede_coordinates(self) -> None:
        preds = _rows([8, 0.6, 1, 2, 3, 4])
        d = self.post.process(preds, orig_size=(100, 100), outputs_original_space=True)[0]
        self.assertEqual(d.class_name, "table")
        self.assertAlmostEqual(d.score, 0.6, places=5)
        self.assertEqual(d.as_xyxy(), (1.0, 2.0, 3.0, 4.0))

    def test_out_of_range_class_ids_are_filtered(self) -> None:
        k = len(DOC_CLASSES)
        preds = _rows(
            [-1, 0.9, 0, 0, 10, 10],
            [k, 0.9, 0, 0, 10, 10],
            [k - 1, 0.9, 0, 0, 10, 10],
            [1.7, 0.9, 0, 0, 10, 10],
        )
        dets = self.post.process(preds, orig_size=(100, 100), outputs_original_space=True, conf_threshold=0.0)
        self.assertEqual([d.class_id for d in dets], [k - 1, 1])
        self.assertEqual(dets[0].class_name, "aside_text")

    def test_native_row_order_is_preserved(self) -> None:
        preds = _rows(
            [2, 0.3, 0, 0, 10, 10],
            [1, 0.9, 0, 0, 10, 10],
            [99, 0.8, 0, 0, 10, 10],
            [5, 0.6, 0, 0, 10, 10],
        )
        dets = self.post.process(preds, orig_size=(100, 100), outputs_original_space=True, conf_threshold=0.0)
        self.assertEqual([d.class_id for d in dets], [2, 1, 5])

    def test_filtering_is_monotonic_in_threshold(self) -> None:
        rng = np.random.default_rng(7)
        n = 40
        preds = np.column_stack(
            [
                rng.integers(-2, len(DOC_CLASSES) + 2, size=n),
                rng.random(n),
                rng.random((n, 4)) * 700,
            ]
        ).astype(np.float32)

        def keyset(t):
            dets = self.post.process(preds, orig_size=(800, 600), scale=ScaleFactor(0.8, 1.0), conf_threshold=t)
            return {(d.as_xyxy(), d.score, d.class_id) for d in dets}

        thresholds = [0.0, 0.1, 0.25, 0.5, 0.75, 0.99]
        for lo, hi in zip(thresholds, thresholds[1:]):
            self.assertTrue(keyset(hi) <= keyset(lo))

    def test_boxes_are_clamped_to_image_bounds(self) -> None:
        preds = _rows(
            [2, 0.9, -50, -20, 10000, 10000],
            [3, 0.9, 900, 700, 950, 750],
            [4, 0.9, 300, 400, 100, 200],
        )
        dets = self.post.process(preds, orig_size=(800, 600), outputs_original_space=True)
        self.assertEqual(dets[0].as_xyxy(), (0.0, 0.0, 800.0, 600.0))
        self.assertEqual(dets[1].as_xyxy(), (800.0, 600.0, 800.0, 600.0))
        for d in dets:
            self.assertTrue(0 <= d.x1 <= d.x2 <= 800)
            self.assertTrue(0 <= d.y1 <= d.y2 <= 600)

    def test_non_finite_coordinates_stay_in_bounds(self) -> None:
        preds = np.array([[2, 0.9, np.nan, -np.inf, np.inf, np.nan]], dtype=np.float32)
        d = self.post.process(preds, orig_size=(640, 480), outputs_original_space=True)[0]
        self.assertTrue(0 <= d.x1 <= d.x2 <= 640)
        self.assertTrue(0 <= d.y1 <= d.y2 <= 480)

    def test_non_finite_scores_are_dropped(self) -> None:
        preds = _rows(
            [2, np.inf, 0, 0, 5, 5],
            [2, np.nan, 0, 0, 5, 5],
            [2, -np.inf, 0, 0, 5, 5],
            [3, 0.9, 1, 1, 4, 4],
        )
        for threshold in (0.0, 0.5):
            dets = self.post.process(preds, orig_size=(10, 10), outputs_original_space=True, conf_threshold=threshold)
            self.assertEqual([d.class_id for d in dets], [3])
            self.assertAlmostEqual(dets[0].score, 0.9, places=5)

    def test_leading_batch_axis_is_squeezed(self) -> None:
        preds = _rows([2, 0.87, 100, 50, 300, 200])[None, ...]
        dets = self.post.process(preds, orig_size=(1280, 960), scale=ScaleFactor(0.5, 0.5))
        self.assertEqual(len(dets), 1)

    def test_empty_output(self) -> None:
        self.assertEqual(self.post.process(np.zeros((0, 6), dtype=np.float32), orig_size=(10, 10)), [])
        self.assertEqual(self.post.process(np.zeros((0,), dtype=np.float32), orig_size=(10, 10)), [])

    def test_unsupported_shape_raises(self) -> None:
        with self.assertRaises(InferenceError):
            self.post.process(np.zeros((3, 4), dtype=np.float32), orig_size=(10, 10))
        with self.assertRaises(InferenceError):
            self.post.process(np.zeros((2, 3, 6), dtype=np.float32), orig_size=(10, 10))

    def test_custom_taxonomy(self) -> None:
        post = DocLayoutPostprocessor(DocLayoutPostConfig(conf_threshold=0.0, class_names=("a", "b")))
        dets = post.process(_rows([1, 0.5, 0, 0, 1, 1], [2, 0.5, 0, 0, 1, 1]), orig_size=(10, 10))
        self.assertEqual([d.class_name for d in dets], ["b"])


if __name__ == "__main__":
    unittest.main()
