import unittest

import numpy as np

from doclayout_kit.errors import UnsupportedSchemaError
from doclayout_kit.schema import ThreeInputSchema, TwoInputSchema, classify_schema
from doclayout_kit.types import ScaleFactor


class TestSchemaSelection(unittest.TestCase):
    def test_classify_by_input_count(self) -> None:
        self.assertIsInstance(classify_schema(2), TwoInputSchema)
        self.assertIsInstance(classify_schema(3), ThreeInputSchema)
        for count in (0, 1, 4):
            with self.assertRaises(UnsupportedSchemaError):
                classify_schema(count)

    def test_two_input_feeds_real_scale(self) -> None:
        blob = np.zeros((1, 3, 640, 640), dtype=np.float32)
        feeds = TwoInputSchema().build_feeds(blob, ScaleFactor(0.5, 0.25), (1280, 2560))
        self.assertEqual(sorted(feeds), ["image", "scale_factor"])
        self.assertIs(feeds["image"], blob)
        self.assertEqual(feeds["scale_factor"].dtype, np.float32)
        self.assertEqual(feeds["scale_factor"].shape, (1, 2))
        # (sx, sy) order
        self.assertTrue(np.allclose(feeds["scale_factor"], [[0.5, 0.25]]))
        self.assertFalse(TwoInputSchema.outputs_original_space)

    def test_three_input_feeds_identity_scale_and_original_shape(self) -> None:
        blob = np.zeros((1, 3, 640, 640), dtype=np.float32)
        feeds = ThreeInputSchema().build_feeds(blob, ScaleFactor(0.5, 0.25), (1280, 2560))
        self.assertEqual(sorted(feeds), ["im_shape", "image", "scale_factor"])
        self.assertTrue(np.allclose(feeds["im_shape"], [[2560.0, 1280.0]]))
        self.assertTrue(np.allclose(feeds["scale_factor"], [[1.0, 1.0]]))
        self.assertEqual(feeds["im_shape"].dtype, np.float32)
        self.assertTrue(ThreeInputSchema.outputs_original_space)


if __name__ == "__main__":
    unittest.main()
