import unittest

import numpy as np

from doclayout_kit.errors import InvalidInputError
from doclayout_kit.preprocess import ensure_bgr, to_blob
from doclayout_kit.resize import stretch_resize


class TestStretchResize(unittest.TestCase):
    def test_resize_records_per_axis_scale(self) -> None:
        img = np.zeros((960, 1280, 3), dtype=np.uint8)
        out, scale = stretch_resize(img, (640, 640))
        self.assertEqual(out.shape, (640, 640, 3))
        self.assertAlmostEqual(scale.sx, 0.5)
        self.assertAlmostEqual(scale.sy, 640 / 960)

    def test_same_size_is_untouched(self) -> None:
        img = np.full((640, 640, 3), 7, dtype=np.uint8)
        out, scale = stretch_resize(img, (640, 640))
        self.assertIs(out, img)
        self.assertEqual((scale.sx, scale.sy), (1.0, 1.0))

    def test_upscale(self) -> None:
        out, scale = stretch_resize(np.zeros((320, 160, 3), dtype=np.uint8), (640, 640))
        self.assertEqual(out.shape[:2], (640, 640))
        self.assertEqual((scale.sx, scale.sy), (4.0, 2.0))

    def test_empty_image_rejected(self) -> None:
        with self.assertRaises(InvalidInputError):
            stretch_resize(np.zeros((0, 10, 3), dtype=np.uint8))


class TestToBlob(unittest.TestCase):
    def test_layout_and_normalization(self) -> None:
        img = np.zeros((4, 5, 3), dtype=np.uint8)
        img[..., 0] = 255  # blue
        img[..., 2] = 51  # red
        blob = to_blob(img)
        self.assertEqual(blob.shape, (1, 3, 4, 5))
        self.assertEqual(blob.dtype, np.float32)
        self.assertTrue(blob.flags["C_CONTIGUOUS"])
        # RGB planes
        self.assertTrue(np.allclose(blob[0, 0], 0.2))
        self.assertTrue(np.allclose(blob[0, 1], 0.0))
        self.assertTrue(np.allclose(blob[0, 2], 1.0))

    def test_rejects_non_bgr(self) -> None:
        with self.assertRaises(InvalidInputError):
            to_blob(np.zeros((4, 4), dtype=np.uint8))


class TestEnsureBgr(unittest.TestCase):
    def test_gray_and_four_channel(self) -> None:
        self.assertEqual(ensure_bgr(np.zeros((3, 4), dtype=np.uint8)).shape, (3, 4, 3))
        self.assertEqual(ensure_bgr(np.zeros((3, 4, 1), dtype=np.uint8)).shape, (3, 4, 3))

        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        rgba[..., 0] = 200  # red
        bgr = ensure_bgr(rgba, four_channel_order="RGBA")
        self.assertEqual(bgr.shape, (2, 2, 3))
        self.assertTrue((bgr[..., 2] == 200).all())

        bgra = np.zeros((2, 2, 4), dtype=np.uint8)
        bgra[..., 0] = 90  # blue
        self.assertTrue((ensure_bgr(bgra)[..., 0] == 90).all())

    def test_bgr_passthrough_and_bad_channels(self) -> None:
        img = np.zeros((2, 2, 3), dtype=np.uint8)
        self.assertIs(ensure_bgr(img), img)
        with self.assertRaises(InvalidInputError):
            ensure_bgr(np.zeros((2, 2, 5), dtype=np.uint8))


if __name__ == "__main__":
    unittest.main()
