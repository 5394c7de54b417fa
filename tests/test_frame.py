"""Unit tests for raw RGB frames"""

import unittest

import numpy as np

from clipforge.exceptions import ProtocolError
from clipforge.frame import Frame

class TestFrame(unittest.TestCase):
    """Test cases for Frame"""

    def test_from_bytes_layout(self):
        # Two pixels wide, one high: red then blue
        frame = Frame.from_bytes(bytes([255, 0, 0, 0, 0, 255]), 2, 1)
        self.assertEqual(frame.size, (2, 1))
        self.assertEqual(frame.pixel(0, 0), (255, 0, 0))
        self.assertEqual(frame.pixel(1, 0), (0, 0, 255))

    def test_from_bytes_rejects_wrong_length(self):
        with self.assertRaises(ProtocolError):
            Frame.from_bytes(b"\x00" * 11, 2, 2)

    def test_frame_size(self):
        self.assertEqual(Frame.frame_size(640, 480), 921600)

    def test_to_bytes_matches_wire_layout(self):
        data = bytes(range(24))
        self.assertEqual(Frame.from_bytes(data, 4, 2).to_bytes(), data)

    def test_pixels_are_read_only(self):
        frame = Frame.blank(4, 4)
        with self.assertRaises(ValueError):
            frame.pixels[0, 0, 0] = 1

    def test_source_array_changes_do_not_leak(self):
        source = np.zeros((2, 2, 3), dtype=np.uint8)
        frame = Frame(source)
        source[0, 0] = 200
        self.assertEqual(frame.pixel(0, 0), (0, 0, 0))

    def test_to_array_is_writable_copy(self):
        frame = Frame.blank(2, 2)
        array = frame.to_array()
        array[:] = 9
        self.assertEqual(frame.pixel(1, 1), (0, 0, 0))

    def test_non_uint8_input_is_clipped(self):
        frame = Frame(np.array([[[-5.0, 128.0, 300.0]]]))
        self.assertEqual(frame.pixel(0, 0), (0, 128, 255))

    def test_rejects_wrong_shape(self):
        with self.assertRaises(ValueError):
            Frame(np.zeros((2, 2), dtype=np.uint8))

    def test_equality(self):
        self.assertEqual(Frame.blank(3, 2), Frame.blank(3, 2))
        self.assertNotEqual(Frame.blank(3, 2), Frame.blank(2, 3))

if __name__ == "__main__":
    unittest.main()
