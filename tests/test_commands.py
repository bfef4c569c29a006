"""Unit tests for speed conversion in bluefan.lib.commands."""

import unittest

from bluefan.lib.commands import duty_cycle, encode_command, format_hex


class TestDutyCycle(unittest.TestCase):
    def test_bounds(self):
        self.assertEqual(duty_cycle(0), 0)
        self.assertEqual(duty_cycle(100), 255)

    def test_truncates_instead_of_rounding(self):
        # 50 * 2.55 = 127.5
        self.assertEqual(duty_cycle(50), 127)
        self.assertEqual(duty_cycle(10), 25)
        self.assertEqual(duty_cycle(1), 2)

    def test_monotonic_over_percent_range(self):
        values = [duty_cycle(p) for p in range(101)]
        self.assertEqual(values, sorted(values))

    def test_above_hundred_is_clamped(self):
        for p in (101, 150, 200, 255):
            self.assertEqual(duty_cycle(p), duty_cycle(100))

    def test_output_in_byte_range_for_every_byte_input(self):
        for p in range(256):
            self.assertTrue(0 <= duty_cycle(p) <= 255, p)

    def test_negative_rejected(self):
        with self.assertRaises(ValueError):
            duty_cycle(-1)


class TestEncodeCommand(unittest.TestCase):
    def test_decimal_ascii_without_padding(self):
        self.assertEqual(encode_command(26), b"26")
        self.assertEqual(encode_command(127), b"127")
        self.assertEqual(encode_command(0), b"0")
        self.assertEqual(encode_command(255), b"255")

    def test_out_of_range_rejected(self):
        with self.assertRaises(ValueError):
            encode_command(256)

    def test_format_hex(self):
        self.assertEqual(format_hex(b"127"), "31 32 37")


if __name__ == "__main__":
    unittest.main()
