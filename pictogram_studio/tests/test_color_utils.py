from __future__ import annotations

import unittest
from urllib.parse import unquote
import xml.etree.ElementTree as ET

from pictogram_studio.api.errors import InvalidColorFormat, SvgRecolorFailure
from pictogram_studio.compiler.color import (
    SVG_DATA_URI_PREFIX,
    SVG_NS,
    hex_to_normalized_rgba,
    is_approximately_red,
    normalize_hex,
    recolor_svg_markup,
    svg_data_uri,
)


MULTI_FILL_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<g fill="#FFFFFF"><path d="M0 0h24v24H0z" fill="none"/></g>'
    '<circle cx="12" cy="12" r="2" style="fill:#FFFFFF;fill-opacity:0.5;stroke:#000000"/>'
    "</svg>"
)


class TestHexConversion(unittest.TestCase):
    def test_reference_colours(self):
        self.assertEqual(hex_to_normalized_rgba("#FF0000"), [1.0, 0.0, 0.0, 1.0])
        self.assertEqual(hex_to_normalized_rgba("#000000"), [0.0, 0.0, 0.0, 1.0])
        self.assertEqual(hex_to_normalized_rgba("ffffff"), [1.0, 1.0, 1.0, 1.0])

    def test_channels_are_normalised_with_opaque_alpha(self):
        for value in ("#557FF3", "#92540C", "#E45656", "1c1c1c"):
            channels = hex_to_normalized_rgba(value)
            self.assertEqual(len(channels), 4)
            self.assertEqual(channels[3], 1.0)
            for channel in channels[:3]:
                self.assertGreaterEqual(channel, 0.0)
                self.assertLessEqual(channel, 1.0)

        r, g, b, _ = hex_to_normalized_rgba("#557FF3")
        self.assertAlmostEqual(r, 85 / 255)
        self.assertAlmostEqual(g, 127 / 255)
        self.assertAlmostEqual(b, 243 / 255)

    def test_malformed_input_is_rejected(self):
        for value in ("#FFF", "12345", "#GGGGGG", "#FF00001", "", None, 255):
            with self.assertRaises(InvalidColorFormat):
                hex_to_normalized_rgba(value)

    def test_invalid_colour_is_also_a_value_error(self):
        with self.assertRaises(ValueError):
            hex_to_normalized_rgba("#12")

    def test_normalize_hex(self):
        self.assertEqual(normalize_hex("557ff3"), "#557FF3")
        self.assertEqual(normalize_hex(" #92540c "), "#92540C")


class TestRedDetection(unittest.TestCase):
    def test_threshold_heuristic(self):
        self.assertTrue(is_approximately_red([0.9, 0.2, 0.2]))
        self.assertFalse(is_approximately_red([0.9, 0.9, 0.2]))
        self.assertFalse(is_approximately_red([0.3, 0.1, 0.1]))

    def test_reference_red_and_alpha_channel(self):
        self.assertTrue(is_approximately_red(hex_to_normalized_rgba("#E45656")))
        self.assertFalse(is_approximately_red(hex_to_normalized_rgba("#557FF3")))

    def test_short_channel_lists_never_match(self):
        self.assertFalse(is_approximately_red([0.9, 0.1]))


class TestSvgRecolor(unittest.TestCase):
    def test_every_fill_is_rewritten(self):
        uri = recolor_svg_markup(MULTI_FILL_SVG, "#92540C")
        self.assertTrue(uri.startswith(SVG_DATA_URI_PREFIX))

        markup = unquote(uri[len(SVG_DATA_URI_PREFIX) :])
        self.assertNotIn("#FFFFFF", markup)
        self.assertNotIn('fill="none"', markup)
        self.assertEqual(markup.count('fill="#92540C"'), 2)
        self.assertIn("fill:#92540C", markup)
        self.assertIn("fill-opacity:0.5", markup)
        self.assertIn("stroke:#000000", markup)

    def test_svg_namespace_is_preserved_without_prefixes(self):
        markup = unquote(recolor_svg_markup(MULTI_FILL_SVG, "#000000")[len(SVG_DATA_URI_PREFIX) :])
        self.assertIn('xmlns="http://www.w3.org/2000/svg"', markup)
        self.assertNotIn("ns0:", markup)

    def test_global_namespace_prefixes_are_left_alone(self):
        markup = unquote(
            recolor_svg_markup(
                '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">'
                '<path id="a" fill="#FFFFFF"/><use xlink:href="#a"/></svg>',
                "#92540C",
            )[len(SVG_DATA_URI_PREFIX) :]
        )
        self.assertIn('xmlns="http://www.w3.org/2000/svg"', markup)
        self.assertIn("http://www.w3.org/1999/xlink", markup)
        self.assertIn('href="#a"', markup)

        elsewhere = ET.tostring(ET.Element(f"{{{SVG_NS}}}g"), encoding="unicode")
        self.assertFalse(elsewhere.startswith("<g "), elsewhere)

    def test_unqualified_svg_root_is_accepted(self):
        markup = unquote(recolor_svg_markup('<svg><rect fill="red"/></svg>', "#000000")[len(SVG_DATA_URI_PREFIX) :])
        self.assertEqual(markup, '<svg><rect fill="#000000" /></svg>')

    def test_data_uri_is_percent_encoded(self):
        uri = svg_data_uri('<svg fill="#fff"/>')
        self.assertNotIn("#", uri[len(SVG_DATA_URI_PREFIX) :])
        self.assertNotIn("<", uri)
        self.assertNotIn(" ", uri)

    def test_unparseable_markup_raises_recolor_failure(self):
        with self.assertRaises(SvgRecolorFailure):
            recolor_svg_markup('<svg xmlns="http://www.w3.org/2000/svg"><path fill="#FFF"', "#000000")

    def test_non_svg_root_raises_recolor_failure(self):
        with self.assertRaises(SvgRecolorFailure):
            recolor_svg_markup("<html><body fill='red'/></html>", "#000000")


if __name__ == "__main__":
    unittest.main()
