import unittest

from printdesk.services.specification_codec import (
    OrderOptions,
    decode_specifications,
    encode_specifications,
)


class EncodeTests(unittest.TestCase):
    def test_print_line_order(self):
        blob = encode_specifications(
            "Print",
            OrderOptions(paper_size="Long", color_option="color", add_lamination=True),
            "Please staple.",
        )
        self.assertEqual(
            blob,
            "Paper Size: Long\nPrint Type: Color\nAdd Lamination: Yes\nPlease staple.",
        )

    def test_photocopy_writes_copy_type(self):
        blob = encode_specifications("Photocopy", OrderOptions(paper_size="A4", color_option="color"), "")
        self.assertEqual(blob, "Paper Size: A4\nCopy Type: Standard")

    def test_photo_development_writes_photo_size_only(self):
        blob = encode_specifications("Photo Development", OrderOptions(paper_size="A4", photo_size="4R"), "x")
        self.assertEqual(blob, "Photo Size: Glossy 4R\nx")

    def test_laminating_without_flag_is_just_the_note(self):
        self.assertEqual(encode_specifications("Laminating", OrderOptions(), "ID card"), "ID card")

    def test_black_and_white_label(self):
        blob = encode_specifications("Scanning", OrderOptions(paper_size="Short", color_option="bw"))
        self.assertEqual(blob, "Paper Size: Short\nPrint Type: Black & White")


class DecodeTests(unittest.TestCase):
    def test_round_trip_note(self):
        note = "Two copies please.\n\nCall when ready: 0917"
        for service, options in [
            ("Print", OrderOptions(paper_size="Long", color_option="color", add_lamination=True)),
            ("Photocopy", OrderOptions(paper_size="Short")),
            ("Scanning", OrderOptions(paper_size="A4", color_option="bw")),
            ("Photo Development", OrderOptions(photo_size="5R")),
            ("Laminating", OrderOptions(add_lamination=False)),
        ]:
            decoded = decode_specifications(encode_specifications(service, options, note))
            self.assertEqual(decoded.note, note, service)
            self.assertEqual(decoded.options, options.relevant_to(service), service)

    def test_empty_blob(self):
        decoded = decode_specifications("")
        self.assertEqual(decoded.options, OrderOptions())
        self.assertEqual(decoded.note, "")

    def test_none_blob(self):
        self.assertEqual(decode_specifications(None).note, "")

    def test_unparseable_reserved_value_stays_in_note(self):
        decoded = decode_specifications("Paper Size: Huge\nhello")
        self.assertIsNone(decoded.options.paper_size)
        self.assertEqual(decoded.note, "Paper Size: Huge\nhello")

    def test_unknown_key_lines_pass_through(self):
        decoded = decode_specifications("Binding: Spiral\nPaper Size: A4")
        self.assertEqual(decoded.options.paper_size, "A4")
        self.assertEqual(decoded.note, "Binding: Spiral")

    def test_legacy_scan_type_line(self):
        decoded = decode_specifications("Paper Size: Long\nScan Type: Color")
        self.assertEqual(decoded.options.color_option, "color")
        self.assertEqual(decoded.note, "")

    def test_crlf_blob(self):
        decoded = decode_specifications("Paper Size: Short\r\nPrint Type: Black & White\r\nnote")
        self.assertEqual(decoded.options.paper_size, "Short")
        self.assertEqual(decoded.options.color_option, "bw")
        self.assertEqual(decoded.note, "note")

    def test_reserved_prefix_in_note_is_absorbed(self):
        # Known ambiguity of the text format; structured columns avoid it for new orders
        decoded = decode_specifications("Paper Size: Long\nPaper Size: A4")
        self.assertEqual(decoded.options.paper_size, "A4")
        self.assertEqual(decoded.note, "")


class OrderOptionsTests(unittest.TestCase):
    def test_merged_ignores_none_and_unknown_keys(self):
        base = OrderOptions(paper_size="A4", color_option="bw")
        merged = base.merged({"paper_size": None, "color_option": "color", "binding": "spiral"})
        self.assertEqual(merged, OrderOptions(paper_size="A4", color_option="color"))

    def test_dict_round_trip(self):
        options = OrderOptions(paper_size="Long", color_option="color", photo_size=None, add_lamination=True)
        self.assertEqual(OrderOptions.from_dict(options.to_dict()), options)
