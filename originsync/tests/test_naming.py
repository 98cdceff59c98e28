import re
import unittest

from originsync.naming import canonicalize


CANONICAL_NAME = re.compile(r"^[a-z]([a-z0-9-]*[a-z0-9])?$")


class TestCanonicalize(unittest.TestCase):
    def test_dots_become_hyphens_and_trailing_separator_is_dropped(self):
        self.assertEqual(canonicalize("My.Service.Name."), "my-service-name")

    def test_leading_non_letters_are_stripped(self):
        self.assertEqual(canonicalize("123-abc"), "abc")

    def test_invalid_characters_are_dropped(self):
        self.assertEqual(canonicalize("web_app:v2"), "webappv2")

    def test_all_trailing_hyphens_are_dropped(self):
        self.assertEqual(canonicalize("web--"), "web")
        self.assertEqual(canonicalize("web-!"), "web")

    def test_no_letters_gives_empty_name(self):
        self.assertEqual(canonicalize("1234-..."), "")
        self.assertEqual(canonicalize(""), "")

    def test_non_ascii_letters_are_not_kept(self):
        self.assertEqual(canonicalize("ünicode-svc"), "nicode-svc")

    def test_long_names_are_truncated(self):
        name = canonicalize("a" * 62 + "-bcd")
        self.assertEqual(name, "a" * 62)
        self.assertLessEqual(len(canonicalize("x" * 100)), 63)

    def test_output_is_canonical_and_idempotent(self):
        samples = [
            "My.Service.Name.",
            "123-abc",
            "nginx",
            "-.-",
            "API.Gateway-v1.2",
            "UPPER_CASE.svc",
            "a.",
            "9lives.",
            "x" * 70 + ".-",
            "svc with spaces",
        ]
        for sample in samples:
            with self.subTest(sample = sample):
                name = canonicalize(sample)
                self.assertTrue(name == "" or CANONICAL_NAME.match(name), name)
                self.assertEqual(canonicalize(name), name)
