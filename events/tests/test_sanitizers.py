from django.test import SimpleTestCase

from events.sanitizers import sanitize_form_data, sanitize_team_name, sanitize_text


class SanitizeTextTests(SimpleTestCase):
    def test_trailing_control_character_does_not_shield_whitespace(self):
        self.assertEqual(sanitize_team_name("  Rockets \x07"), "Rockets")
        self.assertEqual(sanitize_text("\x00  padded\x1f  \x7f"), "padded")

    def test_newlines_and_tabs_inside_text_survive(self):
        self.assertEqual(sanitize_text("line one\n\tline two"), "line one\n\tline two")

    def test_length_cap_applies_after_cleaning(self):
        self.assertEqual(sanitize_text("\x07abcdef", max_length=3), "abc")

    def test_none_becomes_empty(self):
        self.assertEqual(sanitize_text(None), "")


class SanitizeFormDataTests(SimpleTestCase):
    def test_answers_are_cleaned_and_nested_values_dropped(self):
        data = sanitize_form_data({
            " size ": " L\x07 ",
            "count": 2,
            "tags": ["a\x00", {"nested": True}, 3],
            "extra": {"nested": "dropped"},
        })
        self.assertEqual(data, {"size": "L", "count": 2, "tags": ["a", 3]})

    def test_non_object_is_rejected(self):
        with self.assertRaises(ValueError):
            sanitize_form_data(["not", "an", "object"])
