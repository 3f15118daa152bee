"""Unit tests for HTML cleaning and text helpers."""

import pytest

from jobwizard.utils import clean_html, slugify, titleize, truncate, unique


class TestCleanHtml:
    def test_paragraphs_become_blank_lines(self):
        assert clean_html("<p>Build <b>Rails</b> apps</p><p>Remote</p>") == (
            "Build Rails apps\n\nRemote"
        )

    def test_escaped_html_is_decoded(self):
        """Greenhouse sends the content HTML-escaped."""
        escaped = "&lt;p&gt;Ship &lt;strong&gt;Ruby&lt;/strong&gt; &amp;amp; Rails&lt;/p&gt;"

        assert clean_html(escaped) == "Ship Ruby & Rails"

    def test_list_items_and_line_breaks(self):
        text = "<ul><li>Ruby</li><li>Rails</li></ul>Line one<br/>Line two"

        assert clean_html(text) == "Ruby\nRails\nLine one\nLine two"

    def test_script_and_style_blocks_are_dropped(self):
        text = "<style>p { color: red }</style><p>Hi</p><script>alert(1)</script>"

        assert clean_html(text) == "Hi"

    def test_non_breaking_spaces(self):
        assert clean_html("Ruby&nbsp;on&nbsp;Rails") == "Ruby on Rails"

    def test_whitespace_is_collapsed(self):
        text = "<div>  Build    things </div>\n\n\n\n<div>Ship</div>"

        assert clean_html(text) == "Build things\n\nShip"

    def test_headings_are_separated(self):
        assert clean_html("<h3>Your tasks</h3>Maintain Rails") == "Your tasks\n\nMaintain Rails"

    @pytest.mark.parametrize("value", [None, "", "   \n "])
    def test_empty_input(self, value):
        assert clean_html(value) == ""


class TestTitleize:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("acme-corp", "Acme Corp"),
            ("globex_corporation", "Globex Corporation"),
            ("  initech  ", "Initech"),
            ("iOS-team", "IOS Team"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_titleize(self, value, expected):
        assert titleize(value) == expected


class TestSlugify:
    def test_special_characters_are_dropped(self):
        assert slugify("Senior Engineer (Remote)") == "Senior-Engineer-Remote"

    def test_repeated_separators_collapse(self):
        assert slugify("Acme  -  Inc") == "Acme-Inc"

    def test_max_length(self):
        assert slugify("a" * 150) == "a" * 100
        assert slugify("Backend Engineer", max_length=7) == "Backend"

    @pytest.mark.parametrize("value", ["../etc", "a/b", "a\\b"])
    def test_path_traversal_is_rejected(self, value):
        with pytest.raises(ValueError, match="Invalid path characters"):
            slugify(value)


class TestUnique:
    def test_keeps_first_seen_order(self):
        assert unique(["rails", "ruby", "rails", "sql", "ruby"]) == ["rails", "ruby", "sql"]

    def test_is_case_sensitive(self):
        assert unique(["Ruby", "ruby"]) == ["Ruby", "ruby"]


class TestTruncate:
    def test_short_text_is_unchanged(self):
        assert truncate("Acme", 10) == "Acme"

    def test_long_text_gets_suffix(self):
        assert truncate("Senior Backend Engineer", 12) == "Senior Ba..."

    def test_trailing_space_is_trimmed(self):
        assert truncate("Senior Backend Engineer", 10) == "Senior..."

    def test_none(self):
        assert truncate(None) == ""
