"""
Storybook Backend - Template Helper Tests
===========================================

Pure functions, no database or app needed.
"""

from datetime import datetime, timezone

from markupsafe import Markup

from storybook.auth.models import CurrentUser
from storybook.helpers import (
    capitalize,
    edit_icon,
    format_date,
    select,
    strip_tags,
    truncate,
)


class TestCapitalize:

    def test_first_letter_only(self):
        assert capitalize("hello world") == "Hello world"

    def test_rest_untouched(self):
        assert capitalize("iPhone stories") == "IPhone stories"

    def test_empty(self):
        assert capitalize("") == ""
        assert capitalize(None) == ""


class TestFormatDate:

    def test_custom_format(self):
        value = datetime(2024, 3, 9, 14, 30, tzinfo=timezone.utc)

        assert format_date(value, "%Y-%m-%d") == "2024-03-09"

    def test_none(self):
        assert format_date(None) == ""


class TestTruncate:

    def test_short_text_unchanged(self):
        assert truncate("Short", 20) == "Short"

    def test_cuts_at_word_boundary(self):
        assert truncate("The quick brown fox jumps", 12) == "The quick..."

    def test_single_long_word_cut_at_limit(self):
        assert truncate("Supercalifragilistic", 5) == "Super..."

    def test_exact_length_unchanged(self):
        assert truncate("abcde", 5) == "abcde"

    def test_empty(self):
        assert truncate(None, 10) == ""


class TestStripTags:

    def test_removes_tags(self):
        assert strip_tags("<p>Hello <em>there</em></p>") == "Hello there"

    def test_multiline_tag(self):
        assert strip_tags('<a\nhref="x">link</a>') == "link"

    def test_nbsp_becomes_space(self):
        assert strip_tags("one&nbsp;two") == "one two"

    def test_empty(self):
        assert strip_tags(None) == ""


class TestEditIcon:

    def test_owner_gets_floating_link(self):
        viewer = CurrentUser(id="alice")

        html = edit_icon("alice", viewer, "abc")

        assert isinstance(html, Markup)
        assert 'href="/stories/edit/abc"' in html
        assert "btn-floating" in html

    def test_owner_plain_link(self):
        html = edit_icon("alice", "alice", "abc", floating=False)

        assert 'href="/stories/edit/abc"' in html
        assert "btn-floating" not in html

    def test_other_user_gets_nothing(self):
        assert edit_icon("alice", CurrentUser(id="bob"), "abc") == ""

    def test_guest_gets_nothing(self):
        assert edit_icon("alice", None, "abc") == ""

    def test_story_id_is_escaped(self):
        html = edit_icon("alice", "alice", '"><script>')

        assert "<script>" not in html


class TestSelect:

    OPTIONS = '<option value="public">Public</option><option value="private">Private</option>'

    def test_marks_matching_option(self):
        html = select("private", self.OPTIONS)

        assert '<option value="private" selected="selected">' in html
        assert '<option value="public">' in html

    def test_no_match_leaves_options(self):
        assert select("draft", self.OPTIONS) == self.OPTIONS

    def test_none_selected(self):
        assert select(None, self.OPTIONS) == self.OPTIONS
