import pytest

from cosmic_notes.utils.text import capitalize_tag, linkify_summary, sanitize_text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("groceries", "Groceries"),
        ("to-do", "To-Do"),
        ("home_repair", "Home_Repair"),
        ("  padded ", "Padded"),
        ("HomeRepair", "HomeRepair"),
        ("", ""),
        ("   ", ""),
    ],
)
def test_capitalize_tag(raw, expected):
    assert capitalize_tag(raw) == expected


def test_linkify_summary_turns_ids_into_note_links():
    summary = "Milk is needed [1], bread too [12]."
    assert linkify_summary(summary) == "Milk is needed [[1](/note/1)], bread too [[12](/note/12)]."


def test_linkify_summary_leaves_other_brackets_alone():
    assert linkify_summary("- [ ] buy milk [x]") == "- [ ] buy milk [x]"


def test_sanitize_text_strips_null_and_control_characters():
    assert sanitize_text("a\u0000b\u0007c\nd\te") == "abc\nd\te"
    assert sanitize_text(None) == ""
