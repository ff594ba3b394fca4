import logging

from cosmic_notes.utils.logging import LOG_FORMAT, ContextFormatter


def _record(**extra):
    record = logging.LogRecord("cosmic_notes.test", logging.INFO, __file__, 1, "Generated %s", ("cluster",), None)
    record.__dict__.update(extra)
    return record


def test_context_formatter_appends_sorted_extras():
    line = ContextFormatter("%(levelname)s %(message)s").format(_record(tag_name="Groceries", note_id=3))
    assert line == "INFO Generated cluster | note_id=3 tag_name=Groceries"


def test_context_formatter_without_extras_is_plain():
    assert ContextFormatter(LOG_FORMAT).format(_record()).endswith("INFO - Generated cluster")
