"""
Test suite for the balanced-bracket JSON scanner.

System role: Verification of embedded JSON recovery
"""

from diagrammaton.core.json_scanner import extract_json, find_balanced_end, iter_balanced_spans


class TestFindBalancedEnd:
    """Closing bracket lookup."""

    def test_simple_object(self) -> None:
        text = 'x {"a": 1} y'
        assert find_balanced_end(text, 2) == 9

    def test_braces_inside_strings_are_ignored(self) -> None:
        text = '{"label": "a } b { c"}'
        assert find_balanced_end(text, 0) == len(text) - 1

    def test_escaped_quotes_do_not_end_strings(self) -> None:
        text = '{"label": "say \\"}\\" now"}'
        assert find_balanced_end(text, 0) == len(text) - 1

    def test_truncated_span_returns_none(self) -> None:
        assert find_balanced_end('{"steps": [1, 2', 0) is None

    def test_mismatched_brackets_return_none(self) -> None:
        assert find_balanced_end('{"a": [1}', 0) is None

    def test_non_opener_returns_none(self) -> None:
        assert find_balanced_end("abc", 0) is None


class TestIterBalancedSpans:
    """Span enumeration."""

    def test_yields_nested_spans_after_parent(self) -> None:
        spans = list(iter_balanced_spans('{"a": {"b": 1}}', "{"))

        assert spans == ['{"a": {"b": 1}}', '{"b": 1}']

    def test_opener_filter(self) -> None:
        spans = list(iter_balanced_spans('[1] {"a": 2}', "["))

        assert spans == ["[1]"]


class TestExtractJson:
    """First parseable span."""

    def test_recovers_object_from_chatter(self) -> None:
        assert extract_json('Sure! {"steps": []} Hope that helps!') == {"steps": []}

    def test_skips_unparseable_span(self) -> None:
        assert extract_json("{not json} then [1, 2]") == [1, 2]

    def test_returns_none_without_json(self) -> None:
        assert extract_json("no payload here") is None
