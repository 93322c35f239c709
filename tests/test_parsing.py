"""Tests for model response parsing."""

from app.relay.models import Record
from app.relay.services.ai import (
    ParseErr,
    ParseOk,
    parse_model_response,
    repair_json,
    slice_array,
    strip_code_fence,
)

CLEAN = '[{"name": "Narok", "imei": "355234850433208"}, {"name": "Kisumu", "imei": "355234850433216"}]'
EXPECTED = [
    Record(name="Narok", imei="355234850433208"),
    Record(name="Kisumu", imei="355234850433216"),
]


class TestStripCodeFence:
    """Tests for fence removal."""

    def test_strips_json_fence(self):
        """Test a ```json fenced block is unwrapped."""
        assert strip_code_fence(f"```json\n{CLEAN}\n```") == CLEAN

    def test_strips_bare_fence(self):
        """Test a fence without a language tag is unwrapped."""
        assert strip_code_fence(f"```\n{CLEAN}\n```") == CLEAN

    def test_leaves_unfenced_text(self):
        """Test text without fences is only trimmed."""
        assert strip_code_fence(f"  {CLEAN}\n") == CLEAN


class TestSliceArray:
    """Tests for locating the candidate array."""

    def test_slices_first_to_last_bracket(self):
        """Test prose around the array is discarded."""
        text = f"Here are the results:\n{CLEAN}\nLet me know if you need more."
        assert slice_array(text) == CLEAN

    def test_missing_open_bracket(self):
        """Test None when there is no '['."""
        assert slice_array('{"name": "A"}]') is None

    def test_missing_close_bracket(self):
        """Test None when there is no ']'."""
        assert slice_array('[{"name": "A"}') is None


class TestRepairJson:
    """Tests for structural repair."""

    def test_removes_trailing_commas(self):
        """Test trailing commas before ] and } are removed."""
        assert repair_json('[{"imei": "1", "name": "A",},]') == '[{"imei": "1", "name": "A"}]'

    def test_quotes_bare_keys(self):
        """Test unquoted object keys are quoted."""
        assert repair_json('[{imei: "1", name: "A"}]') == '[{"imei": "1", "name": "A"}]'

    def test_normalizes_smart_quotes(self):
        """Test typographic double quotes become ASCII quotes."""
        assert repair_json("[{“imei”: “1”, “name”: “A”}]") == '[{"imei": "1", "name": "A"}]'

    def test_string_contents_untouched(self):
        """Test commas, colons and brackets inside values are not rewritten."""
        text = '[{name: "Narok, Site: A", imei: "1, ]"},]'
        assert repair_json(text) == '[{"name": "Narok, Site: A", "imei": "1, ]"}]'


class TestParseModelResponse:
    """Tests for the full parse pipeline."""

    def test_clean_json_maps_identically(self):
        """Test clean JSON yields the same records in order."""
        outcome = parse_model_response(CLEAN)
        assert isinstance(outcome, ParseOk)
        assert outcome.records == EXPECTED

    def test_fenced_equals_unfenced(self):
        """Test a fenced answer parses the same as the bare array."""
        fenced = parse_model_response(f"```json\n{CLEAN}\n```")
        assert isinstance(fenced, ParseOk)
        assert fenced.records == parse_model_response(CLEAN).records

    def test_trailing_comma_repaired(self):
        """Test a trailing comma is tolerated."""
        outcome = parse_model_response('[{"imei":"1","name":"A"},]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(imei="1", name="A")]

    def test_trailing_comma_with_colon_in_value(self):
        """Test a trailing comma is repaired without touching a value that looks like a key."""
        outcome = parse_model_response('[{"name": "Narok, Site: A", "imei": "1"},]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(name="Narok, Site: A", imei="1")]

    def test_bare_keys_with_colon_in_value(self):
        """Test bare keys are quoted while a value containing ", Word:" is kept."""
        outcome = parse_model_response('[{name: "Narok, Site: A", imei: "1"}]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(name="Narok, Site: A", imei="1")]

    def test_single_quotes_repaired(self):
        """Test Python-style single-quoted output is accepted."""
        outcome = parse_model_response("[{'imei': '1', 'name': 'A'}]")
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(imei="1", name="A")]

    def test_unquoted_keys_repaired(self):
        """Test bare keys are accepted."""
        outcome = parse_model_response('[{imei: "1", name: "A"}]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(imei="1", name="A")]

    def test_numeric_imei_becomes_string(self):
        """Test an IMEI emitted as a number is kept as its digits."""
        outcome = parse_model_response('[{"name": "Narok", "imei": 355234850433208}]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records[0].imei == "355234850433208"

    def test_values_not_trimmed(self):
        """Test values from the model are kept verbatim."""
        outcome = parse_model_response('[{"name": " Narok ", "imei": "1 "}]')
        assert isinstance(outcome, ParseOk)
        assert outcome.records == [Record(name=" Narok ", imei="1 ")]

    def test_duplicates_preserved(self):
        """Test duplicate rows are not collapsed."""
        row = '{"name": "A", "imei": "1"}'
        outcome = parse_model_response(f"[{row}, {row}]")
        assert isinstance(outcome, ParseOk)
        assert len(outcome.records) == 2

    def test_empty_array(self):
        """Test an empty array is a valid, empty result."""
        outcome = parse_model_response("[]")
        assert isinstance(outcome, ParseOk)
        assert outcome.records == []

    def test_no_array_is_error(self):
        """Test prose without brackets is reported with the raw text."""
        raw = "I could not find any IMEI numbers in this document."
        outcome = parse_model_response(raw)
        assert isinstance(outcome, ParseErr)
        assert outcome.raw == raw
        assert "no JSON array" in outcome.reason

    def test_unrepairable_is_error(self):
        """Test garbage between brackets is reported, not raised."""
        raw = "[{name: Narok imei 3552}"  + "]"
        outcome = parse_model_response(raw)
        assert isinstance(outcome, ParseErr)
        assert outcome.raw == raw

    def test_missing_field_is_error(self):
        """Test rows without an imei are rejected."""
        outcome = parse_model_response('[{"name": "Narok"}]')
        assert isinstance(outcome, ParseErr)
        assert "element 0" in outcome.reason

    def test_blank_field_is_error(self):
        """Test rows with a blank name are rejected."""
        outcome = parse_model_response('[{"name": "  ", "imei": "1"}]')
        assert isinstance(outcome, ParseErr)

    def test_non_object_element_is_error(self):
        """Test array elements must be objects."""
        outcome = parse_model_response('["355234850433208"]')
        assert isinstance(outcome, ParseErr)

    def test_empty_text_is_error(self):
        """Test None and blank answers are errors."""
        assert isinstance(parse_model_response(None), ParseErr)
        assert isinstance(parse_model_response("   "), ParseErr)

    def test_snippet_is_truncated(self):
        """Test the diagnostic snippet is bounded."""
        outcome = parse_model_response("x" * 2000)
        assert isinstance(outcome, ParseErr)
        assert len(outcome.snippet) == 500
