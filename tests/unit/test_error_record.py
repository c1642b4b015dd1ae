"""
Unit tests for the ErrorRecord model.
"""

import io
import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from faultline.models.error import ErrorParseError, ErrorRecord, UNKNOWN_IP, get_remote_ip
from faultline.models.name_value import NameValueCollection


@pytest.fixture
def server_variables() -> NameValueCollection:
    """Server variables of a typical request."""
    return NameValueCollection([
        ("HTTP_HOST", "example.com"),
        ("URL", "/orders/42"),
        ("REQUEST_METHOD", "POST"),
        ("REMOTE_ADDR", "10.0.0.5"),
        ("QUERY_STRING", "id=1&id=2"),
    ])


@pytest.fixture
def sample_error(server_variables: NameValueCollection) -> ErrorRecord:
    """Create a fully populated error record."""
    return ErrorRecord(
        application_name="shop",
        machine_name="web-01",
        type="ValueError",
        source="shop.orders",
        message="bad <order> & 'id'",
        detail="Traceback (most recent call last):\nValueError: bad order\n",
        error_hash=12345,
        creation_date=datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc),
        last_log_date=datetime(2026, 10, 19, 12, 5, 0, tzinfo=timezone.utc),
        status_code=500,
        custom_data={"SQL-Server": "sql-01", "user": "42"},
        sql="SELECT 1",
        server_variables=server_variables,
        query_string=NameValueCollection([("id", "1"), ("id", "2")]),
        form=NameValueCollection([("tag", "a"), ("note", ""), ("tag", "b")]),
        cookies=NameValueCollection(),
        request_headers=NameValueCollection([("Accept", "text/html"), ("Accept", "application/json")]),
        rollup_per_server=True,
    )


def serializable_fields(error: ErrorRecord) -> dict:
    """Serializable view of an error for field-by-field comparison."""
    return error.model_dump(mode="json")


class TestErrorRecordDefaults:
    """Test construction defaults and immutability."""

    def test_defaults(self):
        """Test a new record gets a guid, a UTC creation date and count 1."""
        error = ErrorRecord()

        assert error.guid is not None
        assert error.creation_date.tzinfo is not None
        assert error.duplicate_count == 1
        assert error.custom_data is None
        assert error.is_protected is False

    def test_naive_dates_are_utc(self):
        """Test dates without a timezone are taken as UTC."""
        error = ErrorRecord(
            creation_date=datetime(2030, 1, 1),
            last_log_date=datetime(2030, 1, 2),
            deletion_date=datetime(2030, 1, 3),
        )

        assert error.creation_date == datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert error.last_log_date.tzinfo is timezone.utc
        assert error.deletion_date.tzinfo is timezone.utc

    def test_naive_dates_from_json_are_utc(self):
        """Test persisted dates without an offset are read as UTC."""
        error = ErrorRecord.from_json('{"creation_date": "2030-01-01T00:00:00"}')

        assert error.creation_date == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_guid_is_immutable(self):
        """Test the guid cannot be reassigned."""
        error = ErrorRecord()

        with pytest.raises(ValidationError):
            error.guid = uuid4()

    def test_duplicate_count_must_be_positive(self):
        """Test a zero duplicate count is rejected."""
        with pytest.raises(ValidationError):
            ErrorRecord(duplicate_count=0)

    def test_str_is_message(self):
        """Test str() returns the message."""
        assert str(ErrorRecord(message="boom")) == "boom"
        assert str(ErrorRecord()) == ""


class TestDerivedFields:
    """Test host/url/method/address derivation from server variables."""

    def test_derived_from_server_variables(self, sample_error: ErrorRecord):
        """Test derived fields come from server variables."""
        assert sample_error.host == "example.com"
        assert sample_error.url == "/orders/42"
        assert sample_error.http_method == "POST"
        assert sample_error.ip_address == "10.0.0.5"

    def test_without_server_variables(self):
        """Test derived fields are empty without server variables."""
        error = ErrorRecord()

        assert error.host == ""
        assert error.url == ""
        assert error.http_method == ""
        assert error.ip_address == ""

    def test_resolved_once(self, sample_error: ErrorRecord):
        """Test a resolved value is not recomputed when the collection changes."""
        assert sample_error.host == "example.com"

        sample_error.server_variables = NameValueCollection([("HTTP_HOST", "other.com")])

        assert sample_error.host == "example.com"

    def test_explicit_assignment_wins(self, sample_error: ErrorRecord):
        """Test an assigned value is never replaced by derivation."""
        sample_error.host = "assigned.com"
        sample_error.url = None

        assert sample_error.host == "assigned.com"
        assert sample_error.url == ""

    def test_constructor_assignment_wins(self, server_variables: NameValueCollection):
        """Test derived fields passed to the constructor are used as-is."""
        error = ErrorRecord(server_variables=server_variables, host="given.com")

        assert error.host == "given.com"
        assert error.url == "/orders/42"

    def test_model_validate_assignment_wins(self, server_variables: NameValueCollection):
        """Test explicit derived values survive model_validate."""
        error = ErrorRecord.model_validate({"server_variables": server_variables, "host": "given.com"})

        assert error.host == "given.com"
        assert error.url == "/orders/42"

    def test_model_validate_json_assignment_wins(self):
        """Test explicit derived values survive model_validate_json."""
        error = ErrorRecord.model_validate_json(
            '{"server_variables": [{"name": "HTTP_HOST", "value": "other.com"}], '
            '"host": "given.com", "http_method": "PUT"}'
        )

        assert error.host == "given.com"
        assert error.http_method == "PUT"


class TestRemoteIp:
    """Test client address resolution."""

    def test_public_forwarded_address_wins(self):
        """Test a public X-Forwarded-For address replaces the proxy address."""
        variables = NameValueCollection([
            ("REMOTE_ADDR", "10.0.0.1"),
            ("HTTP_X_FORWARDED_FOR", "8.8.4.4, 10.0.0.1"),
        ])

        assert get_remote_ip(variables) == "8.8.4.4"

    def test_private_forwarded_address_ignored(self):
        """Test a private forwarded address is ignored."""
        variables = NameValueCollection([
            ("REMOTE_ADDR", "8.8.8.8"),
            ("HTTP_X_FORWARDED_FOR", "192.168.1.20"),
        ])

        assert get_remote_ip(variables) == "8.8.8.8"

    def test_garbage_forwarded_address_ignored(self):
        """Test an unparsable forwarded value is ignored."""
        variables = NameValueCollection([
            ("REMOTE_ADDR", "8.8.8.8"),
            ("HTTP_X_FORWARDED_FOR", "unknown"),
        ])

        assert get_remote_ip(variables) == "8.8.8.8"

    def test_unknown_address(self):
        """Test the unknown marker when no address is available."""
        assert get_remote_ip(NameValueCollection()) == UNKNOWN_IP
        assert get_remote_ip(None) == ""


class TestClone:
    """Test ErrorRecord.clone."""

    def test_clone_copies_fields(self, sample_error: ErrorRecord):
        """Test the clone has the same values."""
        copy = sample_error.clone()

        assert serializable_fields(copy) == serializable_fields(sample_error)
        assert copy.rollup_per_server is True
        assert copy.guid == sample_error.guid

    def test_clone_collections_are_independent(self, sample_error: ErrorRecord):
        """Test mutating the clone's collections leaves the original alone."""
        copy = sample_error.clone()

        copy.query_string.add("id", "3")
        copy.form.add("tag", "c")
        copy.cookies.add("session", "abc")
        copy.request_headers.add("X-Test", "1")
        copy.server_variables.add("HTTP_HOST", "other.com")
        copy.custom_data["user"] = "changed"

        assert sample_error.query_string.get_all("id") == ["1", "2"]
        assert sample_error.form.get_all("tag") == ["a", "b"]
        assert len(sample_error.cookies) == 0
        assert "X-Test" not in sample_error.request_headers
        assert sample_error.server_variables.get_all("HTTP_HOST") == ["example.com"]
        assert sample_error.custom_data["user"] == "42"

    def test_clone_keeps_explicit_values(self, sample_error: ErrorRecord):
        """Test explicitly assigned derived values carry over."""
        sample_error.host = "assigned.com"

        copy = sample_error.clone()
        copy.host = "changed.com"

        assert sample_error.host == "assigned.com"

    def test_clone_of_empty_record(self):
        """Test cloning a record without collections."""
        copy = ErrorRecord(message="x").clone()

        assert copy.server_variables is None
        assert copy.custom_data is None


class TestPersistableJson:
    """Test to_json / from_json."""

    def test_round_trip(self, sample_error: ErrorRecord):
        """Test every serializable field survives a round trip."""
        restored = ErrorRecord.from_json(sample_error.to_json())

        assert serializable_fields(restored) == serializable_fields(sample_error)
        assert restored.creation_date == sample_error.creation_date
        assert restored.guid == sample_error.guid

    def test_round_trip_keeps_duplicates(self, sample_error: ErrorRecord):
        """Test collections keep repeated names and order."""
        restored = ErrorRecord.from_json(sample_error.to_json())

        assert list(restored.query_string) == [("id", "1"), ("id", "2")]
        assert list(restored.form) == [("tag", "a"), ("note", ""), ("tag", "b")]
        assert list(restored.request_headers) == list(sample_error.request_headers)
        assert restored.custom_data == {"SQL-Server": "sql-01", "user": "42"}

    def test_round_trip_empty_collections(self):
        """Test empty and absent collections stay distinct."""
        error = ErrorRecord(message="x", cookies=NameValueCollection())

        restored = ErrorRecord.from_json(error.to_json())

        assert restored.cookies == NameValueCollection()
        assert restored.form is None

    def test_collections_serialized_as_pair_arrays(self, sample_error: ErrorRecord):
        """Test the wire format of collections."""
        data = json.loads(sample_error.to_json())

        assert data["query_string"] == [
            {"name": "id", "value": "1"},
            {"name": "id", "value": "2"},
        ]
        assert data["cookies"] == []
        assert data["host"] == "example.com"

    def test_non_serialized_fields(self, sample_error: ErrorRecord):
        """Test runtime-only fields are left out."""
        sample_error.exception = ValueError("live")
        sample_error.id = 99

        data = json.loads(sample_error.to_json())

        for field in ("id", "exception", "full_json", "rollup_per_server", "is_duplicate"):
            assert field not in data

    def test_from_json_keeps_raw_json(self, sample_error: ErrorRecord):
        """Test the raw document is kept on the parsed record."""
        text = sample_error.to_json()

        assert ErrorRecord.from_json(text).full_json == text

    def test_explicit_derived_values_survive(self):
        """Test derived values round-trip as explicit values."""
        error = ErrorRecord(host="given.com")

        restored = ErrorRecord.from_json(error.to_json())
        restored.server_variables = NameValueCollection([("HTTP_HOST", "other.com")])

        assert restored.host == "given.com"

    @pytest.mark.parametrize("text", [
        "not json",
        "[1, 2, 3]",
        '{"duplicate_count": "many"}',
        '{"query_string": "id=1"}',
        '{"creation_date": "yesterday"}',
        '{"form": [{"name": 5, "value": {}}]}',
    ])
    def test_malformed_input(self, text: str):
        """Test malformed documents raise ErrorParseError."""
        with pytest.raises(ErrorParseError):
            ErrorRecord.from_json(text)


class TestDetailedJson:
    """Test the detailed cross-origin JSON form."""

    def test_field_order(self, sample_error: ErrorRecord):
        """Test the fixed field list and order."""
        data = json.loads(sample_error.to_detailed_json())

        assert list(data.keys()) == [
            "guid", "application_name", "creation_date", "deletion_date", "detail",
            "duplicate_count", "error_hash", "http_method", "host", "ip_address",
            "is_protected", "machine_name", "message", "sql", "source", "status_code",
            "type", "url", "custom_data", "server_variables", "cookies",
            "request_headers", "query_string", "form",
        ]

    def test_epoch_timestamps(self, sample_error: ErrorRecord):
        """Test dates are written as epoch seconds."""
        sample_error.deletion_date = sample_error.creation_date + timedelta(days=1)

        data = json.loads(sample_error.to_detailed_json())

        assert data["creation_date"] == 1792411200
        assert data["deletion_date"] == 1792411200 + 86400

    def test_missing_deletion_date_is_null(self, sample_error: ErrorRecord):
        """Test an unset date is written as null."""
        assert json.loads(sample_error.to_detailed_json())["deletion_date"] is None

    def test_html_characters_escaped(self, sample_error: ErrorRecord):
        """Test HTML-significant characters never appear raw."""
        text = sample_error.to_detailed_json()

        assert "<" not in text and ">" not in text and "&" not in text and "'" not in text
        assert "\\u003corder\\u003e" in text
        assert json.loads(text)["message"] == "bad <order> & 'id'"

    def test_collections_written_as_objects(self, sample_error: ErrorRecord):
        """Test collections are objects that keep repeated names in order."""
        text = sample_error.to_detailed_json()

        pairs = json.loads(text, object_pairs_hook=lambda items: items)
        form = dict(pairs)["form"]

        assert form == [("tag", "a"), ("note", ""), ("tag", "b")]

    def test_excluded_fields(self, sample_error: ErrorRecord):
        """Test runtime-only fields are never written."""
        sample_error.exception = ValueError("live")
        sample_error.full_json = "{}"

        data = json.loads(sample_error.to_detailed_json())

        for field in ("exception", "full_json", "rollup_per_server", "id", "is_duplicate"):
            assert field not in data

    def test_absent_collections_are_empty_objects(self):
        """Test absent collections are written as empty objects."""
        data = json.loads(ErrorRecord(message="x").to_detailed_json())

        assert data["custom_data"] == {}
        assert data["form"] == {}

    def test_writes_to_sink(self, sample_error: ErrorRecord):
        """Test writing to a caller-supplied stream."""
        sink = io.StringIO()
        sink.write("callback(")

        sample_error.write_detailed_json(sink)

        assert sink.getvalue().startswith('callback({"guid":')
