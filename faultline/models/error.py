"""
Error record data model.

An ErrorRecord is the logical application error captured from an
exception: classification, full detail, rollup fingerprint and the request
context it happened in. It has two JSON forms:
- persistable JSON (to_json/from_json): lossless, for stores
- detailed JSON (write_detailed_json): explicit field list, HTML-safe and
  with epoch-second timestamps, for cross-origin consumers
"""

import io
import ipaddress
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TextIO
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)

from .detailed_json import DetailedJsonWriter, to_epoch_seconds
from .name_value import NameValueCollection, from_pairs, to_pairs

COLLECTION_FIELDS = ("server_variables", "query_string", "form", "cookies", "request_headers")

DERIVED_FIELDS = ("host", "url", "http_method", "ip_address")

# Returned when no client address can be determined
UNKNOWN_IP = "0.0.0.0"


class ErrorParseError(ValueError):
    """Raised when persisted error JSON cannot be parsed."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _copy_collection(collection: Optional[NameValueCollection]) -> Optional[NameValueCollection]:
    return collection.copy() if collection is not None else None


def get_remote_ip(server_variables: Optional[NameValueCollection]) -> str:
    """
    Determine the client address from server variables.

    A public address in X-Forwarded-For wins over REMOTE_ADDR, which may be
    a proxy. Private forwarded addresses are ignored.

    Args:
        server_variables: Server variables of the request, may be None

    Returns:
        Client address, "" without server variables, or UNKNOWN_IP
    """
    if server_variables is None:
        return ""

    ip = server_variables.get("REMOTE_ADDR")
    forwarded = server_variables.get("HTTP_X_FORWARDED_FOR")

    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        try:
            if not ipaddress.ip_address(candidate).is_private:
                ip = candidate
        except ValueError:
            pass

    return ip or UNKNOWN_IP


class ErrorRecord(BaseModel):
    """Logical application error captured from an exception."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Identity
    id: int = Field(default=0, exclude=True)  # Assigned by the store
    guid: UUID = Field(default_factory=uuid4, frozen=True)

    # Origin
    application_name: Optional[str] = None
    machine_name: Optional[str] = None

    # Classification
    type: Optional[str] = None
    source: Optional[str] = None
    message: Optional[str] = None
    detail: Optional[str] = None

    # Rollup
    error_hash: Optional[int] = None
    duplicate_count: int = Field(default=1, ge=1)

    # Dates (UTC)
    creation_date: datetime = Field(default_factory=_utcnow)
    last_log_date: Optional[datetime] = None
    deletion_date: Optional[datetime] = None

    status_code: Optional[int] = None
    is_protected: bool = False

    # Diagnostics gathered from the exception chain
    custom_data: Optional[Dict[str, str]] = None
    sql: Optional[str] = None

    # Request collections
    server_variables: Optional[NameValueCollection] = None
    query_string: Optional[NameValueCollection] = None
    form: Optional[NameValueCollection] = None
    cookies: Optional[NameValueCollection] = None
    request_headers: Optional[NameValueCollection] = None

    # Not serialized
    rollup_per_server: bool = Field(default=False, exclude=True)
    is_duplicate: bool = Field(default=False, exclude=True)
    full_json: Optional[str] = Field(default=None, exclude=True)
    exception: Optional[BaseException] = Field(default=None, exclude=True)

    # Resolved derived values; a missing key means "not resolved yet"
    _derived: Dict[str, str] = PrivateAttr(default_factory=dict)

    def __str__(self) -> str:
        return self.message or ""

    @model_validator(mode="wrap")
    @classmethod
    def _apply_derived(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> "ErrorRecord":
        # Explicit host/url/http_method/ip_address win over server variables
        derived: Dict[str, Any] = {}
        if isinstance(data, dict):
            data = dict(data)
            derived = {key: data.pop(key) for key in DERIVED_FIELDS if key in data}

        error = handler(data)
        for key, value in derived.items():
            if value is not None:
                error._derived[key] = value
        return error

    @field_validator("creation_date", "last_log_date", "deletion_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator(*COLLECTION_FIELDS, mode="before")
    @classmethod
    def _parse_collection(cls, value: Any) -> Optional[NameValueCollection]:
        if value is None or isinstance(value, NameValueCollection):
            return value
        try:
            return from_pairs(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_serializer(*COLLECTION_FIELDS)
    def _serialize_collection(
        self, value: Optional[NameValueCollection]
    ) -> Optional[List[Dict[str, Optional[str]]]]:
        pairs = to_pairs(value)
        return None if pairs is None else [pair.model_dump() for pair in pairs]

    def _resolve(self, key: str, variable: str) -> str:
        if key not in self._derived:
            value = self.server_variables.get(variable) if self.server_variables is not None else None
            self._derived[key] = value or ""
        return self._derived[key]

    def _assign(self, key: str, value: Optional[str]) -> None:
        self._derived[key] = value if value is not None else ""

    @computed_field
    @property
    def host(self) -> str:
        """Host of the request, from HTTP_HOST unless set explicitly."""
        return self._resolve("host", "HTTP_HOST")

    @host.setter
    def host(self, value: Optional[str]) -> None:
        self._assign("host", value)

    @computed_field
    @property
    def url(self) -> str:
        """URL path of the request, from URL unless set explicitly."""
        return self._resolve("url", "URL")

    @url.setter
    def url(self, value: Optional[str]) -> None:
        self._assign("url", value)

    @computed_field
    @property
    def http_method(self) -> str:
        """HTTP method of the request, from REQUEST_METHOD unless set explicitly."""
        return self._resolve("http_method", "REQUEST_METHOD")

    @http_method.setter
    def http_method(self, value: Optional[str]) -> None:
        self._assign("http_method", value)

    @computed_field
    @property
    def ip_address(self) -> str:
        """Client address of the request, see get_remote_ip()."""
        if "ip_address" not in self._derived:
            self._derived["ip_address"] = get_remote_ip(self.server_variables)
        return self._derived["ip_address"]

    @ip_address.setter
    def ip_address(self, value: Optional[str]) -> None:
        self._assign("ip_address", value)

    def clone(self) -> "ErrorRecord":
        """
        Copy the error so later changes to either copy do not affect the other.

        Collections and custom data are copied; every other field is a
        value or an immutable object and is shared.

        Returns:
            Independent copy of this error
        """
        copy = ErrorRecord(
            id=self.id,
            guid=self.guid,
            application_name=self.application_name,
            machine_name=self.machine_name,
            type=self.type,
            source=self.source,
            message=self.message,
            detail=self.detail,
            error_hash=self.error_hash,
            duplicate_count=self.duplicate_count,
            creation_date=self.creation_date,
            last_log_date=self.last_log_date,
            deletion_date=self.deletion_date,
            status_code=self.status_code,
            is_protected=self.is_protected,
            custom_data=dict(self.custom_data) if self.custom_data is not None else None,
            sql=self.sql,
            server_variables=_copy_collection(self.server_variables),
            query_string=_copy_collection(self.query_string),
            form=_copy_collection(self.form),
            cookies=_copy_collection(self.cookies),
            request_headers=_copy_collection(self.request_headers),
            rollup_per_server=self.rollup_per_server,
            is_duplicate=self.is_duplicate,
            full_json=self.full_json,
            exception=self.exception,
        )
        copy._derived = dict(self._derived)
        return copy

    def to_json(self) -> str:
        """
        Serialize to persistable JSON.

        Collections are written as arrays of {"name", "value"} objects so
        repeated names and their order survive.

        Returns:
            Compact JSON document
        """
        return self.model_dump_json()

    @classmethod
    def from_json(cls, json_text: str) -> "ErrorRecord":
        """
        Deserialize persistable JSON.

        Args:
            json_text: Document produced by to_json()

        Returns:
            ErrorRecord with full_json set to the input

        Raises:
            ErrorParseError: If the document is not valid error JSON
        """
        try:
            data = json.loads(json_text)
        except (TypeError, json.JSONDecodeError) as e:
            raise ErrorParseError(f"Invalid error JSON: {e}") from e

        if not isinstance(data, dict):
            raise ErrorParseError("Error JSON must be an object")

        try:
            error = cls.model_validate(data)
        except ValidationError as e:
            raise ErrorParseError(f"Invalid error JSON: {e}") from e

        error.full_json = json_text
        return error

    def write_detailed_json(self, sink: TextIO) -> None:
        """
        Write the detailed JSON form to a text sink.

        Args:
            sink: Writable text stream (e.g., io.StringIO)
        """
        with DetailedJsonWriter(sink) as w:
            w.write_property("guid", str(self.guid))
            w.write_property("application_name", self.application_name)
            w.write_property("creation_date", to_epoch_seconds(self.creation_date))
            w.write_property("deletion_date", to_epoch_seconds(self.deletion_date))
            w.write_property("detail", self.detail)
            w.write_property("duplicate_count", self.duplicate_count)
            w.write_property("error_hash", self.error_hash)
            w.write_property("http_method", self.http_method)
            w.write_property("host", self.host)
            w.write_property("ip_address", self.ip_address)
            w.write_property("is_protected", self.is_protected)
            w.write_property("machine_name", self.machine_name)
            w.write_property("message", self.message)
            w.write_property("sql", self.sql)
            w.write_property("source", self.source)
            w.write_property("status_code", self.status_code)
            w.write_property("type", self.type)
            w.write_property("url", self.url)
            w.write_pairs("custom_data", self.custom_data.items() if self.custom_data is not None else None)
            w.write_pairs("server_variables", self.server_variables)
            w.write_pairs("cookies", self.cookies)
            w.write_pairs("request_headers", self.request_headers)
            w.write_pairs("query_string", self.query_string)
            w.write_pairs("form", self.form)

    def to_detailed_json(self) -> str:
        """Return the detailed JSON form as a string."""
        sink = io.StringIO()
        self.write_detailed_json(sink)
        return sink.getvalue()
