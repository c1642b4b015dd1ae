"""Ambient request context data model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .name_value import NameValueCollection


class RequestContext(BaseModel):
    """
    Request data supplied by the host environment at capture time.

    Scalar fields left as None are derived later from server_variables.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: Optional[str] = None
    url: Optional[str] = None
    http_method: Optional[str] = None
    ip_address: Optional[str] = None
    status_code: Optional[int] = None

    server_variables: Optional[NameValueCollection] = None
    query_string: Optional[NameValueCollection] = None
    form: Optional[NameValueCollection] = None
    cookies: Optional[NameValueCollection] = None
    request_headers: Optional[NameValueCollection] = None
