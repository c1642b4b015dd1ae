"""
Exception chain walking.

Turns an exception and its chained causes into the fields of an error
record:
- the representative exception used for type, message and source
- the full rendered traceback of the whole chain
- custom data and SQL text gathered from every level of the chain
"""

import re
import sys
import traceback
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Optional, Pattern, Union

from faultline.extractors.manager import ExtractorManager, default_extractor_manager
from faultline.models.chain import ChainSummary
from faultline.utils.logging import get_logger

logger = get_logger(__name__)

# Data key holding the SQL statement that was executing when the error occurred
SQL_DATA_KEY = "SQL"

# Attribute used to attach auxiliary data to an exception
EXCEPTION_DATA_ATTR = "data"


def is_builtin_exception(exception: BaseException) -> bool:
    """
    Check whether the exception type ships with the Python runtime.

    Args:
        exception: Exception to classify

    Returns:
        True for builtins and standard library exception types, False for
        application and third-party types
    """
    module = type(exception).__module__ or ""
    top_level = module.split(".", 1)[0]
    return top_level == "builtins" or top_level in sys.stdlib_module_names


def get_exception_data(exception: BaseException) -> Optional[Mapping]:
    """Return the auxiliary data mapping attached to an exception, if any."""
    data = getattr(exception, EXCEPTION_DATA_ATTR, None)
    return data if isinstance(data, Mapping) else None


def add_exception_data(exception: BaseException, key: str, value: Any) -> BaseException:
    """
    Attach a piece of auxiliary data to an exception.

    Example:
        try:
            cursor.execute(query)
        except DatabaseError as e:
            raise add_exception_data(e, "SQL", query)

    Args:
        exception: Exception to annotate
        key: Data key
        value: Data value

    Returns:
        The same exception, for use in a raise statement
    """
    data = getattr(exception, EXCEPTION_DATA_ATTR, None)
    if not isinstance(data, dict):
        data = {}
        setattr(exception, EXCEPTION_DATA_ATTR, data)
    data[key] = value
    return exception


def exception_type_name(exception: BaseException) -> str:
    """Fully qualified type name; builtins are reported by bare name."""
    cls = type(exception)
    if cls.__module__ in (None, "builtins"):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def exception_source(exception: BaseException) -> Optional[str]:
    """Module of the innermost traceback frame, i.e. where the exception was raised."""
    tb = exception.__traceback__
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_globals.get("__name__")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


class ChainWalker:
    """
    Walks an exception chain and summarizes it.

    The classification predicate, the data accessor and the set of
    diagnostic extractors are all injectable, so the walker can be adapted
    to other runtimes and database drivers.
    """

    def __init__(
        self,
        extractors: Optional[ExtractorManager] = None,
        data_include_pattern: Optional[Union[str, Pattern]] = None,
        is_intrinsic: Callable[[BaseException], bool] = is_builtin_exception,
        data_accessor: Callable[[BaseException], Optional[Mapping]] = get_exception_data
    ):
        """
        Initialize the chain walker.

        Args:
            extractors: Diagnostic extractors to run on each level. Defaults
                to the built-in SQL Server, PostgreSQL and SQLite extractors.
            data_include_pattern: Regex selecting which auxiliary data keys
                are copied into custom data. None copies nothing.
            is_intrinsic: Predicate deciding whether an exception is a
                runtime type that should be resolved to its innermost cause
            data_accessor: Returns the auxiliary data mapping of an exception
        """
        self.extractors = extractors if extractors is not None else default_extractor_manager()
        if isinstance(data_include_pattern, str):
            data_include_pattern = re.compile(data_include_pattern)
        self.data_include_pattern: Optional[Pattern] = data_include_pattern
        self.is_intrinsic = is_intrinsic
        self.data_accessor = data_accessor

    @staticmethod
    def iter_chain(exception: BaseException) -> Iterator[BaseException]:
        """
        Iterate over an exception chain from the root to the innermost cause.

        Follows ``__cause__``, falling back to ``__context__`` unless it was
        suppressed with ``raise ... from None``.

        Args:
            exception: Root exception

        Yields:
            Each exception in the chain, root first
        """
        seen = set()
        current: Optional[BaseException] = exception
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            yield current
            if current.__cause__ is not None:
                current = current.__cause__
            elif not current.__suppress_context__:
                current = current.__context__
            else:
                current = None

    def base_exception(self, exception: BaseException) -> BaseException:
        """Return the innermost exception of the chain."""
        innermost = exception
        for innermost in self.iter_chain(exception):
            pass
        return innermost

    def representative(self, exception: BaseException) -> BaseException:
        """
        Choose the exception that supplies type, message and source.

        Runtime exceptions are usually wrappers, so they are resolved to the
        innermost cause. Application exceptions usually add context of their
        own, so the root is kept.
        """
        if self.is_intrinsic(exception):
            return self.base_exception(exception)
        return exception

    def walk(self, exception: BaseException) -> ChainSummary:
        """
        Summarize an exception chain.

        Args:
            exception: Root exception

        Returns:
            ChainSummary with classification, detail and merged diagnostics

        Raises:
            ValueError: If exception is None
        """
        if exception is None:
            raise ValueError("exception must not be None")

        chosen = self.representative(exception)
        detail = "".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        )

        custom_data: Dict[str, str] = {}
        sql: Optional[str] = None

        for level in self.iter_chain(exception):
            custom_data.update(self.extractors.extract(level))

            data = self.data_accessor(level)
            if data is None:
                continue

            if isinstance(data.get(SQL_DATA_KEY), str):
                sql = data[SQL_DATA_KEY]

            if self.data_include_pattern is not None:
                for key, value in data.items():
                    key = str(key)
                    if self.data_include_pattern.search(key):
                        custom_data[key] = _stringify(value)

        logger.debug(
            f"Walked exception chain rooted at {exception_type_name(exception)}",
            extra={"representative": exception_type_name(chosen)}
        )

        return ChainSummary(
            type=exception_type_name(chosen),
            message=str(chosen),
            source=exception_source(chosen),
            detail=detail,
            custom_data=custom_data,
            sql=sql,
        )
