"""
Shared Configuration Enumerations

Closed sets of tags consumed by the time series engines.

Design Principles:
- Every tag is an Enum member; string names from configuration files are
  converted once, at the boundary, with parse()
- Unknown names are rejected with InvalidParameterError
"""

from enum import Enum

from tsdata.errors import InvalidParameterError


def parse_enum(enum_class, value):
    """
    Convert a member, member name or display value to an enum member.

    Matching is case-insensitive.

    Raises:
        InvalidParameterError: If the value does not name a member
    """
    if isinstance(value, enum_class):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_class:
            if wanted in (member.name.lower(), str(member.value).lower()):
                return member
    choices = [str(member.value) for member in enum_class]
    raise InvalidParameterError(
        f"Invalid {enum_class.__name__} '{value}'. Must be one of: {choices}"
    )


class YearType(Enum):
    """
    Year definitions used to label annual output.

    Each value is (display name, start year offset, start month,
    end year offset, end month). The start year offset is the calendar year
    offset in which the year starts; -1 means the year starts in the previous
    calendar year (e.g., water year 2000 starts October 1999).
    """
    CALENDAR = ("Calendar", 0, 1, 0, 12)
    NOV_TO_OCT = ("NovToOct", -1, 11, 0, 10)
    WATER = ("Water", -1, 10, 0, 9)
    YEAR_MAY_TO_APR = ("YearMayToApr", 0, 5, 1, 4)

    def __init__(self, display_name, start_year_offset, start_month, end_year_offset, end_month):
        self.display_name = display_name
        self.start_year_offset = start_year_offset
        self.start_month = start_month
        self.end_year_offset = end_year_offset
        self.end_month = end_month

    @classmethod
    def parse(cls, value) -> "YearType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value.strip().lower() in (member.name.lower(), member.display_name.lower()):
                    return member
        choices = [member.display_name for member in cls]
        raise InvalidParameterError(f"Invalid YearType '{value}'. Must be one of: {choices}")

    def __str__(self):
        return self.display_name


class TSFunctionType(str, Enum):
    """
    Functions used to assign data values from the date/time of each value.
    """
    DATE_YYYY = "DateYYYY"
    DATE_YYYYMM = "DateYYYYMM"
    DATE_YYYYMMDD = "DateYYYYMMDD"
    DATETIME_YYYYMMDD_HH = "DateTimeYYYYMMDD_hh"
    DATETIME_YYYYMMDD_HHMM = "DateTimeYYYYMMDD_hhmm"
    RANDOM_0_1 = "Random_0_1"
    RANDOM_0_1000 = "Random_0_1000"

    @classmethod
    def parse(cls, value) -> "TSFunctionType":
        return parse_enum(cls, value)
