"""
Time Series Traces

Splits a multi-year time series into traces: one sub-series per year (or per
trace length) starting at a reference date within the year. Traces can keep
their original dates, in which case plotting all traces reproduces the
original series, or be shifted to start at the reference date so that the
traces overlay for comparison across years.

Design Principles:
- The input series is never modified; each trace is a new series with a
  copy of the input header
- Trace periods are computed with exact calendar rules: a trace ends one data
  interval before the next trace starts
- Each trace is labeled with a sequence id (the trace year, adjusted for the
  output year type) used in alias and description legends
- Irregular series are not supported
"""

import logging
from typing import List, NamedTuple, Optional

from metrics.schemas import ShiftDataHow, TraceConfig
from tsdata.datetime_util import CalendarDateTime
from tsdata.errors import InvalidParameterError
from tsdata.interval import TimeInterval
from tsdata.schemas import YearType
from tsdata.series import (
    RegularTimeSeries,
    TimeSeries,
    get_valid_period,
    require_regular,
    require_time_series,
)

logger = logging.getLogger(__name__)


DEFAULT_TRACE_LENGTH = "1Year"
DEFAULT_ALIAS_FORMAT = "%L_%z"
DEFAULT_DESCRIPTION_FORMAT = "%z trace: %D"


class TracePeriod(NamedTuple):
    """Input and output periods of one trace."""
    sequence_id: str
    date1_in: CalendarDateTime
    date2_in: CalendarDateTime
    date1_out: CalendarDateTime
    date2_out: CalendarDateTime


def _parse_trace_length(trace_length) -> TimeInterval:
    if trace_length is None or trace_length == "":
        trace_length = DEFAULT_TRACE_LENGTH
    if isinstance(trace_length, TimeInterval):
        interval = trace_length
    else:
        try:
            interval = TimeInterval.parse(trace_length)
        except ValueError as e:
            raise InvalidParameterError(f"Invalid trace length '{trace_length}': {e}")
    if not interval.is_regular:
        raise InvalidParameterError("Trace length must be a regular interval (e.g., 1Year)")
    return interval


def get_reference_date(ts: TimeSeries, reference_date=None) -> CalendarDateTime:
    """
    Return the reference date at the precision of the series.

    The default is January 1 of the first year of the series.

    Raises:
        InvalidParameterError: If the reference date is February 29, which
            does not exist in every year
    """
    if reference_date is None:
        reference = CalendarDateTime(ts.start.year, 1, 1, precision=ts.precision)
    else:
        if isinstance(reference_date, str):
            reference_date = CalendarDateTime.parse(reference_date)
        reference = ts.to_precision(reference_date)
    if reference.month == 2 and reference.day == 29:
        raise InvalidParameterError(
            "A February 29 reference date does not exist in every year; use February 28 or March 1"
        )
    return reference


def _end_of_trace(start: CalendarDateTime, trace_length: TimeInterval, ts: TimeSeries) -> CalendarDateTime:
    # Adding the trace length gives the start of the next trace
    return ts.interval.add_to(trace_length.add_to(start), -1)


def plan_trace_periods(
    ts: TimeSeries,
    trace_length=DEFAULT_TRACE_LENGTH,
    reference_date=None,
    output_year_type=YearType.CALENDAR,
    shift_data_how=ShiftDataHow.NO_SHIFT,
    input_start=None,
    input_end=None
) -> List[TracePeriod]:
    """
    Compute the input and output periods of every trace.

    The first trace starts at the last reference position on or before the
    input start and each following trace starts one trace length later. A trace that ends before the input
    period is skipped; processing stops at the first trace that starts after
    the input period.

    Returns:
        List of TracePeriod in time order

    Raises:
        InvalidParameterError: If a parameter is invalid or a trace period
            cannot be represented with calendar rules
    """
    trace_interval = _parse_trace_length(trace_length)
    output_year_type = YearType.parse(output_year_type)
    shift_data_how = ShiftDataHow.parse(shift_data_how)

    start, end = get_valid_period(ts, input_start, input_end)
    reference = get_reference_date(ts, reference_date)
    logger.info(f"Period for input time series is {start} to {end}, reference date is {reference}")

    # First trace covers the input start, so a partial first year is not dropped
    first = reference.replace(year=start.year)
    try:
        while first > start:
            first = trace_interval.add_to(first, -1)
    except ValueError as e:
        raise InvalidParameterError(f"Cannot align reference {reference} to input start {start}: {e}")

    periods = []
    itrace = 0
    while True:
        try:
            date1_in = trace_interval.add_to(first, itrace)
            date2_in = _end_of_trace(date1_in, trace_interval, ts)
            if shift_data_how == ShiftDataHow.SHIFT_TO_REFERENCE:
                date1_out = reference
            else:
                date1_out = date1_in
            date2_out = _end_of_trace(date1_out, trace_interval, ts)
        except ValueError as e:
            raise InvalidParameterError(
                f"Cannot compute trace {itrace} from reference {reference} with trace length "
                f"{trace_interval}: {e}"
            )
        if date2_in < date1_in:
            raise InvalidParameterError(
                f"Trace length {trace_interval} is shorter than the data interval {ts.interval}"
            )
        itrace += 1

        if date2_in < start:
            logger.info(f"Skipping trace {date1_in} to {date2_in} (before input start {start})")
            continue
        if date1_in > end:
            logger.debug(f"Trace starting {date1_in} is after input end {end}; done")
            break

        sequence_id = str(date1_in.year - output_year_type.start_year_offset)
        periods.append(TracePeriod(sequence_id, date1_in, date2_in, date1_out, date2_out))

    return periods


def create_traces(
    ts: TimeSeries,
    trace_length=DEFAULT_TRACE_LENGTH,
    reference_date=None,
    output_year_type=YearType.CALENDAR,
    shift_data_how=ShiftDataHow.NO_SHIFT,
    input_start=None,
    input_end=None,
    alias_format: Optional[str] = None,
    description_format: Optional[str] = None,
    create_data: bool = True
) -> List[RegularTimeSeries]:
    """
    Create traces from a time series.

    Args:
        ts: Regular input series (not modified)
        trace_length: Interval string for the length of each trace (default "1Year")
        reference_date: Date/time in the year at which traces start
            (default: January 1)
        output_year_type: YearType used to compute trace sequence ids
            (e.g., Water: the trace starting October 1999 is labeled 2000)
        shift_data_how: NoShift keeps the original dates; ShiftToReference
            moves every trace to start at the reference date
        input_start: First date/time of the input to process (default: series start)
        input_end: Last date/time of the input to process (default: series end)
        alias_format: Legend format for each trace alias (default "%L_%z")
        description_format: Legend format for each trace description
            (default "%z trace: %D")
        create_data: If False, only set the trace headers and periods

    Returns:
        List of trace time series in time order

    Raises:
        MissingInputError: If ts is None
        IrregularTimeSeriesNotSupportedError: If ts is irregular
        InvalidParameterError: If a parameter is invalid

    Examples:
        >>> ts = RegularTimeSeries.from_values("1Month", CalendarDateTime(2000, 1, 1), list(range(24)), location="A")
        >>> [trace.alias for trace in create_traces(ts)]
        ['A_2000', 'A_2001']
    """
    ts = require_time_series(ts)
    require_regular(ts, "Creating traces")

    if not alias_format:
        alias_format = DEFAULT_ALIAS_FORMAT
    if not description_format:
        description_format = DEFAULT_DESCRIPTION_FORMAT

    periods = plan_trace_periods(
        ts,
        trace_length=trace_length,
        reference_date=reference_date,
        output_year_type=output_year_type,
        shift_data_how=shift_data_how,
        input_start=input_start,
        input_end=input_end
    )

    traces = []
    for period in periods:
        trace = ts.copy_header()
        trace.sequence_id = period.sequence_id
        trace.description = trace.format_legend(description_format)
        # Alias last so it can use the other fields
        trace.alias = trace.format_legend(alias_format)
        trace.add_to_genesis(
            f"Split trace out of time series for input: {period.date1_in} to {period.date2_in}, "
            f"output: {period.date1_out} to {period.date2_out}"
        )
        trace.set_period(period.date1_out, period.date2_out)

        if create_data:
            trace.allocate_data_space()
            # Parallel iteration keeps the sequence continuous over leap years
            outputs = iter(trace.iterate())
            for _, value in ts.iterate(period.date1_in, period.date2_in):
                next_output = next(outputs, None)
                if next_output is None:
                    # Output period is shorter (e.g., leap year shifted to a non-leap year)
                    break
                trace.set(next_output[0], value)

        logger.debug(
            f"Created trace {period.sequence_id} for input {period.date1_in} to {period.date2_in}, "
            f"output {period.date1_out} to {period.date2_out}"
        )
        traces.append(trace)

    logger.info(f"Created {len(traces)} traces from {ts.identifier}")
    return traces


def create_traces_with_config(
    ts: TimeSeries,
    config: TraceConfig,
    reference_date=None,
    input_start=None,
    input_end=None,
    create_data: bool = True
) -> List[RegularTimeSeries]:
    """
    Create traces using a TraceConfig (e.g., from load_default_trace_config()).
    """
    return create_traces(
        ts,
        trace_length=config.trace_length,
        reference_date=reference_date,
        output_year_type=config.output_year_type,
        shift_data_how=config.shift_data_how,
        input_start=input_start,
        input_end=input_end,
        alias_format=config.alias_format,
        description_format=config.description_format,
        create_data=create_data
    )


if __name__ == "__main__":
    import os

    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))

    # Example usage
    print("Trace Examples")
    print("=" * 60)

    monthly = RegularTimeSeries.from_values(
        "1Month",
        CalendarDateTime.parse("1999-10"),
        [float(i) for i in range(30)],
        location="09163500",
        description="Monthly volume"
    )

    for trace in create_traces(
        monthly,
        reference_date=CalendarDateTime.parse("2000-10"),
        output_year_type="Water",
        shift_data_how="ShiftToReference"
    ):
        print(f"\n{trace.alias}: {trace.description} ({trace.start} to {trace.end})")
        print(f"  {trace.values.tolist()}")
