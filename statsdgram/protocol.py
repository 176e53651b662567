"""
StatsD line protocol

Supports the datadog extension for sample rates and tags:

  metric.name:value|type|@sample_rate|#tag1:value,tag2

  http://docs.datadoghq.com/guides/dogstatsd/#datagram-format

Names and tags are not escaped, callers must not use the reserved
characters ":", "|", ",", "#" and "@" in them.

"""
import decimal
import enum
import random
from typing import Callable, Optional, Sequence


class MetricType(str, enum.Enum):
    counter = "c"
    gauge = "g"
    timing = "ms"
    histogram = "h"
    set = "s"


def should_sample(sample_rate: Optional[float], draw: Optional[Callable[[], float]] = None) -> bool:
    """Decide whether a metric with the given sample rate is sent

    A missing (or zero) rate, and any rate of 1 or more, always sends.
    """
    if not sample_rate or sample_rate >= 1:
        return True
    return (draw or random.random)() < sample_rate


def format_sample_rate(sample_rate) -> str:
    # collectors expect plain decimal notation, never "1e-05"
    text = str(sample_rate)
    if "e" in text.lower():
        text = format(decimal.Decimal(text), "f")
    return text


def merge_tags(tags: Optional[Sequence[str]], global_tags: Optional[Sequence[str]]) -> list:
    merged = []
    if tags:
        merged.extend(tags)
    if global_tags:
        merged.extend(global_tags)
    return merged


def encode_metric(
    name: str,
    value,
    metric_type: MetricType,
    *,
    sample_rate: Optional[float] = None,
    tags: Optional[Sequence[str]] = None,
    global_tags: Optional[Sequence[str]] = None,
    prefix: str = "",
    suffix: str = "",
) -> str:
    parts = [prefix, name, suffix, ":", str(value), "|", MetricType(metric_type).value]
    if sample_rate and sample_rate < 1:
        parts.append("|@{}".format(format_sample_rate(sample_rate)))
    merged_tags = merge_tags(tags, global_tags)
    if merged_tags:
        parts.append("|#")
        parts.append(",".join(merged_tags))
    return "".join(parts)
