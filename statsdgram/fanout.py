"""
statsdgram - sending one metric value under several names

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import numbers
import threading
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from statsdgram.transport import SendCallback

StatNames = Union[str, Sequence[str]]


def is_sample_rate(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def is_tags(value: Any) -> bool:
    return isinstance(value, (str, list, tuple, Mapping))


def resolve_optional_arguments(sample_rate: Any = None, tags: Any = None,
                               callback: Any = None) -> Tuple[Optional[float], Any, Optional[SendCallback]]:
    """Reassign positional arguments given out of their usual slots

    Allows both increment("x", 1, ["tag"]) and increment("x", 1, None, cb):
    anything but a number in the sample_rate slot moves over to tags, and
    anything that isn't a tag collection in the tags slot becomes the callback.
    A value only moves into a slot that is still empty, so arguments given by
    keyword are never overwritten.
    """
    if sample_rate is not None and not is_sample_rate(sample_rate):
        if tags is None:
            tags = sample_rate
        elif callback is None:
            callback = tags
            tags = sample_rate
        sample_rate = None
    if tags is not None and not is_tags(tags):
        if callback is None:
            callback = tags
        tags = None
    if not callable(callback):
        # a leftover value with no slot to go to is ignored, like a missing callback
        callback = None
    return sample_rate, tags, callback


class CallbackAggregator:
    """Turns the completions of several sends into a single callback

    The callback is called exactly once: with the first error reported, or
    with the sum of sent bytes when all expected sends have completed.
    """
    def __init__(self, expected: int, callback: SendCallback):
        self.expected = expected
        self.callback = callback
        self.lock = threading.Lock()
        self.completed = 0
        self.sent_bytes = 0
        self.called_back = False

    def __call__(self, error: Optional[Exception], sent_bytes: int = 0) -> None:
        with self.lock:
            self.completed += 1
            if self.called_back:
                return
            if error is None:
                self.sent_bytes += sent_bytes
                if self.completed < self.expected:
                    return
            self.called_back = True
            result = (error, 0 if error is not None else self.sent_bytes)
        self.callback(*result)


def send_all(
    send: Callable[..., None],
    stat: StatNames,
    value: Any,
    metric_type: str,
    *,
    sample_rate: Optional[float] = None,
    tags: Any = None,
    callback: Optional[SendCallback] = None,
) -> None:
    """Send value under every name in stat, or just the one if stat is a string"""
    if isinstance(stat, str):
        send(stat, value, metric_type, sample_rate=sample_rate, tags=tags, callback=callback)
        return

    names = list(stat)
    if callback is not None:
        if not names:
            callback(None, 0)
            return
        callback = CallbackAggregator(len(names), callback)
    for name in names:
        send(name, value, metric_type, sample_rate=sample_rate, tags=tags, callback=callback)
