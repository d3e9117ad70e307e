import dataclasses

import pytest
from nats_options.errors import InvalidNameError, OutOfRangeError
from nats_options.js import (
    DEFAULT_API_PREFIX,
    JetStreamOptions,
    PullSubscribeOptions,
    PushSubscribeOptions,
)

from tests.utils import (
    HAS_DASH,
    HAS_DOLLAR,
    HAS_DOT,
    HAS_GT,
    HAS_SPACE,
    HAS_STAR,
    HAS_TAB,
    PLAIN,
)


def test_jetstream_options_defaults():
    """Test the default API prefix and request timeout."""
    opts = JetStreamOptions()
    assert opts.prefix == DEFAULT_API_PREFIX == "$JS.API."
    assert opts.is_default_prefix
    assert opts.request_timeout == 2.0

    assert JetStreamOptions(prefix="").is_default_prefix


@pytest.mark.parametrize(
    "prefix, expected",
    [("pre", "pre."), ("pre.", "pre."), (HAS_DOT, HAS_DOT + "."), (HAS_DASH, HAS_DASH + ".")],
)
def test_jetstream_prefix(prefix, expected):
    """Test that a custom prefix ends with a dot."""
    opts = JetStreamOptions(prefix=prefix)
    assert opts.prefix == expected
    assert not opts.is_default_prefix


@pytest.mark.parametrize("prefix", [HAS_STAR, HAS_GT, HAS_DOLLAR, HAS_SPACE, HAS_TAB])
def test_jetstream_prefix_invalid(prefix):
    """Test that wildcards, '$' and whitespace are rejected."""
    with pytest.raises(InvalidNameError):
        JetStreamOptions(prefix=prefix)


def test_jetstream_request_timeout():
    """Test that the request timeout must be positive."""
    assert JetStreamOptions(request_timeout=5).request_timeout == 5
    for timeout in (0, -1):
        with pytest.raises(OutOfRangeError):
            JetStreamOptions(request_timeout=timeout)


def test_push_subscribe_options():
    opts = PushSubscribeOptions(stream=PLAIN, durable=HAS_DASH,
                                deliver_subject="deliver.here")
    assert opts.stream == PLAIN
    assert opts.durable == HAS_DASH
    assert opts.deliver_subject == "deliver.here"

    opts = PushSubscribeOptions(stream="", durable="", deliver_subject="")
    assert opts.stream is None
    assert opts.durable is None
    assert opts.deliver_subject is None

    with pytest.raises(InvalidNameError):
        PushSubscribeOptions(stream=HAS_DOT)
    with pytest.raises(InvalidNameError):
        PushSubscribeOptions(durable=HAS_GT)
    with pytest.raises(InvalidNameError):
        PushSubscribeOptions(deliver_subject=HAS_SPACE)


def test_push_subscribe_bind():
    """Test that binding requires a stream name."""
    assert PushSubscribeOptions.bind(PLAIN).stream == PLAIN
    for stream in ("", None):
        with pytest.raises(InvalidNameError):
            PushSubscribeOptions.bind(stream)
    with pytest.raises(InvalidNameError):
        PushSubscribeOptions.bind(HAS_STAR)


def test_pull_subscribe_options():
    """Test that pull subscriptions need a durable and a batch size in range."""
    opts = PullSubscribeOptions(durable=PLAIN)
    assert opts.durable == PLAIN
    assert opts.stream is None
    assert opts.batch_size == 1

    assert PullSubscribeOptions(durable=PLAIN, batch_size=256).batch_size == 256

    for durable in ("", None, HAS_DOT):
        with pytest.raises(InvalidNameError):
            PullSubscribeOptions(durable=durable)
    for size in (0, 257):
        with pytest.raises(OutOfRangeError):
            PullSubscribeOptions(durable=PLAIN, batch_size=size)


def test_js_options_are_frozen():
    opts = JetStreamOptions()
    with pytest.raises(dataclasses.FrozenInstanceError):
        opts.prefix = "other."
