"""Tests for the options builder."""

import dataclasses
import ssl
from concurrent.futures import ThreadPoolExecutor

import pytest
from nats_options import DEFAULT_URL, Options
from nats_options.errors import (
    ConfigConflictError,
    InvalidNameError,
    InvalidURIError,
    MissingRequiredError,
    OutOfRangeError,
    PlatformUnavailableError,
)
from nats_options.options import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_INBOX_PREFIX,
    DEFAULT_MAX_CONTROL_LINE,
    DEFAULT_MAX_PINGS_OUT,
    DEFAULT_MAX_RECONNECT,
    DEFAULT_PING_INTERVAL,
    DEFAULT_RECONNECT_BUF_SIZE,
    DEFAULT_RECONNECT_WAIT,
    DEFAULT_REQUEST_CLEANUP_INTERVAL,
    Builder,
)
from nats_options.transport import TcpDataPort

from tests.utils import (
    HAS_DOLLAR,
    HAS_GT,
    HAS_STAR,
    RecordingAuthHandler,
    get_config_file,
)


def test_defaults():
    """Test the values of an options built without any settings."""
    opts = Options.builder().build()
    assert opts.server_urls == [DEFAULT_URL]
    assert opts.randomize_servers
    assert opts.connection_name is None
    assert not opts.verbose
    assert not opts.pedantic
    assert not opts.no_echo
    assert not opts.utf8_support
    assert not opts.tls_required
    assert opts.ssl_context is None
    assert opts.max_reconnect == DEFAULT_MAX_RECONNECT == 60
    assert opts.reconnect_wait == DEFAULT_RECONNECT_WAIT
    assert opts.connection_timeout == DEFAULT_CONNECTION_TIMEOUT
    assert opts.ping_interval == DEFAULT_PING_INTERVAL
    assert opts.request_cleanup_interval == DEFAULT_REQUEST_CLEANUP_INTERVAL
    assert opts.max_pings_out == DEFAULT_MAX_PINGS_OUT
    assert opts.reconnect_buffer_size == DEFAULT_RECONNECT_BUF_SIZE
    assert opts.max_control_line == DEFAULT_MAX_CONTROL_LINE
    assert opts.buffer_size == DEFAULT_BUFFER_SIZE
    assert opts.inbox_prefix == DEFAULT_INBOX_PREFIX
    assert opts.username is None
    assert opts.password is None
    assert opts.token is None
    assert opts.auth_handler is None
    assert opts.error_listener is None
    assert opts.connection_listener is None
    assert not opts.old_request_style
    assert not opts.track_advanced_stats
    assert opts.data_port_factory is TcpDataPort


def test_fluent_setters():
    """Test that every setter ends up in the built options."""
    opts = (
        Options.builder()
        .server("nats://a:4222")
        .no_randomize()
        .no_echo()
        .support_utf8_subjects()
        .connection_name("orders")
        .verbose()
        .pedantic()
        .turn_on_advanced_stats()
        .old_request_style()
        .max_reconnects(5)
        .reconnect_wait(0.5)
        .max_control_line(4096)
        .connection_timeout(10)
        .ping_interval(30)
        .request_cleanup_interval(1)
        .max_pings_out(4)
        .buffer_size(1024)
        .reconnect_buffer_size(0)
        .user_info("derek", "s3cr3t")
        .build()
    )
    assert not opts.randomize_servers
    assert opts.no_echo
    assert opts.utf8_support
    assert opts.connection_name == "orders"
    assert opts.verbose
    assert opts.pedantic
    assert opts.track_advanced_stats
    assert opts.old_request_style
    assert opts.max_reconnect == 5
    assert opts.reconnect_wait == 0.5
    assert opts.max_control_line == 4096
    assert opts.connection_timeout == 10
    assert opts.ping_interval == 30
    assert opts.request_cleanup_interval == 1
    assert opts.max_pings_out == 4
    assert opts.buffer_size == 1024
    assert opts.reconnect_buffer_size == 0
    assert opts.username == "derek"
    assert opts.password == "s3cr3t"


def test_servers_keep_insertion_order():
    """Test that servers are kept in the order they were added."""
    opts = (
        Options.builder()
        .server("nats://c:4222, b")
        .servers(["a:4333", None, ""])
        .server("tls://d")
        .build()
    )
    assert opts.server_urls == [
        "nats://c:4222",
        "nats://b:4222",
        "nats://a:4333",
        "tls://d:4222",
    ]


def test_invalid_server():
    """Test that invalid servers fail as soon as they are added."""
    with pytest.raises(InvalidURIError):
        Options.builder().server("http://localhost:4222")


def test_username_and_token_conflict():
    """Test that a username and a token cannot both be set."""
    with pytest.raises(ConfigConflictError) as exc_info:
        Options.builder().user_info("derek", "pw").token("t0k3n").build()
    assert str(exc_info.value) == "nats: options can't have both token and username"

    with pytest.raises(ConfigConflictError):
        Options.builder().token("t0k3n").user_info("derek", None).build()


def test_password_and_token_do_not_conflict():
    """Test that only a username conflicts with a token."""
    opts = Options.builder().user_info(None, "pw").token("t0k3n").build()
    assert opts.token == "t0k3n"
    assert opts.password == "pw"


def test_options_rejects_conflict_directly():
    """Test that options constructed without the builder are checked too."""
    servers = Options.builder().build().servers
    with pytest.raises(ConfigConflictError):
        Options(servers=servers, username="derek", token="t0k3n")
    with pytest.raises(MissingRequiredError):
        Options(servers=())


def test_options_normalized_directly():
    """Test that direct construction applies the build() rules."""
    servers = Options.builder().build().servers
    opts = Options(
        servers=list(servers),
        max_reconnect=-1,
        reconnect_wait=None,
        inbox_prefix="direct",
    )
    assert opts.servers == servers
    assert opts.max_reconnect is None
    assert opts.reconnect_wait == 0.0
    assert opts.inbox_prefix == "direct."

    for kwargs in ({"max_pings_out": 0}, {"buffer_size": 0},
                   {"connection_timeout": 0}, {"max_reconnect": -3},
                   {"ping_interval": -1}):
        with pytest.raises(OutOfRangeError):
            Options(servers=servers, **kwargs)
    with pytest.raises(InvalidNameError):
        Options(servers=servers, inbox_prefix=".")


@pytest.mark.parametrize("prefix", ["custom", "custom.", "custom..."])
def test_inbox_prefix_trailing_dot(prefix):
    """Test that the inbox prefix ends with exactly one dot."""
    opts = Options.builder().inbox_prefix(prefix).build()
    assert opts.inbox_prefix == "custom."


@pytest.mark.parametrize(
    "prefix", ["", None, ".", "...", HAS_STAR, HAS_GT, HAS_DOLLAR, "a b"]
)
def test_inbox_prefix_invalid(prefix):
    """Test that invalid inbox prefixes are rejected."""
    with pytest.raises(InvalidNameError):
        Options.builder().inbox_prefix(prefix).build()


def test_tls_scheme_infers_default_context():
    """Test that a single tls:// server turns on verified TLS."""
    opts = Options.builder().server("tls://secure.example.com").build()
    assert opts.tls_required
    assert isinstance(opts.ssl_context, ssl.SSLContext)
    assert opts.ssl_context.verify_mode == ssl.CERT_REQUIRED
    assert opts.ssl_context.check_hostname


def test_opentls_scheme_infers_open_context():
    """Test that a single opentls:// server trusts any certificate."""
    opts = Options.builder().server("opentls://localhost:4443").build()
    assert opts.tls_required
    assert opts.ssl_context.verify_mode == ssl.CERT_NONE
    assert not opts.ssl_context.check_hostname


def test_tls_not_inferred_for_several_servers():
    """Test that the scheme only decides TLS for a single server."""
    opts = (
        Options.builder()
        .server("tls://a:4222")
        .server("tls://b:4222")
        .build()
    )
    assert not opts.tls_required
    assert opts.ssl_context is None


def test_explicit_context_wins():
    """Test that an explicit SSL context is never replaced."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    opts = (
        Options.builder()
        .server("opentls://localhost")
        .ssl_context(ctx)
        .build()
    )
    assert opts.ssl_context is ctx

    opts = Options.builder().server("nats://localhost").secure().build()
    assert opts.tls_required
    assert opts.ssl_context.verify_mode == ssl.CERT_REQUIRED

    opts = Options.builder().opentls().build()
    assert opts.ssl_context.verify_mode == ssl.CERT_NONE


def test_default_context_unavailable(monkeypatch):
    """Test that a missing platform SSL context is reported."""

    def raiser(*args, **kwargs):
        raise ssl.SSLError("no trust store")

    monkeypatch.setattr(ssl, "create_default_context", raiser)

    with pytest.raises(PlatformUnavailableError) as exc_info:
        Options.builder().server("tls://localhost").build()
    assert exc_info.value.capability == "default SSL context"
    assert isinstance(exc_info.value.__cause__, ssl.SSLError)

    b = Options.builder().secure()
    with pytest.raises(PlatformUnavailableError):
        b.build()


def test_last_tls_setting_wins():
    """Test that each TLS setter replaces the previous one."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    opts = Options.builder().ssl_context(ctx).opentls().build()
    assert opts.ssl_context is not ctx
    assert opts.ssl_context.verify_mode == ssl.CERT_NONE

    opts = Options.builder().opentls().ssl_context(ctx).build()
    assert opts.ssl_context is ctx

    opts = Options.builder().secure().ssl_context(None).build()
    assert not opts.tls_required


def test_tls_with_ca_file():
    """Test a verifying context trusting a given CA file."""
    opts = Options.builder().tls(ca_file=get_config_file("certs/ca.pem")).build()
    assert opts.tls_required
    assert opts.ssl_context.verify_mode == ssl.CERT_REQUIRED
    assert opts.ssl_context.minimum_version == ssl.TLSVersion.TLSv1_2
    subjects = [
        dict(rdn[0] for rdn in cert["subject"])
        for cert in opts.ssl_context.get_ca_certs()
    ]
    assert any(s.get("commonName") == "ISRG Root X1" for s in subjects)


def test_tls_missing_ca_file(tmp_path):
    """Test that CA files are only loaded on build."""
    b = Options.builder().tls(ca_file=str(tmp_path / "missing.pem"))
    with pytest.raises(OSError):
        b.build()


def test_max_reconnects():
    """Test unlimited, disabled and invalid reconnect counts."""
    assert Options.builder().max_reconnects(-1).build().max_reconnect is None
    assert Options.builder().max_reconnects(None).build().max_reconnect is None
    assert Options.builder().max_reconnects(0).build().max_reconnect == 0
    assert Options.builder().no_reconnect().build().max_reconnect == 0
    with pytest.raises(OutOfRangeError):
        Options.builder().max_reconnects(-2).build()


@pytest.mark.parametrize(
    "configure",
    [
        lambda b: b.max_pings_out(0),
        lambda b: b.buffer_size(0),
        lambda b: b.max_control_line(-1),
        lambda b: b.reconnect_buffer_size(-1),
        lambda b: b.connection_timeout(0),
        lambda b: b.connection_timeout(None),
        lambda b: b.reconnect_wait(-1),
        lambda b: b.ping_interval(-0.5),
        lambda b: b.request_cleanup_interval(-1),
    ],
)
def test_out_of_range(configure):
    """Test that numeric settings are bounds checked on build."""
    b = Options.builder()
    configure(b)
    with pytest.raises(OutOfRangeError):
        b.build()


def test_none_durations_become_zero():
    """Test that unset non-negative durations become zero."""
    opts = (
        Options.builder()
        .reconnect_wait(None)
        .ping_interval(None)
        .request_cleanup_interval(None)
        .build()
    )
    assert opts.reconnect_wait == 0.0
    assert opts.ping_interval == 0.0
    assert opts.request_cleanup_interval == 0.0


def test_build_leaves_builder_untouched():
    """Test that building twice gives independent options."""
    b = Options.builder().server("nats://a:4222").connection_name("one")
    first = b.build()
    b.server("nats://b:4222").connection_name("two")
    second = b.build()
    assert first.server_urls == ["nats://a:4222"]
    assert first.connection_name == "one"
    assert second.server_urls == ["nats://a:4222", "nats://b:4222"]
    assert second.connection_name == "two"


def test_options_are_frozen():
    """Test that built options cannot be modified."""
    opts = Options.builder().build()
    with pytest.raises(dataclasses.FrozenInstanceError):
        opts.connection_name = "changed"
    assert isinstance(opts.servers, tuple)


def test_builder_is_exported():
    """Test that the builder is reachable from Options."""
    assert isinstance(Options.builder(), Builder)


def test_auth_handler_helpers(creds_file, seed_file):
    """Test the credentials and nkey shortcuts."""
    opts = Options.builder().credentials(creds_file).build()
    assert opts.auth_handler.user_jwt()

    opts = Options.builder().nkey(seed_file).build()
    assert opts.auth_handler.public_key().startswith("U")

    handler = RecordingAuthHandler()
    opts = Options.builder().auth_handler(handler).build()
    assert opts.auth_handler is handler


def test_data_port_factory():
    """Test that the data port factory builds a new port each time."""
    opts = Options.builder().build()
    first = opts.build_data_port()
    second = opts.build_data_port()
    assert isinstance(first, TcpDataPort)
    assert first is not second


def test_concurrent_reads():
    """Test that options can be read from several threads at once."""
    opts = (
        Options.builder()
        .server("nats://a:4222,nats://b:4222")
        .connection_name("shared")
        .build()
    )

    def read(server):
        return opts.connect_options(server, include_auth=False)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(read, opts.servers * 50))

    assert len(set(results)) == 1
    assert '"name":"shared"' in results[0]
