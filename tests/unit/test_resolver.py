"""Unit tests for UpstreamResolver."""

import pytest
from unittest.mock import patch, MagicMock
import dns.resolver
import dns.exception

from src.models.address_set import AddressSet
from src.services.contracts import ResolutionError
from src.services.resolver import (
    DEFAULT_SINKHOLE_DETECTION_IPS,
    UpstreamResolver,
    categorize_failure,
)


UPSTREAMS = [("208.67.222.222", 53), ("208.67.220.220", 53)]


class TestUpstreamResolverInit:
    """Test UpstreamResolver construction."""

    def test_defaults(self):
        resolver = UpstreamResolver()

        assert resolver.upstreams == UPSTREAMS
        assert resolver.sinkhole_detection_ips == frozenset(
            DEFAULT_SINKHOLE_DETECTION_IPS
        )
        assert resolver.attempt_timeout == 3.0
        assert resolver.lifetime == 5.0

    def test_empty_upstreams_raises_error(self):
        with pytest.raises(ValueError, match="at least one nameserver"):
            UpstreamResolver(upstreams=[])

    def test_lifetime_shorter_than_attempt_raises_error(self):
        with pytest.raises(ValueError, match="lifetime"):
            UpstreamResolver(attempt_timeout=5, lifetime=2)


class TestUpstreamResolverLookup:
    """Test UpstreamResolver.lookup() method."""

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_returns_a_and_aaaa(self, mock_resolver_class):
        """Test that A and AAAA answers are grouped by kind."""
        mock_resolver = MagicMock()
        mock_resolver.resolve.side_effect = [
            ["93.184.216.34"],
            ["2606:2800:220:1:248:1893:25c8:1946"],
        ]
        mock_resolver_class.return_value = mock_resolver

        result = UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

        assert result == AddressSet(
            a=["93.184.216.34"], aaaa=["2606:2800:220:1:248:1893:25c8:1946"]
        )
        calls = [c.args for c in mock_resolver.resolve.call_args_list]
        assert calls == [("example.com", "A"), ("example.com", "AAAA")]

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_tolerates_missing_aaaa(self, mock_resolver_class):
        """Test that a record kind without answers is skipped."""
        mock_resolver = MagicMock()
        mock_resolver.resolve.side_effect = [
            ["1.2.3.4", "1.2.3.5"],
            dns.resolver.NoAnswer(),
        ]
        mock_resolver_class.return_value = mock_resolver

        result = UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

        assert result == AddressSet(a=["1.2.3.4", "1.2.3.5"])
        # First upstream answered; secondary never built
        assert mock_resolver_class.call_count == 1

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_falls_back_to_secondary(self, mock_resolver_class):
        """Test that a timed-out primary is abandoned for the secondary."""
        primary = MagicMock()
        primary.resolve.side_effect = dns.exception.Timeout()
        secondary = MagicMock()
        secondary.resolve.side_effect = [["9.9.9.9"], dns.resolver.NoAnswer()]
        mock_resolver_class.side_effect = [primary, secondary]

        result = UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

        assert result == AddressSet(a=["9.9.9.9"])
        assert primary.nameservers == ["208.67.222.222"]
        assert secondary.nameservers == ["208.67.220.220"]

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_all_upstreams_fail(self, mock_resolver_class):
        """Test that ResolutionError is raised when every upstream fails."""
        mock_resolver = MagicMock()
        mock_resolver.resolve.side_effect = dns.resolver.NoNameservers()
        mock_resolver_class.return_value = mock_resolver

        with pytest.raises(ResolutionError, match="2 upstream"):
            UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

        assert mock_resolver_class.call_count == 2

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_no_addresses_counts_as_failure(self, mock_resolver_class):
        """Test that an upstream answering neither A nor AAAA is skipped."""
        mock_resolver = MagicMock()
        mock_resolver.resolve.side_effect = dns.resolver.NoAnswer()
        mock_resolver_class.return_value = mock_resolver

        with pytest.raises(ResolutionError):
            UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_nxdomain_tries_next_upstream(self, mock_resolver_class):
        """Test that NXDOMAIN aborts the upstream without querying AAAA."""
        primary = MagicMock()
        primary.resolve.side_effect = dns.resolver.NXDOMAIN()
        secondary = MagicMock()
        secondary.resolve.side_effect = dns.resolver.NXDOMAIN()
        mock_resolver_class.side_effect = [primary, secondary]

        with pytest.raises(ResolutionError):
            UpstreamResolver(upstreams=UPSTREAMS).lookup("nope.invalid")

        assert primary.resolve.call_count == 1
        assert secondary.resolve.call_count == 1

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_handles_socket_errors(self, mock_resolver_class):
        """Test that OSError from the transport counts as a failed attempt."""
        primary = MagicMock()
        primary.resolve.side_effect = OSError("Network is unreachable")
        secondary = MagicMock()
        secondary.resolve.side_effect = [["8.8.4.4"], ["2001:db8::8"]]
        mock_resolver_class.side_effect = [primary, secondary]

        result = UpstreamResolver(upstreams=UPSTREAMS).lookup("example.com")

        assert result == AddressSet(a=["8.8.4.4"], aaaa=["2001:db8::8"])

    @patch("src.services.resolver.dns.resolver.Resolver")
    def test_lookup_sets_timeouts(self, mock_resolver_class):
        """Test that per-attempt timeout and lifetime are configured."""
        mock_resolver = MagicMock()
        mock_resolver.resolve.return_value = ["1.2.3.4"]
        mock_resolver_class.return_value = mock_resolver

        UpstreamResolver(
            upstreams=[("127.0.0.1", 5353)], attempt_timeout=2, lifetime=4
        ).lookup("example.com")

        mock_resolver_class.assert_called_with(configure=False)
        assert mock_resolver.timeout == 2
        assert 0 < mock_resolver.lifetime <= 4
        assert mock_resolver.port == 5353


class TestIsBlockedDomain:
    """Test UpstreamResolver.is_blocked_domain() method."""

    def test_sinkhole_ipv4_is_blocked(self):
        resolver = UpstreamResolver()
        assert resolver.is_blocked_domain(AddressSet(a=["146.112.61.106"])) is True

    def test_sinkhole_mapped_ipv6_is_blocked(self):
        resolver = UpstreamResolver()
        addresses = AddressSet(a=["1.2.3.4"], aaaa=["::ffff:9270:3d6a"])
        assert resolver.is_blocked_domain(addresses) is True

    def test_regular_addresses_are_not_blocked(self):
        resolver = UpstreamResolver()
        addresses = AddressSet(a=["93.184.216.34"], aaaa=["2001:db8::1"])
        assert resolver.is_blocked_domain(addresses) is False

    def test_empty_set_is_not_blocked(self):
        assert UpstreamResolver().is_blocked_domain(AddressSet()) is False

    def test_match_is_exact_literal(self):
        """Test that only the configured literal forms match."""
        resolver = UpstreamResolver(sinkhole_detection_ips=["146.112.61.104"])
        assert resolver.is_blocked_domain(AddressSet(aaaa=["::ffff:146.112.61.104"])) is False

    def test_custom_detection_set(self):
        resolver = UpstreamResolver(sinkhole_detection_ips=["10.10.10.10"])
        assert resolver.is_blocked_domain(AddressSet(a=["10.10.10.10"])) is True
        assert resolver.is_blocked_domain(AddressSet(a=["146.112.61.106"])) is False


class TestCategorizeFailure:
    """Test categorize_failure() mapping."""

    @pytest.mark.parametrize(
        "exception,expected",
        [
            (dns.exception.Timeout(), "timeout"),
            (dns.resolver.NXDOMAIN(), "nxdomain"),
            (dns.resolver.NoAnswer(), "no_answer"),
            (dns.resolver.NoNameservers(), "no_nameservers"),
            (OSError("boom"), "unknown_error"),
        ],
    )
    def test_categories(self, exception, expected):
        assert categorize_failure(exception) == expected
