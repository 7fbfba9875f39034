"""
Unit tests for the domain signal collector.

DNS, WHOIS, TLS and HTTP are all mocked.
"""

from datetime import date, datetime
from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest
import requests

from prospect_profile.domain.signals import (
    CUSTOM_MAIL_SERVER,
    DomainSignal,
    collect_domain_signal,
    detect_hosting_provider,
    detect_tech_stack,
    domain_candidates,
    domain_suggestions,
    infer_mail_provider,
    lookup_email_security,
    lookup_mx_records,
    lookup_registration_date,
)
from prospect_profile.errors import DomainLookupError, DomainLookupErrorKind
from prospect_profile.profile.models import Origin


def mx(preference, exchange):
    record = MagicMock()
    record.preference = preference
    record.exchange = exchange
    return record


def txt(text):
    record = MagicMock()
    record.strings = [text.encode()]
    return record


def make_resolver(records: dict):
    """Resolver whose answers come from {(name, rdtype): list | exception}."""

    def resolve(name, rdtype):
        answer = records.get((name, rdtype), dns.resolver.NoAnswer())
        if isinstance(answer, Exception):
            raise answer
        return answer

    resolver = MagicMock()
    resolver.resolve.side_effect = resolve
    return resolver


class TestInferMailProvider:
    @pytest.mark.parametrize(
        "records,expected",
        [
            (["aspmx.l.google.com", "alt1.aspmx.l.google.com"], "Google Workspace"),
            (["acme-com.mail.protection.outlook.com"], "Microsoft 365"),
            (["mx.zoho.com"], "Zoho Mail"),
            (["mx1.acmewidgets.com"], CUSTOM_MAIL_SERVER),
            ([], None),
        ],
    )
    def test_mapping(self, records, expected):
        assert infer_mail_provider(records) == expected

    def test_only_first_record_counts(self):
        assert infer_mail_provider(["mx1.acme.com", "aspmx.l.google.com"]) == CUSTOM_MAIL_SERVER


class TestDnsLookups:
    def test_mx_sorted_by_preference(self):
        resolver = make_resolver(
            {("acme.com", "MX"): [mx(20, "ALT1.ASPMX.L.GOOGLE.COM."), mx(10, "aspmx.l.google.com.")]}
        )
        assert lookup_mx_records("acme.com", resolver) == ["aspmx.l.google.com", "alt1.aspmx.l.google.com"]

    def test_nxdomain_is_unreachable(self):
        resolver = make_resolver({("nope.com", "MX"): dns.resolver.NXDOMAIN()})
        with pytest.raises(DomainLookupError) as excinfo:
            lookup_mx_records("nope.com", resolver)
        assert excinfo.value.kind is DomainLookupErrorKind.UNREACHABLE

    def test_dns_timeout(self):
        resolver = make_resolver({("slow.com", "MX"): dns.exception.Timeout()})
        with pytest.raises(DomainLookupError) as excinfo:
            lookup_mx_records("slow.com", resolver)
        assert excinfo.value.kind is DomainLookupErrorKind.TIMEOUT

    def test_no_mx_is_empty(self):
        assert lookup_mx_records("acme.com", make_resolver({})) == []

    def test_email_security(self):
        resolver = make_resolver(
            {
                ("acme.com", "TXT"): [txt("google-site-verification=x"), txt("v=spf1 include:_spf.google.com ~all")],
                ("_dmarc.acme.com", "TXT"): [txt("v=DMARC1; p=none")],
            }
        )
        security = lookup_email_security("acme.com", resolver)
        assert security.spf
        assert security.dmarc

    def test_missing_txt_records(self):
        security = lookup_email_security("acme.com", make_resolver({}))
        assert not security.spf
        assert not security.dmarc


class TestWhois:
    @patch("prospect_profile.domain.signals.whois.whois")
    def test_earliest_creation_date(self, mock_whois):
        mock_whois.return_value = {"creation_date": [datetime(2001, 5, 2), datetime(1999, 1, 9)]}
        assert lookup_registration_date("acme.com") == date(1999, 1, 9)

    @patch("prospect_profile.domain.signals.whois.whois")
    def test_failure_is_unknown(self, mock_whois):
        mock_whois.side_effect = ConnectionResetError("whois server went away")
        assert lookup_registration_date("acme.com") is None


class TestFingerprinting:
    def test_hosting_from_header(self):
        assert detect_hosting_provider({"CF-RAY": "8a1b", "Server": "cloudflare"}) == "Cloudflare"

    def test_hosting_from_server(self):
        assert detect_hosting_provider({"Server": "AmazonS3"}) == "Amazon Web Services (AWS)"

    def test_hosting_unknown(self):
        assert detect_hosting_provider({"Server": "nginx"}) is None

    def test_tech_stack(self):
        html = '<link href="/wp-content/themes/acme/style.css"><script src="/js/jquery.min.js"></script>'
        stack = detect_tech_stack({"Server": "nginx/1.25", "X-Powered-By": "PHP/8.2"}, html)
        assert stack == frozenset({"Nginx", "PHP", "WordPress", "jQuery"})


class TestCollectDomainSignal:
    def test_malformed_domain(self):
        with pytest.raises(DomainLookupError) as excinfo:
            collect_domain_signal("not a domain")
        assert excinfo.value.kind is DomainLookupErrorKind.MALFORMED_DOMAIN

    @patch("prospect_profile.domain.signals.lookup_ssl_expiry", return_value=date(2025, 1, 1))
    @patch("prospect_profile.domain.signals.lookup_registration_date", return_value=date(1999, 1, 9))
    def test_full_signal(self, mock_whois, mock_ssl):
        resolver = make_resolver(
            {
                ("acmewidgets.com", "MX"): [mx(10, "aspmx.l.google.com.")],
                ("acmewidgets.com", "TXT"): [txt("v=spf1 -all")],
            }
        )
        session = MagicMock()
        session.get.return_value.headers = {"Server": "cloudflare"}
        session.get.return_value.text = "<html>wp-content</html>"

        signal = collect_domain_signal("https://www.acmewidgets.com/", session=session, resolver=resolver)

        assert signal.domain == "acmewidgets.com"
        assert signal.inferred_mail_provider == "Google Workspace"
        assert signal.hosting_provider == "Cloudflare"
        assert "WordPress" in signal.tech_stack
        assert signal.registration_date == date(1999, 1, 9)
        assert signal.email_security.spf
        assert not signal.email_security.dmarc

    @patch("prospect_profile.domain.signals.lookup_ssl_expiry", return_value=None)
    @patch("prospect_profile.domain.signals.lookup_registration_date", return_value=None)
    def test_unreachable_home_page_degrades(self, mock_whois, mock_ssl):
        resolver = make_resolver({("acme.com", "MX"): [mx(10, "mx1.acme.com.")]})
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        signal = collect_domain_signal("acme.com", session=session, resolver=resolver)

        assert signal.inferred_mail_provider == CUSTOM_MAIL_SERVER
        assert signal.hosting_provider is None
        assert signal.tech_stack == frozenset()


class TestCandidates:
    def test_domain_suggestions(self):
        candidates = domain_suggestions("www.acmewidgets.com", pass_id=1)
        assert [(c.field, c.value) for c in candidates] == [
            ("website", "https://acmewidgets.com"),
            ("name", "Acmewidgets"),
        ]
        assert all(c.source is Origin.DOMAIN for c in candidates)

    def test_domain_suggestions_empty(self):
        assert domain_suggestions("") == []

    def test_signal_candidates(self):
        signal = DomainSignal(domain="acme.com", inferred_mail_provider="Microsoft 365", hosting_provider="Vercel")
        assert {c.field: c.value for c in domain_candidates(signal)} == {
            "mail_provider": "Microsoft 365",
            "hosting_provider": "Vercel",
        }

    def test_signal_without_facts(self):
        assert domain_candidates(DomainSignal(domain="acme.com")) == []
