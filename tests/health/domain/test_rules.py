import unittest

from src.health.domain.models import (
    CdnStatus,
    CdnStatusKind,
    DomainStatus,
    DomainStatusKind,
    HostnameObservation,
)
from src.health.domain.rules import (
    classify_page_content,
    classify_transport_error,
    exceeds_sanity_limit,
    has_mediawiki_body_class,
    triage,
)

MIRAHEZE_PAGE = (
    '<html><head><title>Strinova Wiki</title></head>'
    '<body class="mediawiki ltr sitedir-ltr skin-vector">'
    '<div id="footer-icons"><a class="footer-mirahezeico" href="https://meta.miraheze.org"></a></div>'
    "</body></html>"
)
FOREIGN_WIKI_PAGE = '<html><body class="mediawiki ltr skin-vector-2022"><p>Wikipedia</p></body></html>'


def obs(domain: str, status: str) -> HostnameObservation:
    return HostnameObservation(domain=domain, cdn_status=CdnStatus.parse(status))


class CdnStatusTests(unittest.TestCase):
    def test_parse_known_statuses(self):
        self.assertIs(CdnStatus.parse("active").kind, CdnStatusKind.ACTIVE)
        self.assertIs(CdnStatus.parse("pending_validation").kind, CdnStatusKind.PENDING_VALIDATION)
        self.assertIs(CdnStatus.parse("expired").kind, CdnStatusKind.EXPIRED)

    def test_parse_unknown_status_keeps_raw_value(self):
        status = CdnStatus.parse("pending_deployment")
        self.assertTrue(status.is_other)
        self.assertEqual(status.raw, "pending_deployment")


class ClassifyPageContentTests(unittest.TestCase):
    def test_platform_wiki_is_ok(self):
        self.assertEqual(classify_page_content(MIRAHEZE_PAGE), DomainStatus(DomainStatusKind.OK))

    def test_meta_link_alone_is_enough_for_ok(self):
        body = '<body class="mediawiki"><a href="https://meta.miraheze.org/wiki/Terms">Terms</a></body>'
        self.assertTrue(classify_page_content(body).is_ok)

    def test_mediawiki_without_platform_footer_is_foreign(self):
        self.assertIs(classify_page_content(FOREIGN_WIKI_PAGE).kind, DomainStatusKind.FOREIGN_MEDIAWIKI_SITE)

    def test_wiki_not_found(self):
        body = "<html><head><title>Wiki not found</title></head><body>This wiki has expired</body></html>"
        self.assertIs(classify_page_content(body).kind, DomainStatusKind.WIKI_NOT_FOUND)

    def test_domain_misconfigured_is_case_insensitive(self):
        body = "<h1>Domain Misconfigured</h1><p>The certificate has expired</p>"
        self.assertIs(classify_page_content(body).kind, DomainStatusKind.DOMAIN_MISCONFIGURED)

    def test_expired_keyword(self):
        self.assertIs(classify_page_content("This domain has EXPIRED.").kind, DomainStatusKind.EXPIRED)

    def test_generic_website(self):
        body = "<html><body class='home'><h1>Welcome to my blog</h1></body></html>"
        self.assertIs(classify_page_content(body).kind, DomainStatusKind.GENERIC_WEBSITE)

    def test_body_class_marker_beats_expired_keyword(self):
        body = '<body class="mediawiki">Your subscription expired</body>'
        self.assertIs(classify_page_content(body).kind, DomainStatusKind.FOREIGN_MEDIAWIKI_SITE)

    def test_mediawiki_outside_body_tag_does_not_count(self):
        self.assertFalse(has_mediawiki_body_class('<body class="home">powered by mediawiki</body>'))
        self.assertFalse(has_mediawiki_body_class("<body>mediawiki</body>"))

    def test_body_class_search_is_bounded(self):
        far = '<body class="' + "x" * 1200 + ' mediawiki">'
        near = '<body class="' + "x" * 900 + ' mediawiki">'
        self.assertFalse(has_mediawiki_body_class(far))
        self.assertTrue(has_mediawiki_body_class(near))


class ClassifyTransportErrorTests(unittest.TestCase):
    def test_dns_failure_means_expired(self):
        status = classify_transport_error("dns error: Cannot connect to host atlas.example.zone:443")
        self.assertIs(status.kind, DomainStatusKind.EXPIRED)

    def test_other_failure_is_unknown_with_detail(self):
        status = classify_transport_error("ServerDisconnectedError: Server disconnected")
        self.assertIs(status.kind, DomainStatusKind.UNKNOWN)
        self.assertEqual(status.detail, "ServerDisconnectedError: Server disconnected")
        self.assertFalse(status.is_ok)


class TriageTests(unittest.TestCase):
    def test_partition_drops_unknown_statuses(self):
        result = triage(
            [
                obs("a.example", "active"),
                obs("b.example", "pending_validation"),
                obs("c.example", "expired"),
                obs("d.example", "deleted"),
            ]
        )
        self.assertEqual([o.domain for o in result.healthy], ["a.example", "b.example"])
        self.assertEqual([o.domain for o in result.cdn_expired], ["c.example"])
        self.assertEqual([o.domain for o in result.ignored], ["d.example"])
        self.assertEqual(result.total, 3)

    def test_sanity_limit_uses_integer_tenth(self):
        self.assertTrue(exceeds_sanity_limit(2, 11))
        self.assertFalse(exceeds_sanity_limit(1, 11))
        self.assertTrue(exceeds_sanity_limit(1, 9))
        self.assertFalse(exceeds_sanity_limit(0, 0))


if __name__ == "__main__":
    unittest.main()
