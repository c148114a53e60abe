import unittest

from src.health.application.reachability import ReachabilityClassifier
from src.health.domain.errors import TransportError
from src.health.domain.models import DomainStatusKind
from tests.health.fakes import GENERIC_BODY, PLATFORM_BODY, FakeHttpClient, dns_failure


class ReachabilityClassifierTests(unittest.IsolatedAsyncioTestCase):
    async def test_classify_fetches_https_url_once(self):
        client = FakeHttpClient({"https://wiki.example.org": (200, PLATFORM_BODY)})
        classifier = ReachabilityClassifier(client, show_progress=False)

        status = await classifier.classify("wiki.example.org")

        self.assertTrue(status.is_ok)
        self.assertEqual(client.calls, ["https://wiki.example.org"])

    async def test_classify_dns_failure_is_expired(self):
        client = FakeHttpClient({"https://gone.example.org": dns_failure("gone.example.org")})
        status = await ReachabilityClassifier(client, show_progress=False).classify("gone.example.org")
        self.assertIs(status.kind, DomainStatusKind.EXPIRED)

    async def test_classify_other_transport_failure_is_unknown(self):
        client = FakeHttpClient({"https://slow.example.org": TransportError("TimeoutError: ")})
        status = await ReachabilityClassifier(client, show_progress=False).classify("slow.example.org")
        self.assertIs(status.kind, DomainStatusKind.UNKNOWN)
        self.assertEqual(status.detail, "TimeoutError: ")

    async def test_unexpected_client_error_stays_scoped_to_domain(self):
        client = FakeHttpClient(
            {
                "https://odd.example.org": ValueError("bad header"),
                "https://wiki.example.org": (200, PLATFORM_BODY),
            }
        )
        classifier = ReachabilityClassifier(client, show_progress=False)

        results = await classifier.classify_many(["odd.example.org", "wiki.example.org"])

        self.assertIs(results["odd.example.org"].kind, DomainStatusKind.UNKNOWN)
        self.assertEqual(results["odd.example.org"].detail, "ValueError: bad header")
        self.assertTrue(results["wiki.example.org"].is_ok)

    async def test_status_code_does_not_change_classification(self):
        client = FakeHttpClient({"https://wiki.example.org": (404, PLATFORM_BODY)})
        status = await ReachabilityClassifier(client, show_progress=False).classify("wiki.example.org")
        self.assertTrue(status.is_ok)

    async def test_classify_many_keeps_input_order_and_closes_client(self):
        client = FakeHttpClient(
            {
                "https://a.example.org": (200, PLATFORM_BODY),
                "https://b.example.org": dns_failure("b.example.org"),
                "https://c.example.org": (200, GENERIC_BODY),
            }
        )
        classifier = ReachabilityClassifier(client, concurrency=2, show_progress=False)

        results = await classifier.classify_many(["a.example.org", "b.example.org", "c.example.org"])

        self.assertEqual(list(results), ["a.example.org", "b.example.org", "c.example.org"])
        self.assertIs(results["a.example.org"].kind, DomainStatusKind.OK)
        self.assertIs(results["b.example.org"].kind, DomainStatusKind.EXPIRED)
        self.assertIs(results["c.example.org"].kind, DomainStatusKind.GENERIC_WEBSITE)
        self.assertEqual(client.close_calls, 1)

    async def test_classify_many_with_no_domains_does_nothing(self):
        client = FakeHttpClient()
        results = await ReachabilityClassifier(client, show_progress=False).classify_many([])
        self.assertEqual(results, {})
        self.assertEqual(client.calls, [])


if __name__ == "__main__":
    unittest.main()
