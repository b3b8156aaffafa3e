import json
import unittest
from unittest import mock

import requests

import massive
from massive.errors import RequestError
from massive.infra.config import MassiveConfig
from massive.rest import crypto, economy, forex, futures, indices, options, stocks
from massive.rest.client import RestClient
from massive.rest.query import build_query

BASE = "https://api.massive.com"


def make_response(body=None, status: int = 200, content_type: str = "application/json") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if content_type == "application/json":
        response._content = json.dumps(body if body is not None else {"status": "OK"}).encode()
    else:
        response._content = (body or "").encode()
    response.headers["Content-Type"] = content_type
    response.url = BASE
    return response


class RestTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock(spec=requests.Session)
        self.session.get.return_value = make_response()
        self.client = RestClient(api_key="test_key_123", session=self.session)

    def requested(self):
        args, kwargs = self.session.get.call_args
        return args[0], kwargs["params"]

    def prepared_url(self) -> str:
        url, params = self.requested()
        return requests.Request("GET", url, params=params).prepare().url


class RestClientTest(RestTestCase):
    def test_bearer_authorization_header(self) -> None:
        self.client.get("/test")

        args, kwargs = self.session.get.call_args
        self.assertEqual(f"{BASE}/test", args[0])
        self.assertEqual("Bearer test_key_123", kwargs["headers"]["Authorization"])
        self.assertEqual(30.0, kwargs["timeout"])

    def test_json_body_is_decoded(self) -> None:
        self.session.get.return_value = make_response({"status": "OK", "results": {"ticker": "AAPL"}})

        response = self.client.get("/v3/reference/tickers/AAPL")

        self.assertTrue(response.ok)
        self.assertEqual("AAPL", response.body["results"]["ticker"])

    def test_error_status_is_returned_not_raised(self) -> None:
        self.session.get.return_value = make_response({"status": "NOT_FOUND"}, status=404)

        response = self.client.get("/v3/reference/tickers/NOPE")

        self.assertEqual(404, response.status)
        self.assertFalse(response.ok)

    def test_text_body_is_kept_as_text(self) -> None:
        self.session.get.return_value = make_response("upstream busy", status=503, content_type="text/plain")

        self.assertEqual("upstream busy", self.client.get("/v1/anything").body)

    def test_transport_failure_raises_request_error_with_cause(self) -> None:
        failure = requests.ConnectionError("connection refused")
        self.session.get.side_effect = failure

        with self.assertLogs("massive.rest.client", level="WARNING"):
            with self.assertRaises(RequestError) as ctx:
                self.client.get("/v2/last/trade/AAPL")

        self.assertIs(failure, ctx.exception.cause)
        self.assertIs(failure, ctx.exception.__cause__)
        self.assertEqual(1, self.session.get.call_count)

    def test_base_url_override_and_factories(self) -> None:
        client = RestClient(api_key="k", base_url="https://sandbox.example/", session=self.session)
        client.get("/v1/x")
        self.assertEqual("https://sandbox.example/v1/x", self.session.get.call_args[0][0])

        self.assertEqual(BASE, massive.client(api_key="k").base_url)
        configured = massive.client(config=MassiveConfig(api_key="cfg", base_url="https://alt.example", timeout=5))
        self.assertEqual(("cfg", "https://alt.example", 5), (configured.api_key, configured.base_url, configured.timeout))


class QueryFilterTest(unittest.TestCase):
    def test_drops_unknown_keys_and_none_values(self) -> None:
        query = build_query({"limit": 10, "bogus": 1, "sort": None, "order": "asc"}, ("limit", "sort", "order"))
        self.assertEqual({"limit": 10, "order": "asc"}, query)

    def test_booleans_are_lowercase(self) -> None:
        self.assertEqual({"adjusted": "false"}, build_query({"adjusted": False}, ("adjusted",)))


class StocksTest(RestTestCase):
    def test_ticker_details_without_options_has_no_query_string(self) -> None:
        stocks.get_ticker(self.client, "AAPL")

        self.assertEqual((f"{BASE}/v3/reference/tickers/AAPL", None), self.requested())
        self.assertEqual(f"{BASE}/v3/reference/tickers/AAPL", self.prepared_url())

    def test_ticker_details_with_date_only_attaches_date(self) -> None:
        stocks.get_ticker(self.client, "AAPL", date="2023-01-01", limit=5)

        self.assertEqual(f"{BASE}/v3/reference/tickers/AAPL?date=2023-01-01", self.prepared_url())

    def test_aggregates_with_optional_parameters(self) -> None:
        stocks.get_aggregates(
            self.client, "AAPL", 1, "day", "2023-01-01", "2023-12-31", adjusted=True, sort="asc", limit=5000
        )

        url, params = self.requested()
        self.assertEqual(f"{BASE}/v2/aggs/ticker/AAPL/range/1/day/2023-01-01/2023-12-31", url)
        self.assertEqual({"adjusted": "true", "sort": "asc", "limit": 5000}, params)

    def test_list_tickers_with_limit(self) -> None:
        stocks.list_tickers(self.client, limit=10)
        self.assertEqual((f"{BASE}/v3/reference/tickers", {"limit": 10}), self.requested())

    def test_indicator_parameters(self) -> None:
        stocks.get_sma(self.client, "AAPL", window=50, timespan="day", short_window=3)
        self.assertEqual((f"{BASE}/v1/indicators/sma/AAPL", {"window": 50, "timespan": "day"}), self.requested())

        stocks.get_macd(self.client, "AAPL", short_window=12, long_window=26, signal_window=9)
        self.assertEqual(
            {"short_window": 12, "long_window": 26, "signal_window": 9},
            self.requested()[1],
        )

    def test_simple_paths(self) -> None:
        cases = [
            (lambda: stocks.get_previous_close(self.client, "AAPL"), "/v2/aggs/ticker/AAPL/prev"),
            (lambda: stocks.get_last_trade(self.client, "AAPL"), "/v2/last/trade/AAPL"),
            (lambda: stocks.get_last_quote(self.client, "AAPL"), "/v2/last/nbbo/AAPL"),
            (lambda: stocks.get_snapshot(self.client, "AAPL"), "/v2/snapshot/locale/us/markets/stocks/tickers/AAPL"),
            (lambda: stocks.get_ema(self.client, "AAPL"), "/v1/indicators/ema/AAPL"),
            (lambda: stocks.get_rsi(self.client, "AAPL"), "/v1/indicators/rsi/AAPL"),
        ]
        for call, path in cases:
            with self.subTest(path=path):
                call()
                self.assertEqual(f"{BASE}{path}", self.requested()[0])


class OptionsTest(RestTestCase):
    def test_contract_details(self) -> None:
        self.session.get.return_value = make_response(
            {"status": "OK", "results": {"ticker": "O:AAPL230616C00150000", "underlying_ticker": "AAPL"}}
        )

        response = options.get_contract(self.client, "O:AAPL230616C00150000")

        self.assertEqual(f"{BASE}/v3/reference/options/contracts/O:AAPL230616C00150000", self.requested()[0])
        self.assertEqual("AAPL", response.body["results"]["underlying_ticker"])

    def test_list_contracts_with_filters(self) -> None:
        options.list_contracts(self.client, underlying_ticker="AAPL", contract_type="call", window=3)
        self.assertEqual({"underlying_ticker": "AAPL", "contract_type": "call"}, self.requested()[1])

    def test_option_chain(self) -> None:
        options.get_option_chain(self.client, "AAPL", strike_price=150)
        self.assertEqual((f"{BASE}/v3/snapshot/options/AAPL", {"strike_price": 150}), self.requested())


class OtherAssetClassesTest(RestTestCase):
    def test_crypto_endpoints(self) -> None:
        crypto.get_aggregates(self.client, "X:BTCUSD", 1, "day", "2023-01-01", "2023-12-31")
        self.assertEqual(f"{BASE}/v2/aggs/ticker/X:BTCUSD/range/1/day/2023-01-01/2023-12-31", self.requested()[0])

        crypto.get_snapshot(self.client, "X:BTCUSD")
        self.assertEqual(f"{BASE}/v2/snapshot/locale/global/markets/crypto/tickers/X:BTCUSD", self.requested()[0])

        crypto.get_last_trade(self.client, "BTC", "USD")
        self.assertEqual(f"{BASE}/v1/last/crypto/BTC/USD", self.requested()[0])

    def test_forex_endpoints(self) -> None:
        forex.convert_currency(self.client, "AUD", "USD", amount=100, precision=2, date="x")
        self.assertEqual((f"{BASE}/v1/conversion/AUD/USD", {"amount": 100, "precision": 2}), self.requested())

        forex.get_last_quote(self.client, "EUR", "USD")
        self.assertEqual(f"{BASE}/v1/last_quote/currencies/EUR/USD", self.requested()[0])

    def test_futures_indices_and_economy(self) -> None:
        futures.list_contracts(self.client, underlying_ticker="ES", strike_price=1)
        self.assertEqual((f"{BASE}/v3/reference/futures/contracts", {"underlying_ticker": "ES"}), self.requested())

        futures.get_snapshot(self.client, "ESZ4")
        self.assertEqual(f"{BASE}/v3/snapshot/futures/ESZ4", self.requested()[0])

        indices.get_snapshot(self.client, "I:SPX")
        self.assertEqual(f"{BASE}/v3/snapshot/indices/I:SPX", self.requested()[0])

        economy.get_inflation_data(self.client, "cpi", start_date="2023-01-01", end_date=None)
        self.assertEqual((f"{BASE}/v1/indicators/inflation/cpi", {"start_date": "2023-01-01"}), self.requested())

        economy.get_treasury_yields(self.client)
        self.assertEqual((f"{BASE}/v1/indicators/treasury/yields", None), self.requested())


if __name__ == "__main__":
    unittest.main()
