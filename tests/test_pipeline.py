import json
from datetime import datetime, timezone

from deal_analyzer.config import CityConfig, MarketConfig
from deal_analyzer.services.pipeline import process_market, run

from fakes import FakeResponse, FakeSession

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)

TEMPLE = MarketConfig(id="temple-belton", name="Temple / Belton", cities=[CityConfig(city="Temple", state="TX")])
KILLEEN = MarketConfig(id="killeen", name="Killeen", cities=[CityConfig(city="Killeen", state="TX")])

LISTINGS = {
    "Temple": [
        {"id": "A", "addressLine1": "1 A St", "city": "Temple", "state": "TX", "zipCode": "76501",
         "price": 200000, "squareFootage": 1600, "bedrooms": 3, "bathrooms": 2},
        {"id": "B", "addressLine1": "2 B St", "city": "Temple", "state": "TX", "zipCode": "76502",
         "price": 300000, "squareFootage": 1200, "bedrooms": 3, "bathrooms": 2},
    ],
    "Killeen": [
        {"id": "K", "addressLine1": "9 K St", "city": "Killeen", "state": "TX", "zipCode": "76541",
         "price": 150000, "squareFootage": 1400, "bedrooms": 3, "bathrooms": 2},
    ],
}
RENTS = {
    "1 A St, Temple, TX, 76501": 1800,
    "2 B St, Temple, TX, 76502": 1500,
    "9 K St, Killeen, TX, 76541": 1450,
}


def _session(listings=None) -> FakeSession:
    listings = LISTINGS if listings is None else listings

    def sale(params):
        return FakeResponse(listings.get(params["city"], []))

    def avm(params):
        rent = RENTS.get(params["address"])
        if rent is None:
            return FakeResponse({}, 404)
        return FakeResponse({"rent": rent, "rentRangeLow": rent - 200, "rentRangeHigh": rent + 200})

    return FakeSession({"/listings/sale": sale, "/avm/rent": avm})


def _with_markets(config, *markets):
    return config.model_copy(update={"markets": list(markets)})


def test_process_market_end_to_end(make_client, app_config):
    session = _session()
    client = make_client(session)

    output = process_market(client, TEMPLE, app_config, NOW)

    assert [deal.id for deal in output.deals] == ["A"]
    deal = output.deals[0]
    assert deal.rank == 1
    assert deal.gross_yield == 10.8
    assert deal.grm == 9.3
    assert deal.meets_one_percent_rule is False
    assert deal.market_id == "temple-belton"
    # B never reaches the AVM endpoint
    avm_calls = [call for call in session.calls if call["url"].endswith("/avm/rent")]
    assert [call["params"]["address"] for call in avm_calls] == ["1 A St, Temple, TX, 76501"]


def test_process_market_no_listings(make_client, app_config):
    output = process_market(make_client(_session({})), TEMPLE, app_config, NOW)
    assert output.deals == []
    assert output.summary.total_deals == 0


def test_process_market_contains_failures(make_client, app_config, monkeypatch):
    client = make_client(_session())

    def boom(market):
        raise RuntimeError("listing source exploded")

    monkeypatch.setattr(client, "get_listings_for_market", boom)
    output = process_market(client, TEMPLE, app_config, NOW)
    assert output.deals == []
    assert output.market.id == "temple-belton"


def test_run_writes_each_market(make_client, app_config):
    config = _with_markets(app_config, TEMPLE, KILLEEN)
    client = make_client(_session())

    report = run(config, client, now=NOW)

    temple = json.loads(config.output.path_for("temple-belton").read_text())
    killeen = json.loads(config.output.path_for("killeen").read_text())
    assert temple["deals"][0]["grossYield"] == 10.8
    assert temple["lastUpdated"] == "2024-03-01T00:00:00.000Z"
    assert killeen["summary"]["totalDeals"] == 1
    assert [result.deals for result in report.markets] == [1, 1]
    # two listing queries, one AVM lookup per market
    assert report.api_calls == 4


def test_run_isolates_failing_market(make_client, app_config, monkeypatch):
    config = _with_markets(app_config, TEMPLE, KILLEEN)
    client = make_client(_session())
    original = client.get_listings_for_market

    def flaky(market):
        if market.id == "temple-belton":
            raise RuntimeError("boom")
        return original(market)

    monkeypatch.setattr(client, "get_listings_for_market", flaky)
    report = run(config, client, now=NOW)

    assert [(result.market_id, result.deals) for result in report.markets] == [("temple-belton", 0), ("killeen", 1)]


def test_run_keeps_existing_artifact_when_new_result_is_empty(make_client, app_config):
    config = _with_markets(app_config, TEMPLE)
    path = config.output.path_for("temple-belton")
    path.parent.mkdir(parents=True)
    previous = {"market": {"id": "temple-belton"}, "deals": [{"rank": i} for i in range(1, 6)]}
    path.write_text(json.dumps(previous))

    report = run(config, make_client(_session({})), now=NOW)

    assert json.loads(path.read_text()) == previous
    assert report.markets[0].kept_existing is True
    assert report.markets[0].deals == 0


def test_run_overwrites_empty_artifact_with_empty_result(make_client, app_config):
    config = _with_markets(app_config, TEMPLE)
    path = config.output.path_for("temple-belton")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"deals": []}))

    report = run(config, make_client(_session({})), now=NOW)

    data = json.loads(path.read_text())
    assert data["summary"]["totalDeals"] == 0
    assert data["lastUpdated"] == "2024-03-01T00:00:00.000Z"
    assert report.markets[0].kept_existing is False


def test_run_resets_call_counter(make_client, app_config):
    config = _with_markets(app_config, KILLEEN)
    client = make_client(_session())
    client.counter.count = 99

    report = run(config, client, now=NOW)

    assert report.api_calls == 2


def test_run_summary_frame(make_client, app_config):
    config = _with_markets(app_config, TEMPLE, KILLEEN)
    report = run(config, make_client(_session()), now=NOW)

    frame = report.summary_frame()
    assert list(frame.columns) == ["market", "deals", "top_yield", "kept_existing", "file"]
    assert frame["market"].tolist() == ["Temple / Belton", "Killeen"]
