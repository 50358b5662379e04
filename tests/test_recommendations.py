from concierge.models.brokers import BrokerCandidate
from concierge.models.profile import Profile
from concierge.services.pool_filter import filter_pool, parse_credit_score
from concierge.services.regions import extract_region
from concierge.services.ranking import RecommendationSelector, closing_score
from concierge.services.recommendations import recommend_brokers


def _broker(broker_id, **fields):
    return BrokerCandidate(id=broker_id, **fields)


def _pool():
    return [
        _broker("a", min_rate=6.0, closing_speed_days=30, license_states=["CA"]),
        _broker("b", min_rate=6.5, max_loan_to_value=90, notes="fast close desk", license_states=["CA"]),
        _broker("c", max_rate=7.0, license_states=["NY"]),
        _broker("d", max_loan_to_value=80, closing_speed_days=20, license_states=["NY"]),
        _broker("e", min_rate=5.5, notes="Expedited underwriting", license_states=["FL"]),
    ]


def _ids(picks):
    return [pick.broker.id for pick in picks]


def test_region_filter_keeps_licensed_brokers():
    pool = [
        _broker("tx", license_states=["TX"]),
        _broker("national", license_states=[]),
        _broker("ca", license_states=["California"]),
    ]
    result = filter_pool(pool, Profile(location="Austin, TX"))

    assert [c.id for c in result.candidates] == ["tx"]
    assert result.region == "TX"
    assert not result.region_relaxed
    assert pool[2].license_states == ["CA"]


def test_multi_word_state_beats_its_trailing_word():
    assert extract_region("Charleston, West Virginia") == "WV"
    assert extract_region("West Virginia") == "WV"
    assert extract_region("Richmond, Virginia") == "VA"
    assert extract_region("Concord New Hampshire") == "NH"

    pool = [_broker("va", license_states=["VA"]), _broker("wv", license_states=["West Virginia"])]
    result = filter_pool(pool, Profile(location="Charleston, West Virginia"))

    assert [c.id for c in result.candidates] == ["wv"]
    assert not result.region_relaxed


def test_region_filter_relaxes_when_nobody_is_licensed():
    result = filter_pool(_pool(), Profile(location="Denver, CO"))

    assert len(result) == 5
    assert result.region == "CO"
    assert result.region_relaxed


def test_credit_filter_and_relaxation():
    pool = [
        _broker("strict", min_credit_score=720),
        _broker("mid", min_credit_score=680),
        _broker("open"),
    ]

    result = filter_pool(pool, Profile(credit="700"))
    assert [c.id for c in result.candidates] == ["mid", "open"]
    assert not result.credit_relaxed

    relaxed = filter_pool(pool[:2], Profile(credit="500"))
    assert [c.id for c in relaxed.candidates] == ["strict", "mid"]
    assert relaxed.credit_relaxed


def test_filter_without_profile_or_pool():
    assert len(filter_pool(_pool(), Profile())) == 5

    empty = filter_pool([], Profile(location="Austin, TX", credit="700"))
    assert len(empty) == 0
    assert not empty.region_relaxed
    assert not empty.credit_relaxed


def test_parse_credit_score():
    assert parse_credit_score("720") == 720
    assert parse_credit_score("around 700+") == 700
    assert parse_credit_score("good") is None
    assert parse_credit_score(None) is None


def test_malformed_numerics_read_as_absent():
    broker = BrokerCandidate.model_validate(
        {
            "id": 42,
            "minRate": "call for pricing",
            "maxRate": "6.5%",
            "maxLoanToValue": "n/a",
            "minCreditScore": "",
            "closingSpeedDays": "NaN",
            "licenseStates": "tx, New York",
        }
    )

    assert broker.id == "42"
    assert broker.min_rate is None
    assert broker.max_rate == 6.5
    assert broker.max_loan_to_value is None
    assert broker.min_credit_score is None
    assert broker.closing_speed_days is None
    assert broker.license_states == ["TX", "NY"]
    assert broker.lender_name == "Independent Broker"


def test_closing_score():
    assert closing_score(_broker("x", closing_speed_days=10)) == 10
    assert closing_score(_broker("x", notes="Quick bridge approvals")) == 45
    assert closing_score(_broker("x", notes="")) == 120
    assert closing_score(_broker("x")) == 120


def test_categories_without_region_match():
    pool = filter_pool(_pool(), Profile(location="Denver, CO")).candidates
    picks = RecommendationSelector().select(pool, variant=0)

    assert [pick.category for pick in picks] == ["lowestRate", "highestLtv", "fastestClosing"]
    assert _ids(picks) == ["e", "b", "a"]
    # Only b and d publish an LTV.
    assert picks[1].broker.id in {"b", "d"}


def test_variant_rotates_picks():
    selector = RecommendationSelector()

    assert _ids(selector.select(_pool(), variant=1)) == ["b", "d", "e"]
    assert _ids(selector.select(_pool(), variant=0)) != _ids(selector.select(_pool(), variant=1))


def test_selection_is_deterministic():
    selector = RecommendationSelector()

    assert selector.select(_pool(), variant=3) == selector.select(_pool(), variant=3)
    # -1 and 4 land on the same rotation for a pool of five.
    assert selector.select(_pool(), variant=-1) == selector.select(_pool(), variant=4)


def test_rotation_can_be_disabled():
    selector = RecommendationSelector(rotate=False)

    assert _ids(selector.select(_pool(), variant=0)) == ["e", "b", "d"]
    assert selector.select(_pool(), variant=99) == selector.select(_pool(), variant=0)


def test_fillers_cover_missing_categories():
    pool = [_broker("x"), _broker("y")]
    picks = RecommendationSelector().select(pool, variant=0)

    assert [pick.category for pick in picks] == ["fastestClosing", "additional"]
    assert _ids(picks) == ["x", "y"]


def test_cardinality_and_uniqueness():
    selector = RecommendationSelector()
    full = _pool() + [_broker("f", min_rate=6.1, max_loan_to_value=75)]

    for size in range(len(full) + 1):
        for variant in (-5, 0, 1, 2, 10**12):
            picks = selector.select(full[:size], variant=variant)
            assert len(picks) == min(3, size)
            assert len(set(_ids(picks))) == len(picks)


def test_recommend_brokers_reports_counts():
    pool = _pool() + [_broker("strict", min_rate=5.0, min_credit_score=760, license_states=["CA"])]
    response = recommend_brokers(Profile(location="San Francisco, CA", credit="700"), 0, pool)

    assert response.total == 6
    assert response.eligible == 2
    assert response.region == "CA"
    assert {pick.broker.id for pick in response.recommendations} == {"a", "b"}

    payload = response.model_dump(by_alias=True)
    assert "regionRelaxed" in payload
    assert "lenderName" in payload["recommendations"][0]["broker"]


def test_broker_pool_skips_inactive_and_invalid_records(tmp_path, monkeypatch):
    from concierge.services import broker_pool

    fixture = tmp_path / "brokers.json"
    fixture.write_text(
        '[{"id": "ok", "licenseStates": ["TX"]},'
        ' {"id": "off", "active": false},'
        ' {"name": "missing id"}]',
        encoding="utf-8",
    )
    monkeypatch.setenv("CONCIERGE_BROKER_FIXTURE", str(fixture))
    broker_pool.get_broker_pool.cache_clear()
    try:
        assert [b.id for b in broker_pool.get_broker_pool()] == ["ok"]
        assert broker_pool.get_broker_pool()[0].license_states == ["TX"]
    finally:
        monkeypatch.delenv("CONCIERGE_BROKER_FIXTURE")
        broker_pool.get_broker_pool.cache_clear()
