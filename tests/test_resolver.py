import asyncio

import pytest

from delivery_zones.config import settings
from delivery_zones.errors import AddressNotFoundError, InvalidParametersError, ProviderError
from delivery_zones.models.domain import Coordinates, DeliveryZone, ErrorKind, Outcome
from delivery_zones.services.delivery.resolver import (
    DEFAULT_ZONE_ID,
    DeliveryFeeResolver,
    effective_zones,
    quote_for_distance,
    round_distance,
)
from delivery_zones.services.distance.base import DistanceProvider

ORIGIN = "Rua das Flores, 100 - Centro, Campinas - SP"
ZONES = [
    DeliveryZone(id="near", min_distance=0, max_distance=2, fee=0.0, estimated_time="20-30 min"),
    DeliveryZone(id="far", min_distance=2, max_distance=20, fee=7.0, estimated_time="40-60 min"),
]


class FakeProvider(DistanceProvider):
    name = "fake"

    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    async def distance(self, origin, destination):
        self.calls.append((origin, destination))
        key = destination if isinstance(destination, str) else f"{destination.lat},{destination.lng}"
        answer = self.answers[key]
        if isinstance(answer, list):
            answer = answer.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class GatedProvider(FakeProvider):
    """Blocks lookups for gated destinations until their event is set."""

    def __init__(self, answers, gates):
        super().__init__(answers)
        self.gates = gates

    async def distance(self, origin, destination):
        gate = self.gates.get(destination)
        if gate is not None:
            await gate.wait()
        return await super().distance(origin, destination)


def test_round_distance_is_half_up_at_two_decimals():
    assert round_distance(2.004) == 2.0
    assert round_distance(2.005) == 2.01
    assert round_distance(2.2749999) == 2.27
    assert round_distance(25) == 25.0
    assert round_distance(1e30) == 1e30
    assert round_distance(float("inf")) == float("inf")


def test_effective_zones_substitutes_default_zone_only_when_empty():
    fallback = effective_zones([])

    assert len(fallback) == 1
    assert fallback[0].id == DEFAULT_ZONE_ID
    assert fallback[0].min_distance == 0.0
    assert fallback[0].max_distance == settings.default_zone_max_distance_km
    assert fallback[0].fee == settings.default_zone_fee
    assert fallback[0].active
    assert effective_zones(ZONES) == tuple(ZONES)


def test_quote_for_distance_beyond_zones_is_not_deliverable():
    result = quote_for_distance(25.0, ZONES, 1.0)

    assert result.deliverable is False
    assert result.error_kind is None
    assert result.fee is None and result.estimated_time is None and result.zone is None
    assert result.distance_km == 25.0
    assert result.outcome is Outcome.OUT_OF_RANGE


def test_resolve_picks_exact_zone_past_the_shared_edge():
    provider = FakeProvider({"Rua A, 10": 2.2712})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(ORIGIN, "Rua A, 10", ZONES, 1.0))

    assert result.deliverable is True
    assert result.zone.id == "far"
    assert result.fee == 7.0
    assert result.estimated_time == "40-60 min"
    assert result.distance_km == 2.27
    assert result.stale is False


def test_resolve_on_shared_edge_prefers_cheaper_zone():
    provider = FakeProvider({"Rua B, 20": 2.0})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(ORIGIN, "Rua B, 20", ZONES, 1.0))

    assert result.zone.id == "near"
    assert result.fee == 0.0


def test_resolve_rounds_before_matching():
    # 2.004 rounds onto the edge and both zones match exactly
    on_edge = asyncio.run(DeliveryFeeResolver(FakeProvider({"x": 2.004})).resolve(ORIGIN, "x", ZONES, 0.0))
    # 2.005 rounds to 2.01, past the near zone
    past_edge = asyncio.run(DeliveryFeeResolver(FakeProvider({"x": 2.005})).resolve(ORIGIN, "x", ZONES, 0.0))

    assert on_edge.distance_km == 2.0
    assert on_edge.zone.id == "near"
    assert past_edge.distance_km == 2.01
    assert past_edge.zone.id == "far"


def test_resolve_out_of_range_returns_structured_result():
    provider = FakeProvider({"Far away": 25.0})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(ORIGIN, "Far away", ZONES, 1.0))

    assert result.deliverable is False
    assert result.error_kind is None
    assert result.distance_km == 25.0
    assert result.fee is None
    assert resolver.memo.last_outcome is Outcome.OUT_OF_RANGE


def test_repeated_out_of_range_destination_is_stable_and_calls_provider_once():
    provider = FakeProvider({"Far away": [25.0, 3.0]})
    resolver = DeliveryFeeResolver(provider)

    async def scenario():
        first = await resolver.resolve(ORIGIN, "Far away", ZONES, 1.0)
        second = await resolver.resolve(ORIGIN, "Far away", ZONES, 1.0)
        return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert second.deliverable is False
    assert len(provider.calls) == 1


def test_repeated_deliverable_destination_reuses_previous_result():
    provider = FakeProvider({"Rua A, 10": [3.0, 30.0]})
    resolver = DeliveryFeeResolver(provider)

    async def scenario():
        first = await resolver.resolve(ORIGIN, "Rua A, 10", ZONES, 0.2)
        second = await resolver.resolve(ORIGIN, "  Rua A, 10 ", ZONES, 0.2)
        return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert second.deliverable is True
    assert len(provider.calls) == 1


def test_memo_holds_a_single_destination():
    provider = FakeProvider({"A": 25.0, "B": 3.0})
    resolver = DeliveryFeeResolver(provider)

    async def scenario():
        await resolver.resolve(ORIGIN, "A", ZONES, 0.2)
        await resolver.resolve(ORIGIN, "B", ZONES, 0.2)
        return await resolver.resolve(ORIGIN, "A", ZONES, 0.2)

    result = asyncio.run(scenario())

    assert result.deliverable is False
    assert [destination for _, destination in provider.calls] == ["A", "B", "A"]


def test_reset_forgets_memoized_verdict():
    provider = FakeProvider({"A": 3.0})
    resolver = DeliveryFeeResolver(provider)

    asyncio.run(resolver.resolve(ORIGIN, "A", ZONES, 0.2))
    resolver.reset()
    asyncio.run(resolver.resolve(ORIGIN, "A", ZONES, 0.2))

    assert len(provider.calls) == 2


def test_empty_zones_use_default_zone():
    provider = FakeProvider({"Rua C, 3": 3.0})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(ORIGIN, "Rua C, 3", [], 0.2))

    assert result.deliverable is True
    assert result.zone.id == DEFAULT_ZONE_ID
    assert result.fee == settings.default_zone_fee


def test_coordinates_are_accepted_as_locations():
    destination = Coordinates(lat=-22.9, lng=-47.06)
    provider = FakeProvider({"-22.9,-47.06": 1.5})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(Coordinates(lat=-22.91, lng=-47.07), destination, ZONES, 0.2))

    assert result.zone.id == "near"
    assert resolver.memo.last_address == "-22.9,-47.06"


@pytest.mark.parametrize(
    ("origin", "destination", "zones", "tolerance"),
    [
        ("", "Rua A", ZONES, 0.2),
        (ORIGIN, "   ", ZONES, 0.2),
        (None, "Rua A", ZONES, 0.2),
        (ORIGIN, "Rua A", None, 0.2),
        (ORIGIN, "Rua A", "zones", 0.2),
        (ORIGIN, "Rua A", [{"id": "raw"}], 0.2),
        (ORIGIN, "Rua A", ZONES, -1.0),
        (ORIGIN, "Rua A", ZONES, float("nan")),
        (ORIGIN, Coordinates(lat=float("inf"), lng=0.0), ZONES, 0.2),
    ],
)
def test_invalid_input_is_rejected_before_provider_call(origin, destination, zones, tolerance):
    provider = FakeProvider({})
    resolver = DeliveryFeeResolver(provider)

    with pytest.raises(InvalidParametersError) as excinfo:
        asyncio.run(resolver.resolve(origin, destination, zones, tolerance))

    assert excinfo.value.kind is ErrorKind.INVALID_PARAMETERS
    assert provider.calls == []


def test_default_tolerance_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "default_tolerance_km", 0.5)
    provider = FakeProvider({"A": 20.4})
    resolver = DeliveryFeeResolver(provider)

    result = asyncio.run(resolver.resolve(ORIGIN, "A", ZONES))

    assert result.deliverable is True
    assert result.zone.id == "far"


def test_provider_failure_does_not_record_an_outcome():
    provider = FakeProvider({"Rua Z": [AddressNotFoundError("Rua Z"), 3.0]})
    resolver = DeliveryFeeResolver(provider)

    with pytest.raises(AddressNotFoundError):
        asyncio.run(resolver.resolve(ORIGIN, "Rua Z", ZONES, 0.2))

    assert resolver.memo.last_address == "Rua Z"
    assert resolver.memo.last_outcome is Outcome.UNKNOWN

    result = asyncio.run(resolver.resolve(ORIGIN, "Rua Z", ZONES, 0.2))

    assert result.deliverable is True
    assert len(provider.calls) == 2


def test_unclassified_provider_failure_becomes_provider_error():
    provider = FakeProvider({"Rua Z": RuntimeError("socket closed")})
    resolver = DeliveryFeeResolver(provider)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(resolver.resolve(ORIGIN, "Rua Z", ZONES, 0.2))

    assert excinfo.value.kind is ErrorKind.PROVIDER_ERROR
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.parametrize("answer", [float("nan"), float("inf"), -1.0, 1e30, "3.0", None])
def test_unusable_provider_value_becomes_provider_error(answer):
    resolver = DeliveryFeeResolver(FakeProvider({"Rua Z": answer}))

    with pytest.raises(ProviderError):
        asyncio.run(resolver.resolve(ORIGIN, "Rua Z", ZONES, 0.2))


def test_failure_after_out_of_range_clears_previous_verdict():
    provider = FakeProvider({"A": 25.0, "B": ProviderError("upstream down")})
    resolver = DeliveryFeeResolver(provider)

    asyncio.run(resolver.resolve(ORIGIN, "A", ZONES, 0.2))
    with pytest.raises(ProviderError):
        asyncio.run(resolver.resolve(ORIGIN, "B", ZONES, 0.2))

    assert resolver.memo.last_address == "B"
    assert resolver.memo.last_result is None


def test_stale_completion_does_not_overwrite_memo():
    gate = asyncio.Event()
    provider = GatedProvider({"Rua Velha": 25.0, "Rua Nova": 3.0}, {"Rua Velha": gate})
    resolver = DeliveryFeeResolver(provider)

    async def scenario():
        older = asyncio.create_task(resolver.resolve(ORIGIN, "Rua Velha", ZONES, 0.2))
        await asyncio.sleep(0)
        newer = await resolver.resolve(ORIGIN, "Rua Nova", ZONES, 0.2)
        gate.set()
        return await older, newer

    older, newer = asyncio.run(scenario())

    assert older.stale is True
    assert older.deliverable is False
    assert newer.stale is False
    assert newer.deliverable is True
    assert resolver.memo.last_address == "Rua Nova"
    assert resolver.memo.last_outcome is Outcome.DELIVERABLE
    assert resolver.memo.last_result is newer


def test_stale_failure_leaves_memo_of_newer_request():
    gate = asyncio.Event()
    provider = GatedProvider(
        {"Rua Velha": ProviderError("timeout"), "Rua Nova": 25.0},
        {"Rua Velha": gate},
    )
    resolver = DeliveryFeeResolver(provider)

    async def scenario():
        older = asyncio.create_task(resolver.resolve(ORIGIN, "Rua Velha", ZONES, 0.2))
        await asyncio.sleep(0)
        await resolver.resolve(ORIGIN, "Rua Nova", ZONES, 0.2)
        gate.set()
        with pytest.raises(ProviderError):
            await older

    asyncio.run(scenario())

    assert resolver.memo.last_address == "Rua Nova"
    assert resolver.memo.last_outcome is Outcome.OUT_OF_RANGE
