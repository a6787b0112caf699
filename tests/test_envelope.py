import json
from datetime import datetime, timedelta, timezone

from motobroker.core.decoder import DecodedSignal, Side
from motobroker.core.envelope import compose, utc_timestamp

NOW = datetime(2025, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


def test_blind_spot_envelope_has_side():
    env = compose("BlindSpotDetection", DecodedSignal(True, 3.0, Side.RIGHT), NOW)
    assert env.to_dict() == {
        "AlgorithmID": "BlindSpotDetection",
        "Timestamp": "2025-01-31T12:00:00.000Z",
        "Status": True,
        "Data": {"Side": "Direita", "DistanceToVehicle": 3.0},
    }


def test_other_envelope_omits_side():
    env = compose("FrontalCollision", DecodedSignal(False, 1.5), NOW)
    assert env.data == {"DistanceToVehicle": 1.5}
    assert "Side" not in env.to_dict()["Data"]


def test_empty_algorithm_id_becomes_unknown():
    assert compose("", DecodedSignal(False, 0.0), NOW).algorithm_id == "Unknown"
    assert compose(None, DecodedSignal(False, 0.0), NOW).algorithm_id == "Unknown"


def test_to_json_is_compact_and_ordered():
    env = compose("BlindSpotDetection", DecodedSignal(False, 0.0, Side.LEFT), NOW)
    text = env.to_json()
    assert text == ('{"AlgorithmID":"BlindSpotDetection","Timestamp":"2025-01-31T12:00:00.000Z",'
                    '"Status":false,"Data":{"Side":"Esquerda","DistanceToVehicle":0.0}}')
    assert json.loads(text)["Data"]["Side"] == "Esquerda"


def test_compose_is_idempotent_with_fixed_clock():
    sig = DecodedSignal(True, 2.5)
    assert compose("X", sig, NOW) == compose("X", sig, NOW)


def test_utc_timestamp_converts_offsets():
    local = datetime(2025, 1, 31, 9, 0, 0, 250000, tzinfo=timezone(timedelta(hours=-3)))
    assert utc_timestamp(local) == "2025-01-31T12:00:00.250Z"


def test_utc_timestamp_naive_is_utc():
    assert utc_timestamp(datetime(2025, 1, 31, 12, 0, 0)) == "2025-01-31T12:00:00.000Z"


def test_utc_timestamp_defaults_to_now():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    parsed = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=timezone.utc)
    assert parsed >= before
