import pytest

from supera.base import DataNotAvailableError, LArDataType, SuperaBase


def test_missing_data_raises_with_type_name():
    proc = SuperaBase()
    with pytest.raises(DataNotAvailableError, match="Wire data pointer not available"):
        proc.lar_data(LArDataType.WIRE)


def test_set_and_get_data_round_trip():
    proc = SuperaBase()
    tracks = ["a", "b"]
    proc.set_lar_data(LArDataType.MCTRACK, tracks)
    assert proc.lar_data(LArDataType.MCTRACK) is tracks


def test_configure_default_time_offset():
    proc = SuperaBase()
    proc.configure({})
    assert proc.time_offset == 2400


def test_configure_custom_time_offset():
    proc = SuperaBase()
    proc.configure({"TimeOffset": 17})
    assert proc.time_offset == 17


def test_configure_requests_labels():
    proc = SuperaBase()
    proc.configure({"LArSpacePoint": "sps", "LArMCTrackProducer": "mcreco", "LArWireProducer": ""})
    assert proc.lar_data_label(LArDataType.SPACEPOINT) == "sps"
    assert proc.lar_data_label(LArDataType.MCTRACK) == "mcreco"
    assert proc.lar_data_label(LArDataType.WIRE) == ""


def test_request_overrides_label():
    proc = SuperaBase()
    proc.request(LArDataType.CRTHIT, "first")
    proc.request(LArDataType.CRTHIT, "second")
    assert proc.lar_data_label(LArDataType.CRTHIT) == "second"


def test_is_a():
    proc = SuperaBase()
    assert proc.is_a("Supera") is True
    assert proc.is_a("SuperaMetaMaker") is False


def test_minipart_appended_to_particles():
    proc = SuperaBase(minipart_converter=lambda p: ("full", p))
    particles = ["p1"]
    proc.set_lar_data(LArDataType.MCPARTICLE, particles)
    proc.set_lar_data(LArDataType.MCMINIPART, ["m1", "m2"])
    assert proc.lar_data(LArDataType.MCPARTICLE) == ["p1", ("full", "m1"), ("full", "m2")]
    assert proc.lar_data(LArDataType.MCMINIPART) == ["m1", "m2"]


def test_minipart_without_particles_leaves_particles_missing():
    proc = SuperaBase()
    proc.set_lar_data(LArDataType.MCMINIPART, ["m1"])
    with pytest.raises(DataNotAvailableError):
        proc.lar_data(LArDataType.MCPARTICLE)


def test_event_round_trip_and_missing():
    proc = SuperaBase()
    with pytest.raises(DataNotAvailableError):
        proc.get_event()
    marker = object()
    proc.set_event(marker)
    assert proc.get_event() is marker


def test_clear_event_data_forgets_everything():
    proc = SuperaBase()
    proc.set_lar_data(LArDataType.HIT, [1])
    proc.set_event("event")
    proc.clear_event_data()
    with pytest.raises(DataNotAvailableError):
        proc.lar_data(LArDataType.HIT)
    with pytest.raises(DataNotAvailableError):
        proc.get_event()


@pytest.mark.parametrize("step", ["initialize", "finalize"])
def test_initialize_and_finalize_clear_data(step):
    proc = SuperaBase()
    proc.set_lar_data(LArDataType.OPFLASH, [1])
    getattr(proc, step)()
    with pytest.raises(DataNotAvailableError):
        proc.lar_data(LArDataType.OPFLASH)


def test_process_accepts_and_keeps_requests():
    proc = SuperaBase("custom")
    proc.request(LArDataType.SIMCH, "largeant")
    assert proc.process(None) is True
    proc.finalize()
    assert proc.lar_data_label(LArDataType.SIMCH) == "largeant"
    assert proc.name == "custom"