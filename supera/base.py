"""Common base for processes that consume simulated and reconstructed event data."""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIME_OFFSET = 2400


class LArDataType(enum.Enum):
    """Kinds of input data a process can request; the value is the display name."""

    WIRE = "Wire"
    HIT = "Hit"
    OPDIGIT = "OpDigit"
    MCTRUTH = "MCTruth"
    MCPARTICLE = "MCParticle"
    MCMINIPART = "MCMiniPart"
    MCTRACK = "MCTrack"
    MCSHOWER = "MCShower"
    SIMCH = "SimCh"
    SIMENERGYDEPOSIT = "SimEnergyDeposit"
    SIMENERGYDEPOSITLITE = "SimEnergyDepositLite"
    SPACEPOINT = "SpacePoint"
    OPFLASH = "OpFlash"
    CRTHIT = "CRTHit"


# Configuration key naming the producer for each data type.
_PRODUCER_KEYS = {
    LArDataType.WIRE: "LArWireProducer",
    LArDataType.HIT: "LArHitProducer",
    LArDataType.OPDIGIT: "LArOpDigitProducer",
    LArDataType.MCTRUTH: "LArMCTruthProducer",
    LArDataType.MCPARTICLE: "LArMCParticleProducer",
    LArDataType.MCMINIPART: "LArMCMiniPartProducer",
    LArDataType.MCTRACK: "LArMCTrackProducer",
    LArDataType.MCSHOWER: "LArMCShowerProducer",
    LArDataType.SIMCH: "LArSimChProducer",
    LArDataType.SIMENERGYDEPOSIT: "LArSimEnergyDepositProducer",
    LArDataType.SIMENERGYDEPOSITLITE: "LArSimEnergyDepositLiteProducer",
    LArDataType.SPACEPOINT: "LArSpacePoint",
    LArDataType.OPFLASH: "LArOpFlashProducer",
    LArDataType.CRTHIT: "LArCRTHitProducer",
}


class DataNotAvailableError(LookupError):
    """Raised when a process asks for event data that has not been provided."""


class SuperaBase:
    """A process that records which data products it needs and holds them per event.

    ``minipart_converter`` turns a reduced simulated particle into a full one;
    it is used when reduced particles are provided after full particles.
    """

    def __init__(
        self,
        name: str = "SuperaBase",
        minipart_converter: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        self.name = name
        self.time_offset = DEFAULT_TIME_OFFSET
        self.csv = ""
        self.manager: Any = None
        self._minipart_converter = minipart_converter or (lambda part: part)
        self._requests: Dict[LArDataType, str] = {}
        self._data: Dict[LArDataType, Sequence[Any]] = {}
        self._event: Any = None

    def configure(self, cfg: Mapping[str, Any]) -> None:
        """Read TimeOffset and the producer label of every data type to request."""
        self.time_offset = int(cfg.get("TimeOffset", DEFAULT_TIME_OFFSET))
        for data_type, key in _PRODUCER_KEYS.items():
            label = cfg.get(key, "")
            if label:
                logger.info("Requesting %s data product by %s", data_type.value, label)
                self.request(data_type, label)

    def initialize(self) -> None:
        """Prepare for a job by dropping any event data."""
        self.clear_event_data()

    def process(self, manager: Any) -> bool:
        """Remember the event's data manager; the base process accepts every event."""
        self.manager = manager
        return True

    def finalize(self) -> None:
        """Finish a job by dropping any event data."""
        self.clear_event_data()

    def is_a(self, question: str) -> bool:
        """True when asked whether this is a Supera process."""
        return question == "Supera"

    def request(self, data_type: LArDataType, label: str) -> None:
        """Ask for the data product of this type made by the labelled producer."""
        self._requests[data_type] = label

    def lar_data_label(self, data_type: LArDataType) -> str:
        """The requested producer label for the type, or an empty string."""
        return self._requests.get(data_type, "")

    def set_lar_data(self, data_type: LArDataType, data: Sequence[Any]) -> None:
        """Provide the event's data of a type.

        Reduced particles provided while full particles are present are also
        converted and appended to the full particle list.
        """
        self._data[data_type] = data
        if data_type is LArDataType.MCMINIPART and LArDataType.MCPARTICLE in self._data:
            full = self._data[LArDataType.MCPARTICLE]
            converted = [self._minipart_converter(part) for part in data]
            if isinstance(full, list):
                full.extend(converted)
            else:
                self._data[LArDataType.MCPARTICLE] = [*full, *converted]

    def lar_data(self, data_type: LArDataType) -> Sequence[Any]:
        """The event's data of a type; raises DataNotAvailableError if not provided."""
        try:
            return self._data[data_type]
        except KeyError:
            raise DataNotAvailableError(
                f"{data_type.value} data pointer not available"
            ) from None

    def set_event(self, event: Any) -> None:
        """Attach the current event record."""
        self._event = event

    def get_event(self) -> Any:
        """The current event record; raises DataNotAvailableError if none is set."""
        if self._event is None:
            raise DataNotAvailableError("Event not set!")
        return self._event

    def clear_event_data(self) -> None:
        """Forget all provided data and the event record."""
        self._data.clear()
        self._event = None