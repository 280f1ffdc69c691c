"""
Strategy sets and strategy selection.

The three strategy sets are immutable maps built once at startup and passed
to the pipeline by reference. Selection is a pure function of the selected
bank and, for type detection, an explicit override.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Generic, List, Mapping, Optional, TypeVar

from .banks import BankProfileRegistry
from .config import DEFAULT_PAYMENT_METHOD
from .date_parsing import (
    DateParsingStrategy,
    DefaultDateParsing,
    MonthDayYearDateParsing,
    YyyymmddDateParsing,
)
from .description_extraction import (
    DefaultDescriptionExtraction,
    DescriptionExtractionStrategy,
    NotificationDescriptionExtraction,
)
from .type_detection import (
    TYPE_STRATEGY_ALIASES,
    ColumnTypeDetection,
    InvertedSignTypeDetection,
    SignBasedTypeDetection,
    TypeDetectionStrategy,
)

T = TypeVar("T")

DEFAULT_TYPE_STRATEGY = "sign-based"
DEFAULT_DATE_STRATEGY = "default"
DEFAULT_DESCRIPTION_STRATEGY = "default"


class StrategySet(Generic[T]):
    """Named strategies with aliases; unknown names resolve to the default."""

    def __init__(self, strategies: List[T], default: str, aliases: Optional[Dict[str, str]] = None):
        self._strategies: Mapping[str, T] = MappingProxyType(
            {strategy.name: strategy for strategy in strategies}
        )
        self._aliases: Mapping[str, str] = MappingProxyType(dict(aliases or {}))
        if default not in self._strategies:
            raise ValueError(f"Default strategy '{default}' is not registered")
        self.default = default

    def canonical_name(self, name: Optional[str]) -> str:
        if not name:
            return self.default
        name = self._aliases.get(name, name)
        return name if name in self._strategies else self.default

    def get(self, name: Optional[str]) -> T:
        return self._strategies[self.canonical_name(name)]

    def __contains__(self, name: object) -> bool:
        return name in self._strategies or name in self._aliases

    def names(self) -> List[str]:
        return list(self._strategies)

    def all(self) -> List[T]:
        return list(self._strategies.values())


@dataclass(frozen=True)
class StrategySets:
    types: StrategySet[TypeDetectionStrategy]
    dates: StrategySet[DateParsingStrategy]
    descriptions: StrategySet[DescriptionExtractionStrategy]


def default_strategy_sets() -> StrategySets:
    return StrategySets(
        types=StrategySet(
            [SignBasedTypeDetection(), InvertedSignTypeDetection(), ColumnTypeDetection()],
            default=DEFAULT_TYPE_STRATEGY,
            aliases=TYPE_STRATEGY_ALIASES,
        ),
        dates=StrategySet(
            [DefaultDateParsing(), YyyymmddDateParsing(), MonthDayYearDateParsing()],
            default=DEFAULT_DATE_STRATEGY,
            aliases={"ing": "yyyymmdd", "amex": "mm-dd-yyyy"},
        ),
        descriptions=StrategySet(
            [DefaultDescriptionExtraction(), NotificationDescriptionExtraction()],
            default=DEFAULT_DESCRIPTION_STRATEGY,
            aliases={"ing": "notifications"},
        ),
    )


@dataclass(frozen=True)
class ActiveStrategies:
    """Strategies in effect for one transform request."""

    bank_id: Optional[str]
    type_strategy: TypeDetectionStrategy
    date_strategy: DateParsingStrategy
    description_strategy: DescriptionExtractionStrategy
    default_payment_method: str = DEFAULT_PAYMENT_METHOD

    @property
    def type_strategy_name(self) -> str:
        return self.type_strategy.name


def select_type_strategy(
    sets: StrategySets,
    banks: BankProfileRegistry,
    bank_id: Optional[str] = None,
    override: Optional[str] = None,
) -> TypeDetectionStrategy:
    if override:
        return sets.types.get(override)
    profile = banks.get(bank_id)
    return sets.types.get(profile.type_strategy if profile else None)


def select_date_strategy(
    sets: StrategySets, banks: BankProfileRegistry, bank_id: Optional[str] = None
) -> DateParsingStrategy:
    profile = banks.get(bank_id)
    return sets.dates.get(profile.date_strategy if profile else None)


def select_description_strategy(
    sets: StrategySets, banks: BankProfileRegistry, bank_id: Optional[str] = None
) -> DescriptionExtractionStrategy:
    profile = banks.get(bank_id)
    return sets.descriptions.get(profile.description_strategy if profile else None)


def select_strategies(
    sets: StrategySets,
    banks: BankProfileRegistry,
    bank_id: Optional[str] = None,
    type_override: Optional[str] = None,
) -> ActiveStrategies:
    return ActiveStrategies(
        bank_id=bank_id,
        type_strategy=select_type_strategy(sets, banks, bank_id, type_override),
        date_strategy=select_date_strategy(sets, banks, bank_id),
        description_strategy=select_description_strategy(sets, banks, bank_id),
        default_payment_method=banks.default_payment_method(bank_id),
    )
