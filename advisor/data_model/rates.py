from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, List

from ..formatting import parse_number

DEFAULT_MAX_CPP_ANNUAL = 17478.36
DEFAULT_MAX_OAS_ANNUAL = 8814.24
DEFAULT_MAX_OAS_ANNUAL_75_PLUS = 9695.66
DEFAULT_OAS_CLAWBACK_THRESHOLD = 90997.0
DEFAULT_OAS_CLAWBACK_RATE = 15.0  # percent

# Combined federal + Ontario rates on ordinary income, (min, max, rate %).
ONTARIO_BRACKETS_2024 = [
    (0.0, 51446.0, 20.05),
    (51446.0, 55867.0, 24.15),
    (55867.0, 102894.0, 29.65),
    (102894.0, 111733.0, 31.48),
    (111733.0, 150000.0, 33.89),
    (150000.0, 173205.0, 37.91),
    (173205.0, 220000.0, 43.41),
    (220000.0, 246752.0, 44.97),
    (246752.0, None, 48.29),
]

ONTARIO_BRACKETS_2025 = [
    (0.0, 16258.0, 0.0),
    (16258.0, 52886.0, 20.05),
    (52886.0, 57375.0, 24.15),
    (57375.0, 105775.0, 29.65),
    (105775.0, 109727.0, 31.48),
    (109727.0, 114750.0, 33.89),
    (114750.0, 150000.0, 37.91),
    (150000.0, 177882.0, 43.41),
    (177882.0, 220000.0, 44.97),
    (220000.0, 253414.0, 48.29),
    (253414.0, None, 53.53),
]


@dataclass(frozen=True)
class TaxBracket:
    min_income: float
    max_income: float | None
    rate: float  # percent

    @property
    def upper(self) -> float:
        return float("inf") if self.max_income is None else self.max_income

    def to_record(self) -> dict[str, Any]:
        return {"min_income": self.min_income, "max_income": self.max_income, "rate": self.rate}


@dataclass
class TaxBracketTable:
    year: int
    province: str
    brackets: List[TaxBracket] = field(default_factory=list)
    updated_date: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "province": self.province,
            "brackets": [b.to_record() for b in self.brackets],
            "updated_date": self.updated_date,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "TaxBracketTable":
        return cls(
            year=int(parse_number(record.get("year"), 0)),
            province=str(record.get("province") or "").upper(),
            brackets=brackets_from_records(record.get("brackets") or []),
            updated_date=record.get("updated_date"),
        )


def brackets_from_tuples(rows: Iterable[tuple[float, float | None, float]]) -> List[TaxBracket]:
    return [TaxBracket(min_income=lo, max_income=hi, rate=rate) for lo, hi, rate in rows]


def brackets_from_records(records: Iterable[dict[str, Any]]) -> List[TaxBracket]:
    brackets: List[TaxBracket] = []
    for row in records or []:
        rate = parse_number(row.get("rate"), float("nan"))
        if rate != rate:
            continue
        raw_max = row.get("max_income")
        max_income = None if raw_max in (None, "") else parse_number(raw_max, float("nan"))
        if max_income is not None and max_income != max_income:
            max_income = None
        brackets.append(
            TaxBracket(
                min_income=parse_number(row.get("min_income"), 0.0),
                max_income=max_income,
                rate=rate,
            )
        )
    return brackets


def _or_default(record: dict[str, Any], key: str, default: float) -> float:
    value = parse_number(record.get(key), 0.0)
    return value if value else default


@dataclass
class BenefitRates:
    year: int
    max_cpp_annual: float = DEFAULT_MAX_CPP_ANNUAL
    max_oas_annual: float = DEFAULT_MAX_OAS_ANNUAL
    max_oas_annual_75_plus: float = DEFAULT_MAX_OAS_ANNUAL_75_PLUS
    oas_clawback_threshold: float = DEFAULT_OAS_CLAWBACK_THRESHOLD
    oas_clawback_rate: float = DEFAULT_OAS_CLAWBACK_RATE
    updated_date: str | None = None

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict[str, Any], year: int | None = None) -> "BenefitRates":
        max_oas = _or_default(record, "max_oas_annual", DEFAULT_MAX_OAS_ANNUAL)
        explicit_75 = parse_number(record.get("max_oas_annual_75_plus"), 0.0)
        return cls(
            year=int(parse_number(record.get("year"), year or 0)),
            max_cpp_annual=_or_default(record, "max_cpp_annual", DEFAULT_MAX_CPP_ANNUAL),
            max_oas_annual=max_oas,
            max_oas_annual_75_plus=explicit_75 or round(max_oas * 1.1, 2),
            oas_clawback_threshold=_or_default(record, "oas_clawback_threshold", DEFAULT_OAS_CLAWBACK_THRESHOLD),
            oas_clawback_rate=_or_default(record, "oas_clawback_rate", DEFAULT_OAS_CLAWBACK_RATE),
            updated_date=record.get("updated_date"),
        )
