# advisor/engine/state.py
import datetime as dt
import uuid
from typing import Dict, List

from ..data_model.rates import BenefitRates, TaxBracketTable
from ..exceptions import CalculatorNotFoundError, InvalidInputError
from .storage import load_records, save_records

CALCULATOR_TYPES = ("fixed_income", "tax_layering", "cpp_oas_breakeven", "capital_assets")


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds")


class CalculatorState:
    def __init__(self, storage_path: str = "user_data/calculators.json"):
        self.storage_path = storage_path
        self.calculators: Dict[str, dict] = load_records(storage_path)

    def list(self, calculator_type: str | None = None, client_id: str | None = None) -> List[dict]:
        entries = []
        for calc_id, entry in self.calculators.items():
            if calculator_type and entry.get("type") != calculator_type:
                continue
            if client_id and client_id not in (entry.get("client_ids") or []):
                continue
            entries.append({"id": calc_id, **entry})
        return sorted(entries, key=lambda e: e.get("updated") or "", reverse=True)

    def get(self, calc_id: str) -> dict:
        entry = self.calculators.get(calc_id)
        if entry is None:
            raise CalculatorNotFoundError(calc_id)
        return {"id": calc_id, **entry}

    def save(
        self,
        calculator_type: str,
        inputs: dict,
        name: str = "",
        client_ids: List[str] | None = None,
        calc_id: str | None = None,
    ) -> str:
        if calculator_type not in CALCULATOR_TYPES:
            raise InvalidInputError("type", f"must be one of {', '.join(CALCULATOR_TYPES)}")
        calc_id = calc_id or uuid.uuid4().hex
        self.calculators[calc_id] = {
            "name": name or calculator_type,
            "type": calculator_type,
            "client_ids": list(client_ids or []),
            "inputs": inputs,
            "updated": _now(),
        }
        self._save()
        return calc_id

    def delete(self, calc_id: str) -> None:
        if calc_id not in self.calculators:
            raise CalculatorNotFoundError(calc_id)
        del self.calculators[calc_id]
        self._save()

    def _save(self) -> None:
        save_records(self.storage_path, self.calculators)


class RateState:
    """Custom tax bracket tables and benefit rates keyed by year (and province)."""

    def __init__(self, storage_path: str = "user_data/rates.json"):
        self.storage_path = storage_path
        raw = load_records(storage_path)
        self.tax_brackets: Dict[str, dict] = dict(raw.get("tax_brackets") or {})
        self.benefits: Dict[str, dict] = dict(raw.get("benefits") or {})

    @staticmethod
    def bracket_key(year: int, province: str) -> str:
        return f"{int(year)}:{province.upper()}"

    def get_tax_brackets(self, year: int, province: str) -> TaxBracketTable | None:
        record = self.tax_brackets.get(self.bracket_key(year, province))
        return TaxBracketTable.from_record(record) if record else None

    def save_tax_brackets(self, table: TaxBracketTable) -> None:
        if not table.brackets:
            raise InvalidInputError("brackets", "at least one bracket is required")
        table.updated_date = table.updated_date or _now()
        self.tax_brackets[self.bracket_key(table.year, table.province)] = table.to_record()
        self._save()

    def get_benefit_rates(self, year: int) -> BenefitRates | None:
        record = self.benefits.get(str(int(year)))
        return BenefitRates.from_record(record, year) if record else None

    def save_benefit_rates(self, rates: BenefitRates) -> None:
        rates.updated_date = rates.updated_date or _now()
        self.benefits[str(int(rates.year))] = rates.to_record()
        self._save()

    def benefit_years(self) -> List[int]:
        return sorted(int(year) for year in self.benefits)

    def _save(self) -> None:
        save_records(self.storage_path, {"tax_brackets": self.tax_brackets, "benefits": self.benefits})
