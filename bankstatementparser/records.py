"""The transaction record shared by both parsers and its tabular view."""

from dataclasses import asdict, dataclass, replace
from typing import Dict, Iterable

import pandas as pd

COLUMNS = ['Date', 'Payment Type', 'Details 1', 'Details 2', 'Paid Out', 'Paid In', 'Balance']

_FIELD_COLUMNS = {
  'date': 'Date',
  'payment_type': 'Payment Type',
  'details1': 'Details 1',
  'details2': 'Details 2',
  'paid_out': 'Paid Out',
  'paid_in': 'Paid In',
  'balance': 'Balance',
}


@dataclass(frozen=True)
class TransactionRecord:
  """One statement transaction.

  Money fields hold decimal strings without grouping commas, or ``""``.
  Records are immutable; parsers build updated copies with ``replace``.
  """

  date: str = ''
  payment_type: str = ''
  details1: str = ''
  details2: str = ''
  paid_in: str = ''
  paid_out: str = ''
  balance: str = ''

  def has_amounts(self) -> bool:
    return bool(self.paid_in or self.paid_out or self.balance)

  def combined_text(self) -> str:
    return f"{self.details1} {self.details2}".strip()

  def append_details(self, text: str) -> 'TransactionRecord':
    """Return a copy with ``text`` space-joined onto ``details2``."""
    text = text.strip()
    if not text:
      return self
    details2 = f"{self.details2} {text}" if self.details2 else text
    return replace(self, details2=details2)

  def to_dict(self) -> Dict[str, str]:
    return {_FIELD_COLUMNS[k]: v for k, v in asdict(self).items()}


def to_dataframe(records: Iterable[TransactionRecord]) -> pd.DataFrame:
  """Tabular view of ``records`` in statement column order."""
  return pd.DataFrame([r.to_dict() for r in records], columns=COLUMNS)
