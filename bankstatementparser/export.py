"""Writes parsed transactions as CSV, XLSX or XML."""

import csv
import os
from typing import Iterable, Optional

from .records import TransactionRecord, to_dataframe

FORMATS = ('csv', 'xlsx', 'xml')

# Element names used in the XML export, in column order.
XML_NAMES = ['date', 'paymentType', 'details1', 'details2', 'paidOut', 'paidIn', 'balance']


def infer_format(path: str) -> str:
  ext = os.path.splitext(path)[1].lower().lstrip('.')
  if ext not in FORMATS:
    raise ValueError(f"Cannot infer export format from {path!r}; use one of {', '.join(FORMATS)}")
  return ext


def write_records(records: Iterable[TransactionRecord], path: str, fmt: Optional[str] = None):
  """Write ``records`` to ``path``; ``fmt`` defaults to the file extension."""
  fmt = (fmt or infer_format(path)).lower()
  df = to_dataframe(records)
  if fmt == 'csv':
    df.to_csv(path, index=False, quoting=csv.QUOTE_ALL)
  elif fmt == 'xlsx':
    df.to_excel(path, sheet_name='Transactions', index=False, engine='openpyxl')
  elif fmt == 'xml':
    df.columns = XML_NAMES
    df.to_xml(path, index=False, root_name='transactions', row_name='transaction', parser='etree')
  else:
    raise ValueError(f"Unsupported export format: {fmt}")
  return df
