"""Primitives shared by the line-based and layout-aware parsers.

Credit/debit polarity of a payment type, count-based mapping of money
tokens to roles, paid-in/paid-out reconciliation and header detection.
"""

import re
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from .records import TransactionRecord
from .vocabulary import CREDIT_TYPES, HEADER_SUBSTRINGS, PAYMENT_TYPES, type_pattern


def is_credit_type(payment_type: Optional[str]) -> bool:
  """True when ``payment_type`` routes a lone amount to paid in."""
  if not payment_type:
    return False
  clean = re.sub(r"[^A-Z]", "", str(payment_type).upper())
  return clean in CREDIT_TYPES


def clean_amount(token: str) -> str:
  return token.replace(',', '')


def map_money_array(amounts: Sequence[str], payment_type: Optional[str] = None) -> Tuple[str, str, str]:
  """Assign position-ordered amounts to ``(paid_in, paid_out, balance)``.

  Used only when no column positions are known:

  * three or more: paid out, paid in, balance (extras ignored)
  * two: paid out, balance
  * one: paid in for credit types, paid out otherwise
  """
  paid_in = paid_out = balance = ''
  if len(amounts) >= 3:
    paid_out, paid_in, balance = amounts[0], amounts[1], amounts[2]
  elif len(amounts) == 2:
    paid_out, balance = amounts[0], amounts[1]
  elif len(amounts) == 1:
    if is_credit_type(payment_type):
      paid_in = amounts[0]
    else:
      paid_out = amounts[0]
  return paid_in, paid_out, balance


def normalize(record: TransactionRecord, prefer_columns: bool = False) -> TransactionRecord:
  """Make paid in and paid out mutually exclusive using payment-type polarity.

  With ``prefer_columns`` a value already placed in paid in by column
  matching stays there even for a debit type.
  """
  credit = is_credit_type(record.payment_type)
  paid_in, paid_out = record.paid_in, record.paid_out
  if paid_in and paid_out:
    if credit:
      paid_out = ''
    else:
      paid_in = ''
  elif credit and paid_out:
    paid_in, paid_out = paid_out, ''
  elif not credit and paid_in and not prefer_columns:
    paid_in, paid_out = '', paid_in
  if (paid_in, paid_out) == (record.paid_in, record.paid_out):
    return record
  return replace(record, paid_in=paid_in, paid_out=paid_out)


def is_header_text(text: Optional[str]) -> bool:
  if not text:
    return False
  low = text.lower()
  return any(s in low for s in HEADER_SUBSTRINGS)


def find_payment_type(text: Optional[str]) -> str:
  """First vocabulary token found anywhere in ``text``, or ``""``."""
  if not text:
    return ''
  for token in PAYMENT_TYPES:
    if type_pattern(token).search(text):
      return token
  return ''
