"""Cleanup pipeline applied to the records of one layout-parsed page."""

import logging
from dataclasses import replace
from typing import Dict, List, Sequence

from .classify import is_credit_type, normalize
from .records import TransactionRecord
from .vocabulary import (
  ACCOUNT_META_RE,
  END_MARKER_RE,
  IMAGE_DATA_RE,
  MAX_PARAGRAPH_LENGTH,
  PERCENT_RE,
  POLICY_RE,
  SUMMARY_RE,
)

logger = logging.getLogger(__name__)

Records = List[TransactionRecord]


def drop_image_records(records: Sequence[TransactionRecord]) -> Records:
  kept = []
  for r in records:
    combined = f"{r.date} {r.payment_type} {r.details1} {r.details2}"
    if IMAGE_DATA_RE.search(combined):
      continue
    kept.append(r)
  return kept


def skip_leading_summaries(records: Sequence[TransactionRecord]) -> Records:
  """Drop everything before the first dated or typed row that is not a summary."""
  for idx, r in enumerate(records):
    if (r.date or r.payment_type) and not SUMMARY_RE.search(r.combined_text()):
      if idx:
        logger.debug(f"Skipping {idx} leading summary rows")
      return list(records[idx:])
  return list(records)


def truncate_at_end_marker(records: Sequence[TransactionRecord]) -> Records:
  """Drop the first carried-forward/closing-balance row and everything after it."""
  for idx, r in enumerate(records):
    if END_MARKER_RE.search(r.combined_text()):
      logger.debug(f"Truncating at end marker: {r.combined_text()!r}")
      return list(records[:idx])
  return list(records)


def _is_noise(record: TransactionRecord) -> bool:
  combined = record.combined_text()
  if PERCENT_RE.search(combined):
    return True
  if POLICY_RE.search(combined) or ACCOUNT_META_RE.search(combined):
    return True
  bare = not (record.date or record.payment_type or record.has_amounts())
  return bare and len(combined) > MAX_PARAGRAPH_LENGTH


def drop_noise_records(records: Sequence[TransactionRecord]) -> Records:
  """Drop interest-rate, legal and account-metadata rows, even with amounts."""
  return [r for r in records if not _is_noise(r)]


def propagate_dates(records: Sequence[TransactionRecord]) -> Records:
  out = []
  last_date = ''
  for r in records:
    if r.date:
      last_date = r.date
    else:
      r = replace(r, date=last_date)
    out.append(r)
  return out


def enforce_balance_uniqueness(records: Sequence[TransactionRecord]) -> Records:
  """Keep a balance only on the last record of each date.

  An earlier same-date balance with no paid in/out beside it is moved to
  the side given by the payment type. Every record is then normalized with
  column placements taking precedence.
  """
  last_by_date: Dict[str, int] = {}
  for idx, r in enumerate(records):
    if r.date:
      last_by_date[r.date] = idx

  out = []
  for idx, r in enumerate(records):
    last = last_by_date.get(r.date)
    if last is not None and idx != last and r.balance:
      if not (r.paid_in or r.paid_out):
        if is_credit_type(r.payment_type):
          r = replace(r, paid_in=r.balance)
        else:
          r = replace(r, paid_out=r.balance)
      r = replace(r, balance='')
    out.append(normalize(r, prefer_columns=True))
  return out


PIPELINE = (
  drop_image_records,
  skip_leading_summaries,
  truncate_at_end_marker,
  drop_noise_records,
  propagate_dates,
  enforce_balance_uniqueness,
)


def clean_records(records: Sequence[TransactionRecord]) -> Records:
  result = list(records)
  for step in PIPELINE:
    result = step(result)
  return result
