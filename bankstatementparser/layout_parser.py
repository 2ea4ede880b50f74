# -*- coding: utf-8 -*-
"""layout_parser.py
Layout-aware transaction parser.

Works on the positioned text fragments of one page:

1.  Fragments sharing a rounded *y* form a visual row (rows top to bottom,
    fragments left to right).  Rows leaking embedded image data are dropped.
2.  The x positions of the *paid out*, *paid in* and *balance* columns are
    inferred from the header labels and from clustering the x positions of
    every amount on the page.
3.  Each row is read into a date, a payment type, detail text and amounts
    assigned to columns by nearest-x matching.
4.  Rows are folded into transactions.  A row with a date opens one; an
    undated row with money opens one too unless the previous transaction is
    still waiting for its amounts; a text-only row continues the details.
5.  The page's transactions go through :func:`postprocess.clean_records`.

The *y* axis grows upwards (PDF user space), so higher rows have larger *y*.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from functools import reduce
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .classify import clean_amount, find_payment_type, is_header_text, map_money_array, normalize
from .postprocess import clean_records
from .records import TransactionRecord
from .vocabulary import (
  COLUMN_TOLERANCE,
  DATE_RE,
  END_MARKER_RE,
  HEADER_LABELS,
  HEADER_PREFIX_RE,
  HEADER_SUFFIXES,
  IMAGE_DATA_RE,
  MAX_COLUMNS,
  MONEY_RE,
  PAYMENT_TYPES,
  PERCENT_RE,
  SHORT_CAPS_RE,
  type_pattern,
)

logger = logging.getLogger(__name__)

__all__ = [
  "TextFragment",
  "VisualRow",
  "ColumnLayout",
  "build_visual_rows",
  "drop_image_rows",
  "cluster_positions",
  "header_positions",
  "infer_columns",
  "assign_money",
  "read_row",
  "parse_page_items_to_rows",
  "parse_pages",
  "fragments_to_lines",
]

ROLES = ("paid_out", "paid_in", "balance")


def _round_half_up(value: float) -> int:
  return int(math.floor(value + 0.5))


class TextFragment(NamedTuple):
  """A run of text at a position on the page."""

  x: float
  y: float
  text: str

  @classmethod
  def coerce(cls, obj) -> "TextFragment":
    """Accept a ``TextFragment``, an ``(x, y, text)`` tuple, a mapping with
    ``x``/``y``/``text`` keys or a PDF.js text item (``transform``/``str``).

    Missing fields raise ``KeyError``.
    """
    if isinstance(obj, cls):
      return obj
    if isinstance(obj, tuple):
      x, y, text = obj
      return cls(float(x), float(y), text or "")
    if "transform" in obj:
      return cls(float(obj["transform"][4]), float(obj["transform"][5]), obj.get("str") or "")
    return cls(float(obj["x"]), float(obj["y"]), obj["text"] or "")


class VisualRow(NamedTuple):
  y: int
  fragments: Tuple[TextFragment, ...]

  @property
  def text(self) -> str:
    return " ".join(f.text for f in self.fragments).strip()


class MoneyToken(NamedTuple):
  x: int
  value: str


@dataclass(frozen=True)
class ColumnLayout:
  """Inferred x positions of the money columns; ``None`` when absent."""

  paid_out_x: Optional[int] = None
  paid_in_x: Optional[int] = None
  balance_x: Optional[int] = None

  def slots(self) -> List[Tuple[str, int]]:
    positions = (self.paid_out_x, self.paid_in_x, self.balance_x)
    return [(role, x) for role, x in zip(ROLES, positions) if x is not None]

  def is_empty(self) -> bool:
    return not self.slots()


class RowReading(NamedTuple):
  """What one visual row says, before it is folded into a transaction."""

  date: str
  payment_type: str
  details: str
  paid_in: str
  paid_out: str
  balance: str

  @property
  def has_money(self) -> bool:
    return bool(self.paid_in or self.paid_out or self.balance)


@dataclass(frozen=True)
class PageState:
  records: Tuple[TransactionRecord, ...] = ()
  current_date: str = ""


# ---------------------------------------------------------------------------
# Row reconstruction
# ---------------------------------------------------------------------------

def build_visual_rows(fragments: Iterable[TextFragment]) -> List[VisualRow]:
  buckets: Dict[int, List[TextFragment]] = {}
  for frag in fragments:
    buckets.setdefault(_round_half_up(frag.y), []).append(frag)
  return [
    VisualRow(y, tuple(sorted(buckets[y], key=lambda f: f.x)))
    for y in sorted(buckets, reverse=True)
  ]


def drop_image_rows(rows: Sequence[VisualRow]) -> List[VisualRow]:
  kept = [r for r in rows if not any(IMAGE_DATA_RE.search(f.text) for f in r.fragments)]
  if len(kept) != len(rows):
    logger.debug(f"Dropped {len(rows) - len(kept)} image placeholder rows")
  return kept


def fragments_to_lines(fragments: Iterable) -> List[str]:
  """Reconstruct plain text lines, top to bottom, for the line-based parser."""
  rows = build_visual_rows(TextFragment.coerce(f) for f in fragments)
  return [r.text for r in rows if r.text]


# ---------------------------------------------------------------------------
# Column inference
# ---------------------------------------------------------------------------

def _money_token(frag: TextFragment, text: Optional[str] = None) -> Optional[MoneyToken]:
  """The amount carried by a fragment ("-8.10", "76.90 CR", "£1,491.90").

  Rate fragments ("19.90 %") are not amounts and stay in the details.
  """
  text = frag.text if text is None else text
  if PERCENT_RE.search(text):
    return None
  m = MONEY_RE.search(text)
  if not m:
    return None
  return MoneyToken(_round_half_up(frag.x), clean_amount(m.group(0)))


def cluster_positions(xs: Iterable[float], tolerance: float = COLUMN_TOLERANCE) -> List[int]:
  """Cluster x positions; neighbours closer than ``tolerance`` share a column."""
  values = np.unique(np.asarray([_round_half_up(x) for x in xs], dtype=float))
  if values.size == 0:
    return []
  breaks = np.flatnonzero(np.diff(values) > tolerance) + 1
  return [_round_half_up(float(group.mean())) for group in np.split(values, breaks)]


def _row_labels(row: VisualRow) -> Dict[str, float]:
  found: Dict[str, float] = {}
  frags = row.fragments
  for i, frag in enumerate(frags):
    text = frag.text.strip()
    for role, pattern in HEADER_LABELS.items():
      if role not in found and pattern.match(text):
        found[role] = frag.x
    if HEADER_PREFIX_RE.match(text) and i + 1 < len(frags):
      role = HEADER_SUFFIXES.get(frags[i + 1].text.strip().lower())
      if role and role not in found:
        found[role] = frag.x
  return found


def _is_column_header(row: VisualRow) -> bool:
  if any(DATE_RE.match(f.text) or _money_token(f) for f in row.fragments):
    return False
  return bool(_row_labels(row))


def header_positions(rows: Sequence[VisualRow]) -> Dict[str, float]:
  """x of the first "paid out" / "paid in" / "balance" label found per role.

  Tolerates a label split over two adjacent fragments ("PAID" + "OUT").
  """
  found: Dict[str, float] = {}
  for row in rows:
    if not _is_column_header(row):
      continue
    for role, x in _row_labels(row).items():
      found.setdefault(role, x)
  return found


def infer_columns(rows: Sequence[VisualRow]) -> ColumnLayout:
  """Money column positions for a page.

  Amount positions are clustered and only the rightmost three clusters are
  kept (leading numeric columns hold reference numbers).  The leftmost kept
  cluster is paid out, the rightmost is balance and the middle of three is
  paid in.  Header labels override the clusters role by role.
  """
  xs = [tok.x for row in rows for tok in map(_money_token, row.fragments) if tok]
  centers = sorted(cluster_positions(xs))[-MAX_COLUMNS:]

  positions: Dict[str, Optional[float]] = dict.fromkeys(ROLES)
  if centers:
    positions["paid_out"] = centers[0]
    if len(centers) > 1:
      positions["balance"] = centers[-1]
    if len(centers) == MAX_COLUMNS:
      positions["paid_in"] = centers[1]

  for role, x in header_positions(rows).items():
    positions[role] = _round_half_up(x)

  layout = ColumnLayout(positions["paid_out"], positions["paid_in"], positions["balance"])
  logger.debug(f"Money clusters {centers} -> {layout}")
  return layout


# ---------------------------------------------------------------------------
# Row reading
# ---------------------------------------------------------------------------

def assign_money(tokens: Sequence[MoneyToken], layout: ColumnLayout,
                 payment_type: str = "") -> Tuple[str, str, str]:
  """Assign amounts to ``(paid_in, paid_out, balance)`` by nearest column.

  Every (token, column) pair is ranked by x distance and claimed greedily;
  ties go to the earlier token, then to the earlier column (paid out, paid
  in, balance).  Tokens left over fill the first empty role in that same
  order.  Without any known column the count-based mapping is used.
  """
  if not tokens:
    return "", "", ""
  if layout.is_empty():
    return map_money_array([t.value for t in tokens], payment_type)
  slots = layout.slots()

  pairs = sorted(
    (abs(tok.x - x), ti, si)
    for ti, tok in enumerate(tokens)
    for si, (_, x) in enumerate(slots)
  )
  assigned: Dict[str, str] = {}
  used_tokens, used_slots = set(), set()
  for _, ti, si in pairs:
    if ti in used_tokens or si in used_slots:
      continue
    used_tokens.add(ti)
    used_slots.add(si)
    assigned[slots[si][0]] = tokens[ti].value

  for ti, tok in enumerate(tokens):
    if ti in used_tokens:
      continue
    role = next((r for r in ROLES if r not in assigned), None)
    if role is None:
      break
    assigned[role] = tok.value

  return assigned.get("paid_in", ""), assigned.get("paid_out", ""), assigned.get("balance", "")


def _find_type(pieces: List[Tuple[TextFragment, str]], date_x: float) -> Tuple[Optional[int], str]:
  """Index of the piece holding the payment type and the type itself."""
  for i, (_, text) in enumerate(pieces):
    if text.upper() in PAYMENT_TYPES:
      return i, text
  for i, (frag, text) in enumerate(pieces):
    if SHORT_CAPS_RE.match(text) and frag.x > date_x:
      return i, text
  for i, (_, text) in enumerate(pieces):
    token = find_payment_type(text)
    if token:
      return i, token
  return None, ""


def read_row(row: VisualRow, layout: ColumnLayout, date_x: float = 0) -> RowReading:
  date = ""
  pieces: List[Tuple[TextFragment, str]] = []
  tokens: List[MoneyToken] = []
  for frag in row.fragments:
    text = frag.text.strip()
    if not date:
      m = DATE_RE.match(text)
      if m:
        date = m.group(1).strip()
        text = text[m.end():].strip()
    if not text:
      continue
    tok = _money_token(frag, text)
    if tok:
      tokens.append(tok)
      continue
    pieces.append((frag, text))

  type_idx, payment_type = _find_type(pieces, date_x)
  details = []
  for i, (_, text) in enumerate(pieces):
    if i == type_idx:
      # A type found inside a longer fragment leaves the rest as details.
      text = " ".join(type_pattern(payment_type).sub("", text, count=1).split())
      if not text:
        continue
    details.append(text)

  paid_in, paid_out, balance = assign_money(tokens, layout, payment_type)
  return RowReading(date, payment_type, " ".join(details).strip(), paid_in, paid_out, balance)


def _date_column(rows: Sequence[VisualRow]) -> float:
  xs = []
  for row in rows:
    for frag in row.fragments:
      if DATE_RE.match(frag.text):
        return frag.x
      xs.append(frag.x)
  return min(xs) if xs else 0


# ---------------------------------------------------------------------------
# Folding rows into transactions
# ---------------------------------------------------------------------------

def _reading_record(reading: RowReading, date: str) -> TransactionRecord:
  record = TransactionRecord(
    date=date,
    payment_type=reading.payment_type,
    details1=reading.details,
    paid_in=reading.paid_in,
    paid_out=reading.paid_out,
    balance=reading.balance,
  )
  return normalize(record, prefer_columns=True)


def _backfill(last: TransactionRecord, reading: RowReading) -> TransactionRecord:
  """Attach amounts printed one line below their description."""
  updated = replace(
    last,
    paid_in=reading.paid_in or last.paid_in,
    paid_out=reading.paid_out or last.paid_out,
    balance=reading.balance or last.balance,
    payment_type=last.payment_type or reading.payment_type,
  ).append_details(reading.details)
  return normalize(updated, prefer_columns=True)


def _fold_row(state: PageState, reading: RowReading) -> PageState:
  records = state.records
  last = records[-1] if records else None

  if reading.date:
    return PageState(records + (_reading_record(reading, reading.date),), reading.date)

  if END_MARKER_RE.search(reading.details):
    # Kept as a row so the cleanup pipeline can cut the page there.
    return PageState(records + (_reading_record(reading, state.current_date),), state.current_date)

  if reading.has_money or reading.payment_type:
    if reading.has_money and last is not None and last.details1 and not last.has_amounts():
      return PageState(records[:-1] + (_backfill(last, reading),), state.current_date)
    if is_header_text(reading.details):
      logger.debug(f"Skipping header row: {reading.details!r}")
      return state
    return PageState(records + (_reading_record(reading, state.current_date),), state.current_date)

  if reading.details and last is not None and not is_header_text(reading.details):
    return PageState(records[:-1] + (last.append_details(reading.details),), state.current_date)
  return state


def _read_page(fragments: Iterable) -> List[RowReading]:
  rows = drop_image_rows(build_visual_rows(TextFragment.coerce(f) for f in fragments))
  layout = infer_columns(rows)
  date_x = _date_column(rows)
  return [read_row(row, layout, date_x) for row in rows if not _is_column_header(row)]


def _fold_page(fragments: Iterable, current_date: str = "") -> PageState:
  readings = _read_page(fragments)
  state = reduce(_fold_row, readings, PageState(current_date=current_date or ""))
  logger.debug(f"Folded {len(readings)} rows into {len(state.records)} transactions")
  return state


def parse_page_items_to_rows(fragments: Iterable, current_date: str = "") -> List[TransactionRecord]:
  """Parse the positioned text fragments of one page into transactions.

  ``current_date`` is the date in force at the top of the page, for
  statements whose transactions continue across a page break.
  """
  return clean_records(_fold_page(fragments, current_date).records)


def parse_pages(pages: Iterable[Iterable]) -> List[TransactionRecord]:
  """Parse every page of a document, carrying the current date across pages."""
  records: List[TransactionRecord] = []
  current_date = ""
  for page_num, fragments in enumerate(pages, 1):
    state = _fold_page(fragments, current_date)
    current_date = state.current_date
    page_records = clean_records(state.records)
    logger.info(f"Page {page_num}: {len(page_records)} transactions")
    records.extend(page_records)
  return records
