"""Line-based transaction parser.

Fallback path for documents whose layout cannot be used: the input is a flat
sequence of reconstructed text lines. A line starting with a date opens a
transaction and absorbs every following line up to the next dated line.
Undated lines carrying money or a leading payment-type code open a
transaction under the most recent date; anything else continues the last
transaction's details.
"""

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .classify import clean_amount, find_payment_type, is_header_text, map_money_array, normalize
from .records import TransactionRecord
from .vocabulary import DATE_RE, IMAGE_DATA_RE, LEADING_TYPE_RE, MONEY_RE

logger = logging.getLogger(__name__)

__all__ = [
  'LineBlock',
  'segment_lines',
  'parse_lines_to_transactions',
]


class LineBlock(NamedTuple):
  """A dated line with its absorbed continuation lines, or one undated line."""

  date: Optional[str]
  head: str
  continuation: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LineState:
  records: Tuple[TransactionRecord, ...] = ()
  current_date: str = ''
  last_index: Optional[int] = None


def _is_noise(line: str) -> bool:
  return bool(IMAGE_DATA_RE.search(line)) or is_header_text(line)


def _money_tokens(text: str) -> List[str]:
  return [clean_amount(m) for m in MONEY_RE.findall(text)]


def _strip_money(text: str) -> str:
  return ' '.join(MONEY_RE.sub('', text).split())


def segment_lines(lines: Iterable[Optional[str]]) -> List[LineBlock]:
  """Split ``lines`` into transaction blocks using date-anchored lookahead."""
  cleaned = [(line or '').strip() for line in lines]
  blocks: List[LineBlock] = []
  i = 0
  while i < len(cleaned):
    line = cleaned[i]
    i += 1
    if not line:
      continue
    m = DATE_RE.match(line)
    if not m:
      if _is_noise(line):
        logger.debug(f"Skipping noise line: {line}")
        continue
      blocks.append(LineBlock(None, line))
      continue
    absorbed = []
    while i < len(cleaned) and not DATE_RE.match(cleaned[i]):
      nxt = cleaned[i]
      i += 1
      if nxt and not _is_noise(nxt):
        absorbed.append(nxt)
    if IMAGE_DATA_RE.search(line):
      # The whole block goes, continuation lines included.
      logger.debug(f"Skipping image data line: {line}")
      continue
    blocks.append(LineBlock(m.group(1), line[m.end():].strip(), tuple(absorbed)))
  return blocks


def _leading_type(text: str) -> str:
  m = LEADING_TYPE_RE.match(text)
  return m.group(1) if m else ''


def _build_record(date: str, payment_type: str, details: List[str], amounts: List[str]) -> TransactionRecord:
  paid_in, paid_out, balance = map_money_array(amounts, payment_type)
  record = TransactionRecord(
    date=date,
    payment_type=payment_type,
    details1=details[0] if details else '',
    details2=' '.join(details[1:]),
    paid_in=paid_in,
    paid_out=paid_out,
    balance=balance,
  )
  return normalize(record)


def _dated_record(block: LineBlock) -> TransactionRecord:
  rest = block.head
  payment_type = _leading_type(rest) or find_payment_type(rest)
  amounts = _money_tokens(rest)
  details = []
  head_text = _strip_money(LEADING_TYPE_RE.sub('', _strip_money(rest), count=1))
  if head_text:
    details.append(head_text)
  for line in block.continuation:
    amounts.extend(_money_tokens(line))
    text = _strip_money(line)
    if text:
      details.append(text)
  return _build_record(block.date, payment_type, details, amounts)


def _undated_record(line: str, date: str) -> Optional[TransactionRecord]:
  amounts = _money_tokens(line)
  leading = _leading_type(line)
  if not amounts and not leading:
    return None
  payment_type = leading or find_payment_type(line)
  text = _strip_money(LEADING_TYPE_RE.sub('', line, count=1))
  return _build_record(date, payment_type, [text] if text else [], amounts)


def _keep(record: TransactionRecord) -> bool:
  if is_header_text(record.details1) and not record.has_amounts():
    return False
  return bool(record.details1 or record.payment_type or record.has_amounts())


def _push(state: LineState, record: TransactionRecord, current_date: str) -> LineState:
  if not _keep(record):
    logger.debug(f"Discarding header record: {record}")
    return LineState(state.records, current_date, state.last_index)
  records = state.records + (record,)
  return LineState(records, current_date, len(records) - 1)


def _fold_block(state: LineState, block: LineBlock) -> LineState:
  if block.date is not None:
    return _push(state, _dated_record(block), block.date)

  record = _undated_record(block.head, state.current_date)
  if record is not None:
    return _push(state, record, state.current_date)

  if state.last_index is None:
    return state
  records = list(state.records)
  records[state.last_index] = records[state.last_index].append_details(block.head)
  return LineState(tuple(records), state.current_date, state.last_index)


def parse_lines_to_transactions(lines: Iterable[Optional[str]]) -> List[TransactionRecord]:
  """Parse reconstructed statement lines into transaction records."""
  blocks = segment_lines(lines)
  state = reduce(_fold_block, blocks, LineState())
  logger.info(f"Line parser built {len(state.records)} transactions from {len(blocks)} blocks")
  return list(state.records)
