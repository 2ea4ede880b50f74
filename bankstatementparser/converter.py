"""Extracts transactions from text-layer PDF bank statements.

Every page goes through the layout-aware parser; when the whole document
yields nothing, it is parsed again line by line.
"""

import logging
from typing import List, Optional

import pandas as pd

from .export import write_records
from .layout_parser import TextFragment, fragments_to_lines, parse_pages
from .line_parser import parse_lines_to_transactions
from .records import TransactionRecord, to_dataframe

logger = logging.getLogger(__name__)


class BankStatementConverter:
  def __init__(self, line_based: bool = False):
    self.line_based = line_based

  def extract_pages(self, pdf_path: str) -> List[List[TextFragment]]:
    """Positioned text runs per page, with y growing upwards."""
    import pdfplumber

    pages = []
    with pdfplumber.open(pdf_path) as pdf:
      for page in pdf.pages:
        words = page.extract_words(keep_blank_chars=True)
        pages.append([
          TextFragment(float(w['x0']), float(page.height - w['bottom']), w['text'])
          for w in words
        ])
    logger.info(f"Extracted {sum(len(p) for p in pages)} text runs from {len(pages)} pages of {pdf_path}")
    return pages

  def parse(self, pdf_path: str) -> List[TransactionRecord]:
    pages = self.extract_pages(pdf_path)
    records = [] if self.line_based else parse_pages(pages)
    if not records:
      if not self.line_based:
        logger.info(f"No transactions found by layout in {pdf_path}, falling back to line parsing")
      lines = [line for fragments in pages for line in fragments_to_lines(fragments)]
      records = parse_lines_to_transactions(lines)
    logger.info(f"Parsed {len(records)} transactions from {pdf_path}")
    return records

  def convert(self, pdf_paths: List[str], output_path: str, fmt: Optional[str] = None) -> pd.DataFrame:
    """Parse several PDFs and write all their transactions to one file."""
    records: List[TransactionRecord] = []
    for path in pdf_paths:
      try:
        records.extend(self.parse(path))
      except Exception as e:
        logger.error(f"Error processing {path}: {str(e)}")
        continue
    write_records(records, output_path, fmt)
    return to_dataframe(records)
