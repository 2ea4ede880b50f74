"""
Bank Statement Parser Package

Recovers transaction records from the text layer of PDF bank statements.
"""

from .classify import is_credit_type, is_header_text, map_money_array, normalize
from .converter import BankStatementConverter
from .layout_parser import TextFragment, parse_page_items_to_rows, parse_pages
from .line_parser import parse_lines_to_transactions
from .records import TransactionRecord, to_dataframe

__version__ = "1.0.0"

__all__ = [
    "BankStatementConverter",
    "TextFragment",
    "TransactionRecord",
    "is_credit_type",
    "is_header_text",
    "map_money_array",
    "normalize",
    "parse_lines_to_transactions",
    "parse_page_items_to_rows",
    "parse_pages",
    "to_dataframe",
]
