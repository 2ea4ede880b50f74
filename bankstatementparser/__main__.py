import argparse
import logging

from .converter import BankStatementConverter
from .export import FORMATS


def main():
  parser = argparse.ArgumentParser(description='Extract transactions from bank statement PDFs')
  parser.add_argument('pdfs', nargs='+', help='Input PDF files')
  parser.add_argument('--output', required=True, help='Output file (.csv, .xlsx or .xml)')
  parser.add_argument('--format', choices=FORMATS, help='Output format; defaults to the output extension')
  parser.add_argument('--line-based', action='store_true', help='Skip layout analysis and parse text lines')
  parser.add_argument('--verbose', action='store_true', help='Log debug details')
  args = parser.parse_args()

  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(levelname)s | %(message)s",
  )

  converter = BankStatementConverter(line_based=args.line_based)
  df = converter.convert(args.pdfs, args.output, args.format)
  print(f"Parsed {len(df)} transactions -> {args.output}")


if __name__ == '__main__':
  main()
