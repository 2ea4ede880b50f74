import os
import tempfile
import unittest
from unittest import mock

import pandas as pd
from fpdf import FPDF

from bankstatementparser.converter import BankStatementConverter
from bankstatementparser.records import COLUMNS


class ConverterTest(unittest.TestCase):
  def _create_pdf(self, path):
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font('Helvetica', size=10)
    pdf.text(10, 15, 'Your Bank Account details')
    lines = [
      (25, [(10, 'Date'), (40, 'Payment type'), (70, 'Details'), (120, 'Paid out'), (145, 'Paid in'), (170, 'Balance')]),
      (35, [(10, '12 Nov 16'), (40, 'VIS'), (70, 'GWR TAUNTON SST'), (120, '8.10')]),
      (45, [(10, '13 Nov 16'), (40, 'CR'), (70, 'SALARY'), (145, '500.00'), (170, '1,491.90')]),
    ]
    for y, cells in lines:
      for x, text in cells:
        pdf.text(x, y, text)
    pdf.output(path)

  def _create_single_run_pdf(self, path):
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font('Helvetica', size=10)
    pdf.cell(0, 10, '12 Nov 16 VIS SOME SHOP 8.10 8.10 8.10', ln=True)
    pdf.output(path)

  def test_extract_pages_flips_y_axis(self):
    with tempfile.TemporaryDirectory() as tmp:
      pdf_path = os.path.join(tmp, 'sample.pdf')
      self._create_pdf(pdf_path)
      pages = BankStatementConverter().extract_pages(pdf_path)
      self.assertEqual(len(pages), 1)
      by_text = {f.text: f for f in pages[0]}
      self.assertIn('12 Nov 16', by_text)
      self.assertGreater(by_text['12 Nov 16'].y, by_text['13 Nov 16'].y)

  def test_parse_uses_column_layout(self):
    with tempfile.TemporaryDirectory() as tmp:
      pdf_path = os.path.join(tmp, 'sample.pdf')
      self._create_pdf(pdf_path)
      records = BankStatementConverter().parse(pdf_path)
    self.assertEqual(len(records), 2)
    shop, salary = records
    self.assertEqual((shop.date, shop.payment_type, shop.details1), ('12 Nov 16', 'VIS', 'GWR TAUNTON SST'))
    self.assertEqual((shop.paid_out, shop.paid_in, shop.balance), ('8.10', '', ''))
    self.assertEqual((salary.paid_out, salary.paid_in, salary.balance), ('', '500.00', '1491.90'))

  def test_line_based_mode(self):
    with tempfile.TemporaryDirectory() as tmp:
      pdf_path = os.path.join(tmp, 'single.pdf')
      self._create_single_run_pdf(pdf_path)
      records = BankStatementConverter(line_based=True).parse(pdf_path)
    self.assertEqual(len(records), 1)
    self.assertEqual(records[0].date, '12 Nov 16')
    self.assertEqual((records[0].paid_out, records[0].paid_in, records[0].balance), ('8.10', '', '8.10'))

  def test_falls_back_to_lines_when_layout_finds_nothing(self):
    with tempfile.TemporaryDirectory() as tmp:
      pdf_path = os.path.join(tmp, 'single.pdf')
      self._create_single_run_pdf(pdf_path)
      with mock.patch('bankstatementparser.converter.parse_pages', return_value=[]) as layout:
        records = BankStatementConverter().parse(pdf_path)
    layout.assert_called_once()
    self.assertEqual(len(records), 1)
    self.assertEqual(records[0].payment_type, 'VIS')

  def test_convert(self):
    with tempfile.TemporaryDirectory() as tmp:
      pdf_path = os.path.join(tmp, 'sample.pdf')
      self._create_pdf(pdf_path)
      csv_path = os.path.join(tmp, 'out.csv')
      missing = os.path.join(tmp, 'missing.pdf')
      df = BankStatementConverter().convert([missing, pdf_path], csv_path)
      with open(csv_path) as f:
        first_line = f.readline().strip()
      written = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    self.assertEqual(first_line, ','.join(f'"{h}"' for h in COLUMNS))
    self.assertEqual(len(df), 2)
    self.assertEqual(list(written['Paid In']), ['', '500.00'])


if __name__ == '__main__':
  unittest.main()
