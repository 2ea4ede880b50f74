import os
import tempfile
import unittest

import pandas as pd

from bankstatementparser.export import infer_format, write_records
from bankstatementparser.records import COLUMNS, TransactionRecord, to_dataframe

RECORDS = [
  TransactionRecord('12 Nov 16', 'VIS', 'GWR TAUNTON SST', 'TAUNTON', '', '8.10', ''),
  TransactionRecord('13 Nov 16', 'CR', 'SALARY & BONUS', '', '500.00', '', '1491.90'),
]


class ExportTest(unittest.TestCase):
  def test_dataframe_columns_in_statement_order(self):
    df = to_dataframe(RECORDS)
    self.assertEqual(list(df.columns), COLUMNS)
    self.assertEqual(df.loc[0, 'Paid Out'], '8.10')
    self.assertEqual(list(to_dataframe([]).columns), COLUMNS)

  def test_infer_format(self):
    self.assertEqual(infer_format('out.XLSX'), 'xlsx')
    with self.assertRaises(ValueError):
      infer_format('out.json')

  def test_xlsx(self):
    with tempfile.TemporaryDirectory() as tmp:
      path = os.path.join(tmp, 'out.xlsx')
      write_records(RECORDS, path)
      df = pd.read_excel(path, sheet_name='Transactions', dtype=str)
    self.assertEqual(list(df.columns), COLUMNS)
    self.assertEqual(df.loc[1, 'Balance'], '1491.90')

  def test_xml(self):
    with tempfile.TemporaryDirectory() as tmp:
      path = os.path.join(tmp, 'out.txt')
      write_records(RECORDS, path, fmt='xml')
      with open(path, encoding='utf-8') as f:
        xml = f.read()
    self.assertIn('<transactions>', xml)
    self.assertEqual(xml.count('<transaction>'), 2)
    self.assertIn('<paymentType>VIS</paymentType>', xml)
    self.assertIn('SALARY &amp; BONUS', xml)

  def test_unknown_format(self):
    with tempfile.TemporaryDirectory() as tmp:
      with self.assertRaises(ValueError):
        write_records(RECORDS, os.path.join(tmp, 'out.csv'), fmt='pdf')


if __name__ == '__main__':
  unittest.main()
