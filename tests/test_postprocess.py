import unittest

from bankstatementparser.postprocess import (
  clean_records,
  drop_image_records,
  drop_noise_records,
  enforce_balance_uniqueness,
  propagate_dates,
  skip_leading_summaries,
  truncate_at_end_marker,
)
from bankstatementparser.records import TransactionRecord as T


class PostprocessTest(unittest.TestCase):
  def test_propagate_dates(self):
    records = [T(date='14 Nov 16'), T(date='14 Nov 16'), T(date='')]
    self.assertEqual(propagate_dates(records)[2].date, '14 Nov 16')

  def test_leading_rows_without_anchor_keep_empty_date(self):
    records = [T(details1='x'), T(date='1 Dec 16')]
    self.assertEqual([r.date for r in propagate_dates(records)], ['', '1 Dec 16'])

  def test_balance_moves_to_side_on_earlier_same_date_record(self):
    records = [
      T(date='14 Nov 16', payment_type='VIS', balance='95.00'),
      T(date='14 Nov 16', payment_type='VIS', paid_out='10.00'),
    ]
    first, second = enforce_balance_uniqueness(records)
    self.assertEqual((first.balance, first.paid_out), ('', '95.00'))
    self.assertEqual(second.paid_out, '10.00')

  def test_balance_moves_to_paid_in_for_credit(self):
    records = [
      T(date='14 Nov 16', payment_type='CR', balance='95.00'),
      T(date='14 Nov 16', payment_type='VIS', balance='85.00'),
    ]
    first, second = enforce_balance_uniqueness(records)
    self.assertEqual((first.paid_in, first.balance), ('95.00', ''))
    self.assertEqual(second.balance, '85.00')

  def test_stray_balance_is_discarded_when_side_present(self):
    records = [
      T(date='14 Nov 16', payment_type='VIS', paid_out='5.00', balance='95.00'),
      T(date='14 Nov 16', payment_type='VIS', paid_out='10.00'),
    ]
    first = enforce_balance_uniqueness(records)[0]
    self.assertEqual((first.paid_out, first.balance), ('5.00', ''))

  def test_image_records_dropped(self):
    records = [T(date='1 Dec 16', details2='see data:image/png'), T(date='1 Dec 16', details1='ok')]
    self.assertEqual([r.details1 for r in drop_image_records(records)], ['ok'])

  def test_skip_leading_summaries(self):
    records = [
      T(date='1 Dec 16', details1='Opening balance'),
      T(details1='stray'),
      T(date='1 Dec 16', payment_type='VIS', details1='SHOP'),
      T(details1='after'),
    ]
    self.assertEqual([r.details1 for r in skip_leading_summaries(records)], ['SHOP', 'after'])

  def test_skip_leading_summaries_without_anchor_keeps_everything(self):
    records = [T(details1='a'), T(details1='b')]
    self.assertEqual(skip_leading_summaries(records), records)

  def test_truncate_at_end_marker(self):
    records = [T(details1='SHOP'), T(details1='Closing balance'), T(details1='later')]
    self.assertEqual([r.details1 for r in truncate_at_end_marker(records)], ['SHOP'])

  def test_drop_noise_records(self):
    long_text = 'words ' * 50
    records = [
      T(details1='Interest 19.90%', paid_out='1.00'),
      T(details1='Covered by the Financial Services Compensation Scheme'),
      T(details1='International Bank Account Number GB00'),
      T(details1=long_text),
      T(date='1 Dec 16', details1=long_text),
      T(details1='SHOP', paid_out='2.00'),
    ]
    kept = drop_noise_records(records)
    self.assertEqual(len(kept), 2)
    self.assertEqual(kept[1].details1, 'SHOP')

  def test_clean_records_result_has_exclusive_sides(self):
    records = [
      T(date='1 Dec 16', payment_type='CR', paid_in='1.00', paid_out='2.00', balance='3.00'),
    ]
    result = clean_records(records)
    self.assertEqual((result[0].paid_in, result[0].paid_out), ('1.00', ''))


if __name__ == '__main__':
  unittest.main()
