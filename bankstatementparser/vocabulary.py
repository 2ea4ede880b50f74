"""Payment-type vocabulary, noise patterns and layout tunables."""

import re
from functools import lru_cache

# Canonical payment-type tokens as printed on statements. Order matters:
# fallback searches return the first token that matches.
PAYMENT_TYPES = (
  'VIS', 'ATM', 'DD', 'TFR', 'CR', 'DR', 'POS', 'CHG', 'INT', 'SO', 'SOE', 'CHEQUE', ')))',
)

# Payment types whose single amount is money coming in.
CREDIT_TYPES = frozenset({'CR', 'TFR', 'INT'})

# Repeated table headers and statement boilerplate.
HEADER_SUBSTRINGS = (
  'payment type',
  'your bank account',
  'balance brought',
  'balance carried',
  'account name',
)

MONTHS_ABBR = r"Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

# e.g. "19 Oct 22" or "3 Jan 2021"
DATE_RE = re.compile(rf"^\s*(\d{{1,2}}\s+(?:{MONTHS_ABBR})\s+\d{{2,4}})\b", re.IGNORECASE)
MONEY_RE = re.compile(r"\d{1,3}(?:,\d{3})*(?:\.\d{2})|\d+\.\d{2}")

# Short all-caps token at the start of a line ("VIS SHOP ..."). Case sensitive.
LEADING_TYPE_RE = re.compile(r"^([A-Z]{1,5})\b")
# A whole fragment made of a short all-caps code ("GWR", "BGC").
SHORT_CAPS_RE = re.compile(r"^[A-Z]{2,4}$")

# Embedded image data leaked into the text layer.
IMAGE_DATA_RE = re.compile(r"data:image|dataimage", re.IGNORECASE)

SUMMARY_RE = re.compile(
  r"balance brought|opening balance|payments in|payments out|closing balance|overdraft limit|balance carried",
  re.IGNORECASE,
)
END_MARKER_RE = re.compile(
  r"last carried forward|balance carried forward|balance carried|closing balance|balance brought forward",
  re.IGNORECASE,
)
POLICY_RE = re.compile(
  r"financial services compensation scheme|effective from|interest rates|registered in england"
  r"|ombudsman|financial ombudsman|hsbc bank plc",
  re.IGNORECASE,
)
ACCOUNT_META_RE = re.compile(
  r"overdraft limit|international bank account number|account number|sortcode|sort code"
  r"|registered in england|your bank account details",
  re.IGNORECASE,
)
# Interest-rate rows such as "19.90 %" or "19.90%".
PERCENT_RE = re.compile(r"\d{1,3}(?:\.\d+)?\s*%")

# Column header labels, matched against a whole fragment.
HEADER_LABELS = {
  'paid_out': re.compile(r"^(?:paid|money)\s+out\b", re.IGNORECASE),
  'paid_in': re.compile(r"^(?:paid|money)\s+in\b", re.IGNORECASE),
  'balance': re.compile(r"^balance(?:\s*\(?\W?\)?)?$", re.IGNORECASE),
}
# First half of a label split over two fragments ("PAID" + "OUT").
HEADER_PREFIX_RE = re.compile(r"^(?:paid|money)$", re.IGNORECASE)
HEADER_SUFFIXES = {'out': 'paid_out', 'in': 'paid_in'}

COLUMN_TOLERANCE = 6
MAX_COLUMNS = 3
MAX_PARAGRAPH_LENGTH = 200


@lru_cache(maxsize=None)
def type_pattern(token):
  """Case-insensitive whole-word pattern for a vocabulary token."""
  return re.compile(r"(?<!\w)" + re.escape(token) + r"(?!\w)", re.IGNORECASE)
