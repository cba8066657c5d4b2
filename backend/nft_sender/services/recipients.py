"""
Recipient parsing.

Turns pasted text or spreadsheet cells into an ordered list of recipient
strings (emails or wallet addresses). Validation is by shape only: a token is
kept if it looks like an email or is long enough to be a wallet address.
Duplicates are kept.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from openpyxl import load_workbook

from nft_sender.core.constants import NO_VALID_RECIPIENTS_MESSAGE, WALLET_MIN_LENGTH

logger = logging.getLogger(__name__)

RECIPIENT_SEPARATOR = re.compile(r"[\s,]+")

SPREADSHEET_EXTENSIONS = (".csv", ".xlsx")


class NoValidRecipientsError(ValueError):
    """Raised when an input yields no acceptable recipient."""

    def __init__(self, message: str = NO_VALID_RECIPIENTS_MESSAGE):
        super().__init__(message)


class SpreadsheetError(ValueError):
    """Raised when an uploaded file cannot be read as a recipient sheet."""


@dataclass
class ParsedRecipients:
    recipients: list[str] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.recipients)


def is_valid_recipient(token: str) -> bool:
    """Email-shaped (has '@' and '.') or wallet-length (>= 30 characters)."""
    is_email = "@" in token and "." in token
    is_wallet = len(token) >= WALLET_MIN_LENGTH
    return is_email or is_wallet


def split_tokens(text: str) -> list[str]:
    return [token.strip() for token in RECIPIENT_SEPARATOR.split(text) if token.strip()]


def parse_recipients(text: str) -> ParsedRecipients:
    """Split on whitespace/commas and keep the tokens that look like recipients."""
    parsed = ParsedRecipients()
    for token in split_tokens(text or ""):
        if is_valid_recipient(token):
            parsed.recipients.append(token)
        else:
            parsed.discarded.append(token)
    if parsed.discarded:
        logger.info(f"Dropped {len(parsed.discarded)} tokens that are neither emails nor wallets")
    return parsed


def parse_rows(values: Iterable[object]) -> ParsedRecipients:
    """Apply the text rules to spreadsheet cells; non-string cells are ignored."""
    cells = [value for value in values if isinstance(value, str)]
    return parse_recipients("\n".join(cells))


def require_recipients(parsed: ParsedRecipients) -> ParsedRecipients:
    if parsed.count == 0:
        raise NoValidRecipientsError()
    return parsed


def extract_first_column(filename: str, content: bytes) -> list[object]:
    """
    Read the first column of the first sheet of an uploaded file.

    The first row is treated as a header and skipped. Supports .csv and .xlsx.
    """
    name = (filename or "").lower()
    if name.endswith(".csv"):
        return _first_column_csv(content)
    if name.endswith(".xlsx"):
        return _first_column_xlsx(content)
    raise SpreadsheetError(
        f"Unsupported file type: {filename!r}. Expected one of {', '.join(SPREADSHEET_EXTENSIONS)}"
    )


def _first_column_csv(content: bytes) -> list[object]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SpreadsheetError("CSV file is not valid UTF-8") from e

    rows = list(csv.reader(io.StringIO(text)))
    return [row[0] for row in rows[1:] if row]


def _first_column_xlsx(content: bytes) -> list[object]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetError("Make sure the file is a valid Excel or CSV file.") from e

    try:
        sheet = workbook.worksheets[0]
        values = []
        for row in sheet.iter_rows(min_row=2, max_col=1, values_only=True):
            if row and row[0] is not None:
                values.append(row[0])
        return values
    finally:
        workbook.close()
