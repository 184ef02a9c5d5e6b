# ledgerbook/models/__init__.py
from .institute import Institute
from .ledger import Ledger, Category, LedgerType
from .ledger_entry import LedgerEntry, EntrySource, EntryDirection
from .petty_cash import PettyCashFund, PettyCashTransaction, FundStatus, PettyCashTransactionType
