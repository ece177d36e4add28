"""Shared pytest fixtures for coopledger tests."""

import tempfile
import os
from pathlib import Path
import pytest

from coopledger.database.factories import create_sqlite_database
from coopledger.domain.balance_sheet import BalanceSheetService
from coopledger.domain.coa import CoaService
from coopledger.domain.csv_import import CSVImportService
from coopledger.domain.general_ledger import GeneralLedgerService
from coopledger.domain.profit_loss import ProfitLossService
from coopledger.domain.reconciliation import ReconciliationService
from coopledger.domain.transaction import TransactionService

# (account name, master, submenu, code)
SAMPLE_ACCOUNTS = [
    ("Bank BCA", "Assets", "Cash and Bank", "1001"),
    ("Petty Cash", "Assets", "Cash and Bank", "1002"),
    ("Member Receivables", "Assets", "Accounts Receivable", "1003"),
    ("Office Equipment", "Assets", "Fixed Assets", "1004"),
    ("Bank Loan", "Liabilities", "Long Term Liabilities", "2001"),
    ("Supplier Payables", "Liabilities", "Accounts Payable", "2002"),
    ("Member Capital", "Equity", "Owner's Equity", "3001"),
    ("Product Sales", "Income", "Sales Revenue", "4001"),
    ("Interest Income", "Income", "Other Income", "4002"),
    ("Inventory Purchases", "Expenses", "Cost of Goods Sold", "5001"),
    ("Office Rent", "Expenses", "Operating Expenses", "5002"),
    ("Electricity", "Expenses", "Operating Expenses", "5003"),
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def coa_service(temp_db):
    """Create a CoaService with a temporary database."""
    return CoaService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def csv_import_service(temp_db):
    """Create a CSVImportService with a temporary database."""
    return CSVImportService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def profit_loss_service(temp_db):
    return ProfitLossService(temp_db)


@pytest.fixture
def balance_sheet_service(temp_db):
    return BalanceSheetService(temp_db)


@pytest.fixture
def general_ledger_service(temp_db):
    return GeneralLedgerService(temp_db)


@pytest.fixture
def seeded_chart(temp_db, coa_service):
    """Seed the default chart and return submenu IDs keyed by (master, submenu)."""
    coa_service.seed_chart()
    submenu_ids = {}
    for master in temp_db.list_masters():
        for submenu in temp_db.list_submenus(master_id=master.id):
            submenu_ids[(master.name.value, submenu.name)] = submenu.id
    return submenu_ids


@pytest.fixture
def accounts(coa_service, seeded_chart):
    """Create the sample accounts and return their IDs keyed by name."""
    account_ids = {}
    for name, master, submenu, code in SAMPLE_ACCOUNTS:
        account_ids[name] = coa_service.create_account(
            submenu_id=seeded_chart[(master, submenu)], name=name, code=code
        )
    return account_ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
