"""Domain layer for coopledger."""

from importlib import import_module

_SERVICES = {
    "CoaService": "coopledger.domain.coa",
    "TransactionService": "coopledger.domain.transaction",
    "CSVImportService": "coopledger.domain.csv_import",
    "ReconciliationService": "coopledger.domain.reconciliation",
    "ProfitLossService": "coopledger.domain.profit_loss",
    "BalanceSheetService": "coopledger.domain.balance_sheet",
    "GeneralLedgerService": "coopledger.domain.general_ledger",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports the entities from this
# package, so they are resolved lazily
def __getattr__(name):
    module = _SERVICES.get(name)
    if module is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    return getattr(import_module(module), name)
