from .user import User
from .category import Category, INCOME, EXPENSE, KINDS
from .transaction import Transaction
from .budget_entry import BudgetEntry
from .app_settings import AppSettings

__all__ = ["User", "Category", "Transaction", "BudgetEntry", "AppSettings", "INCOME", "EXPENSE", "KINDS"]
