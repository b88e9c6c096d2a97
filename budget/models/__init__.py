from .budget_item import BudgetItem
