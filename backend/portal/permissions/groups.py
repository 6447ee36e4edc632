# Overview: Built-in folder groups and presentation vocabularies.

FOLDER_THEMES = ("blue", "green", "red", "orange", "purple", "gray")
DEFAULT_FOLDER_THEME = "gray"

GROUP_FREQUENCIES = ("monthly", "quarterly", "yearly")

# (code, name, description, icon, default_theme, parent_group, sort_order)
DEFAULT_GROUPS = [
    ("gosl-payroll", "GOSL Payroll", "Root of the payroll folder tree", "folder", "blue", None, 0),
    ("PayrollArchive", "Payroll Archive", "Generated year and month archive folders", "archive", "blue", None, 1),
    ("hrm-public-service", "HRM Public Service", "Human resource management forms", "people", "green", None, 2),
    ("agd-finance", "AGD Finance", "Accountant General finance folders", "account_balance", "orange", None, 3),
]
