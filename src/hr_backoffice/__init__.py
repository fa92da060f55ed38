"""HR back office package.

Organized by feature modules (employees, leave, attendance, budget, receipts,
inventory) with a thin Flask controller layer over service/repository layers.
"""
