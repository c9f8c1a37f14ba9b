"""
OHADA Modules.

Layers over the ledger kernel:

- automation: posts invoices, payments, purchase receptions and payroll as
  balanced entries through the entry service.
- reporting: derives OHADA statements from validated entries.
"""
